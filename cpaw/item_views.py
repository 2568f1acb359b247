"""HTML fragments for clipboard items."""

from __future__ import annotations

from collections.abc import Iterable

from cpaw.models import Item

_ESCAPES = (
    ("&", "&amp;"),
    ("'", "&#39;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&#34;"),
)


def _escape(text: str) -> str:
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def create_item_form() -> str:
    """Return the form that pastes a new item at the top of the list."""
    return (
        '<form hx-post="/items" hx-target="#item_list" hx-swap="afterbegin" novalidate>'
        '<fieldset role="group">'
        '<input type="text" name="content" placeholder="" aria-label="Text"> '
        '<input type="submit" value="Paste">'
        "</fieldset></form>"
    )


def item_list(items: Iterable[Item]) -> str:
    """Return the list container holding every item in order."""
    rows = "".join(item(entry) for entry in items)
    return f'<div id="item_list">{rows}</div>'


def item(item: Item) -> str:
    """Return one item with its delete button."""
    element_id = _escape("list_item_" + item.id)
    delete_url = _escape("/items/" + item.id)
    target = _escape("#list_item_" + item.id)
    return (
        f'<article id="{element_id}">'
        '<div class="items-grid">'
        f"<div>{_escape(item.content)}</div>"
        f'<button class="secondary" hx-delete="{delete_url}" '
        f'hx-swap="delete" hx-target="{target}">Delete</button>'
        "</div></article>"
    )