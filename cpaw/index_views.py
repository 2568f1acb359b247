"""The index page and the surrounding HTML document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cpaw.item_views import create_item_form, item_list
from cpaw.models import User


@dataclass(frozen=True)
class IndexPageData:
    """What the index page needs: the signed-in user, if any."""

    user: Optional[User] = None

    def is_logged_in(self) -> bool:
        """Return True if a user with an id is present."""
        return self.user is not None and len(self.user.id) > 0


def with_default_page(body: str) -> str:
    """Wrap ``body`` in the full HTML document with styles and scripts."""
    return (
        '<!doctype html><html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        '<meta name="color-scheme" content="light dark">'
        '<link rel="stylesheet" href="/static/css/pico.indigo.min.css">'
        '<link rel="stylesheet" href="/static/css/cpaw.css">'
        '<script src="/static/js/htmx.min.js"></script>'
        '<script src="/static/js/response-targets.js"></script>'
        "<title>cpaw</title></head>"
        '<body id="main_body" hx-ext="response-targets">'
        f"{body}</body></html>"
    )


def _index_body(page_data: IndexPageData) -> str:
    parts = ['<main class="container"><nav><ul><li><h3>cpaw</h3></li></ul><ul>']
    logged_in = page_data.is_logged_in()
    if logged_in:
        parts.append(
            '<li><a href="/settings" class="contrast">Settings</a></li>'
            '<li><button class="secondary outline" hx-post="/signout" '
            'hx-target="body">Signout</button></li>'
        )
    parts.append("</ul></nav><br><br>")
    if logged_in:
        parts.append("<h2>Clipboard</h2>")
        parts.append(create_item_form())
        parts.append(' <div hx-get="/items" hx-trigger="load">')
        parts.append(item_list([]))
        parts.append("</div>")
    else:
        parts.append("<h2>Sign in</h2>")
        parts.append(sign_in_form())
    parts.append("</main>")
    return "".join(parts)


def index_page(page_data: IndexPageData) -> str:
    """Return the full index page: the clipboard when signed in, else the sign-in form."""
    return with_default_page(_index_body(page_data))


def sign_in_form() -> str:
    """Return the sign-in form."""
    return (
        '<form hx-post="/signin" hx-swap="innerHTML" hx-target="#main_body" '
        'hx-target-error="#signin_error_response" novalidate>'
        '<fieldset class="group">'
        '<input type="text" name="username" placeholder="Username"> '
        '<input type="password" name="password" placeholder="Password"> '
        '<input type="submit" value="login"> '
        '<small id="signin_error_response"></small>'
        "</fieldset></form>"
    )