"""The settings page and the user administration table."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from cpaw.index_views import with_default_page
from cpaw.item_views import _escape
from cpaw.models import Role, User, all_roles


@dataclass(frozen=True)
class SettingsPageData:
    """What the settings page needs: the signed-in user, if any."""

    user: Optional[User] = None


@dataclass(frozen=True)
class SettingsUserRowData:
    """One row of the user table and whether its delete button is enabled."""

    user: User = field(default_factory=User)
    is_deletable: bool = False


def settings_page(page_data: SettingsPageData) -> str:
    """Return the full settings page; administrators also get the user table."""
    return with_default_page(_settings_body(page_data))


def _settings_body(page_data: SettingsPageData) -> str:
    user = page_data.user or User()
    parts = [
        '<main class="container"><nav><ul><li><h3>cpaw</h3></li></ul><ul>'
        '<li><a href="/" class="contrast">Home</a></li>'
        '<li><button class="secondary outline" hx-post="/signout" '
        'hx-target="body">Signout</button></li></ul></nav><br><br>'
        "<h2>Settings</h2><br><section><h3>Change Credentials</h3>"
        '<form novalidate><label>Username<fieldset role="group">'
        '<input type="text" placeholder="',
        _escape(user.user_name),
        '" name="user_name"> <input type="submit" value="Save">'
        "</fieldset></label></form>"
        '<form hx-put="/settings/auth/password" hx-swap="innerHTML" '
        'hx-target="#change_pw_response" hx-target-4xx="#change_pw_response" novalidate>'
        '<label>Password<fieldset role="group">'
        '<input type="password" placeholder="****" name="password"> '
        '<input type="submit" value="Save"></fieldset>'
        '<small id="change_pw_response"></small></label></form><br></section>',
    ]
    if user.role == Role.ADMIN:
        parts.append("<section><h3>Users</h3>")
        parts.append(_settings_user_table([]))
        parts.append("<br></section>")
    parts.append("</main>")
    return "".join(parts)


def _settings_user_table(users: Iterable[SettingsUserRowData]) -> str:
    return (
        '<table hx-get="/settings/auth/users" hx-trigger="load" '
        'hx-target="#user_settings_rows"><thead><tr>'
        '<form hx-post="/settings/auth/users" hx-swap="afterbegin" '
        'hx-target="#user_settings_rows" novalidate>'
        '<td><input type="text" placeholder="Username" name="username"></td><td>'
        f"{row_selection_drop_down()}"
        '</td><td><input type="password" placeholder="Password" name="password"></td>'
        '<td><input type="submit" value="Add"></td></form></tr></thead> '
        f'<tbody id="user_settings_rows">{settings_user_rows(users)}</tbody></table>'
    )


def settings_user_rows(users: Iterable[SettingsUserRowData]) -> str:
    """Return a table row for every user, in order."""
    return "".join(settings_user_row(data) for data in users)


def settings_user_row(data: SettingsUserRowData) -> str:
    """Return one user row; the delete button is disabled unless deletable."""
    user = data.user
    row_id = _escape("user_settings_row_" + user.id)
    delete_url = _escape("/settings/auth/users/" + user.id)
    target = _escape("#user_settings_row_" + user.id)
    disabled = "" if data.is_deletable else " disabled"
    return (
        f'<tr id="{row_id}">'
        f"<td>{_escape(user.user_name)}</td>"
        f"<td>{_escape(str(user.role))}</td>"
        "<td></td>"
        f'<td><button class="secondary" hx-delete="{delete_url}" '
        f'hx-swap="delete" hx-target="{target}"{disabled}>Delete</button></td></tr>'
    )


def row_selection_drop_down() -> str:
    """Return the role selector listing every known role."""
    options = "".join(f"<option>{_escape(str(role))}</option>" for role in all_roles())
    return f'<select name="role" aria-label="Role">{options}</select>'