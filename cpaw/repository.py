"""SQLite-backed storage for users, sessions and clipboard items."""

from __future__ import annotations

import sqlite3
import time
import uuid
from datetime import datetime
from typing import Optional, Union

from cpaw.hashing import new_from_password
from cpaw.models import Item, Role, Session, User


class NotFoundError(LookupError):
    """Raised when a lookup matches no stored entry."""

    def __init__(self, message: str = "Could not find any entry.") -> None:
        super().__init__(message)


def _now() -> int:
    return int(time.time())


def _new_id() -> str:
    return str(uuid.uuid4())


def _item_from_row(row: tuple) -> Item:
    return Item(id=row[0], created_at=int(row[1]), content=row[2], user_id=row[3])


def _session_from_row(row: tuple) -> Session:
    return Session(token=row[0], expires_at=int(row[1]), user_id=row[2])


def _user_from_row(row: tuple) -> User:
    return User(
        id=row[0],
        created_at=int(row[1]),
        user_name=row[2],
        password_hash=row[3],
        role=Role(row[4]),
    )


_ITEM_COLUMNS = "id, created_at, content, user_id"
_SESSION_COLUMNS = "token, expires_at, user_id"
_USER_COLUMNS = "id, created_at, user_name, password_hash, role"


class ItemRepository:
    """Stores clipboard items."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def create_item(self, content: str, user_id: str) -> Item:
        """Store a new item for ``user_id`` and return it."""
        item_id = _new_id()
        self.connection.execute(
            "INSERT INTO items (id, created_at, content, user_id) VALUES (?, ?, ?, ?);",
            (item_id, _now(), content, user_id),
        )
        return self.get_item_by_id(item_id)

    def get_item_by_id(self, item_id: str) -> Item:
        """Return the item with ``item_id``; raise NotFoundError if absent."""
        row = self.connection.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE id = ?;", (item_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError()
        return _item_from_row(row)

    def get_item_for_user(self, item_id: str, user_id: str) -> Item:
        """Return the item ``item_id`` owned by ``user_id``; raise NotFoundError if absent."""
        row = self.connection.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE id = ? AND user_id = ?;",
            (item_id, user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError()
        return _item_from_row(row)

    def list_items_for_user(self, user_id: str) -> list[Item]:
        """Return the user's items, newest first."""
        rows = self.connection.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE user_id = ? ORDER BY created_at DESC;",
            (user_id,),
        )
        return [_item_from_row(row) for row in rows]

    def delete_item_for_user(self, item_id: str, user_id: str) -> None:
        """Delete the item ``item_id`` if it belongs to ``user_id``."""
        self.connection.execute(
            "DELETE FROM items WHERE id = ? AND user_id = ?;", (item_id, user_id)
        )


class SessionRepository:
    """Stores sign-in sessions."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def create_session(
        self, token: str, expires_at: Union[datetime, int, float], user_id: str
    ) -> Session:
        """Store a session expiring at ``expires_at`` and return it."""
        if isinstance(expires_at, datetime):
            expires_unix = int(expires_at.timestamp())
        else:
            expires_unix = int(expires_at)
        self.connection.execute(
            "INSERT INTO sessions (token, expires_at, user_id) VALUES (?, ?, ?);",
            (token, expires_unix, user_id),
        )
        return self.get_session_by_token(token)

    def get_session_by_token(self, token: str) -> Session:
        """Return the session for ``token``; raise NotFoundError if absent."""
        row = self.connection.execute(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE token = ?;", (token,)
        ).fetchone()
        if row is None:
            raise NotFoundError()
        return _session_from_row(row)

    def delete_session_with_token(self, token: str) -> None:
        """Delete the session for ``token``."""
        self.connection.execute("DELETE FROM sessions WHERE token = ?;", (token,))

    def delete_all(self) -> None:
        """Delete every session."""
        self.connection.execute("DELETE FROM sessions;")

    def delete_expired(self) -> None:
        """Delete every session whose expiry is now or earlier."""
        self.connection.execute("DELETE FROM sessions WHERE expires_at <= ?;", (_now(),))


class UserRepository:
    """Stores user accounts."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def get_user_count(self) -> int:
        """Return the number of stored users."""
        (count,) = self.connection.execute("SELECT COUNT(1) FROM users;").fetchone()
        return int(count)

    def create_user(
        self, user_name: str, password: str, role: Optional[str] = None
    ) -> User:
        """Store a new user with a hashed password and return it.

        An empty or missing role becomes the plain user role.
        """
        user_role = Role(role) if role else Role.USER
        user_id = _new_id()
        password_hash = new_from_password(password)
        self.connection.execute(
            "INSERT INTO users (id, created_at, user_name, password_hash, role) "
            "VALUES (?, ?, ?, ?, ?);",
            (user_id, _now(), user_name, password_hash, str(user_role)),
        )
        return self.get_user_by_id(user_id)

    def get_user_by_id(self, user_id: str) -> User:
        """Return the user with ``user_id``; raise NotFoundError if absent."""
        row = self.connection.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ? LIMIT 1;", (user_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError()
        return _user_from_row(row)

    def get_user_by_name(self, name: str) -> User:
        """Return the user called ``name``; raise NotFoundError if absent."""
        row = self.connection.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE user_name = ? LIMIT 1;", (name,)
        ).fetchone()
        if row is None:
            raise NotFoundError()
        return _user_from_row(row)

    def list_users(self) -> list[User]:
        """Return every user ordered by name."""
        rows = self.connection.execute(
            f"SELECT {_USER_COLUMNS} FROM users ORDER BY user_name;"
        )
        return [_user_from_row(row) for row in rows]

    def update_password(self, user_id: str, password: str) -> None:
        """Replace the user's password hash with one for ``password``."""
        password_hash = new_from_password(password)
        self.connection.execute(
            "UPDATE users SET password_hash = ? WHERE id = ?;", (password_hash, user_id)
        )

    def update_user_name(self, user_id: str, user_name: str) -> None:
        """Rename the user; raise sqlite3.IntegrityError if the name is taken."""
        self.connection.execute(
            "UPDATE users SET user_name = ? WHERE id = ?;", (user_name, user_id)
        )

    def delete_user_by_id(self, user_id: str) -> None:
        """Delete the user with ``user_id``."""
        self.connection.execute("DELETE FROM users WHERE id = ?;", (user_id,))

    def delete_all(self) -> None:
        """Delete every user."""
        self.connection.execute("DELETE FROM users;")