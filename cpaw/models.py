"""Domain records shared by the storage, service and web layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


class Role(str):
    """A user role.

    Roles are plain strings, so values read from forms or the database are kept
    as they are. ``is_valid`` tells whether a value is one of the known roles.
    """

    ADMIN: ClassVar[Role]
    USER: ClassVar[Role]

    def is_valid(self) -> bool:
        """Return True if this role is one of the known roles."""
        return self in _ALL_ROLES

    def __repr__(self) -> str:
        return f"Role({str.__repr__(self)})"


Role.ADMIN = Role("admin")
Role.USER = Role("user")

_ALL_ROLES: tuple[Role, ...] = (Role.ADMIN, Role.USER)


def all_roles() -> list[Role]:
    """Return every known role, administrators first."""
    return list(_ALL_ROLES)


@dataclass(frozen=True)
class Item:
    """A clipboard entry owned by a user."""

    id: str = ""
    created_at: int = 0
    content: str = ""
    user_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the item."""
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "content": self.content,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class Session:
    """A sign-in session identified by its token."""

    token: str = ""
    expires_at: int = 0
    user_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the session."""
        return {
            "token": self.token,
            "expiresAt": self.expires_at,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class User:
    """An account. The password hash never leaves through ``to_dict``."""

    id: str = ""
    created_at: int = 0
    user_name: str = ""
    password_hash: str = field(default="", repr=False)
    role: Role = field(default_factory=lambda: Role(""))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the user, without the hash."""
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "userName": self.user_name,
            "role": str(self.role),
        }