"""Request-scoped values carried in an immutable mapping."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional

from cpaw.models import User

_USER_ID_KEY = "keyUserIdCtx"
_USER_KEY = "keyUserCtx"


def _derive(parent: Optional[Mapping[str, Any]], key: str, value: Any) -> Mapping[str, Any]:
    values = dict(parent or {})
    values[key] = value
    return MappingProxyType(values)


def with_user_id(parent: Optional[Mapping[str, Any]], user_id: str) -> Mapping[str, Any]:
    """Return a new context holding ``user_id`` on top of ``parent``."""
    return _derive(parent, _USER_ID_KEY, user_id)


def get_user_id(context: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Return the user id stored in ``context``, or None."""
    value = (context or {}).get(_USER_ID_KEY)
    return value if isinstance(value, str) else None


def with_user(parent: Optional[Mapping[str, Any]], user: User) -> Mapping[str, Any]:
    """Return a new context holding ``user`` on top of ``parent``."""
    return _derive(parent, _USER_KEY, user)


def get_user(context: Optional[Mapping[str, Any]]) -> Optional[User]:
    """Return the user stored in ``context``, or None."""
    value = (context or {}).get(_USER_KEY)
    return value if isinstance(value, User) else None