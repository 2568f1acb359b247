"""Clipboard item operations used by the web handlers."""

from __future__ import annotations

from cpaw.models import Item
from cpaw.repository import ItemRepository


class ItemService:
    """Creates, reads and deletes clipboard items through a repository."""

    def __init__(self, items: ItemRepository) -> None:
        self._items = items

    def create_item(self, content: str, user_id: str) -> Item:
        """Store ``content`` as a new item owned by ``user_id``."""
        return self._items.create_item(content, user_id)

    def get_item_by_id(self, item_id: str) -> Item:
        """Return the item with ``item_id``; raise NotFoundError if absent."""
        return self._items.get_item_by_id(item_id)

    def get_item_for_user(self, item_id: str, user_id: str) -> Item:
        """Return the item ``item_id`` owned by ``user_id``; raise NotFoundError if absent."""
        return self._items.get_item_for_user(item_id, user_id)

    def list_items_for_user(self, user_id: str) -> list[Item]:
        """Return the user's items, newest first."""
        return self._items.list_items_for_user(user_id)

    def delete_item_for_user(self, item_id: str, user_id: str) -> None:
        """Delete the item ``item_id`` if it belongs to ``user_id``."""
        self._items.delete_item_for_user(item_id, user_id)