"""Shopping lists built from recipe ingredients."""

import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from config.settings import MESSAGE_TEMPLATES
from .data_loader import Recipe

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ShoppingItem:
    """A single line on a shopping list."""
    id: str
    name: str
    completed: bool = False
    recipe_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "completed": self.completed,
            "recipe_id": self.recipe_id
        }


@dataclass
class ShoppingList:
    """A named list of items to buy."""
    id: str
    name: str
    items: List[ShoppingItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def pending(self) -> List[ShoppingItem]:
        return [item for item in self.items if not item.completed]

    @property
    def completed(self) -> List[ShoppingItem]:
        return [item for item in self.items if item.completed]

    def get_item(self, item_id: str) -> Optional[ShoppingItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "pending_count": len(self.pending),
            "completed_count": len(self.completed),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat()
        }


class ShoppingListStore:
    """
    In-memory shopping lists.

    Blank list names raise ``ValueError``; operations on unknown list ids
    return None (or False for deletes).
    """

    def __init__(self):
        self._lists: Dict[str, ShoppingList] = {}

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValueError(MESSAGE_TEMPLATES["list_name_required"])
        return name

    @staticmethod
    def _new_items(names: Iterable[str], recipe_id: Optional[str] = None) -> List[ShoppingItem]:
        return [
            ShoppingItem(id=uuid.uuid4().hex, name=name.strip(), recipe_id=recipe_id)
            for name in names
            if name and name.strip()
        ]

    def create(self, name: str, items: Optional[List[str]] = None) -> ShoppingList:
        shopping_list = ShoppingList(
            id=uuid.uuid4().hex,
            name=self._clean_name(name),
            items=self._new_items(items or [])
        )
        self._lists[shopping_list.id] = shopping_list
        logger.info(f"Created shopping list '{shopping_list.name}'")
        return shopping_list

    def list_lists(self) -> List[ShoppingList]:
        """Lists, most recently updated first."""
        return list(reversed(sorted(self._lists.values(), key=lambda s: s.updated_at)))

    def get(self, list_id: str) -> Optional[ShoppingList]:
        return self._lists.get(list_id)

    def update(
        self,
        list_id: str,
        name: Optional[str] = None,
        items: Optional[List[str]] = None
    ) -> Optional[ShoppingList]:
        """Rename a list and/or replace its items."""
        shopping_list = self._lists.get(list_id)
        if shopping_list is None:
            return None

        if name is not None:
            shopping_list.name = self._clean_name(name)
        if items is not None:
            shopping_list.items = self._new_items(items)
        shopping_list.updated_at = _utcnow()
        return shopping_list

    def delete(self, list_id: str) -> bool:
        if self._lists.pop(list_id, None) is None:
            return False
        logger.info(f"Deleted shopping list {list_id}")
        return True

    def add_items(
        self,
        list_id: str,
        names: Iterable[str],
        recipe_id: Optional[str] = None
    ) -> Optional[List[ShoppingItem]]:
        """Append items, skipping ones already pending on the list."""
        shopping_list = self._lists.get(list_id)
        if shopping_list is None:
            return None

        pending = {item.name.lower() for item in shopping_list.pending}
        added = []
        for item in self._new_items(names, recipe_id):
            if item.name.lower() in pending:
                continue
            pending.add(item.name.lower())
            added.append(item)

        shopping_list.items.extend(added)
        shopping_list.updated_at = _utcnow()
        return added

    def add_recipe(self, list_id: str, recipe: Recipe) -> Optional[List[ShoppingItem]]:
        """Put a recipe's ingredients on a list."""
        added = self.add_items(list_id, recipe.ingredients, recipe_id=recipe.id)
        if added is not None:
            logger.info(f"Added {len(added)} ingredients of '{recipe.title}' to list {list_id}")
        return added

    def toggle_item(self, list_id: str, item_id: str) -> Optional[ShoppingItem]:
        shopping_list = self._lists.get(list_id)
        if shopping_list is None:
            return None
        item = shopping_list.get_item(item_id)
        if item is None:
            return None
        item.completed = not item.completed
        shopping_list.updated_at = _utcnow()
        return item

    def clear_completed(self, list_id: str) -> Optional[int]:
        """Drop checked-off items and return how many were removed."""
        shopping_list = self._lists.get(list_id)
        if shopping_list is None:
            return None
        removed = len(shopping_list.completed)
        shopping_list.items = shopping_list.pending
        shopping_list.updated_at = _utcnow()
        return removed

    def __len__(self) -> int:
        return len(self._lists)
