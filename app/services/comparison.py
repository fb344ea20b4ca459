"""
Property Comparison
Per-user side-by-side list, held in memory for the life of the session
"""

import uuid
from typing import Dict, List

MAX_COMPARISON_ITEMS = 3


class ComparisonList:
    """Ordered list of at most three property ids; adding to a full list drops the oldest"""

    def __init__(self, max_items: int = MAX_COMPARISON_ITEMS):
        self.max_items = max_items
        self._items: List[uuid.UUID] = []

    def add(self, property_id: uuid.UUID) -> List[uuid.UUID]:
        if property_id in self._items:
            return self.items
        if len(self._items) >= self.max_items:
            self._items.pop(0)
        self._items.append(property_id)
        return self.items

    def remove(self, property_id: uuid.UUID) -> List[uuid.UUID]:
        self._items = [p for p in self._items if p != property_id]
        return self.items

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, property_id: uuid.UUID) -> bool:
        return property_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> List[uuid.UUID]:
        return list(self._items)


class ComparisonStore:
    """Comparison lists keyed by user id; discarded on sign-out"""

    def __init__(self):
        self._lists: Dict[uuid.UUID, ComparisonList] = {}

    def for_user(self, user_id: uuid.UUID) -> ComparisonList:
        if user_id not in self._lists:
            self._lists[user_id] = ComparisonList()
        return self._lists[user_id]

    def discard(self, user_id: uuid.UUID) -> None:
        self._lists.pop(user_id, None)


# Global store
comparison_store = ComparisonStore()
