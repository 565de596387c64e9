"""In-memory item store: records and payload bytes, guarded by one lock.

Nothing here survives a restart.
"""

import threading
from collections import Counter
from typing import Dict, List, Optional

from photoflow.items.models import Item, ItemState, utcnow


class ItemStore:
    """Thread-safe holder of item records and their payload bytes.

    Records are copied on the way in and on the way out, so callers always
    work with a snapshot and never see a record change underneath them.
    """

    def __init__(self):
        self._items: Dict[str, Item] = {}
        self._payloads: Dict[str, bytes] = {}
        self._lock = threading.RLock()

    def put(self, item: Item) -> Item:
        """Insert or overwrite a record by id."""
        if not item.id:
            raise ValueError("Item must have an id")
        with self._lock:
            self._items[item.id] = item.model_copy()
        return item

    def add(self, item: Item, payload: bytes) -> Item:
        """Write a record and its payload together."""
        if not item.id:
            raise ValueError("Item must have an id")
        with self._lock:
            self._payloads[item.id] = bytes(payload)
            self._items[item.id] = item.model_copy()
        return item

    def get(self, item_id: str) -> Optional[Item]:
        with self._lock:
            item = self._items.get(item_id)
            return item.model_copy() if item is not None else None

    def exists(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._items

    def list_all(self) -> List[Item]:
        with self._lock:
            return [item.model_copy() for item in self._items.values()]

    def list_by_state(self, state: ItemState) -> List[Item]:
        with self._lock:
            return [
                item.model_copy()
                for item in self._items.values()
                if item.state == state
            ]

    def update_state(
        self,
        item_id: str,
        new_state: ItemState,
        expected: Optional[ItemState] = None,
    ) -> Optional[Item]:
        """Set an item's state and bump ``updated_at``.

        With ``expected`` the write only happens if the current state still
        matches. Returns the updated record, or None if the item is gone or
        its state did not match.
        """
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                return None
            if expected is not None and item.state != expected:
                return None
            updated = item.model_copy(update={
                "state": new_state,
                "updated_at": max(utcnow(), item.updated_at),
            })
            self._items[item_id] = updated
            return updated.model_copy()

    def delete(self, item_id: str) -> bool:
        """Remove record and payload. Returns False if the id was unknown."""
        with self._lock:
            self._payloads.pop(item_id, None)
            return self._items.pop(item_id, None) is not None

    def put_payload(self, item_id: str, data: bytes) -> None:
        with self._lock:
            self._payloads[item_id] = bytes(data)

    def get_payload(self, item_id: str) -> Optional[bytes]:
        with self._lock:
            return self._payloads.get(item_id)

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def count_by_state(self) -> Dict[str, int]:
        with self._lock:
            counts = Counter(item.state.value for item in self._items.values())
        return {state.value: counts.get(state.value, 0) for state in ItemState}

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._payloads.clear()
