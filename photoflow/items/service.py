"""Access layer over the item store.

Validates uploads, assigns ids and timestamps, and is the single path the
HTTP routes and the transition engine use to read or change items.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from photoflow.items.errors import InvalidInput, ItemNotFound, PayloadTooLarge
from photoflow.items.models import Item, ItemState
from photoflow.storage.memory_store import ItemStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAYLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_BATCH_BYTES = 500 * 1024 * 1024


@dataclass
class BatchResult:
    """Outcome of a multi-file upload. ``skipped`` counts rejected parts."""
    created: List[Item] = field(default_factory=list)
    skipped: int = 0

    @property
    def partial(self) -> bool:
        return self.skipped > 0 and bool(self.created)


class ItemService:
    def __init__(
        self,
        store: ItemStore,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
        max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
    ):
        self._store = store
        self._max_payload_bytes = max_payload_bytes
        self._max_batch_bytes = max_batch_bytes
        self._delete_hooks: List[Callable[[str], None]] = []

    @property
    def max_payload_bytes(self) -> int:
        return self._max_payload_bytes

    @property
    def max_batch_bytes(self) -> int:
        return self._max_batch_bytes

    def add_delete_hook(self, hook: Callable[[str], None]) -> None:
        """Register a callback run with the id of every deleted item."""
        self._delete_hooks.append(hook)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, label: Optional[str], payload: Optional[bytes]) -> Item:
        """Store a new UPLOADED item and its payload.

        Raises InvalidInput for a missing or empty payload and
        PayloadTooLarge above the per-item limit.
        """
        if not payload:
            raise InvalidInput("Payload must not be empty")
        if len(payload) > self._max_payload_bytes:
            raise PayloadTooLarge(len(payload), self._max_payload_bytes)

        if label is None or not label.strip():
            label = f"unknown_{int(time.time() * 1000)}"

        item = Item.create_new(label, len(payload))
        self._store.add(item, payload)
        logger.info(
            "Uploaded item: id=%s, label=%s, size=%d bytes",
            item.id, item.label, item.payload_size,
        )
        return item

    def create_batch(
        self,
        uploads: Iterable[Tuple[Optional[str], Optional[bytes]]],
        skipped: int = 0,
    ) -> BatchResult:
        """Create one item per ``(label, payload)`` pair, skipping bad ones.

        ``skipped`` carries parts the caller already rejected (for example a
        non-image content type) so they show up in the batch totals. The
        batch as a whole is rejected when it is empty, when its summed size
        is over the batch limit, or when no item could be created.
        """
        uploads = list(uploads)
        if not uploads and not skipped:
            raise InvalidInput("At least one file must be provided")

        total = sum(len(payload or b"") for _, payload in uploads)
        if total > self._max_batch_bytes:
            raise PayloadTooLarge(total, self._max_batch_bytes, what="Batch")

        result = BatchResult(skipped=skipped)
        for label, payload in uploads:
            try:
                result.created.append(self.create(label, payload))
            except InvalidInput as exc:
                logger.warning("Skipping upload %s: %s", label, exc)
                result.skipped += 1

        if result.skipped:
            logger.info(
                "Uploaded %d items, skipped %d files",
                len(result.created), result.skipped,
            )
        if not result.created:
            raise InvalidInput(f"No valid files in upload ({result.skipped} skipped)")
        return result

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self) -> List[Item]:
        return self._store.list_all()

    def list_by_state(self, state: ItemState) -> List[Item]:
        return self._store.list_by_state(state)

    def get(self, item_id: str) -> Item:
        item = self._store.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    def get_payload(self, item_id: str) -> bytes:
        payload = self._store.get_payload(item_id)
        if payload is None:
            raise ItemNotFound(item_id)
        return payload

    def exists(self, item_id: str) -> bool:
        return self._store.exists(item_id)

    def counts(self) -> Dict[str, int]:
        return self._store.count_by_state()

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def set_state(self, item_id: str, new_state: ItemState) -> Item:
        """Override an item's state directly, bypassing the engine's timers."""
        old = self._store.get(item_id)
        if old is None:
            raise ItemNotFound(item_id)
        updated = self._store.update_state(item_id, new_state)
        if updated is None:
            raise ItemNotFound(item_id)
        logger.info("Item %s state changed: %s -> %s", item_id, old.state.value, new_state.value)
        return updated

    def advance(self, item_id: str, expected: ItemState, new_state: ItemState) -> Optional[Item]:
        """Move an item from ``expected`` to ``new_state``.

        Returns None, without raising, if the item was deleted or its state
        changed since the caller last looked.
        """
        updated = self._store.update_state(item_id, new_state, expected=expected)
        if updated is not None:
            logger.info("Item %s state changed: %s -> %s", item_id, expected.value, new_state.value)
        return updated

    def delete(self, item_id: str) -> None:
        if not self._store.delete(item_id):
            raise ItemNotFound(item_id)
        for hook in self._delete_hooks:
            hook(item_id)
        logger.info("Deleted item: %s", item_id)
