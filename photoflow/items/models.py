"""Item record data model for the photo workflow."""

from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field
import uuid


class ItemState(str, Enum):
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Item(BaseModel):
    """Tracks one uploaded photo through UPLOADED -> PROCESSING -> DONE/FAILED.

    The payload bytes live in the store next to the record; ``payload_ref``
    is the path they are served from.
    """
    id: str = Field(default_factory=_new_id)
    label: str
    state: ItemState = ItemState.UPLOADED
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    payload_size: int = 0
    payload_ref: str = ""

    @classmethod
    def create_new(cls, label: str, payload_size: int) -> "Item":
        """Build a fresh UPLOADED item with matching created/updated stamps."""
        item_id = _new_id()
        now = utcnow()
        return cls(
            id=item_id,
            label=label,
            state=ItemState.UPLOADED,
            created_at=now,
            updated_at=now,
            payload_size=payload_size,
            payload_ref=f"/photos/{item_id}/image",
        )

    def to_wire(self) -> dict:
        """camelCase JSON form returned by the HTTP routes."""
        return {
            "id": self.id,
            "label": self.label,
            "state": self.state.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "payloadSize": self.payload_size,
            "payloadRef": self.payload_ref,
        }
