"""Errors raised by the item access layer."""


class ItemError(Exception):
    """Base class for item workflow errors."""


class ItemNotFound(ItemError):
    def __init__(self, item_id: str):
        super().__init__(f"Item '{item_id}' not found")
        self.item_id = item_id


class InvalidInput(ItemError):
    """Rejected upload; no record was created."""


class PayloadTooLarge(InvalidInput):
    def __init__(self, size: int, limit: int, what: str = "Payload"):
        super().__init__(f"{what} too large ({size} bytes, max {limit})")
        self.size = size
        self.limit = limit
