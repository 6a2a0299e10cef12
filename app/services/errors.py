from typing import Any, Dict, Optional


class ListingQueryError(Exception):
    """Read against the listings store failed; carries what was being asked"""

    def __init__(
        self,
        message: str,
        table: str,
        operation: str,
        filters: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.table = table
        self.operation = operation
        self.filters = filters or {}

    def __str__(self) -> str:
        return f"{self.operation} on {self.table} failed: {self.message} (filters={self.filters})"


class RevealError(Exception):
    """Base class for reveal failures"""


class InsufficientCreditsError(RevealError):
    def __init__(self, required: int, available: int):
        super().__init__(f"You need {required} credits but only have {available}")
        self.required = required
        self.available = available


class ListingNotFoundError(RevealError):
    def __init__(self, listing_ids):
        ids = ", ".join(str(i) for i in listing_ids)
        super().__init__(f"Listing not found: {ids}")
        self.listing_ids = list(listing_ids)


class ProfileNotFoundError(RevealError):
    def __init__(self, user_id: str):
        super().__init__(f"Profile not found: {user_id}")
        self.user_id = user_id
