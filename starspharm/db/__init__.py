"""SQLite database module for client balances, receipts and items."""

from .loyalty import RECEIPT_URL_MAX_LENGTH, LoyaltyStore
from .schema import ensure_schema

__all__ = [
    "LoyaltyStore",
    "RECEIPT_URL_MAX_LENGTH",
    "ensure_schema",
]
