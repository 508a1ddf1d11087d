"""Receipt bookkeeping and star awards."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from .db import LoyaltyStore
from .errors import ClientNotFound, PersistenceError
from .purs.models import ReceiptLineItem

logger = logging.getLogger(__name__)

# Currency units (RSD) per awarded star
STARS_EXCHANGE_RATE = 100


@dataclass
class ReconciliationResult:
    stars_awarded: int
    new_balance: int
    receipt_id: int
    item_count: int
    total_amount: float
    units_linked: int = 0


def compute_total(items: Sequence[ReceiptLineItem]) -> float:
    """Sum the per-line ``total`` fields, which already include tax adjustments."""
    return sum(item.total for item in items)


def stars_for_amount(total_amount: float) -> int:
    """Convert a receipt total into whole stars, rounding down."""
    if total_amount <= 0:
        return 0
    return math.floor(total_amount / STARS_EXCHANGE_RATE)


class ReceiptReconciler:
    """Turns fetched line items into durable records and a star award.

    The writes are not wrapped in a transaction: a failure after the receipt
    insert leaves an orphaned receipt behind, which
    ``LoyaltyStore.find_orphaned_receipts`` reports.
    """

    def __init__(self, store: LoyaltyStore) -> None:
        self._store = store

    def reconcile(
        self,
        user_id: str,
        receipt_url: str,
        items: Sequence[ReceiptLineItem],
    ) -> ReconciliationResult:
        """Record a receipt for ``user_id`` and award its stars.

        Raises:
            ClientNotFound: If no client has this user ID, or the client
                disappeared before the balance update.
            PersistenceError: If the receipt insert or balance update fails.
        """
        total_amount = compute_total(items)
        stars = stars_for_amount(total_amount)
        logger.info("Receipt total %.2f RSD -> %d stars", total_amount, stars)

        client = self._store.get_client(user_id)
        if client is None:
            raise ClientNotFound(f"no client with user id {user_id!r}")
        client_id = client["id"]

        receipt_id = self._store.insert_receipt(client_id, receipt_url, total_amount)
        logger.info("Stored receipt %d for client %d", receipt_id, client_id)

        units_linked = 0
        for item in items:
            units_linked += self._record_item(receipt_id, item)

        new_balance = self._store.increment_stars(client_id, stars)
        if new_balance is None:
            logger.error(
                "Client %d vanished before the balance update; receipt %d kept without an award",
                client_id,
                receipt_id,
            )
            raise ClientNotFound(f"client {client_id} no longer exists")

        logger.info(
            "Client %d balance %d -> %d (+%d)",
            client_id,
            new_balance - stars,
            new_balance,
            stars,
        )
        return ReconciliationResult(
            stars_awarded=stars,
            new_balance=new_balance,
            receipt_id=receipt_id,
            item_count=len(items),
            total_amount=total_amount,
            units_linked=units_linked,
        )

    def _resolve_item_id(self, item: ReceiptLineItem) -> int:
        existing = self._store.find_item_by_name(item.name)
        if existing is not None:
            return existing["id"]
        return self._store.insert_item(
            item.name,
            f"GTIN: {item.gtin}",
            item.unit_price,
        )

    def _record_item(self, receipt_id: int, item: ReceiptLineItem) -> int:
        """Link one row per purchased unit; returns the number of rows written."""
        try:
            item_id = self._resolve_item_id(item)
        except PersistenceError as e:
            logger.warning("Skipping item %r: %s", item.name, e)
            return 0

        linked = 0
        for _ in range(item.quantity):
            try:
                self._store.link_receipt_item(receipt_id, item_id)
            except PersistenceError as e:
                logger.warning("Could not link item %r to receipt %d: %s", item.name, receipt_id, e)
                continue
            linked += 1
        return linked
