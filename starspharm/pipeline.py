"""Entry point for processing a scanned fiscal receipt QR code."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import PortalConfig, StarsConfig
from .db import LoyaltyStore
from .errors import InvalidReceiptUrl, ScanError
from .purs import CookieJar, InvoiceLocator, ScanSession, SpecificationFetcher
from .reconciler import ReceiptReconciler

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Skeniranje računa nije uspelo. Pokušajte ponovo."


def success_message(stars: int) -> str:
    return f"Uspešno dodato {stars} zvezdica!"


@dataclass
class ScanData:
    invoice_number: str
    total_amount: float
    item_count: int
    stars_awarded: int
    new_stars_total: int
    receipt_id: int


@dataclass
class ScanOutcome:
    """Result handed back to the scanning UI."""

    success: bool
    message: str
    data: ScanData | None = None
    error: str | None = None  # ScanError kind, for diagnostics only

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            result["data"] = {
                "invoiceNumber": self.data.invoice_number,
                "totalAmount": self.data.total_amount,
                "itemCount": self.data.item_count,
                "starsAwarded": self.data.stars_awarded,
                "newStarsTotal": self.data.new_stars_total,
                "receiptId": self.data.receipt_id,
            }
        return result


class ReceiptScanPipeline:
    """Runs locate → fetch specifications → reconcile for one scan at a time.

    Each call builds a fresh ScanSession; nothing but the store is shared
    between concurrent scans.
    """

    def __init__(
        self,
        store: LoyaltyStore,
        config: PortalConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._store = store
        self._config = config or PortalConfig()
        self._client = client

    def validate_url(self, receipt_url: str) -> None:
        if not receipt_url or self._config.host not in receipt_url:
            raise InvalidReceiptUrl(f"not a fiscal receipt URL: {receipt_url!r}")

    async def process(self, receipt_url: str, user_id: str) -> ScanOutcome:
        """Process a scanned receipt; never raises."""
        logger.info("Processing receipt scan for user %s", user_id)
        try:
            data = await self._run(receipt_url, user_id)
        except ScanError as e:
            logger.warning("Receipt scan failed (%s): %s", e.kind, e)
            return ScanOutcome(success=False, message=FAILURE_MESSAGE, error=e.kind)
        except Exception:
            logger.exception("Unexpected error while processing receipt")
            return ScanOutcome(success=False, message=FAILURE_MESSAGE, error="Unexpected")

        return ScanOutcome(
            success=True,
            message=success_message(data.stars_awarded),
            data=data,
        )

    async def _run(self, receipt_url: str, user_id: str) -> ScanData:
        self.validate_url(receipt_url)

        if self._client is not None:
            return await self._scan(self._client, receipt_url, user_id)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout)) as client:
            return await self._scan(client, receipt_url, user_id)

    async def _scan(
        self, client: httpx.AsyncClient, receipt_url: str, user_id: str
    ) -> ScanData:
        session = ScanSession(
            origin=self._config.origin,
            cookies=CookieJar(locale=self._config.locale_cookie),
        )

        reference = await InvoiceLocator(client, self._config).locate(receipt_url, session)
        spec = await SpecificationFetcher(client, self._config).fetch(
            receipt_url, reference, session
        )
        result = ReceiptReconciler(self._store).reconcile(user_id, receipt_url, spec.items)

        return ScanData(
            invoice_number=reference.invoice_number,
            total_amount=result.total_amount,
            item_count=result.item_count,
            stars_awarded=result.stars_awarded,
            new_stars_total=result.new_balance,
            receipt_id=result.receipt_id,
        )


async def process_receipt_scan(
    receipt_url: str,
    user_id: str,
    *,
    store: LoyaltyStore,
    config: StarsConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> ScanOutcome:
    """Process a scanned fiscal receipt URL on behalf of ``user_id``."""
    portal = config.portal if config is not None else None
    return await ReceiptScanPipeline(store, portal, client).process(receipt_url, user_id)
