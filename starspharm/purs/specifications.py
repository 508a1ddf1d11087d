"""Line item retrieval from the portal's ``/specifications`` endpoint."""

from __future__ import annotations

import json
import logging

import httpx

from ..config import PortalConfig
from ..errors import FetchFailed, MalformedResponse, NetworkError, UpstreamRejected
from .cookies import ScanSession
from .models import InvoiceReference, SpecificationResult

logger = logging.getLogger(__name__)


class SpecificationFetcher:
    """Replays the scan session to fetch a receipt's line items.

    Tokens are short-lived, so a failed request is never retried; the
    caller has to scan the receipt again.
    """

    def __init__(self, client: httpx.AsyncClient, config: PortalConfig) -> None:
        self._client = client
        self._config = config

    def _headers(self, referer: str, session: ScanSession) -> dict[str, str]:
        return {
            "Accept": "*/*",
            "Accept-Language": "en-US,en;q=0.9",
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
            "Cookie": session.cookies.serialize(),
            "Origin": session.origin,
            "Referer": referer,
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
            "User-Agent": self._config.user_agent,
            "X-Requested-With": "XMLHttpRequest",
        }

    async def fetch(
        self,
        referer: str,
        reference: InvoiceReference,
        session: ScanSession,
    ) -> SpecificationResult:
        """POST the identifiers and parse the returned line items.

        Raises:
            NetworkError: On timeouts and transport failures.
            FetchFailed: If the portal answers with a non-2xx status.
            MalformedResponse: If the body is not the expected JSON shape.
            UpstreamRejected: If the portal reports ``success: false``.
        """
        try:
            response = await self._client.post(
                self._config.specifications_url,
                data={
                    "invoiceNumber": reference.invoice_number,
                    "token": reference.token,
                },
                headers=self._headers(referer, session),
                timeout=self._config.timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"specifications request timed out: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"specifications request failed: {e}") from e

        if not response.is_success:
            logger.warning("Specifications returned HTTP %d", response.status_code)
            raise FetchFailed(
                f"specifications returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponse(f"specifications body is not JSON: {e}") from e

        result = SpecificationResult.from_payload(payload)
        if not result.success:
            logger.warning(
                "Portal rejected invoice %s; the session may have expired",
                reference.invoice_number,
            )
            raise UpstreamRejected(
                f"portal rejected invoice {reference.invoice_number}"
            )

        logger.info(
            "Fetched %d line items for invoice %s",
            len(result.items),
            reference.invoice_number,
        )
        return result
