"""Receipt landing page fetch and invoice identifier extraction."""

from __future__ import annotations

import logging
import re

import httpx

from ..config import PortalConfig
from ..errors import ExtractionFailed, FetchFailed, NetworkError
from .cookies import ScanSession
from .models import InvoiceReference

logger = logging.getLogger(__name__)

_INVOICE_NUMBER_RE = re.compile(r"""viewModel\.InvoiceNumber\(\s*['"]([^'"]+)['"]\s*\)""")
_TOKEN_RE = re.compile(r"""viewModel\.Token\(\s*['"]([^'"]+)['"]\s*\)""")


def browser_headers(user_agent: str) -> dict[str, str]:
    """Header set of a desktop Chromium navigating to the page."""
    return {
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9,sr;q=0.8",
        "Sec-Ch-Ua": '"Chromium";v="136", "Not.A/Brand";v="99"',
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": '"Windows"',
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Gpc": "1",
        "User-Agent": user_agent,
    }


def extract_invoice_reference(html: str) -> InvoiceReference:
    """Pull the invoice number and token out of the page's inline script.

    Both patterns are searched independently, so their order in the page
    does not matter.

    Raises:
        ExtractionFailed: Naming every identifier that was not found.
    """
    invoice_match = _INVOICE_NUMBER_RE.search(html)
    token_match = _TOKEN_RE.search(html)

    missing: list[str] = []
    if invoice_match is None:
        missing.append("invoice_number")
    if token_match is None:
        missing.append("token")
    if missing:
        raise ExtractionFailed(tuple(missing))

    return InvoiceReference(
        invoice_number=invoice_match.group(1),
        token=token_match.group(1),
    )


class InvoiceLocator:
    """Loads a scanned receipt URL and locates its invoice identifiers."""

    def __init__(self, client: httpx.AsyncClient, config: PortalConfig) -> None:
        self._client = client
        self._config = config

    async def locate(self, receipt_url: str, session: ScanSession) -> InvoiceReference:
        """GET the receipt page, capture its cookies and extract identifiers.

        Raises:
            NetworkError: On timeouts and transport failures.
            FetchFailed: If the portal answers with a non-2xx status.
            ExtractionFailed: If the page lacks either identifier.
        """
        try:
            response = await self._client.get(
                receipt_url,
                headers=browser_headers(self._config.user_agent),
                timeout=self._config.timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"receipt page timed out: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"receipt page request failed: {e}") from e

        if not response.is_success:
            logger.warning("Receipt page returned HTTP %d", response.status_code)
            raise FetchFailed(
                f"receipt page returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        # Redirect hops may set cookies too
        for hop in (*response.history, response):
            session.cookies.ingest(hop.headers.get_list("set-cookie"))
        logger.debug("Session cookies: %s", session.cookies.serialize())

        try:
            reference = extract_invoice_reference(response.text)
        except ExtractionFailed as e:
            logger.warning("Invoice identifiers missing from page: %s", ", ".join(e.missing))
            raise

        logger.info("Located invoice %s", reference.invoice_number)
        return reference
