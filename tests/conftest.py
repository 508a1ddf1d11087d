"""Shared fixtures: a temporary loyalty database and a fake invoice portal."""

import json

import httpx
import pytest

from starspharm.config import PortalConfig
from starspharm.db.loyalty import LoyaltyStore

RECEIPT_URL = "https://suf.purs.gov.rs/v/?vl=A0VHNVNMWjdWR0dWNE1HM1M"

RECEIPT_HTML = """
<html><body>
<script type="text/javascript">
    var viewModel = new InvoiceViewModel();
    viewModel.InvoiceNumber('INV1');
    viewModel.Token("TOK1");
    ko.applyBindings(viewModel);
</script>
</body></html>
"""

LEK_A = {
    "gtin": "123",
    "name": "Lek A",
    "quantity": 2,
    "total": 300,
    "unitPrice": 150,
    "label": "Ђ",
    "labelRate": 20,
    "taxBaseAmount": 250,
    "vatAmount": 50,
}


class FakePortal:
    """Scripted stand-in for the invoice portal, recording every request."""

    def __init__(
        self,
        html: str = RECEIPT_HTML,
        page_status: int = 200,
        spec_body: object | None = None,
        spec_status: int = 200,
        set_cookies: tuple[str, ...] = ("ASP.NET_SessionId=abc123; path=/; HttpOnly",),
    ) -> None:
        self.html = html
        self.page_status = page_status
        self.spec_body = spec_body if spec_body is not None else {"success": True, "items": [LEK_A]}
        self.spec_status = spec_status
        self.set_cookies = set_cookies
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path == "/specifications":
            body = self.spec_body
            if isinstance(body, (dict, list)):
                body = json.dumps(body)
            return httpx.Response(self.spec_status, text=body)
        headers = [("set-cookie", c) for c in self.set_cookies]
        return httpx.Response(self.page_status, text=self.html, headers=headers)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def receipt_url():
    return RECEIPT_URL


@pytest.fixture
def receipt_html():
    return RECEIPT_HTML


@pytest.fixture
def lek_a():
    return dict(LEK_A)


@pytest.fixture
def fake_portal():
    """Factory for FakePortal instances."""
    return FakePortal


@pytest.fixture
def portal_config():
    return PortalConfig()


@pytest.fixture
def store(tmp_path):
    """Create a temporary LoyaltyStore."""
    loyalty = LoyaltyStore(db_path=tmp_path / "test.db")
    yield loyalty
    loyalty.close()
