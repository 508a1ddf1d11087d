"""Data models for fiscal receipt data scraped from the invoice portal."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from ..errors import MalformedResponse


@dataclass(frozen=True)
class InvoiceReference:
    """Identifiers extracted from the receipt landing page."""

    invoice_number: str
    token: str


@dataclass
class ReceiptLineItem:
    """A single line of a fiscal receipt specification."""

    name: str
    quantity: int
    unit_price: float
    total: float
    gtin: str = ""
    label: str = ""
    label_rate: float = 0.0
    tax_base_amount: float = 0.0
    vat_amount: float = 0.0

    @classmethod
    def from_payload(cls, raw: Any) -> ReceiptLineItem:
        """Build a line item from one entry of the portal's ``items`` array.

        Raises:
            MalformedResponse: If a required field is missing or has the
                wrong type.
        """
        if not isinstance(raw, dict):
            raise MalformedResponse(f"line item is not an object: {raw!r}")

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise MalformedResponse(f"line item without a name: {raw!r}")

        total = _number(raw, "total")
        quantity = _number(raw, "quantity", default=1)
        # Weighed goods report fractional quantities; links are per whole unit.
        units = max(1, math.ceil(quantity))

        return cls(
            name=name.strip(),
            quantity=units,
            unit_price=_number(raw, "unitPrice", default=0.0),
            total=total,
            gtin=str(raw.get("gtin") or ""),
            label=str(raw.get("label") or ""),
            label_rate=_number(raw, "labelRate", default=0.0),
            tax_base_amount=_number(raw, "taxBaseAmount", default=0.0),
            vat_amount=_number(raw, "vatAmount", default=0.0),
        )


@dataclass
class SpecificationResult:
    """Parsed body of a successful ``/specifications`` response."""

    success: bool
    items: list[ReceiptLineItem] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> SpecificationResult:
        if not isinstance(payload, dict):
            raise MalformedResponse("specification body is not a JSON object")

        success = payload.get("success")
        if not isinstance(success, bool):
            raise MalformedResponse("specification body has no boolean 'success'")

        raw_items = payload.get("items")
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            raise MalformedResponse("'items' is not a list")

        if not success:
            return cls(success=False)
        return cls(
            success=True,
            items=[ReceiptLineItem.from_payload(r) for r in raw_items],
        )


_MISSING = object()


def _number(raw: dict, key: str, default: Any = _MISSING) -> float:
    value = raw.get(key, default)
    if value is _MISSING or value is None:
        if default is _MISSING:
            raise MalformedResponse(f"line item without '{key}': {raw!r}")
        return default
    # bool is an int subclass; the portal never sends booleans for amounts
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"line item field '{key}' is not a number: {value!r}")
    return value
