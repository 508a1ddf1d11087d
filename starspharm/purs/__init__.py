"""Serbian fiscal invoice portal (SUF PURS) integration module."""

from .cookies import CookieJar, ScanSession
from .locator import InvoiceLocator, extract_invoice_reference
from .models import InvoiceReference, ReceiptLineItem, SpecificationResult
from .specifications import SpecificationFetcher

__all__ = [
    "CookieJar",
    "ScanSession",
    "InvoiceLocator",
    "extract_invoice_reference",
    "SpecificationFetcher",
    "InvoiceReference",
    "ReceiptLineItem",
    "SpecificationResult",
]
