"""Failure taxonomy for the receipt scanning pipeline."""

from __future__ import annotations


class ScanError(Exception):
    """Base class for every terminal failure of a receipt scan."""

    kind = "ScanError"


class InvalidReceiptUrl(ScanError):
    kind = "InvalidReceiptUrl"


class NetworkError(ScanError):
    kind = "NetworkError"


class FetchFailed(ScanError):
    kind = "FetchFailed"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionFailed(ScanError):
    """Raised when the landing page lacks one or both invoice identifiers."""

    kind = "ExtractionFailed"

    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"identifiers not found in page: {', '.join(missing)}")
        self.missing = missing


class MalformedResponse(ScanError):
    kind = "MalformedResponse"


class UpstreamRejected(ScanError):
    """The portal answered ``success: false``; a fresh scan is required."""

    kind = "UpstreamRejected"


class ClientNotFound(ScanError):
    kind = "ClientNotFound"


class PersistenceError(ScanError):
    kind = "PersistenceError"
