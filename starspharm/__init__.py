"""Fiscal receipt scanning and loyalty star awards for pharmacy clients."""

from .config import (
    DatabaseConfig,
    LoggingConfig,
    PortalConfig,
    StarsConfig,
    load_config,
)
from .db import LoyaltyStore
from .errors import (
    ClientNotFound,
    ExtractionFailed,
    FetchFailed,
    InvalidReceiptUrl,
    MalformedResponse,
    NetworkError,
    PersistenceError,
    ScanError,
    UpstreamRejected,
)
from .pipeline import ReceiptScanPipeline, ScanData, ScanOutcome, process_receipt_scan
from .qr import parse_client_qr
from .reconciler import (
    STARS_EXCHANGE_RATE,
    ReceiptReconciler,
    ReconciliationResult,
    compute_total,
    stars_for_amount,
)

__all__ = [
    "process_receipt_scan",
    "ReceiptScanPipeline",
    "ScanOutcome",
    "ScanData",
    "ReceiptReconciler",
    "ReconciliationResult",
    "compute_total",
    "stars_for_amount",
    "STARS_EXCHANGE_RATE",
    "LoyaltyStore",
    "parse_client_qr",
    "StarsConfig",
    "PortalConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "load_config",
    "ScanError",
    "InvalidReceiptUrl",
    "NetworkError",
    "FetchFailed",
    "ExtractionFailed",
    "MalformedResponse",
    "UpstreamRejected",
    "ClientNotFound",
    "PersistenceError",
]
