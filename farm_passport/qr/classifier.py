"""
Scan classification: turns a scanned or typed string into a typed payload.

Receipt QR codes carry a ``RECEIPT-`` prefix (any case); everything else is a
batch identifier taken verbatim.
"""

from dataclasses import dataclass
from typing import Union

RECEIPT_PREFIX = "RECEIPT-"


@dataclass(frozen=True)
class ReceiptScan:
    """Scan of a purchase receipt QR."""
    receipt_id: str


@dataclass(frozen=True)
class BatchScan:
    """Scan of a product batch QR."""
    batch_id: str


ScanPayload = Union[ReceiptScan, BatchScan]


def classify(raw: str) -> ScanPayload:
    """
    Classify a raw scan.

    Total and deterministic: empty input yields ``BatchScan("")``; callers
    reject empty ids before classifying.
    """
    trimmed = raw.strip()
    if trimmed.upper().startswith(RECEIPT_PREFIX):
        return ReceiptScan(receipt_id=trimmed)
    return BatchScan(batch_id=trimmed)
