"""
QR code handling: scan classification and camera scanning.
"""

from .classifier import BatchScan, ReceiptScan, ScanPayload, classify
from .camera import CameraError, CameraScanner, QRScanEvent

__all__ = [
    'BatchScan',
    'ReceiptScan',
    'ScanPayload',
    'classify',
    'CameraError',
    'CameraScanner',
    'QRScanEvent',
]
