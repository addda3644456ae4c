"""
Receipt lookup and badge claim coordination.
"""

from .coordinator import (
    ClaimCoordinator, ClaimOutcome, ClaimResult, LookupOutcome, ReceiptLookup,
    is_already_claimed_message,
)

__all__ = [
    'ClaimCoordinator',
    'ClaimOutcome',
    'ClaimResult',
    'LookupOutcome',
    'ReceiptLookup',
    'is_already_claimed_message',
]
