"""
Receipt lookup and badge claiming.

A receipt yields at most one badge. The backend enforces that; this module
keeps the client from producing duplicate claim intent: one in-flight claim
per receipt, a local claimed mark after success or "already claimed", and a
success callback that fires at most once per receipt.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Set

from ..api.client import APIClient
from ..api.errors import APIError, AuthenticationError, NetworkError, NotFoundError
from ..api.models import Receipt

logger = logging.getLogger(__name__)

# The backend reports these as free-text errors without a structured code
ALREADY_CLAIMED_MARKERS = ("already claimed", "already been")
EXPIRED_MARKERS = ("expired",)


def is_already_claimed_message(message: Optional[str]) -> bool:
    text = (message or "").lower()
    return any(marker in text for marker in ALREADY_CLAIMED_MARKERS)


def is_expired_message(message: Optional[str]) -> bool:
    text = (message or "").lower()
    return any(marker in text for marker in EXPIRED_MARKERS)


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NETWORK_ERROR = "network_error"
    FAILED = "failed"


@dataclass(frozen=True)
class ReceiptLookup:
    """Result of a receipt fetch, tagged with the id it was requested for."""
    receipt_id: str
    outcome: LookupOutcome
    receipt: Optional[Receipt] = None
    message: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.outcome == LookupOutcome.FOUND


class ClaimOutcome(str, Enum):
    SUCCESS = "success"
    ALREADY_CLAIMED = "already_claimed"
    EXPIRED = "expired"
    UNAUTHENTICATED = "unauthenticated"
    NETWORK_ERROR = "network_error"
    NOT_FOUND = "not_found"
    IN_PROGRESS = "in_progress"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ClaimResult:
    receipt_id: str
    outcome: ClaimOutcome
    farm_name: Optional[str] = None
    batch_id: Optional[str] = None
    transaction_hash: Optional[str] = None
    restaurant_name: Optional[str] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == ClaimOutcome.SUCCESS


class ClaimCoordinator:
    """Coordinates receipt fetches and claims against the backend."""

    def __init__(self, client: APIClient,
                 on_success: Optional[Callable[[ClaimResult], None]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.client = client
        self.on_success = on_success
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._receipts: Dict[str, Receipt] = {}
        self._claimed: Set[str] = set()
        self._claiming: Set[str] = set()
        self._notified: Set[str] = set()

    def fetch_receipt(self, receipt_id: str) -> ReceiptLookup:
        """Fetch a receipt; failures are returned as lookup outcomes, never raised."""
        try:
            receipt = self.client.get_receipt(receipt_id)
        except NotFoundError as e:
            logger.info(f"Receipt not found: {receipt_id}")
            return ReceiptLookup(receipt_id, LookupOutcome.NOT_FOUND,
                                 message=e.message or "Receipt not found")
        except NetworkError as e:
            return ReceiptLookup(receipt_id, LookupOutcome.NETWORK_ERROR, message=e.message)
        except APIError as e:
            logger.warning(f"Receipt fetch failed for {receipt_id}: {e.message}")
            return ReceiptLookup(receipt_id, LookupOutcome.FAILED,
                                 message=e.message or "Could not load this receipt")

        # The backend copy can lag behind a claim this client already saw succeed
        if receipt_id in self._claimed and not receipt.claimed:
            receipt = receipt.mark_claimed()
        if receipt.claimed:
            self._claimed.add(receipt_id)

        self._receipts[receipt_id] = receipt
        logger.info(f"Receipt loaded: {receipt_id} (claimed={receipt.claimed})")
        return ReceiptLookup(receipt_id, LookupOutcome.FOUND, receipt=receipt)

    def receipt(self, receipt_id: str) -> Optional[Receipt]:
        return self._receipts.get(receipt_id)

    def is_claiming(self, receipt_id: str) -> bool:
        return receipt_id in self._claiming

    def is_claimed(self, receipt_id: str) -> bool:
        return receipt_id in self._claimed

    def is_expired(self, receipt_id: str) -> bool:
        receipt = self._receipts.get(receipt_id)
        return receipt is not None and receipt.is_expired(self.clock())

    def can_claim(self, receipt_id: str, token: Optional[str]) -> bool:
        """Whether a claim action should be offered right now."""
        receipt = self._receipts.get(receipt_id)
        return (
            bool(token)
            and receipt_id not in self._claiming
            and receipt_id not in self._claimed
            and (receipt is None or receipt.is_claimable(self.clock()))
        )

    def claim(self, receipt_id: str, token: Optional[str]) -> ClaimResult:
        """
        Claim the badge for ``receipt_id``.

        Local checks run first (in flight, token, claimed, expired) and skip
        the network entirely; the backend response decides everything else.
        """
        if receipt_id in self._claiming:
            logger.info(f"Claim already in flight for {receipt_id}, ignoring")
            return ClaimResult(receipt_id, ClaimOutcome.IN_PROGRESS,
                               message="Claim already in progress")

        if not token:
            return ClaimResult(receipt_id, ClaimOutcome.UNAUTHENTICATED,
                               message="You must be logged in to claim a badge.")

        receipt = self._receipts.get(receipt_id)
        if receipt_id in self._claimed:
            return self._already_claimed(receipt_id, receipt)

        if receipt is not None and receipt.is_expired(self.clock()):
            logger.info(f"Receipt {receipt_id} expired at {receipt.expires_at}, claim disabled")
            return ClaimResult(receipt_id, ClaimOutcome.EXPIRED,
                               farm_name=receipt.farm_name,
                               message="This receipt has expired.")

        self._claiming.add(receipt_id)
        try:
            response = self.client.claim_badge(receipt_id, token)
        except AuthenticationError as e:
            logger.warning(f"Claim for {receipt_id} rejected: not authenticated")
            return ClaimResult(receipt_id, ClaimOutcome.UNAUTHENTICATED,
                               message=e.message or "Session expired. Please login again.")
        except NetworkError:
            return ClaimResult(receipt_id, ClaimOutcome.NETWORK_ERROR,
                               message="Failed to claim badge. Please try again.")
        except APIError as e:
            return self._classify_rejection(receipt_id, receipt, e)
        finally:
            self._claiming.discard(receipt_id)

        result = ClaimResult(
            receipt_id,
            ClaimOutcome.SUCCESS,
            farm_name=response.farm_name or (receipt.farm_name if receipt else None),
            batch_id=response.batch_id or (receipt.batch_id if receipt else None),
            transaction_hash=response.transaction_hash,
            restaurant_name=receipt.restaurant_name if receipt else None,
        )
        self._mark_claimed(receipt_id)
        logger.info(f"Badge claimed for receipt {receipt_id} (farm: {result.farm_name})")
        self._notify_success(result)
        return result

    def _classify_rejection(self, receipt_id: str, receipt: Optional[Receipt],
                            error: APIError) -> ClaimResult:
        message = error.message
        if is_already_claimed_message(message):
            self._mark_claimed(receipt_id)
            return self._already_claimed(receipt_id, self._receipts.get(receipt_id), message)
        if isinstance(error, NotFoundError):
            return ClaimResult(receipt_id, ClaimOutcome.NOT_FOUND, message=message or "Receipt not found")
        if is_expired_message(message):
            return ClaimResult(receipt_id, ClaimOutcome.EXPIRED,
                               farm_name=receipt.farm_name if receipt else None,
                               message=message)
        logger.warning(f"Claim for {receipt_id} rejected: {message}")
        return ClaimResult(receipt_id, ClaimOutcome.REJECTED,
                           message=message or "Failed to claim badge. Please try again.")

    def _already_claimed(self, receipt_id: str, receipt: Optional[Receipt],
                         message: Optional[str] = None) -> ClaimResult:
        return ClaimResult(
            receipt_id,
            ClaimOutcome.ALREADY_CLAIMED,
            farm_name=receipt.farm_name if receipt else None,
            batch_id=receipt.batch_id if receipt else None,
            restaurant_name=receipt.restaurant_name if receipt else None,
            message=message or "This receipt has already been claimed.",
        )

    def _mark_claimed(self, receipt_id: str):
        self._claimed.add(receipt_id)
        receipt = self._receipts.get(receipt_id)
        if receipt is not None and not receipt.claimed:
            self._receipts[receipt_id] = receipt.mark_claimed()

    def _notify_success(self, result: ClaimResult):
        if result.receipt_id in self._notified:
            return
        self._notified.add(result.receipt_id)
        if self.on_success is None:
            return
        try:
            self.on_success(result)
        except Exception as e:
            logger.error(f"Error in claim success callback: {e}")
