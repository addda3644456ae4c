"""
Customer surface state machine.

Unauthenticated -> Scanning -> {FarmStory, ReceiptFlow} -> ClaimSuccess /
AlreadyClaimed, with BadgeCollection as a side view. The celebration overlay
is tracked separately from the primary state.

The router does no I/O: the customer portal performs requests and feeds their
results back as events. Results are tagged with the id they were requested
for and are dropped when that id is no longer on screen.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple, Union

from ..api.errors import ErrorKind, Notice
from ..api.models import Batch, Receipt, RestaurantListing
from ..badges.aggregator import BadgeSummary
from ..claims.coordinator import ClaimOutcome, ClaimResult, LookupOutcome, ReceiptLookup
from ..database.models import Session
from ..qr.classifier import BatchScan, ReceiptScan, ScanPayload

logger = logging.getLogger(__name__)

DEFAULT_EXPLORER_TX_URL = "https://sepolia.etherscan.io/tx/"


def explorer_link(transaction_hash: Optional[str], base_url: str = DEFAULT_EXPLORER_TX_URL) -> Optional[str]:
    if not transaction_hash:
        return None
    return f"{base_url.rstrip('/')}/{transaction_hash}"


# States

@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class Scanning:
    pass


@dataclass(frozen=True)
class FarmStory:
    batch_id: str
    batch: Optional[Batch] = None
    notice: Optional[Notice] = None
    view_only: bool = True
    unlocked: bool = False

    @property
    def loading(self) -> bool:
        return self.batch is None and self.notice is None

    @property
    def can_unlock(self) -> bool:
        """Badges come from verified receipts; a product scan alone never unlocks one."""
        return not self.view_only and self.batch is not None and not self.unlocked


@dataclass(frozen=True)
class ReceiptFlow:
    receipt_id: str
    receipt: Optional[Receipt] = None
    notice: Optional[Notice] = None
    claim_notice: Optional[Notice] = None
    claiming: bool = False
    expired: bool = False
    other_restaurants: Tuple[RestaurantListing, ...] = ()

    @property
    def loading(self) -> bool:
        return self.receipt is None and self.notice is None


@dataclass(frozen=True)
class ClaimSuccess:
    receipt_id: str
    farm_name: Optional[str] = None
    batch_id: Optional[str] = None
    transaction_hash: Optional[str] = None
    restaurant_name: Optional[str] = None


@dataclass(frozen=True)
class AlreadyClaimed:
    receipt_id: str
    farm_name: Optional[str] = None
    restaurant_name: Optional[str] = None


@dataclass(frozen=True)
class BadgeCollection:
    summary: Optional[BadgeSummary] = None
    notice: Optional[Notice] = None

    @property
    def loading(self) -> bool:
        return self.summary is None and self.notice is None


CustomerState = Union[
    Unauthenticated, Scanning, FarmStory, ReceiptFlow, ClaimSuccess, AlreadyClaimed, BadgeCollection
]


@dataclass(frozen=True)
class CelebrationOverlay:
    farm_name: Optional[str]
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None


class ClaimAction(str, Enum):
    """What the claim button offers for a receipt on screen."""
    AVAILABLE = "available"
    CLAIMING = "claiming"
    EXPIRED = "expired"
    LOGIN_REQUIRED = "login_required"
    LOADING = "loading"
    UNAVAILABLE = "unavailable"


def claim_action(state: ReceiptFlow, authenticated: bool, now: Optional[datetime] = None) -> ClaimAction:
    receipt = state.receipt
    if receipt is None:
        return ClaimAction.LOADING if state.notice is None else ClaimAction.UNAVAILABLE
    if state.claiming:
        return ClaimAction.CLAIMING
    if state.expired or not receipt.is_claimable(now or datetime.now(timezone.utc)):
        return ClaimAction.UNAVAILABLE if receipt.claimed else ClaimAction.EXPIRED
    if not authenticated:
        return ClaimAction.LOGIN_REQUIRED
    return ClaimAction.AVAILABLE


# Events

@dataclass(frozen=True)
class LoggedIn:
    session: Session


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class AuthRejected:
    pass


@dataclass(frozen=True)
class ScanReceived:
    payload: ScanPayload


@dataclass(frozen=True)
class BatchLoaded:
    batch_id: str
    batch: Optional[Batch] = None
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class BadgeUnlocked:
    batch_id: str
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class ReceiptLoaded:
    lookup: ReceiptLookup


@dataclass(frozen=True)
class RestaurantsLoaded:
    receipt_id: str
    restaurants: Tuple[RestaurantListing, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ClaimStarted:
    receipt_id: str


@dataclass(frozen=True)
class ClaimFinished:
    result: ClaimResult


@dataclass(frozen=True)
class ScanAnother:
    pass


@dataclass(frozen=True)
class OpenBadges:
    pass


@dataclass(frozen=True)
class BadgesLoaded:
    summary: Optional[BadgeSummary] = None
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class DismissOverlay:
    pass


class CustomerRouter:
    """Holds the customer surface state and applies events in arrival order."""

    def __init__(self, authenticated: bool = False, allow_direct_unlock: bool = False,
                 explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL):
        self.allow_direct_unlock = allow_direct_unlock
        self.explorer_tx_url = explorer_tx_url
        self.state: CustomerState = Scanning() if authenticated else Unauthenticated()
        self.overlay: Optional[CelebrationOverlay] = None

    @property
    def active_id(self) -> Optional[str]:
        """Identifier of the batch or receipt currently on screen."""
        if isinstance(self.state, FarmStory):
            return self.state.batch_id
        if isinstance(self.state, (ReceiptFlow, ClaimSuccess, AlreadyClaimed)):
            return self.state.receipt_id
        return None

    def dispatch(self, event) -> CustomerState:
        previous = self.state
        self.state = self._next(self.state, event)
        if self.state is not previous:
            logger.debug(f"{type(event).__name__}: {type(previous).__name__} -> {type(self.state).__name__}")
        return self.state

    def _next(self, state: CustomerState, event) -> CustomerState:
        if isinstance(event, (LoggedOut, AuthRejected)):
            self.overlay = None
            return Unauthenticated()

        if isinstance(state, Unauthenticated):
            if isinstance(event, LoggedIn):
                return Scanning()
            logger.debug(f"Ignoring {type(event).__name__} while unauthenticated")
            return state

        if isinstance(event, LoggedIn):
            return state

        if isinstance(event, ScanAnother):
            self.overlay = None
            return Scanning()

        if isinstance(event, OpenBadges):
            self.overlay = None
            return BadgeCollection()

        if isinstance(event, DismissOverlay):
            self.overlay = None
            return state

        if isinstance(event, ScanReceived):
            return self._on_scan(state, event.payload)

        if isinstance(event, BatchLoaded):
            if isinstance(state, FarmStory) and state.batch_id == event.batch_id:
                return replace(state, batch=event.batch, notice=event.notice)
            return self._stale(event, event.batch_id)

        if isinstance(event, BadgeUnlocked):
            if isinstance(state, FarmStory) and state.batch_id == event.batch_id and state.can_unlock:
                return replace(state, unlocked=event.notice is None, notice=event.notice)
            return self._stale(event, event.batch_id)

        if isinstance(event, ReceiptLoaded):
            if isinstance(state, ReceiptFlow) and state.receipt_id == event.lookup.receipt_id:
                return self._on_receipt(state, event.lookup)
            return self._stale(event, event.lookup.receipt_id)

        if isinstance(event, RestaurantsLoaded):
            if isinstance(state, ReceiptFlow) and state.receipt_id == event.receipt_id:
                return replace(state, other_restaurants=tuple(event.restaurants))
            return self._stale(event, event.receipt_id)

        if isinstance(event, ClaimStarted):
            if isinstance(state, ReceiptFlow) and state.receipt_id == event.receipt_id:
                return replace(state, claiming=True, claim_notice=None)
            return self._stale(event, event.receipt_id)

        if isinstance(event, ClaimFinished):
            if isinstance(state, ReceiptFlow) and state.receipt_id == event.result.receipt_id:
                return self._on_claim(state, event.result)
            return self._stale(event, event.result.receipt_id)

        if isinstance(event, BadgesLoaded):
            if isinstance(state, BadgeCollection):
                return BadgeCollection(summary=event.summary, notice=event.notice)
            return self._stale(event, None)

        raise ValueError(f"Unknown customer event: {event!r}")

    def _stale(self, event, event_id: Optional[str]) -> CustomerState:
        logger.info(f"Discarding stale {type(event).__name__} for {event_id!r} (showing {self.active_id!r})")
        return self.state

    def _on_scan(self, state: CustomerState, payload: ScanPayload) -> CustomerState:
        if not isinstance(state, Scanning):
            logger.debug(f"Ignoring scan outside the scanner view: {type(state).__name__}")
            return state
        if isinstance(payload, ReceiptScan):
            return ReceiptFlow(receipt_id=payload.receipt_id)
        if isinstance(payload, BatchScan):
            return FarmStory(batch_id=payload.batch_id, view_only=not self.allow_direct_unlock)
        raise ValueError(f"Unknown scan payload: {payload!r}")

    def _on_receipt(self, state: ReceiptFlow, lookup: ReceiptLookup) -> CustomerState:
        if lookup.outcome == LookupOutcome.FOUND and lookup.receipt is not None:
            receipt = lookup.receipt
            if receipt.claimed:
                return AlreadyClaimed(
                    receipt_id=state.receipt_id,
                    farm_name=receipt.farm_name,
                    restaurant_name=receipt.restaurant_name,
                )
            return replace(state, receipt=receipt, notice=None)

        if lookup.outcome == LookupOutcome.NOT_FOUND:
            notice = Notice.of(ErrorKind.NOT_FOUND, lookup.message or "Receipt not found")
        elif lookup.outcome == LookupOutcome.NETWORK_ERROR:
            notice = Notice.of(ErrorKind.NETWORK, "Could not load this receipt. Check your connection and try again.")
        else:
            notice = Notice.of(ErrorKind.REJECTED, lookup.message or "Could not load this receipt.")
        return replace(state, receipt=None, notice=notice)

    def _on_claim(self, state: ReceiptFlow, result: ClaimResult) -> CustomerState:
        outcome = result.outcome
        if outcome == ClaimOutcome.SUCCESS:
            self.overlay = CelebrationOverlay(
                farm_name=result.farm_name,
                transaction_hash=result.transaction_hash,
                explorer_url=explorer_link(result.transaction_hash, self.explorer_tx_url),
            )
            return ClaimSuccess(
                receipt_id=result.receipt_id,
                farm_name=result.farm_name,
                batch_id=result.batch_id,
                transaction_hash=result.transaction_hash,
                restaurant_name=result.restaurant_name,
            )
        if outcome == ClaimOutcome.ALREADY_CLAIMED:
            return AlreadyClaimed(
                receipt_id=result.receipt_id,
                farm_name=result.farm_name or (state.receipt.farm_name if state.receipt else None),
                restaurant_name=result.restaurant_name,
            )
        if outcome == ClaimOutcome.IN_PROGRESS:
            return state
        if outcome == ClaimOutcome.EXPIRED:
            return replace(state, claiming=False, expired=True,
                           claim_notice=Notice.of(ErrorKind.EXPIRED, result.message or "This receipt has expired."))
        if outcome == ClaimOutcome.UNAUTHENTICATED:
            kind = ErrorKind.UNAUTHENTICATED
        elif outcome == ClaimOutcome.NETWORK_ERROR:
            kind = ErrorKind.NETWORK
        elif outcome == ClaimOutcome.NOT_FOUND:
            kind = ErrorKind.NOT_FOUND
        else:
            kind = ErrorKind.REJECTED
        return replace(state, claiming=False,
                       claim_notice=Notice.of(kind, result.message or "Failed to claim badge. Please try again."))
