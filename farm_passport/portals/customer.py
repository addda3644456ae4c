"""
Customer portal: drives the customer router with session, scan, receipt,
claim and badge I/O.

Every backend failure is converted to a Notice here; nothing raised by the
API client escapes a portal method.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from pydantic import ValidationError

from ..api.client import APIClient
from ..api.errors import APIError, AuthenticationError, ErrorKind, FormValidationError, Notice, to_notice
from ..badges.aggregator import aggregate
from ..claims.coordinator import ClaimCoordinator, ClaimOutcome, ClaimResult
from ..database.connection import DatabaseError
from ..database.models import Session, SessionDomain
from ..database.session_store import SessionStore
from ..qr.classifier import ReceiptScan, classify
from ..router.customer import (
    AuthRejected, BadgeUnlocked, BadgesLoaded, BatchLoaded, ClaimFinished, ClaimStarted,
    CustomerRouter, CustomerState, DEFAULT_EXPLORER_TX_URL, DismissOverlay, FarmStory,
    LoggedIn, LoggedOut, OpenBadges, ReceiptFlow, ReceiptLoaded, RestaurantsLoaded,
    ScanAnother, ScanReceived, Scanning,
)
from .forms import validate_customer_registration, validate_login, validate_scan_input

logger = logging.getLogger(__name__)


class CustomerPortal:
    """Customer surface: scanning, farm stories, receipt claims and badges."""

    def __init__(self, client: APIClient, store: SessionStore,
                 allow_direct_unlock: bool = False,
                 explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL,
                 clock: Optional[Callable[[], datetime]] = None):
        self.client = client
        self.store = store
        self.coordinator = ClaimCoordinator(client, on_success=self._on_claimed, clock=clock)
        self.session: Optional[Session] = store.load(SessionDomain.CUSTOMER)
        self.router = CustomerRouter(
            authenticated=self.session is not None,
            allow_direct_unlock=allow_direct_unlock,
            explorer_tx_url=explorer_tx_url,
        )
        if self.session is not None:
            logger.info(f"Restored customer session for {self.session.principal.email}")

    @property
    def state(self) -> CustomerState:
        return self.router.state

    @property
    def overlay(self):
        return self.router.overlay

    @property
    def token(self) -> Optional[str]:
        return self.session.token if self.session else None

    # Authentication

    def login(self, email: str, password: str) -> Optional[Notice]:
        try:
            email, password = validate_login(email, password)
            response = self.client.customer_login(email, password)
        except (FormValidationError, APIError) as e:
            logger.warning(f"Customer login failed: {e}")
            return to_notice(e, "Login failed")
        return self._start_session(response)

    def register(self, email: str, password: str, confirm_password: str, name: str) -> Optional[Notice]:
        try:
            email, password, name = validate_customer_registration(email, password, confirm_password, name)
            response = self.client.customer_register(email, password, name)
        except (FormValidationError, APIError) as e:
            logger.warning(f"Customer registration failed: {e}")
            return to_notice(e, "Registration failed")
        return self._start_session(response)

    def _start_session(self, response) -> Optional[Notice]:
        try:
            session = Session.from_login(SessionDomain.CUSTOMER, response)
        except ValidationError:
            logger.error("Login response did not contain a user and token")
            return Notice.of(ErrorKind.REJECTED, "Unexpected response from server")
        self.store.save(SessionDomain.CUSTOMER, session)
        self.session = session
        self.router.dispatch(LoggedIn(session))
        logger.info(f"Customer logged in: {session.principal.email}")
        return None

    def _clear_session(self):
        try:
            self.store.clear(SessionDomain.CUSTOMER)
        except DatabaseError as e:
            logger.error(f"Failed to clear customer session: {e}")

    def logout(self):
        self._clear_session()
        self.session = None
        self.router.dispatch(LoggedOut())
        logger.info("Customer logged out")

    def _expire_session(self):
        logger.warning("Customer session rejected by backend, logging out")
        self._clear_session()
        self.session = None
        self.router.dispatch(AuthRejected())

    # Scanning

    def submit_scan(self, raw: str) -> Optional[Notice]:
        """Handle a camera decode or manual entry while the scanner is showing."""
        if not isinstance(self.state, Scanning):
            return Notice.of(ErrorKind.VALIDATION, "Scanning is not available right now")
        try:
            code = validate_scan_input(raw)
        except FormValidationError as e:
            return to_notice(e)

        payload = classify(code)
        self.router.dispatch(ScanReceived(payload))
        if isinstance(payload, ReceiptScan):
            logger.info(f"Receipt scanned: {payload.receipt_id}")
            self._load_receipt(payload.receipt_id)
        else:
            logger.info(f"Batch scanned: {payload.batch_id}")
            self._load_batch(payload.batch_id)
        return None

    def retry(self):
        """Re-run the lookup for the batch or receipt on screen."""
        state = self.state
        if isinstance(state, ReceiptFlow):
            self._load_receipt(state.receipt_id)
        elif isinstance(state, FarmStory):
            self._load_batch(state.batch_id)

    def scan_another(self):
        self.router.dispatch(ScanAnother())

    def dismiss_overlay(self):
        self.router.dispatch(DismissOverlay())

    def _load_batch(self, batch_id: str):
        try:
            batch = self.client.get_batch(batch_id)
        except APIError as e:
            self.router.dispatch(BatchLoaded(batch_id, notice=to_notice(e, "Batch not found")))
            return
        self.router.dispatch(BatchLoaded(batch_id, batch=batch))

    def _load_receipt(self, receipt_id: str):
        lookup = self.coordinator.fetch_receipt(receipt_id)
        self.router.dispatch(ReceiptLoaded(lookup))

        state = self.state
        if lookup.found and isinstance(state, ReceiptFlow) and state.receipt_id == receipt_id:
            restaurants = self._same_farm_restaurants(lookup.receipt.batch_id, lookup.receipt.restaurant_name)
            self.router.dispatch(RestaurantsLoaded(receipt_id, restaurants))

    def _same_farm_restaurants(self, batch_id: Optional[str], exclude: Optional[str]) -> Tuple:
        if not batch_id:
            return ()
        try:
            return tuple(self.client.get_restaurants_for_farm(batch_id, exclude=exclude))
        except APIError as e:
            logger.debug(f"Same-farm restaurant lookup failed for {batch_id}: {e}")
            return ()

    # Claiming

    def claim(self) -> Optional[ClaimResult]:
        state = self.state
        if not isinstance(state, ReceiptFlow):
            return None

        receipt_id = state.receipt_id
        if self.coordinator.is_claiming(receipt_id):
            return self.coordinator.claim(receipt_id, self.token)

        self.router.dispatch(ClaimStarted(receipt_id))
        result = self.coordinator.claim(receipt_id, self.token)
        self.router.dispatch(ClaimFinished(result))

        if result.outcome == ClaimOutcome.UNAUTHENTICATED and self.session is not None:
            self._expire_session()
        return result

    def _on_claimed(self, result: ClaimResult):
        logger.info(f"Badge from {result.farm_name} added (tx: {result.transaction_hash or 'pending'})")

    def unlock_badge(self) -> Optional[Notice]:
        """Direct unlock from a farm story; never offered in view-only mode."""
        state = self.state
        if not isinstance(state, FarmStory) or not state.can_unlock:
            return Notice.of(ErrorKind.REJECTED, "Badges are earned by scanning a restaurant receipt")
        if not self.token:
            return Notice.of(ErrorKind.UNAUTHENTICATED, "You must be logged in to unlock a badge.")
        try:
            self.client.unlock_badge(state.batch_id, self.token)
        except AuthenticationError:
            self._expire_session()
            return Notice.of(ErrorKind.UNAUTHENTICATED, "Session expired. Please login again.")
        except APIError as e:
            notice = to_notice(e, "Failed to unlock badge")
            self.router.dispatch(BadgeUnlocked(state.batch_id, notice=notice))
            return notice
        self.router.dispatch(BadgeUnlocked(state.batch_id))
        return None

    # Badges

    def show_badges(self) -> Optional[Notice]:
        self.router.dispatch(OpenBadges())
        if not self.token:
            return None
        try:
            raw = self.client.get_user_badges(self.token)
        except AuthenticationError:
            self._expire_session()
            return Notice.of(ErrorKind.UNAUTHENTICATED, "Session expired. Please login again.")
        except APIError as e:
            notice = to_notice(e, "Failed to load badges")
            self.router.dispatch(BadgesLoaded(notice=notice))
            return notice
        self.router.dispatch(BadgesLoaded(summary=aggregate(raw)))
        return None
