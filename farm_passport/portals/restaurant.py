"""
Restaurant portal: login/registration, batch list and receipt creation.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from ..api.client import APIClient
from ..api.errors import APIError, AuthenticationError, ErrorKind, FormValidationError, Notice, to_notice
from ..database.connection import DatabaseError
from ..database.models import Session, SessionDomain
from ..database.session_store import SessionStore
from ..router.restaurant import (
    BatchesLoaded, CreateAnother, FormFailed, ReceiptForm, ReceiptIssued, RestaurantLoggedIn,
    RestaurantLoggedOut, RestaurantRouter, RestaurantState, ShowLogin, ShowRegister,
)
from .forms import validate_login, validate_receipt, validate_restaurant_registration

logger = logging.getLogger(__name__)


class RestaurantPortal:
    """Restaurant surface; its session is stored apart from the customer's."""

    def __init__(self, client: APIClient, store: SessionStore):
        self.client = client
        self.store = store
        self.session: Optional[Session] = store.load(SessionDomain.RESTAURANT)
        self.router = RestaurantRouter(authenticated=self.session is not None)
        if self.session is not None:
            logger.info(f"Restored restaurant session for {self.session.principal.email}")

    @property
    def state(self) -> RestaurantState:
        return self.router.state

    @property
    def token(self) -> Optional[str]:
        return self.session.token if self.session else None

    @property
    def restaurant_name(self) -> str:
        if self.session is None:
            return ""
        principal = self.session.principal
        return principal.restaurant_name or principal.display_name or ""

    def show_register(self):
        self.router.dispatch(ShowRegister())

    def show_login(self):
        self.router.dispatch(ShowLogin())

    def login(self, email: str, password: str) -> Optional[Notice]:
        try:
            email, password = validate_login(email, password)
            response = self.client.restaurant_login(email, password)
        except (FormValidationError, APIError) as e:
            return self._fail(to_notice(e, "Login failed"))
        return self._start_session(response)

    def register(self, email: str, password: str, confirm_password: str,
                 restaurant_name: str, postcode: str) -> Optional[Notice]:
        try:
            email, password, restaurant_name, postcode = validate_restaurant_registration(
                email, password, confirm_password, restaurant_name, postcode
            )
            response = self.client.restaurant_register(email, password, restaurant_name, postcode)
        except (FormValidationError, APIError) as e:
            return self._fail(to_notice(e, "Registration failed"))
        return self._start_session(response)

    def _start_session(self, response) -> Optional[Notice]:
        try:
            session = Session.from_login(SessionDomain.RESTAURANT, response)
        except ValidationError:
            logger.error("Restaurant login response did not contain a user and token")
            return self._fail(Notice.of(ErrorKind.REJECTED, "Unexpected response from server"))
        self.store.save(SessionDomain.RESTAURANT, session)
        self.session = session
        self.router.dispatch(RestaurantLoggedIn(session))
        logger.info(f"Restaurant logged in: {session.principal.email}")
        self.load_batches()
        return None

    def logout(self):
        try:
            self.store.clear(SessionDomain.RESTAURANT)
        except DatabaseError as e:
            logger.error(f"Failed to clear restaurant session: {e}")
        self.session = None
        self.router.dispatch(RestaurantLoggedOut())
        logger.info("Restaurant logged out")

    def _fail(self, notice: Notice) -> Notice:
        logger.warning(f"Restaurant portal: {notice.message}")
        self.router.dispatch(FormFailed(notice))
        return notice

    def _auth_rejected(self) -> Notice:
        notice = Notice.of(ErrorKind.UNAUTHENTICATED, "Session expired. Please login again.")
        self.logout()
        self.router.dispatch(FormFailed(notice))
        return notice

    def load_batches(self) -> Optional[Notice]:
        if not isinstance(self.state, ReceiptForm):
            return None
        try:
            batches = self.client.get_restaurant_batches(self.token)
        except AuthenticationError:
            return self._auth_rejected()
        except APIError as e:
            notice = to_notice(e, "Failed to load batches")
            self.router.dispatch(BatchesLoaded(notice=notice))
            return notice
        self.router.dispatch(BatchesLoaded(batches=tuple(batches)))
        return None

    def create_receipt(self, batch_id: str, amount_paid) -> Optional[Notice]:
        if not isinstance(self.state, ReceiptForm):
            return Notice.of(ErrorKind.UNAUTHENTICATED, "Please login first")
        try:
            batch_id, amount = validate_receipt(batch_id, amount_paid)
            receipt = self.client.create_receipt(batch_id, self.restaurant_name, amount, self.token)
        except AuthenticationError:
            return self._auth_rejected()
        except (FormValidationError, APIError) as e:
            return self._fail(to_notice(e, "Failed to create receipt"))

        logger.info(f"Receipt created: {receipt.receipt_id} for batch {batch_id}")
        self.router.dispatch(ReceiptIssued(receipt))
        return None

    def create_another(self):
        self.router.dispatch(CreateAnother())
        self.load_batches()
