"""
Farmer portal: wallet credential, registration, dashboard and batch creation.

Farmer calls are gasless; the backend signs and pays. The credential is held
only by this object and is dropped on logout.
"""

import logging
from typing import Optional

from ..api.client import APIClient
from ..api.errors import APIError, ErrorKind, FormValidationError, Notice, to_notice
from ..router.customer import DEFAULT_EXPLORER_TX_URL, explorer_link
from ..router.farmer import (
    BatchCreated, ContinueToDashboard, Dashboard, DashboardLoaded, FarmerFailed, FarmerLoggedOut,
    FarmerRegister, FarmerRouter, FarmerState, CredentialAccepted, Registered, ShowFarmerLogin,
    ShowFarmerRegister,
)
from .forms import generate_batch_id, validate_batch, validate_farmer_registration
from .wallet import FarmerCredential

logger = logging.getLogger(__name__)


class FarmerPortal:
    """Farmer surface; no durable session, the wallet credential gates the dashboard."""

    def __init__(self, client: APIClient, explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL):
        self.client = client
        self.explorer_tx_url = explorer_tx_url
        self.credential: Optional[FarmerCredential] = None
        self.router = FarmerRouter()

    @property
    def state(self) -> FarmerState:
        return self.router.state

    @property
    def address(self) -> Optional[str]:
        return self.credential.address if self.credential else None

    def _fail(self, notice: Notice) -> Notice:
        logger.warning(f"Farmer portal: {notice.message}")
        self.router.dispatch(FarmerFailed(notice))
        return notice

    def show_login(self):
        self.router.dispatch(ShowFarmerLogin())

    def generate_wallet(self) -> FarmerCredential:
        """Create a fresh wallet and open the registration form for it."""
        self.credential = FarmerCredential.generate()
        self.router.dispatch(ShowFarmerRegister(address=self.credential.address))
        return self.credential

    def login(self, private_key: str) -> Optional[Notice]:
        """Accept a pasted private key and open the dashboard for its address."""
        try:
            credential = FarmerCredential.from_private_key(private_key)
        except FormValidationError as e:
            return self._fail(to_notice(e))
        self.credential = credential
        self.router.dispatch(CredentialAccepted(credential.address))
        logger.info(f"Farmer wallet loaded: {credential.address}")
        return self.load_dashboard()

    def register(self, farm_name: str, location: str, description: Optional[str] = None) -> Optional[Notice]:
        if self.credential is None or not isinstance(self.state, FarmerRegister):
            return self._fail(Notice.of(ErrorKind.VALIDATION, "Generate a wallet before registering"))
        try:
            farm_name, location, description = validate_farmer_registration(farm_name, location, description)
            registration = self.client.register_farmer(self.credential.address, farm_name, location, description)
        except (FormValidationError, APIError) as e:
            return self._fail(to_notice(e, "Registration failed"))

        logger.info(f"Farmer registered: {self.credential.address} ({farm_name})")
        self.router.dispatch(Registered(
            address=self.credential.address,
            private_key=self.credential.private_key,
            transaction_hash=registration.transaction_hash,
            explorer_url=explorer_link(registration.transaction_hash, self.explorer_tx_url),
        ))
        return None

    def continue_to_dashboard(self) -> Optional[Notice]:
        self.router.dispatch(ContinueToDashboard())
        return self.load_dashboard()

    def load_dashboard(self) -> Optional[Notice]:
        if self.credential is None or not isinstance(self.state, Dashboard):
            return None
        try:
            dashboard = self.client.get_farmer_dashboard(self.credential.private_key)
        except APIError as e:
            notice = to_notice(e, "Failed to load dashboard")
            self.router.dispatch(DashboardLoaded(notice=notice))
            return notice
        self.router.dispatch(DashboardLoaded(dashboard=dashboard))
        return None

    def suggest_batch_id(self, product_type: str) -> str:
        return generate_batch_id(product_type)

    def create_batch(self, batch_id: str, product_type: str, product_name: str,
                     quantity, unit: str) -> Optional[Notice]:
        if self.credential is None or not isinstance(self.state, Dashboard):
            return self._fail(Notice.of(ErrorKind.VALIDATION, "Load your wallet first"))
        try:
            batch_id, product_type, product_name, quantity, unit = validate_batch(
                batch_id, product_type, product_name, quantity, unit
            )
            creation = self.client.create_batch(
                self.credential.address, batch_id, product_type, product_name, quantity, unit
            )
        except (FormValidationError, APIError) as e:
            return self._fail(to_notice(e, "Failed to create batch"))

        logger.info(f"Batch created: {batch_id} ({product_type} {product_name})")
        self.router.dispatch(BatchCreated(creation))
        return self.load_dashboard()

    def logout(self):
        self.credential = None
        self.router.dispatch(FarmerLoggedOut())
        logger.info("Farmer logged out")
