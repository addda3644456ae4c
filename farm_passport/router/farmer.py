"""
Farmer surface state machine: Login -> {Register -> RegistrationSuccess} -> Dashboard.

The farmer has no backend session; the in-memory wallet credential gates the
dashboard instead.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from ..api.errors import Notice
from ..api.models import BatchCreation, FarmerDashboard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FarmerLogin:
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class FarmerRegister:
    address: Optional[str] = None
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class RegistrationSuccess:
    address: str
    private_key: str
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None

    def __repr__(self):
        return f"RegistrationSuccess(address={self.address!r}, transaction_hash={self.transaction_hash!r})"


@dataclass(frozen=True)
class Dashboard:
    address: str
    dashboard: Optional[FarmerDashboard] = None
    notice: Optional[Notice] = None
    last_batch: Optional[BatchCreation] = None

    @property
    def loading(self) -> bool:
        return self.dashboard is None and self.notice is None


FarmerState = Union[FarmerLogin, FarmerRegister, RegistrationSuccess, Dashboard]


@dataclass(frozen=True)
class ShowFarmerRegister:
    address: Optional[str] = None


@dataclass(frozen=True)
class ShowFarmerLogin:
    pass


@dataclass(frozen=True)
class Registered:
    address: str
    private_key: str
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None

    def __repr__(self):
        return f"Registered(address={self.address!r})"


@dataclass(frozen=True)
class CredentialAccepted:
    address: str


@dataclass(frozen=True)
class ContinueToDashboard:
    pass


@dataclass(frozen=True)
class DashboardLoaded:
    dashboard: Optional[FarmerDashboard] = None
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class BatchCreated:
    creation: BatchCreation


@dataclass(frozen=True)
class FarmerFailed:
    notice: Notice


@dataclass(frozen=True)
class FarmerLoggedOut:
    pass


class FarmerRouter:
    """Dashboard access requires a wallet credential held by the farmer portal."""

    def __init__(self):
        self.state: FarmerState = FarmerLogin()

    def dispatch(self, event) -> FarmerState:
        previous = self.state
        self.state = self._next(self.state, event)
        if self.state is not previous:
            logger.debug(f"{type(event).__name__}: {type(previous).__name__} -> {type(self.state).__name__}")
        return self.state

    def _next(self, state: FarmerState, event) -> FarmerState:
        if isinstance(event, FarmerLoggedOut):
            return FarmerLogin()

        if isinstance(state, (FarmerLogin, FarmerRegister)):
            if isinstance(event, CredentialAccepted):
                return Dashboard(address=event.address)
            if isinstance(event, ShowFarmerRegister):
                return FarmerRegister(address=event.address)
            if isinstance(event, ShowFarmerLogin):
                return FarmerLogin()
            if isinstance(event, Registered) and isinstance(state, FarmerRegister):
                return RegistrationSuccess(
                    address=event.address,
                    private_key=event.private_key,
                    transaction_hash=event.transaction_hash,
                    explorer_url=event.explorer_url,
                )
            if isinstance(event, FarmerFailed):
                return replace(state, notice=event.notice)
            logger.debug(f"Ignoring {type(event).__name__} while logged out")
            return state

        if isinstance(state, RegistrationSuccess):
            if isinstance(event, ContinueToDashboard):
                return Dashboard(address=state.address)
            return state

        if isinstance(state, Dashboard):
            if isinstance(event, DashboardLoaded):
                return replace(state, dashboard=event.dashboard, notice=event.notice)
            if isinstance(event, BatchCreated):
                return replace(state, last_batch=event.creation, notice=None)
            if isinstance(event, FarmerFailed):
                return replace(state, notice=event.notice)
            if isinstance(event, (CredentialAccepted, ShowFarmerRegister, ShowFarmerLogin,
                                  Registered, ContinueToDashboard)):
                return state

        raise ValueError(f"Unknown farmer event: {event!r}")
