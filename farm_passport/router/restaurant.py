"""
Restaurant surface state machine: Login -> {Register} -> ReceiptForm -> ReceiptCreated.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from ..api.errors import Notice
from ..api.models import BatchOption, Receipt
from ..database.models import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestaurantLogin:
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class RestaurantRegister:
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class ReceiptForm:
    batches: Optional[Tuple[BatchOption, ...]] = None
    notice: Optional[Notice] = None

    @property
    def loading(self) -> bool:
        return self.batches is None and self.notice is None


@dataclass(frozen=True)
class ReceiptCreated:
    receipt: Receipt

    @property
    def qr_value(self) -> str:
        """Value encoded in the receipt QR shown to the customer."""
        return self.receipt.receipt_id


RestaurantState = Union[RestaurantLogin, RestaurantRegister, ReceiptForm, ReceiptCreated]


@dataclass(frozen=True)
class ShowRegister:
    pass


@dataclass(frozen=True)
class ShowLogin:
    pass


@dataclass(frozen=True)
class RestaurantLoggedIn:
    session: Session


@dataclass(frozen=True)
class RestaurantLoggedOut:
    pass


@dataclass(frozen=True)
class BatchesLoaded:
    batches: Optional[Tuple[BatchOption, ...]] = None
    notice: Optional[Notice] = None


@dataclass(frozen=True)
class ReceiptIssued:
    receipt: Receipt


@dataclass(frozen=True)
class FormFailed:
    notice: Notice


@dataclass(frozen=True)
class CreateAnother:
    pass


class RestaurantRouter:
    """The receipt form is reachable only with a restaurant session."""

    def __init__(self, authenticated: bool = False):
        self.state: RestaurantState = ReceiptForm() if authenticated else RestaurantLogin()

    def dispatch(self, event) -> RestaurantState:
        previous = self.state
        self.state = self._next(self.state, event)
        if self.state is not previous:
            logger.debug(f"{type(event).__name__}: {type(previous).__name__} -> {type(self.state).__name__}")
        return self.state

    def _next(self, state: RestaurantState, event) -> RestaurantState:
        if isinstance(event, RestaurantLoggedOut):
            return RestaurantLogin()

        if isinstance(state, (RestaurantLogin, RestaurantRegister)):
            if isinstance(event, RestaurantLoggedIn):
                return ReceiptForm()
            if isinstance(event, ShowRegister):
                return RestaurantRegister()
            if isinstance(event, ShowLogin):
                return RestaurantLogin()
            if isinstance(event, FormFailed):
                return replace(state, notice=event.notice)
            logger.debug(f"Ignoring {type(event).__name__} while logged out")
            return state

        if isinstance(event, (RestaurantLoggedIn, ShowRegister, ShowLogin)):
            return state

        if isinstance(event, CreateAnother):
            return ReceiptForm()

        if isinstance(state, ReceiptForm):
            if isinstance(event, BatchesLoaded):
                batches = tuple(event.batches) if event.batches is not None else None
                return ReceiptForm(batches=batches, notice=event.notice)
            if isinstance(event, ReceiptIssued):
                return ReceiptCreated(receipt=event.receipt)
            if isinstance(event, FormFailed):
                return replace(state, notice=event.notice)

        if isinstance(event, (BatchesLoaded, ReceiptIssued, FormFailed)):
            return state

        raise ValueError(f"Unknown restaurant event: {event!r}")
