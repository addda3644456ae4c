"""
Persisted session models for the Farm Passport client
"""

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SessionDomain(str, Enum):
    """Auth domains with a persisted session; each owns exactly one storage key"""
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"

    @property
    def storage_key(self) -> str:
        return f"{self.value}-session"


class Principal(BaseModel):
    """Authenticated user as returned by the backend"""
    email: str
    display_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("displayName", "display_name", "name", "restaurantName")
    )
    restaurant_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("restaurantName", "restaurant_name")
    )
    postcode: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class SessionRecord(BaseModel):
    """Serialized form stored under a domain key: ``{user, token}``"""
    user: Principal
    token: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="ignore")


class Session(BaseModel):
    """Authenticated session for one role domain"""
    role: SessionDomain
    principal: Principal
    token: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_login(cls, role: SessionDomain, response: dict) -> "Session":
        """Build a session from a login/registration response ``{user, token}``"""
        record = SessionRecord.model_validate(response)
        return cls(role=role, principal=record.user, token=record.token)

    def to_record(self) -> SessionRecord:
        return SessionRecord(user=self.principal, token=self.token)
