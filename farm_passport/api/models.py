"""
Entity models for backend responses.

The backend returns the same entity with camelCase or snake_case field names
depending on the endpoint; each model accepts both so nothing past this module
branches on naming convention.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch number; unparseable values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # Millisecond epochs come from JavaScript Date.now()
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def as_utc(value: datetime) -> datetime:
    """Naive timestamps from the backend are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BackendModel(BaseModel):
    """Base for backend entities: accept field names or aliases, ignore nulls."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Receipt(BackendModel):
    """Proof-of-purchase record, redeemable once for a badge."""
    receipt_id: str = Field(validation_alias=_aliases("receiptId", "receipt_id"))
    restaurant_name: str = Field("Restaurant", validation_alias=_aliases("restaurantName", "restaurant_name"))
    batch_id: Optional[str] = Field(None, validation_alias=_aliases("batchId", "batch_id"))
    farm_name: str = Field("Farm", validation_alias=_aliases("farmName", "farm_name"))
    product_name: Optional[str] = Field(None, validation_alias=_aliases("productName", "product_name"))
    amount_paid: Optional[float] = Field(None, validation_alias=_aliases("amountPaid", "amount_paid"))
    created_at: Optional[datetime] = Field(None, validation_alias=_aliases("createdAt", "created_at"))
    expires_at: Optional[datetime] = Field(None, validation_alias=_aliases("expiresAt", "expires_at"))
    claimed: bool = False

    @model_validator(mode="before")
    @classmethod
    def _lift_farmer_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not (data.get("farmName") or data.get("farm_name")):
            farmer = data.get("farmer")
            if isinstance(farmer, dict) and (farmer.get("farmName") or farmer.get("farm_name")):
                data = dict(data)
                data["farmName"] = farmer.get("farmName") or farmer.get("farm_name")
        return data

    @field_validator("created_at", "expires_at", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return as_utc(now) > as_utc(self.expires_at)

    def is_claimable(self, now: Optional[datetime] = None) -> bool:
        return not self.claimed and not self.is_expired(now)

    def mark_claimed(self) -> "Receipt":
        """Return a copy of this receipt with ``claimed`` set."""
        return self.model_copy(update={"claimed": True})


class Farmer(BackendModel):
    name: str = Field("Farm", validation_alias=_aliases("name", "farmName", "farm_name"))
    location: Optional[str] = None
    description: Optional[str] = None
    certifications: Optional[List[str]] = None

    @field_validator("certifications", mode="before")
    @classmethod
    def _split_certifications(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class Batch(BackendModel):
    """Read-only traceability record for a batch of produce."""
    batch_id: str = Field(validation_alias=_aliases("batchId", "batch_id"))
    farmer: Farmer = Field(default_factory=Farmer)
    crop_type: Optional[str] = Field(
        None, validation_alias=_aliases("cropType", "crop_type", "productType", "product_type")
    )
    product_name: Optional[str] = Field(None, validation_alias=_aliases("productName", "product_name"))
    harvest_date: Optional[datetime] = Field(
        None, validation_alias=_aliases("harvestDate", "harvest_date", "timestamp")
    )
    quantity: Optional[float] = None
    unit: Optional[str] = None

    @field_validator("harvest_date", mode="before")
    @classmethod
    def _parse_harvest_date(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any) -> Optional[float]:
        try:
            return float(value)
        except (TypeError, ValueError):
            return None


class Badge(BackendModel):
    """Collectible proving a consumer supported a farm."""
    farm_name: Optional[str] = Field(None, validation_alias=_aliases("farmName", "farm_name"))
    batch_id: Optional[str] = Field(None, validation_alias=_aliases("batchId", "batch_id"))
    product_name: Optional[str] = Field(None, validation_alias=_aliases("productName", "product_name"))
    restaurant_name: Optional[str] = Field(None, validation_alias=_aliases("restaurantName", "restaurant_name"))
    unlock_date: Optional[datetime] = Field(
        None, validation_alias=_aliases("unlockDate", "unlock_date", "unlockedAt", "unlocked_at")
    )

    @field_validator("unlock_date", mode="before")
    @classmethod
    def _parse_unlock_date(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


class ClaimResponse(BackendModel):
    farm_name: Optional[str] = Field(None, validation_alias=_aliases("farmName", "farm_name"))
    batch_id: Optional[str] = Field(None, validation_alias=_aliases("batchId", "batch_id"))
    transaction_hash: Optional[str] = Field(
        None, validation_alias=_aliases("transactionHash", "transaction_hash", "txHash")
    )


class RestaurantListing(BackendModel):
    name: str = Field(validation_alias=_aliases("name", "restaurantName", "restaurant_name"))
    postcode: Optional[str] = None


class BatchOption(BackendModel):
    """Batch a restaurant can attach to a receipt."""
    batch_id: str = Field(validation_alias=_aliases("batchId", "batch_id"))
    product_name: Optional[str] = Field(None, validation_alias=_aliases("productName", "product_name"))
    crop_type: Optional[str] = Field(
        None, validation_alias=_aliases("cropType", "crop_type", "productType", "product_type")
    )
    farm_name: Optional[str] = Field(None, validation_alias=_aliases("farmName", "farm_name"))

    @property
    def label(self) -> str:
        return f"{self.product_name or self.crop_type or 'Product'} - {self.batch_id}"


class FarmerProfile(BackendModel):
    farm_name: str = Field("Farm", validation_alias=_aliases("farmName", "farm_name", "name"))
    location: Optional[str] = None
    address: Optional[str] = Field(None, validation_alias=_aliases("address", "farmerAddress", "farmer_address"))


class FarmerBatch(BackendModel):
    batch_id: str = Field("Unknown", validation_alias=_aliases("batchId", "batch_id"))
    product_type: str = Field("Unknown", validation_alias=_aliases("productType", "product_type"))
    product_name: str = Field("Unknown", validation_alias=_aliases("productName", "product_name"))
    quantity: Optional[float] = None
    unit: str = ""
    timestamp: Optional[datetime] = None
    transaction_hash: Optional[str] = Field(
        None, validation_alias=_aliases("transactionHash", "transaction_hash")
    )
    unlocks: int = 0
    scans: int = 0

    @field_validator("batch_id", "product_type", "product_name", "unit", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return str(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)


class FarmerDashboard(BackendModel):
    farmer: FarmerProfile
    batches: List[FarmerBatch] = Field(default_factory=list)

    @property
    def total_unlocks(self) -> int:
        return sum(batch.unlocks for batch in self.batches)

    @property
    def total_scans(self) -> int:
        return sum(batch.scans for batch in self.batches)


class FarmerRegistration(BackendModel):
    farmer_address: Optional[str] = Field(None, validation_alias=_aliases("farmerAddress", "farmer_address"))
    transaction_hash: Optional[str] = Field(
        None, validation_alias=_aliases("transactionHash", "transaction_hash")
    )


class BatchCreation(BackendModel):
    batch_id: Optional[str] = Field(None, validation_alias=_aliases("batchId", "batch_id"))
    transaction_hash: Optional[str] = Field(
        None, validation_alias=_aliases("transactionHash", "transaction_hash")
    )
