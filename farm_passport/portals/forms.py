"""
Form validation for the three portals.

Validators raise FormValidationError before any network call and return the
cleaned values.
"""

import math
import random
import string
from datetime import date
from typing import Optional, Tuple

from ..api.errors import FormValidationError

MIN_PASSWORD_LENGTH = 6
PRODUCT_TYPES = ("Vegetable", "Fruit", "Meat", "Dairy", "Grain")
UNITS = ("kg", "units", "litres", "dozen")


def _required(value: Optional[str], field: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise FormValidationError(f"{label} is required", field)
    return cleaned


def validate_scan_input(raw: Optional[str]) -> str:
    """Reject empty manual or camera input before classification."""
    return _required(raw, "code", "Batch ID or receipt code")


def validate_login(email: Optional[str], password: Optional[str]) -> Tuple[str, str]:
    email = _required(email, "email", "Email")
    if not password:
        raise FormValidationError("Password is required", "password")
    return email, password


def _validate_new_password(password: Optional[str], confirm_password: Optional[str]) -> str:
    if not password:
        raise FormValidationError("Password is required", "password")
    if password != confirm_password:
        raise FormValidationError("Passwords do not match", "confirm_password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise FormValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", "password"
        )
    return password


def validate_customer_registration(email: Optional[str], password: Optional[str],
                                   confirm_password: Optional[str],
                                   name: Optional[str]) -> Tuple[str, str, str]:
    email = _required(email, "email", "Email")
    name = _required(name, "name", "Name")
    password = _validate_new_password(password, confirm_password)
    return email, password, name


def validate_restaurant_registration(email: Optional[str], password: Optional[str],
                                     confirm_password: Optional[str], restaurant_name: Optional[str],
                                     postcode: Optional[str]) -> Tuple[str, str, str, str]:
    email = _required(email, "email", "Email")
    password = _validate_new_password(password, confirm_password)
    restaurant_name = _required(restaurant_name, "restaurant_name", "Restaurant name")
    postcode = _required(postcode, "postcode", "Postcode")
    return email, password, restaurant_name, postcode


def validate_receipt(batch_id: Optional[str], amount_paid) -> Tuple[str, float]:
    batch_id = _required(batch_id, "batch_id", "Batch")
    try:
        amount = float(amount_paid)
    except (TypeError, ValueError):
        raise FormValidationError("Amount paid must be a number", "amount_paid")
    if not math.isfinite(amount):
        raise FormValidationError("Amount paid must be a finite number", "amount_paid")
    if not amount > 0:
        raise FormValidationError("Amount paid must be greater than zero", "amount_paid")
    return batch_id, amount


def validate_farmer_registration(farm_name: Optional[str], location: Optional[str],
                                 description: Optional[str] = None) -> Tuple[str, str, Optional[str]]:
    farm_name = _required(farm_name, "farm_name", "Farm name")
    location = _required(location, "location", "Location")
    description = (description or "").strip() or None
    return farm_name, location, description


def validate_batch(batch_id: Optional[str], product_type: Optional[str], product_name: Optional[str],
                   quantity, unit: Optional[str]) -> Tuple[str, str, str, int, str]:
    batch_id = _required(batch_id, "batch_id", "Batch ID")
    product_name = _required(product_name, "product_name", "Product name")

    if product_type not in PRODUCT_TYPES:
        raise FormValidationError(
            f"Product type must be one of: {', '.join(PRODUCT_TYPES)}", "product_type"
        )
    if unit not in UNITS:
        raise FormValidationError(f"Unit must be one of: {', '.join(UNITS)}", "unit")

    if isinstance(quantity, bool):
        raise FormValidationError("Quantity must be a whole number", "quantity")
    try:
        count = int(str(quantity).strip())
    except (TypeError, ValueError):
        raise FormValidationError("Quantity must be a whole number", "quantity")
    if count <= 0:
        raise FormValidationError("Quantity must be greater than zero", "quantity")

    return batch_id, product_type, product_name, count, unit


def generate_batch_id(product_type: str, today: Optional[date] = None,
                      rng: Optional[random.Random] = None) -> str:
    """Suggest a batch id like ``VEG-20260201-K3QZ``."""
    prefix = (product_type or "BAT")[:3].upper()
    stamp = (today or date.today()).strftime("%Y%m%d")
    chooser = rng or random
    suffix = "".join(chooser.choice(string.ascii_uppercase + string.digits) for _ in range(4))
    return f"{prefix}-{stamp}-{suffix}"
