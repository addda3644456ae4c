"""
HTTP client for the Farm Passport backend.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from .errors import APIError, AuthenticationError, NetworkError, NotFoundError
from .models import (
    Batch, BatchCreation, BatchOption, ClaimResponse, FarmerDashboard,
    FarmerRegistration, Receipt, RestaurantListing,
)

logger = logging.getLogger(__name__)


def _unwrap(payload: Any, *keys: str) -> Any:
    """Return the first present wrapper key (``receipt``, ``data``...) or the payload itself."""
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if value is not None:
                return value
    return payload


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class APIClient:
    """Backend client; one instance per process, shared by all portals."""

    def __init__(self, config_manager, session: Optional[requests.Session] = None):
        self.config = config_manager
        self.base_url = (self.config.base_api_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("BASE_API_URL configuration is required")

        self.timeout = self.config.api_timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

        logger.info(f"API client initialized for {self.base_url}")

    def _make_request(self, method: str, endpoint: str, token: Optional[str] = None,
                      json_body: Optional[Dict[str, Any]] = None,
                      params: Optional[Dict[str, Any]] = None) -> Any:
        """Make API request and map failures onto the client error types."""
        url = f"{self.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"API request timeout: {method} {endpoint}")
            raise NetworkError(f"Request timed out: {endpoint}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"API request failed: {method} {endpoint} - {e}")
            raise NetworkError(f"Request failed: {endpoint}") from e

        status = response.status_code
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if status >= 400:
            message = ""
            if isinstance(payload, dict):
                message = str(payload.get("error") or payload.get("message") or "")
            logger.warning(f"API error {status}: {method} {endpoint} - {message or 'no message'}")
            if status in (401, 403):
                raise AuthenticationError(message or "Authentication required", status)
            if status == 404:
                raise NotFoundError(message or "Not found", status)
            raise APIError(message or f"Request failed with status {status}", status)

        if payload is None:
            logger.error(f"API returned a non-JSON body: {method} {endpoint}")
            raise APIError("Unexpected response from server", status)

        logger.debug(f"API {method} {endpoint} -> {status}")
        return payload

    def _parse(self, model, data: Any, what: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Malformed {what} in response: {e}")
            raise APIError(f"Malformed {what} in response") from e

    # Customer

    def customer_login(self, email: str, password: str) -> Dict[str, Any]:
        return self._make_request("POST", "/api/auth/login", json_body={
            "email": email,
            "password": password,
        })

    def customer_register(self, email: str, password: str, name: str) -> Dict[str, Any]:
        return self._make_request("POST", "/api/auth/register", json_body={
            "email": email,
            "password": password,
            "name": name,
        })

    def get_batch(self, batch_id: str) -> Batch:
        payload = self._make_request("GET", f"/api/batch/{_segment(batch_id)}")
        if isinstance(payload, dict) and payload.get("success") is False:
            raise NotFoundError(str(payload.get("error") or "Batch not found"))
        return self._parse(Batch, _unwrap(payload, "data", "batch"), "batch")

    def get_receipt(self, receipt_id: str) -> Receipt:
        payload = self._make_request("GET", f"/api/receipt/{_segment(receipt_id)}")
        return self._parse(Receipt, _unwrap(payload, "receipt", "data"), "receipt")

    def claim_badge(self, receipt_id: str, token: str) -> ClaimResponse:
        payload = self._make_request(
            "POST", f"/api/receipt/{_segment(receipt_id)}/claim-badge", token=token, json_body={}
        )
        return self._parse(ClaimResponse, _unwrap(payload, "data"), "claim response")

    def get_user_badges(self, token: str) -> List[Dict[str, Any]]:
        """Return the raw badge list; normalization belongs to the badge aggregator."""
        payload = self._make_request("GET", "/api/user/badges", token=token)
        if not isinstance(payload, dict) or not payload.get("success"):
            raise APIError(str(_unwrap(payload, "error") or "Failed to load badges"))
        badges = payload.get("badges") or []
        return badges if isinstance(badges, list) else []

    def unlock_badge(self, batch_id: str, token: str) -> Dict[str, Any]:
        return self._make_request("POST", "/api/unlock-badge", token=token, json_body={
            "batchId": batch_id,
        })

    def get_restaurants_for_farm(self, batch_id: str, exclude: Optional[str] = None) -> List[RestaurantListing]:
        params = {"exclude": exclude} if exclude else None
        payload = self._make_request(
            "GET", f"/api/restaurants/same-farm/{_segment(batch_id)}", params=params
        )
        raw = _unwrap(payload, "restaurants")
        if not isinstance(raw, list):
            return []
        return [self._parse(RestaurantListing, item, "restaurant") for item in raw]

    # Restaurant

    def restaurant_login(self, email: str, password: str) -> Dict[str, Any]:
        return self._make_request("POST", "/api/restaurant/auth/login", json_body={
            "email": email,
            "password": password,
        })

    def restaurant_register(self, email: str, password: str, restaurant_name: str,
                            postcode: str) -> Dict[str, Any]:
        return self._make_request("POST", "/api/restaurant/auth/register", json_body={
            "email": email,
            "password": password,
            "restaurantName": restaurant_name,
            "postcode": postcode,
        })

    def get_restaurant_batches(self, token: Optional[str] = None) -> List[BatchOption]:
        payload = self._make_request("GET", "/api/restaurant/batches", token=token)
        raw = _unwrap(payload, "batches", "data")
        if not isinstance(raw, list):
            return []
        return [self._parse(BatchOption, item, "batch") for item in raw]

    def create_receipt(self, batch_id: str, restaurant_name: str, amount_paid: float,
                       token: Optional[str] = None) -> Receipt:
        payload = self._make_request("POST", "/api/restaurant/create-receipt", token=token, json_body={
            "batchId": batch_id,
            "restaurantName": restaurant_name,
            "amountPaid": amount_paid,
        })
        return self._parse(Receipt, _unwrap(payload, "receipt", "data"), "receipt")

    # Farmer (gasless: the backend signs and pays)

    def register_farmer(self, farmer_address: str, farm_name: str, location: str,
                        description: Optional[str] = None) -> FarmerRegistration:
        body = {
            "farmerAddress": farmer_address,
            "farmName": farm_name,
            "location": location,
        }
        if description:
            body["description"] = description
        payload = self._make_request("POST", "/api/farmer/register", json_body=body)
        return self._parse(FarmerRegistration, payload, "registration")

    def create_batch(self, farmer_address: str, batch_id: str, product_type: str,
                     product_name: str, quantity: int, unit: str) -> BatchCreation:
        payload = self._make_request("POST", "/api/farmer/create-batch", json_body={
            "farmerAddress": farmer_address,
            "batchId": batch_id,
            "productType": product_type,
            "productName": product_name,
            "quantity": quantity,
            "unit": unit,
        })
        return self._parse(BatchCreation, payload, "batch creation")

    def get_farmer_dashboard(self, private_key: str) -> FarmerDashboard:
        payload = self._make_request("POST", "/api/farmer/dashboard", json_body={
            "privateKey": private_key,
        })
        return self._parse(FarmerDashboard, payload, "dashboard")
