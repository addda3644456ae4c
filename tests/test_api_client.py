"""Tests for the backend HTTP client: error mapping and field-name normalization."""

import pytest
import requests

from farm_passport.api.errors import APIError, AuthenticationError, NetworkError, NotFoundError


def test_base_url_trailing_slash_is_stripped(client, http, respond):
    http.request.return_value = respond(payload={"receiptId": "RECEIPT-1"})

    client.get_receipt("RECEIPT-1")

    args, kwargs = http.request.call_args
    assert args == ("GET", "http://backend.test/api/receipt/RECEIPT-1")
    assert kwargs["timeout"] == 5
    assert kwargs["headers"] == {}


def test_receipt_accepts_camel_case(client, http, respond):
    http.request.return_value = respond(payload={"receipt": {
        "receiptId": "RECEIPT-1",
        "restaurantName": "The Kitchen",
        "batchId": "VEG-1",
        "farmName": "Green Valley",
        "amountPaid": 12.5,
        "expiresAt": "2030-01-01T00:00:00Z",
        "claimed": False,
    }})

    receipt = client.get_receipt("RECEIPT-1")

    assert receipt.restaurant_name == "The Kitchen"
    assert receipt.farm_name == "Green Valley"
    assert receipt.amount_paid == 12.5
    assert receipt.expires_at.year == 2030


def test_receipt_accepts_snake_case_and_nested_farmer(client, http, respond):
    http.request.return_value = respond(payload={
        "receipt_id": "RECEIPT-2",
        "restaurant_name": "Bistro",
        "batch_id": "VEG-2",
        "farmer": {"farmName": "Oak Hill"},
        "expires_at": None,
    })

    receipt = client.get_receipt("RECEIPT-2")

    assert receipt.receipt_id == "RECEIPT-2"
    assert receipt.batch_id == "VEG-2"
    assert receipt.farm_name == "Oak Hill"
    assert receipt.expires_at is None
    assert receipt.claimed is False


def test_claim_sends_bearer_token_and_empty_body(client, http, respond):
    http.request.return_value = respond(payload={
        "farmName": "Green Valley", "batchId": "VEG-1", "transactionHash": "0xabc",
    })

    response = client.claim_badge("RECEIPT-1", "secret")

    args, kwargs = http.request.call_args
    assert args == ("POST", "http://backend.test/api/receipt/RECEIPT-1/claim-badge")
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}
    assert kwargs["json"] == {}
    assert response.transaction_hash == "0xabc"


@pytest.mark.parametrize("status", [401, 403])
def test_auth_statuses_raise_authentication_error(client, http, respond, status):
    http.request.return_value = respond(status=status, payload={"error": "Invalid token"})

    with pytest.raises(AuthenticationError) as excinfo:
        client.get_user_badges("expired")

    assert excinfo.value.status_code == status


def test_not_found_carries_backend_message(client, http, respond):
    http.request.return_value = respond(status=404, payload={"error": "Receipt not found"})

    with pytest.raises(NotFoundError) as excinfo:
        client.get_receipt("RECEIPT-404")

    assert excinfo.value.message == "Receipt not found"


def test_business_rejection_carries_backend_message(client, http, respond):
    http.request.return_value = respond(status=400, payload={"error": "Receipt has already been claimed"})

    with pytest.raises(APIError) as excinfo:
        client.claim_badge("RECEIPT-1", "t")

    assert not isinstance(excinfo.value, (NotFoundError, AuthenticationError))
    assert excinfo.value.message == "Receipt has already been claimed"


def test_connection_failure_raises_network_error(client, http):
    http.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(NetworkError):
        client.get_batch("VEG-1")


def test_timeout_raises_network_error(client, http):
    http.request.side_effect = requests.exceptions.Timeout()

    with pytest.raises(NetworkError):
        client.get_receipt("RECEIPT-1")


def test_non_json_success_body_raises_api_error(client, http, respond):
    http.request.return_value = respond(json_error=True)

    with pytest.raises(APIError):
        client.get_receipt("RECEIPT-1")


def test_batch_unwraps_data_and_reports_unsuccessful_lookup(client, http, respond):
    http.request.return_value = respond(payload={"success": True, "data": {
        "batchId": "VEG-1",
        "cropType": "Vegetable",
        "farmer": {"name": "Green Valley", "location": "Kent", "certifications": "Organic, Local"},
        "quantity": "25",
    }})

    batch = client.get_batch("VEG-1")

    assert batch.crop_type == "Vegetable"
    assert batch.farmer.name == "Green Valley"
    assert batch.farmer.certifications == ["Organic", "Local"]
    assert batch.quantity == 25.0

    http.request.return_value = respond(payload={"success": False, "error": "Batch not found"})
    with pytest.raises(NotFoundError):
        client.get_batch("NOPE")


def test_user_badges_requires_success_flag(client, http, respond):
    http.request.return_value = respond(payload={"success": True, "badges": [{"farmName": "Green Valley"}]})
    assert client.get_user_badges("t") == [{"farmName": "Green Valley"}]

    http.request.return_value = respond(payload={"success": False, "error": "nope"})
    with pytest.raises(APIError):
        client.get_user_badges("t")


def test_same_farm_lookup_passes_exclude(client, http, respond):
    http.request.return_value = respond(payload={"restaurants": [
        {"restaurantName": "Bistro", "postcode": "E1"},
        {"name": "Cafe"},
    ]})

    listings = client.get_restaurants_for_farm("VEG 1", exclude="The Kitchen")

    args, kwargs = http.request.call_args
    assert args[1] == "http://backend.test/api/restaurants/same-farm/VEG%201"
    assert kwargs["params"] == {"exclude": "The Kitchen"}
    assert [listing.name for listing in listings] == ["Bistro", "Cafe"]


def test_farmer_dashboard_totals(client, http, respond):
    http.request.return_value = respond(payload={
        "farmer": {"farmName": "Green Valley", "location": "Kent"},
        "batches": [
            {"batchId": "VEG-1", "productName": "Carrots", "unlocks": 3, "scans": 10},
            {"batchId": 42, "productName": "Leeks", "unlocks": 1, "scans": 4},
        ],
    })

    dashboard = client.get_farmer_dashboard("0x" + "1" * 64)

    assert dashboard.farmer.farm_name == "Green Valley"
    assert dashboard.batches[1].batch_id == "42"
    assert dashboard.total_unlocks == 4
    assert dashboard.total_scans == 14
