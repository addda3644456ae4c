"""Tests for receipt lookup and badge claim coordination."""

from datetime import datetime, timedelta, timezone

import pytest

from farm_passport.api.client import APIClient
from farm_passport.api.errors import APIError, AuthenticationError, NetworkError, NotFoundError
from farm_passport.api.models import ClaimResponse, Receipt
from farm_passport.claims.coordinator import (
    ClaimCoordinator, ClaimOutcome, LookupOutcome, is_already_claimed_message,
)

NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def _receipt(**overrides):
    data = {
        "receiptId": "RECEIPT-20260201-ABC123",
        "restaurantName": "The Kitchen",
        "batchId": "VEG-1",
        "farmName": "Green Valley",
        "expiresAt": (NOW + timedelta(days=1)).isoformat(),
        "claimed": False,
    }
    data.update(overrides)
    return Receipt.model_validate(data)


@pytest.fixture
def api(mocker):
    api = mocker.Mock(spec=APIClient)
    api.get_receipt.return_value = _receipt()
    api.claim_badge.return_value = ClaimResponse.model_validate({
        "farmName": "Green Valley", "batchId": "VEG-1", "transactionHash": "0xabc",
    })
    return api


@pytest.fixture
def on_success(mocker):
    return mocker.Mock()


@pytest.fixture
def coordinator(api, on_success):
    return ClaimCoordinator(api, on_success=on_success, clock=lambda: NOW)


RID = "RECEIPT-20260201-ABC123"


def test_successful_claim_reports_farm_and_transaction(coordinator, api, on_success):
    coordinator.fetch_receipt(RID)

    result = coordinator.claim(RID, "token")

    assert result.outcome == ClaimOutcome.SUCCESS
    assert result.farm_name == "Green Valley"
    assert result.batch_id == "VEG-1"
    assert result.transaction_hash == "0xabc"
    assert result.restaurant_name == "The Kitchen"
    assert coordinator.is_claimed(RID)
    assert coordinator.receipt(RID).claimed is True
    api.claim_badge.assert_called_once_with(RID, "token")
    on_success.assert_called_once_with(result)


def test_second_claim_is_already_claimed_and_callback_fires_once(coordinator, api, on_success):
    coordinator.fetch_receipt(RID)
    coordinator.claim(RID, "token")

    second = coordinator.claim(RID, "token")

    assert second.outcome == ClaimOutcome.ALREADY_CLAIMED
    assert second.farm_name == "Green Valley"
    assert api.claim_badge.call_count == 1
    assert on_success.call_count == 1


def test_claim_while_in_flight_is_rejected_without_network(coordinator, api):
    nested = []

    def claim_badge(receipt_id, token):
        nested.append(coordinator.claim(receipt_id, token))
        return ClaimResponse.model_validate({"farmName": "Green Valley"})

    api.claim_badge.side_effect = claim_badge

    result = coordinator.claim(RID, "token")

    assert result.outcome == ClaimOutcome.SUCCESS
    assert nested[0].outcome == ClaimOutcome.IN_PROGRESS
    assert api.claim_badge.call_count == 1
    assert not coordinator.is_claiming(RID)


def test_expired_receipt_is_not_claimable_before_any_network_call(coordinator, api):
    api.get_receipt.return_value = _receipt(expiresAt=(NOW - timedelta(minutes=1)).isoformat())
    coordinator.fetch_receipt(RID)

    assert coordinator.is_expired(RID)
    assert not coordinator.can_claim(RID, "token")

    result = coordinator.claim(RID, "token")

    assert result.outcome == ClaimOutcome.EXPIRED
    api.claim_badge.assert_not_called()


def test_missing_token_is_unauthenticated_without_network(coordinator, api):
    result = coordinator.claim(RID, None)

    assert result.outcome == ClaimOutcome.UNAUTHENTICATED
    api.claim_badge.assert_not_called()


@pytest.mark.parametrize("message", [
    "Receipt has already been claimed",
    "Badge already claimed for this receipt",
    "ALREADY CLAIMED",
])
def test_backend_already_claimed_messages_map_to_already_claimed(coordinator, api, on_success, message):
    coordinator.fetch_receipt(RID)
    api.claim_badge.side_effect = APIError(message, 400)

    result = coordinator.claim(RID, "token")

    assert result.outcome == ClaimOutcome.ALREADY_CLAIMED
    assert coordinator.is_claimed(RID)
    assert coordinator.receipt(RID).claimed is True
    on_success.assert_not_called()


def test_already_claimed_message_matching():
    assert is_already_claimed_message("This receipt has already been used")
    assert not is_already_claimed_message("Receipt expired")
    assert not is_already_claimed_message(None)


def test_network_failure_leaves_receipt_claimable(coordinator, api):
    coordinator.fetch_receipt(RID)
    api.claim_badge.side_effect = NetworkError("Request failed")

    result = coordinator.claim(RID, "token")

    assert result.outcome == ClaimOutcome.NETWORK_ERROR
    assert not coordinator.is_claimed(RID)
    assert coordinator.can_claim(RID, "token")

    api.claim_badge.side_effect = None
    assert coordinator.claim(RID, "token").outcome == ClaimOutcome.SUCCESS


def test_auth_rejection_is_unauthenticated(coordinator, api):
    api.claim_badge.side_effect = AuthenticationError("Invalid token", 401)

    assert coordinator.claim(RID, "stale").outcome == ClaimOutcome.UNAUTHENTICATED
    assert not coordinator.is_claiming(RID)


def test_backend_expiry_and_not_found(coordinator, api):
    api.claim_badge.side_effect = APIError("Receipt has expired", 400)
    assert coordinator.claim(RID, "token").outcome == ClaimOutcome.EXPIRED

    api.claim_badge.side_effect = NotFoundError("Receipt not found", 404)
    assert coordinator.claim(RID, "token").outcome == ClaimOutcome.NOT_FOUND


def test_other_rejections_keep_backend_message(coordinator, api):
    api.claim_badge.side_effect = APIError("Blockchain unavailable", 500)

    result = coordinator.claim(RID, "token")

    assert result.outcome == ClaimOutcome.REJECTED
    assert result.message == "Blockchain unavailable"


def test_success_callback_errors_do_not_break_claim(api):
    coordinator = ClaimCoordinator(api, on_success=lambda result: 1 / 0, clock=lambda: NOW)

    assert coordinator.claim(RID, "token").outcome == ClaimOutcome.SUCCESS


def test_fetch_receipt_outcomes(coordinator, api):
    found = coordinator.fetch_receipt(RID)
    assert found.found and found.receipt_id == RID

    api.get_receipt.side_effect = NotFoundError("Receipt not found", 404)
    missing = coordinator.fetch_receipt("RECEIPT-X")
    assert missing.outcome == LookupOutcome.NOT_FOUND
    assert missing.receipt_id == "RECEIPT-X"

    api.get_receipt.side_effect = NetworkError("down")
    assert coordinator.fetch_receipt("RECEIPT-Y").outcome == LookupOutcome.NETWORK_ERROR


def test_refetch_keeps_local_claimed_mark(coordinator, api):
    coordinator.fetch_receipt(RID)
    coordinator.claim(RID, "token")

    lookup = coordinator.fetch_receipt(RID)

    assert lookup.receipt.claimed is True


def test_can_claim_follows_loaded_receipt(coordinator, api):
    assert coordinator.can_claim(RID, "token")
    assert not coordinator.can_claim(RID, None)

    api.get_receipt.return_value = _receipt(claimed=True)
    coordinator.fetch_receipt(RID)

    assert not coordinator.can_claim(RID, "token")
