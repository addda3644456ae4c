"""Tests for the farmer portal and wallet credential."""

from datetime import date
import random

import pytest

from farm_passport.api.client import APIClient
from farm_passport.api.errors import ErrorKind, FormValidationError, NetworkError
from farm_passport.api.models import BatchCreation, FarmerDashboard, FarmerRegistration
from farm_passport.portals.farmer import FarmerPortal
from farm_passport.portals.forms import generate_batch_id
from farm_passport.portals.wallet import FarmerCredential, normalize_private_key
from farm_passport.router.farmer import Dashboard, FarmerLogin, FarmerRegister, RegistrationSuccess

KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"


@pytest.fixture
def api(mocker):
    api = mocker.Mock(spec=APIClient)
    api.register_farmer.return_value = FarmerRegistration.model_validate({"transactionHash": "0xreg"})
    api.create_batch.return_value = BatchCreation.model_validate({"batchId": "VEG-20260201-AB12"})
    api.get_farmer_dashboard.return_value = FarmerDashboard.model_validate({
        "farmer": {"farmName": "Green Valley"},
        "batches": [{"batchId": "VEG-1", "unlocks": 2, "scans": 5}],
    })
    return api


@pytest.fixture
def portal(api):
    return FarmerPortal(api)


def test_address_derived_from_key_with_or_without_prefix():
    assert FarmerCredential.from_private_key(KEY).address == ADDRESS
    assert FarmerCredential.from_private_key("0x" + KEY.upper()).address == ADDRESS


@pytest.mark.parametrize("raw", ["", "0x1234", "zz" * 32])
def test_bad_private_keys_are_rejected(raw):
    with pytest.raises(FormValidationError):
        normalize_private_key(raw)


def test_private_key_not_in_repr():
    credential = FarmerCredential.from_private_key(KEY)

    assert KEY not in repr(credential)


def test_dashboard_requires_credential(portal, api):
    assert isinstance(portal.state, FarmerLogin)

    notice = portal.create_batch("VEG-1", "Vegetable", "Carrots", 10, "kg")

    assert notice.kind == ErrorKind.VALIDATION
    api.create_batch.assert_not_called()


def test_login_loads_dashboard(portal, api):
    assert portal.login(KEY) is None

    assert isinstance(portal.state, Dashboard)
    assert portal.state.address == ADDRESS
    assert portal.state.dashboard.total_unlocks == 2
    api.get_farmer_dashboard.assert_called_once_with("0x" + KEY)


def test_invalid_key_stays_on_login(portal, api):
    notice = portal.login("not-a-key")

    assert notice.kind == ErrorKind.VALIDATION
    assert portal.state.notice == notice
    api.get_farmer_dashboard.assert_not_called()


def test_generate_register_continue(portal, api):
    credential = portal.generate_wallet()
    assert isinstance(portal.state, FarmerRegister)
    assert portal.state.address == credential.address

    assert portal.register("Green Valley", "Kent", "") is None
    api.register_farmer.assert_called_once_with(credential.address, "Green Valley", "Kent", None)
    assert isinstance(portal.state, RegistrationSuccess)
    assert portal.state.private_key == credential.private_key
    assert portal.state.explorer_url == "https://sepolia.etherscan.io/tx/0xreg"

    portal.continue_to_dashboard()
    assert isinstance(portal.state, Dashboard)


def test_registration_requires_farm_name_and_location(portal, api):
    portal.generate_wallet()

    assert portal.register("", "Kent").kind == ErrorKind.VALIDATION
    assert portal.register("Green Valley", " ").kind == ErrorKind.VALIDATION
    api.register_farmer.assert_not_called()


@pytest.mark.parametrize("product_type,quantity,unit", [
    ("Spice", 10, "kg"),
    ("Vegetable", 0, "kg"),
    ("Vegetable", "2.5", "kg"),
    ("Vegetable", 10, "tonnes"),
])
def test_batch_validation(portal, api, product_type, quantity, unit):
    portal.login(KEY)

    notice = portal.create_batch("VEG-1", product_type, "Carrots", quantity, unit)

    assert notice.kind == ErrorKind.VALIDATION
    api.create_batch.assert_not_called()


def test_create_batch_refreshes_dashboard(portal, api):
    portal.login(KEY)

    assert portal.create_batch("VEG-20260201-AB12", "Vegetable", "Carrots", "25", "kg") is None

    api.create_batch.assert_called_once_with(ADDRESS, "VEG-20260201-AB12", "Vegetable", "Carrots", 25, "kg")
    assert portal.state.last_batch.batch_id == "VEG-20260201-AB12"
    assert api.get_farmer_dashboard.call_count == 2


def test_dashboard_network_failure_is_a_notice(portal, api):
    api.get_farmer_dashboard.side_effect = NetworkError("down")

    notice = portal.login(KEY)

    assert notice.kind == ErrorKind.NETWORK
    assert portal.state.notice == notice


def test_logout_drops_credential(portal):
    portal.login(KEY)

    portal.logout()

    assert portal.credential is None
    assert isinstance(portal.state, FarmerLogin)


def test_generate_batch_id_format():
    batch_id = generate_batch_id("Vegetable", today=date(2026, 2, 1), rng=random.Random(7))

    prefix, stamp, suffix = batch_id.split("-")
    assert prefix == "VEG"
    assert stamp == "20260201"
    assert len(suffix) == 4 and suffix.isalnum() and suffix.upper() == suffix
