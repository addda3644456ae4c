"""Tests for per-domain session persistence."""

from farm_passport.database.models import Principal, Session, SessionDomain


def _customer():
    return Session(
        role=SessionDomain.CUSTOMER,
        principal=Principal(email="ana@example.com", display_name="Ana"),
        token="customer-token",
    )


def _restaurant():
    return Session(
        role=SessionDomain.RESTAURANT,
        principal=Principal(email="kitchen@example.com", restaurant_name="The Kitchen", postcode="N1 1AA"),
        token="restaurant-token",
    )


def _raw_row(db, key):
    row = db.fetchone("SELECT payload FROM Session WHERE key = ?", (key,))
    return row["payload"] if row else None


def test_missing_session_loads_as_none(store):
    assert store.load(SessionDomain.CUSTOMER) is None
    assert store.load(SessionDomain.RESTAURANT) is None


def test_save_then_load_returns_session(store):
    store.save(SessionDomain.CUSTOMER, _customer())

    loaded = store.load(SessionDomain.CUSTOMER)

    assert loaded is not None
    assert loaded.token == "customer-token"
    assert loaded.principal.email == "ana@example.com"
    assert loaded.principal.display_name == "Ana"
    assert loaded.role == SessionDomain.CUSTOMER


def test_restaurant_save_leaves_customer_row_unchanged(store, db):
    store.save(SessionDomain.CUSTOMER, _customer())
    before = _raw_row(db, "customer-session")

    store.save(SessionDomain.RESTAURANT, _restaurant())

    assert _raw_row(db, "customer-session") == before
    assert store.load(SessionDomain.RESTAURANT).principal.restaurant_name == "The Kitchen"


def test_customer_save_and_clear_leave_restaurant_row_unchanged(store, db):
    store.save(SessionDomain.RESTAURANT, _restaurant())
    before = _raw_row(db, "restaurant-session")

    store.save(SessionDomain.CUSTOMER, _customer())
    store.clear(SessionDomain.CUSTOMER)

    assert _raw_row(db, "restaurant-session") == before
    assert store.load(SessionDomain.CUSTOMER) is None


def test_save_overwrites_previous_session_for_domain(store):
    store.save(SessionDomain.CUSTOMER, _customer())
    newer = Session(role=SessionDomain.CUSTOMER, principal=Principal(email="bo@example.com"), token="t2")

    store.save(SessionDomain.CUSTOMER, newer)

    assert store.load(SessionDomain.CUSTOMER).principal.email == "bo@example.com"
    assert store.keys() == ["customer-session"]


def test_corrupt_payload_loads_as_none(store, db):
    db.execute_query("INSERT INTO Session (key, payload) VALUES (?, ?)", ("customer-session", "{not json"))

    assert store.load(SessionDomain.CUSTOMER) is None


def test_user_without_token_is_absent(store, db):
    db.execute_query(
        "INSERT INTO Session (key, payload) VALUES (?, ?)",
        ("customer-session", '{"user": {"email": "ana@example.com"}}'),
    )

    assert store.load(SessionDomain.CUSTOMER) is None


def test_token_without_user_is_absent(store, db):
    db.execute_query(
        "INSERT INTO Session (key, payload) VALUES (?, ?)",
        ("restaurant-session", '{"token": "abc"}'),
    )

    assert store.load(SessionDomain.RESTAURANT) is None


def test_saving_under_wrong_domain_is_rejected(store):
    import pytest

    with pytest.raises(ValueError):
        store.save(SessionDomain.RESTAURANT, _customer())


def test_session_from_login_response():
    session = Session.from_login(SessionDomain.RESTAURANT, {
        "user": {"email": "kitchen@example.com", "restaurantName": "The Kitchen"},
        "token": "jwt",
    })

    assert session.principal.restaurant_name == "The Kitchen"
    assert session.principal.display_name == "The Kitchen"
    assert session.token == "jwt"
