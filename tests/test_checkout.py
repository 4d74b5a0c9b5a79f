import pytest
from pydantic import ValidationError

from conftest import make_line
from storefront.schemas.order import CheckoutForm
from storefront.services.cart import CartStore
from storefront.services.checkout import CLEAR_AT_KEY, CheckoutFlow, form_errors, generate_order_number
from storefront.services.storage import MemoryStorage, StorageFullError


class FakeClock:
    def __init__(self, now=1700000000.0):
        self.now = now

    def __call__(self):
        return self.now


VALID_FORM = {
    "full_name": "Budi Santoso",
    "email": "budi@example.com",
    "phone": "08123456789",
    "address": "Jl. Merdeka 1",
    "city": "Jakarta",
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def checkout(store, storage, clock):
    return CheckoutFlow(store, storage, clear_delay=3.0, clock=clock)


def test_generate_order_number():
    number = generate_order_number(clock=lambda: 1712345678.5)

    assert number == "AMV45678500"
    assert generate_order_number("ORD", clock=lambda: 1712345678.5) == "ORD45678500"


def test_place_order_snapshots_cart(store, checkout, clock):
    store.add_to_cart(make_line(1, 100000, quantity=2))
    store.add_to_cart(make_line(2, 250000))

    confirmation = checkout.place_order(CheckoutForm(**VALID_FORM))

    assert confirmation.order_number.startswith("AMV")
    assert len(confirmation.order_number) == 11
    assert [item.product_id for item in confirmation.items] == [1, 2]
    assert confirmation.items[0].line_total == 200000
    assert confirmation.summary.total == 475000
    assert confirmation.clear_at == clock.now + 3.0
    assert confirmation.customer.payment_method == "cod"


def test_cart_clears_only_after_delay(store, storage, checkout, clock):
    start = clock.now
    store.add_to_cart(make_line(1, 100000))
    checkout.place_order(CheckoutForm(**VALID_FORM))

    assert checkout.settle() is False
    assert store.cart_count == 1

    clock.now = start + 2.0
    assert checkout.settle() is False

    clock.now = start + 3.0
    assert checkout.settle() is True
    assert store.cart_count == 0
    assert storage.get_item("amv_cart") == "[]"
    assert storage.get_item(CLEAR_AT_KEY) is None


def test_settle_without_order_is_noop(store, checkout):
    store.add_to_cart(make_line(1, 100000))

    assert checkout.settle() is False
    assert store.cart_count == 1


def test_empty_cart_rejected(checkout):
    with pytest.raises(ValueError, match="Cart is empty"):
        checkout.place_order(CheckoutForm(**VALID_FORM))


def test_form_requires_all_fields():
    with pytest.raises(ValidationError) as exc_info:
        CheckoutForm(full_name="  ", email="", phone="", address="Jl. Merdeka 1", city="")

    errors = form_errors(exc_info.value)

    assert set(errors) == {"full_name", "email", "phone", "city"}
    assert errors["full_name"] == "This field is required"


def test_form_rejects_bad_email():
    with pytest.raises(ValidationError) as exc_info:
        CheckoutForm(**{**VALID_FORM, "email": "not-an-email"})

    assert list(form_errors(exc_info.value)) == ["email"]


def test_form_rejects_unknown_payment_method():
    with pytest.raises(ValidationError) as exc_info:
        CheckoutForm(**VALID_FORM, payment_method="crypto")

    assert list(form_errors(exc_info.value)) == ["payment_method"]


def test_form_strips_whitespace():
    form = CheckoutForm(**{**VALID_FORM, "city": "  Bandung "})

    assert form.city == "Bandung"


class NoRoomForDeadline(MemoryStorage):
    def set_item(self, key, value):
        if key == CLEAR_AT_KEY:
            raise StorageFullError("session full")
        super().set_item(key, value)


def test_place_order_clears_now_when_deadline_cannot_be_stored(caplog, clock):
    storage = NoRoomForDeadline()
    store = CartStore(storage)
    store.add_to_cart(make_line(1, 100000))
    checkout = CheckoutFlow(store, storage, clear_delay=3.0, clock=clock)

    confirmation = checkout.place_order(CheckoutForm(**VALID_FORM))

    assert [item.product_id for item in confirmation.items] == [1]
    assert store.cart_count == 0
    assert checkout.pending_clear_at is None
    assert "Could not schedule cart clear" in caplog.text
