import asyncio
import json
from decimal import Decimal

import pytest
import pytest_asyncio

from storefront.domain.errors import (
    CheckoutInProgressError,
    EmptyCartError,
    PaymentMethodUnavailableError,
    RemoteError,
    ValidationError,
)
from storefront.domain.models.order import OrderConfirmation, PaymentMethod, ShippingForm
from storefront.domain.services.checkout_svc import (
    CheckoutOrchestrator,
    CheckoutState,
    shipping_cost,
    validate_shipping,
)

VALID = dict(full_name="Noa Levi", email="noa@example.com", phone="050-1234567", city="Haifa", street="Herzl 1")


@pytest_asyncio.fixture
async def filled_store(shop, store):
    shop.seed_line("guest:guest-1", quantity=2, price=100)
    await store.refresh()
    return store


@pytest.fixture
def orchestrator(api, filled_store):
    return CheckoutOrchestrator(api, filled_store)


def test_shipping_cost_only_for_positive_subtotal():
    assert shipping_cost(Decimal(200)) == 50
    assert shipping_cost(Decimal(0)) == 0
    assert shipping_cost(Decimal(10), flat_rate=Decimal(30)) == 30


@pytest.mark.parametrize(
    "field,key_message",
    [
        ("full_name", "Please enter your full name"),
        ("email", "Email is required"),
        ("phone", "Please enter your phone number"),
        ("city", "Please enter your city"),
        ("street", "Please enter your street address"),
    ],
)
def test_each_required_field_has_its_own_error(field, key_message):
    form = ShippingForm(**{**VALID, field: "   "})
    issue = validate_shipping(form)
    assert issue.field == field
    assert issue.message == key_message


def test_email_must_contain_at_sign():
    issue = validate_shipping(ShippingForm(**{**VALID, "email": "noa.example.com"}))
    assert issue.field == "email"
    assert issue.message == "Please enter a valid email"


def test_first_failing_rule_wins_and_notes_are_optional():
    assert validate_shipping(ShippingForm(**VALID)) is None
    issue = validate_shipping(ShippingForm(city="Haifa"))
    assert issue.field == "full_name"


def test_messages_are_localized():
    issue = validate_shipping(ShippingForm(**{**VALID, "city": ""}), lang="he")
    assert issue.message == "יש להזין עיר"


@pytest.mark.asyncio
async def test_invalid_form_never_reaches_the_network(shop, orchestrator):
    before = len(shop.requests)
    with pytest.raises(ValidationError) as exc:
        await orchestrator.submit(ShippingForm(**{**VALID, "phone": ""}), PaymentMethod.COD)
    assert exc.value.field == "phone"
    assert orchestrator.state is CheckoutState.EDITING
    assert orchestrator.error_field == "phone"
    assert len(shop.requests) == before


@pytest.mark.asyncio
async def test_card_is_refused_without_a_request(shop, orchestrator):
    before = len(shop.requests)
    for form in (ShippingForm(**VALID), ShippingForm()):
        with pytest.raises(PaymentMethodUnavailableError):
            await orchestrator.submit(form, "card")
        assert "not available yet" in orchestrator.error
    assert len(shop.requests) == before
    assert shop.orders == []


@pytest.mark.asyncio
async def test_empty_cart_is_rejected(shop, api, store):
    await store.refresh()
    orchestrator = CheckoutOrchestrator(api, store)
    with pytest.raises(EmptyCartError):
        await orchestrator.submit(ShippingForm(**VALID))
    assert shop.calls("POST", "/orders/checkout") == []


@pytest.mark.asyncio
async def test_successful_checkout_places_order_and_refreshes_cart(shop, orchestrator, filled_store):
    assert orchestrator.shipping == 50
    assert orchestrator.order_total == 250

    confirmation = await orchestrator.submit(ShippingForm(**VALID, notes="ring twice"), PaymentMethod.COD)

    assert isinstance(confirmation, OrderConfirmation)
    assert confirmation.id == "ord1"
    assert orchestrator.state is CheckoutState.PLACED
    body = json.loads(shop.calls("POST", "/orders/checkout")[0].content)
    assert body == {
        "shipping": {
            "fullName": "Noa Levi",
            "email": "noa@example.com",
            "phone": "050-1234567",
            "city": "Haifa",
            "addressLine1": "Herzl 1",
            "addressLine2": "ring twice",
        },
        "shippingPrice": 50,
        "paymentMethod": "cod",
    }
    # server cleared the cart; the store reflects it
    assert filled_store.lines == ()
    assert filled_store.total_item_count == 0


@pytest.mark.asyncio
async def test_server_error_message_is_surfaced_verbatim(shop, orchestrator):
    shop.fail_next = (400, {"error": "Address outside delivery area"})
    with pytest.raises(RemoteError):
        await orchestrator.submit(ShippingForm(**VALID))
    assert orchestrator.error == "Address outside delivery area"
    assert orchestrator.state is CheckoutState.EDITING


@pytest.mark.asyncio
async def test_generic_fallback_when_server_sends_no_message(shop, orchestrator):
    shop.fail_next = (500, None)
    with pytest.raises(RemoteError):
        await orchestrator.submit(ShippingForm(**VALID))
    assert orchestrator.error == "Failed to place order"


@pytest.mark.asyncio
async def test_double_submit_is_refused_while_in_flight(shop, api, filled_store):
    release = asyncio.Event()
    real_checkout = api.checkout

    async def slow_checkout(body):
        await release.wait()
        return await real_checkout(body)

    api.checkout = slow_checkout
    orchestrator = CheckoutOrchestrator(api, filled_store)

    first = asyncio.create_task(orchestrator.submit(ShippingForm(**VALID)))
    await asyncio.sleep(0)
    assert orchestrator.submitting
    with pytest.raises(CheckoutInProgressError):
        await orchestrator.submit(ShippingForm(**VALID))

    release.set()
    await first
    assert len(shop.orders) == 1
    assert orchestrator.state is CheckoutState.PLACED


@pytest.mark.asyncio
async def test_card_on_empty_cart_still_reports_card_unavailable(shop, api, store):
    await store.refresh()
    orchestrator = CheckoutOrchestrator(api, store)
    with pytest.raises(PaymentMethodUnavailableError):
        await orchestrator.submit(ShippingForm(**VALID), PaymentMethod.CARD)
    assert "not available yet" in orchestrator.error
