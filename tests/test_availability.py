import math

from storefront.domain.models.cart import CartLine
from storefront.domain.models.product import Option
from storefront.domain.services.availability_svc import (
    UNBOUNDED,
    QuantityStepper,
    can_add,
    cart_quantities,
    clamp_quantity,
    is_sold_out,
    option_key,
    remaining,
)


def line(lid, product="p1", option="o1", qty=1):
    return CartLine.model_validate(
        {"_id": lid, "product": product, "optionId": option, "name": "x", "price": 10, "quantity": qty}
    )


def test_remaining_is_non_increasing_and_floored():
    opt = Option(id="o1", price=10, quantity=5)
    values = [remaining(opt, n) for n in range(0, 9)]
    assert values == sorted(values, reverse=True)
    assert values[0] == 5
    assert values[-1] == 0
    assert min(values) == 0


def test_unlimited_stock_is_unbounded_regardless_of_cart():
    opt = Option(id="o1", price=10)
    for n in (0, 1, 10_000):
        assert remaining(opt, n) == UNBOUNDED
    assert math.isinf(UNBOUNDED)
    assert not is_sold_out(UNBOUNDED)


def test_cart_quantities_sums_lines_per_product_option():
    qty = cart_quantities([line("l1", qty=2), line("l2", qty=1), line("l3", option="o2", qty=4), line("l4", product="p2")])
    assert qty == {"p1|o1": 3, "p1|o2": 4, "p2|o1": 1}


def test_option_key_falls_back_to_option_name():
    assert option_key("p1", Option(id="o1", price=1)) == "p1|o1"
    assert option_key("p1", Option(name="Blue", price=1)) == "p1|Blue"


def test_five_in_stock_three_in_cart():
    opt = Option(id="o1", price=10, quantity=5)
    left = remaining(opt, cart_quantities([line("l1", qty=3)])["p1|o1"])
    assert left == 2
    assert clamp_quantity(3, left) == 2

    stepper = QuantityStepper.for_remaining(left, value=3)
    assert stepper.value == 2
    assert stepper.increment_disabled
    assert stepper.increment() == 2


def test_sold_out_disables_add():
    opt = Option(id="o1", price=10, quantity=2)
    left = remaining(opt, 2)
    assert left == 0
    assert is_sold_out(left)
    assert not can_add(opt, left)
    assert not can_add(opt, 0)  # zero is sold out whatever the stock model
    assert can_add(opt, UNBOUNDED)
    assert not can_add(None, UNBOUNDED)
    assert not can_add(opt, 1, busy=True)


def test_clamp_quantity_bounds():
    assert clamp_quantity(0, 4) == 1
    assert clamp_quantity(9, 4) == 4
    assert clamp_quantity(9, UNBOUNDED) == 9
    assert clamp_quantity(3, 0) == 0


def test_stepper_unbounded_and_lower_bound():
    stepper = QuantityStepper()
    assert stepper.decrement_disabled
    assert stepper.decrement() == 1
    for _ in range(20):
        stepper.increment()
    assert stepper.value == 21
    assert not stepper.increment_disabled
    assert stepper.set(None) == 1
    assert stepper.set(-4) == 1


def test_stepper_rebound_when_stock_shrinks():
    stepper = QuantityStepper(value=4, max_value=10)
    assert stepper.rebound(2) == 2
    assert stepper.rebound(None) == 2
