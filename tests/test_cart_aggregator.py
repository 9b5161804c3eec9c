from __future__ import annotations

import random
from decimal import Decimal

import pytest

from kunapet.core.carts.models import Cart, CartLine


def test_adding_same_product_twice_merges_into_one_line(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)
    cart.add_item("a", "Croquetas", 20)

    assert list(cart.lines) == ["a"]
    assert cart.lines["a"].quantity == 2


def test_existing_line_keeps_its_name_price_and_image(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20, image="a.png")
    cart.add_item("a", "Otro nombre", 99, image="b.png")

    line = cart.lines["a"]
    assert line.name == "Croquetas"
    assert line.unit_price == Decimal("20.00")
    assert line.image == "a.png"
    assert line.quantity == 2


def test_lines_keep_insertion_order(cart: Cart) -> None:
    cart.add_item("b", "Correa", 15)
    cart.add_item("a", "Croquetas", 20)
    cart.add_item("b", "Correa", 15)

    assert [line.id for line in cart.lines.values()] == ["b", "a"]


def test_decrement_below_one_is_clamped_and_never_removes(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)

    cart.update_quantity("a", -5)

    assert "a" in cart.lines
    assert cart.lines["a"].quantity == 1


def test_update_quantity_adds_delta(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)

    cart.update_quantity("a", 3)
    cart.update_quantity("a", -1)

    assert cart.lines["a"].quantity == 3


def test_update_quantity_on_missing_id_is_noop(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)

    assert cart.update_quantity("zzz", 1) is None
    assert [(l.id, l.quantity) for l in cart.lines.values()] == [("a", 1)]


def test_remove_missing_id_leaves_cart_unchanged(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)
    cart.add_item("b", "Correa", 15)
    before = [(l.id, l.quantity) for l in cart.lines.values()]

    assert cart.remove_item("nope") is None
    assert [(l.id, l.quantity) for l in cart.lines.values()] == before
    assert cart.last_action["action"] == "remove_missing"


def test_remove_deletes_line(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)
    cart.remove_item("a")

    assert cart.is_empty


def test_random_operation_sequences_never_leave_non_positive_quantities(cart: Cart) -> None:
    rng = random.Random(1234)
    ids = ["a", "b", "c", "d"]

    for _ in range(500):
        op = rng.choice(["add", "update", "remove"])
        pid = rng.choice(ids)
        if op == "add":
            cart.add_item(pid, pid.upper(), rng.randint(0, 30))
        elif op == "update":
            cart.update_quantity(pid, rng.randint(-10, 10))
        else:
            cart.remove_item(pid)

        assert all(line.quantity >= 1 for line in cart.lines.values())
        assert len(cart.lines) == len(set(cart.lines))


def test_clear_empties_cart(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)
    cart.clear()

    assert cart.is_empty
    assert cart.totals().total == 0


def test_float_prices_are_stored_as_exact_money() -> None:
    line = CartLine(id="x", name="Juguete", unit_price=19.9)

    assert line.unit_price == Decimal("19.90")
    assert line.line_total() == Decimal("19.90")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"id": "", "name": "x", "unit_price": 1},
        {"id": "x", "name": "x", "unit_price": -1},
        {"id": "x", "name": "x", "unit_price": 1, "quantity": 0},
    ],
)
def test_invalid_lines_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        CartLine(**kwargs)


def test_summary_exposes_items_and_totals(cart: Cart) -> None:
    cart.add_item("a", "Croquetas", 20)
    cart.add_item("b", "Correa", 15)
    cart.add_item("b", "Correa", 15)

    summary = cart.to_summary()

    assert summary["item_count"] == 3
    assert [i["id"] for i in summary["items"]] == ["a", "b"]
    assert summary["items"][1]["line_total"] == Decimal("30.00")
    assert summary["total"] == Decimal("60.00")
