from decimal import Decimal

import pytest

from clinic.cart import service as cart
from clinic.errors import InvalidProduct, InvalidQuantity, NotInCart


def test_add_then_view_has_quantity_and_subtotal(catalog):
    session = {}
    assert cart.add(session, "A", 3) == 3
    lines = list(cart.view(session))
    assert len(lines) == 1
    assert lines[0]["quantity"] == 3
    assert lines[0]["price"] == Decimal("100.00")
    assert lines[0]["subtotal"] == Decimal("300.00")

def test_add_same_product_merges_lines(catalog):
    session = {}
    cart.add(session, "A", 1)
    cart.add(session, "B", 1)
    assert cart.add(session, "A", 2) == 4
    assert session["cart"] == [{"product_id": "A", "quantity": 3}, {"product_id": "B", "quantity": 1}]

def test_add_unknown_or_inactive_product_does_not_mutate(catalog):
    session = {"cart": [{"product_id": "A", "quantity": 1}]}
    with pytest.raises(InvalidProduct):
        cart.add(session, "nope", 1)
    with pytest.raises(InvalidProduct):
        cart.add(session, "C", 1)
    assert session["cart"] == [{"product_id": "A", "quantity": 1}]

@pytest.mark.parametrize("qty", [0, -1, "2", 1.5, True])
def test_add_rejects_invalid_quantity(catalog, qty):
    session = {}
    with pytest.raises(InvalidQuantity):
        cart.add(session, "A", qty)
    assert "cart" not in session

def test_update_sets_quantity_and_zero_removes(catalog):
    session = {}
    cart.add(session, "A", 1)
    cart.add(session, "B", 2)
    assert cart.update(session, "A", 5) == 7
    assert cart.update(session, "B", 0) == 5
    assert [line["product_id"] for line in cart.view(session)] == ["A"]

def test_update_missing_line_raises_not_in_cart(catalog):
    session = {}
    with pytest.raises(NotInCart):
        cart.update(session, "A", 2)
    cart.add(session, "A", 1)
    with pytest.raises(InvalidQuantity):
        cart.update(session, "A", -3)

def test_remove_and_clear(catalog):
    session = {}
    cart.add(session, "A", 1)
    cart.add(session, "B", 1)
    assert cart.remove(session, "A") == 1
    cart.clear(session)
    cart.clear(session)
    assert cart.item_count(session) == 0
    assert cart.view(session).is_empty()

def test_view_total_and_restartable_iteration(catalog):
    session = {}
    cart.add(session, "A", 2)
    cart.add(session, "B", 1)
    v = cart.view(session)
    assert v.total == Decimal("250.00")
    # Deux itérations successives donnent le même résultat
    assert list(v) == list(v)
    assert v.to_dict() == {
        "items": [
            {"product_id": "A", "name": "Consultation", "image": "/img/a.jpg", "price": 100.0, "quantity": 2, "subtotal": 200.0},
            {"product_id": "B", "name": "Blood test", "image": "", "price": 50.0, "quantity": 1, "subtotal": 50.0},
        ],
        "count": 3,
        "total": 250.0,
    }

def test_view_skips_products_deactivated_after_add(catalog):
    session = {}
    cart.add(session, "A", 1)
    cart.add(session, "B", 1)
    catalog.products["B"]["active"] = False
    del catalog.products["A"]
    v = cart.view(session)
    assert list(v) == []
    assert v.total == Decimal("0")
    # La ligne reste en session (référence faible)
    assert cart.item_count(session) == 2

def test_corrupted_session_entries_are_ignored(catalog):
    session = {"cart": [{"product_id": "A", "quantity": "x"}, "junk", {"product_id": "B", "quantity": 2}]}
    assert cart.item_count(session) == 2

def test_get_lines_returns_a_copy(catalog):
    session = {}
    cart.add(session, "A", 2)
    lines = cart.get_lines(session)
    assert lines == [{"product_id": "A", "quantity": 2}]
    lines[0]["quantity"] = 99
    assert cart.item_count(session) == 2

def test_check_quantity_zero_only_when_allowed():
    assert cart.check_quantity(0, allow_zero=True) == 0
    assert cart.check_quantity(4, allow_zero=False) == 4
    with pytest.raises(InvalidQuantity):
        cart.check_quantity(0, allow_zero=False)
