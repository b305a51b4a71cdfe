"""Shared fixtures for product query and cart tests."""

import itertools

import pytest

from schemas import CartLineItem, Product


@pytest.fixture
def make_product():
    """Factory building Product records with sensible defaults."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        fields = {
            "id": f"p{n}",
            "name": f"Product {n}",
            "category": "Mobiles",
            "price": 10.0,
            "discount": 0,
            "stock": 10,
            "rating": 4.0,
        }
        fields.update(overrides)
        return Product(**fields)

    return _make


@pytest.fixture
def make_line_item(make_product):
    """Factory building cart line items joined with a product."""
    counter = itertools.count(1)

    def _make(quantity=1, missing=False, **product_fields):
        n = next(counter)
        product = None if missing else make_product(**product_fields)
        return CartLineItem(
            id=f"c{n}",
            user_id="u1",
            product_id=product.id if product else f"gone{n}",
            quantity=quantity,
            product=product,
        )

    return _make


@pytest.fixture
def catalog(make_product):
    """A small mixed catalog in insertion order."""
    return [
        make_product(id="a", category="Mobiles", price=300, rating=4.5),
        make_product(id="b", category="Laptops", price=1200, rating=4.9),
        make_product(id="c", category="Mobiles", price=150, rating=3.2),
        make_product(id="d", category="Fashion", price=45, rating=5.0),
        make_product(id="e", category="Mobiles", price=300, rating=4.0),
        make_product(id="f", category="Laptops", price=800, rating=2.7),
    ]
