"""Tests for cart partitioning and price aggregation."""

import pytest

from cart import aggregate_cart, cart_summary_payload, effective_price, group_by_seller, round_price
from errors import DataIntegrityError, MissingProductError


class TestRoundPrice:
    """Test 2-decimal half-up rounding."""

    @pytest.mark.parametrize(
        "value, expected",
        [(33.333333333333336, 33.33), (0.125, 0.13), (2.675, 2.68), (160.0, 160.0), (0, 0.0)],
    )
    def test_rounds_half_up(self, value, expected):
        """Should round half-up to cents."""
        assert round_price(value) == expected


class TestEffectivePrice:
    """Test discount application."""

    def test_applies_discount(self, make_product):
        """Should take the percentage off."""
        assert effective_price(make_product(price=100, discount=20)) == pytest.approx(80)

    def test_zero_discount_keeps_price(self, make_product):
        """Should return the unit price unmodified."""
        assert effective_price(make_product(price=19.99, discount=0)) == 19.99


class TestAggregateCart:
    """Test stock partitioning and totals."""

    def test_bipartition(self, make_line_item):
        """Should split items by stock < quantity."""
        items = [
            make_line_item(quantity=3, stock=5),
            make_line_item(quantity=5, stock=2),
            make_line_item(quantity=1, stock=10),
        ]
        result = aggregate_cart(items)
        assert [i.id for i in result.in_stock] == [items[0].id, items[2].id]
        assert [i.id for i in result.out_of_stock] == [items[1].id]
        assert result.in_stock_count == 4
        assert result.out_of_stock_count == 5
        assert result.purchasable_item_count == 2

    def test_exact_stock_is_purchasable(self, make_line_item):
        """Should treat stock == quantity as in stock."""
        result = aggregate_cart([make_line_item(quantity=3, stock=3)])
        assert result.purchasable_item_count == 1
        assert result.out_of_stock == []

    def test_discounted_total(self, make_line_item):
        """Should total quantity * discounted price."""
        result = aggregate_cart([make_line_item(quantity=2, price=100, discount=20)])
        assert result.total_price == 160.00

    def test_total_mixes_discounted_and_plain(self, make_line_item):
        """Should add undiscounted items at full price."""
        items = [
            make_line_item(quantity=2, price=100, discount=20),
            make_line_item(quantity=3, price=5, discount=0),
        ]
        assert aggregate_cart(items).total_price == 175.00

    def test_total_is_rounded(self, make_line_item):
        """Should round the total to 2 decimals."""
        result = aggregate_cart([make_line_item(quantity=1, price=100 / 3)])
        assert result.total_price == 33.33

    def test_out_of_stock_excluded_from_total(self, make_line_item):
        """Should not charge for items that cannot ship."""
        items = [
            make_line_item(quantity=1, price=10, stock=5),
            make_line_item(quantity=4, price=1000, stock=1),
        ]
        assert aggregate_cart(items).total_price == 10.00

    def test_empty_cart(self):
        """Should produce zeros for an empty cart."""
        result = aggregate_cart([])
        assert result.total_price == 0
        assert result.in_stock_count == 0
        assert result.out_of_stock_count == 0
        assert result.ok


class TestMissingProduct:
    """Test reporting of line items without a joined product."""

    def test_reports_issue_instead_of_failing(self, make_line_item):
        """Should keep going and record the broken line item."""
        good = make_line_item(quantity=1, price=10)
        broken = make_line_item(quantity=2, missing=True)
        result = aggregate_cart([good, broken])

        assert not result.ok
        assert [i.id for i in result.in_stock] == [good.id]
        assert result.out_of_stock == []
        assert result.total_price == 10.00
        issue = result.integrity_errors[0]
        assert issue.kind == "missing_product"
        assert issue.line_item_id == broken.id
        assert issue.product_id == broken.product_id

    def test_raise_for_integrity(self, make_line_item):
        """Should raise a typed error on request."""
        broken = make_line_item(missing=True)
        result = aggregate_cart([broken])
        with pytest.raises(MissingProductError) as exc_info:
            result.raise_for_integrity()
        assert exc_info.value.line_item_id == broken.id
        assert isinstance(exc_info.value, DataIntegrityError)

    def test_raise_for_integrity_is_silent_when_clean(self, make_line_item):
        """Should not raise when every item joined."""
        aggregate_cart([make_line_item()]).raise_for_integrity()


class TestSellerGrouping:
    """Test grouping of purchasable items by seller."""

    @pytest.fixture
    def items(self, make_line_item):
        return [
            make_line_item(quantity=2, price=10, seller_id="s1", shop_name="One"),
            make_line_item(quantity=1, price=50, discount=10, seller_id="s2", shop_name="Two"),
            make_line_item(quantity=1, price=5, seller_id="s1", shop_name="One"),
            make_line_item(quantity=9, price=7, stock=1, seller_id="s3", shop_name="Three"),
        ]

    def test_groups_in_first_seen_order(self, items):
        """Should group by seller and price each group."""
        groups = group_by_seller(items[:3])
        assert [g.seller_id for g in groups] == ["s1", "s2"]
        assert [len(g.products) for g in groups] == [2, 1]
        assert groups[0].shop_name == "One"
        assert groups[0].price == 25.00
        assert groups[1].price == 45.00

    def test_summary_payload(self, items):
        """Should build the cart summary from the aggregation."""
        payload = cart_summary_payload(aggregate_cart(items), shipping_fee_per_seller=20)
        assert payload["buy_product_item"] == 3
        assert payload["calculate_price"] == 70.00
        assert payload["cart_product_count"] == 13
        assert payload["shipping_fee"] == 40
        assert [p["id"] for p in payload["outOfStockProduct"]] == [items[3].id]
        assert [g["seller_id"] for g in payload["stockProduct"]] == ["s1", "s2"]
