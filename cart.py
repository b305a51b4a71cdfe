"""
Cart aggregation: stock partitioning and discount-aware totals.

Line items arrive already joined with their product. A line item is
out of stock when ``product.stock < quantity`` and purchasable otherwise;
only purchasable items count towards the checkout total. Line items whose
join found no product land in neither group and are returned as
integrity issues instead.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from schemas import CartAggregation, CartLineItem, IntegrityIssue, Product, SellerGroup

logger = logging.getLogger(__name__)

DEFAULT_SHIPPING_FEE_PER_SELLER = 20
_CENTS = Decimal("0.01")


def round_price(value: float) -> float:
    """Round half-up to 2 decimals (33.335 -> 33.34, 33.333 -> 33.33)."""
    return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def effective_price(product: Product) -> float:
    if product.discount != 0:
        return product.price * (1 - product.discount / 100)
    return product.price


def line_total(item: CartLineItem) -> float:
    return item.quantity * effective_price(item.product)


def is_out_of_stock(item: CartLineItem) -> bool:
    return item.product.stock < item.quantity


def aggregate_cart(items: Iterable[CartLineItem]) -> CartAggregation:
    in_stock: List[CartLineItem] = []
    out_of_stock: List[CartLineItem] = []
    issues: List[IntegrityIssue] = []

    for item in items:
        if item.product is None:
            logger.warning(
                "Cart line item %s has no product (product_id=%s)",
                item.id, item.product_id,
            )
            issues.append(IntegrityIssue(line_item_id=item.id, product_id=item.product_id))
            continue
        if is_out_of_stock(item):
            out_of_stock.append(item)
        else:
            in_stock.append(item)

    total = sum(line_total(item) for item in in_stock)
    return CartAggregation(
        in_stock=in_stock,
        out_of_stock=out_of_stock,
        in_stock_count=sum(item.quantity for item in in_stock),
        out_of_stock_count=sum(item.quantity for item in out_of_stock),
        purchasable_item_count=len(in_stock),
        total_price=round_price(total),
        integrity_errors=issues,
    )


def group_by_seller(items: Iterable[CartLineItem]) -> List[SellerGroup]:
    """Group purchasable items per seller, in first-seen order."""
    groups: Dict[Optional[str], SellerGroup] = {}
    totals: Dict[Optional[str], float] = {}
    for item in items:
        seller_id = item.product.seller_id
        group = groups.get(seller_id)
        if group is None:
            group = SellerGroup(seller_id=seller_id, shop_name=item.product.shop_name)
            groups[seller_id] = group
            totals[seller_id] = 0.0
        group.products.append(item)
        totals[seller_id] += line_total(item)

    for seller_id, group in groups.items():
        group.price = round_price(totals[seller_id])
    return list(groups.values())


def cart_summary_payload(
    aggregation: CartAggregation,
    shipping_fee_per_seller: float = DEFAULT_SHIPPING_FEE_PER_SELLER,
) -> dict:
    groups = group_by_seller(aggregation.in_stock)
    return {
        "cart_product_count": aggregation.in_stock_count + aggregation.out_of_stock_count,
        "buy_product_item": aggregation.purchasable_item_count,
        "calculate_price": aggregation.total_price,
        "shipping_fee": shipping_fee_per_seller * len(groups),
        "outOfStockProduct": [item.model_dump() for item in aggregation.out_of_stock],
        "stockProduct": [group.model_dump() for group in groups],
    }
