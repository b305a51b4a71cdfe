"""
Order building from seller-grouped cart items.

One customer order carries every purchased line plus the shipping fee;
each seller gets its own order for its group at the group's price.
Nothing here touches storage: the caller inserts the orders, links the
seller orders to the customer order id and removes ``cart_ids``.
"""
from typing import List, Sequence

from cart import round_price
from schemas import CartLineItem, CustomerOrder, OrderItem, PlacedOrder, SellerGroup, SellerOrder, ShippingInfo

SELLER_SHIPPING_ORIGIN = "Easy Main Warehouse"


def order_item(item: CartLineItem) -> OrderItem:
    product = item.product
    return OrderItem(
        product_id=product.id or item.product_id,
        name=product.name,
        price=product.price,
        discount=product.discount,
        quantity=item.quantity,
        image=product.images[0] if product.images else None,
    )


def build_orders(
    groups: Sequence[SellerGroup],
    user_id: str,
    shipping_info: ShippingInfo,
    shipping_fee_per_seller: float,
) -> PlacedOrder:
    seller_orders: List[SellerOrder] = []
    items: List[OrderItem] = []
    cart_ids: List[str] = []

    for group in groups:
        group_items = [order_item(line) for line in group.products]
        items.extend(group_items)
        cart_ids.extend(line.id for line in group.products if line.id)
        seller_orders.append(SellerOrder(
            seller_id=group.seller_id,
            items=group_items,
            price=group.price,
            shipping_info=SELLER_SHIPPING_ORIGIN,
        ))

    shipping_fee = shipping_fee_per_seller * len(seller_orders)
    subtotal = sum(order.price for order in seller_orders)
    customer_order = CustomerOrder(
        user_id=user_id,
        items=items,
        price=round_price(subtotal + shipping_fee),
        shipping_fee=shipping_fee,
        shipping_info=shipping_info,
    )
    return PlacedOrder(customer_order=customer_order, seller_orders=seller_orders, cart_ids=cart_ids)
