"""
Schemas for the multi-vendor E-commerce backend

Stored models map to the MongoDB collections product, category, cart,
customer_order and seller_order. The remaining models are results produced
by the product query, cart aggregation and order building routines.
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

from errors import MissingProductError


class Category(BaseModel):
    name: str
    slug: str
    image: Optional[str] = None


class Product(BaseModel):
    id: Optional[str] = None
    name: str
    slug: str = ""
    category: str
    brand: str = ""
    description: str = ""
    price: float = Field(..., ge=0)
    discount: int = Field(0, ge=0, le=100)
    stock: int = 0
    rating: float = Field(0, ge=0, le=5)
    shop_name: str = ""
    seller_id: Optional[str] = None
    images: List[str] = []


class CartEntry(BaseModel):
    """A stored cart row, as written by add-to-cart."""
    user_id: str
    product_id: str
    quantity: int = Field(..., gt=0)


class CartLineItem(BaseModel):
    """A cart row joined with its product (None when the join found nothing)."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: int = Field(..., gt=0)
    product: Optional[Product] = None


class ProductPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    products: List[Product]
    total_product: int = Field(..., alias="totalProduct")
    par_page: int = Field(..., alias="parPage")

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)


class SellerGroup(BaseModel):
    seller_id: Optional[str] = None
    shop_name: str = ""
    price: float = 0.0
    products: List[CartLineItem] = []


class IntegrityIssue(BaseModel):
    kind: Literal["missing_product"] = "missing_product"
    line_item_id: Optional[str] = None
    product_id: Optional[str] = None

    def to_error(self) -> MissingProductError:
        return MissingProductError(self.line_item_id, self.product_id)


class CartAggregation(BaseModel):
    in_stock: List[CartLineItem] = []
    out_of_stock: List[CartLineItem] = []
    in_stock_count: int = 0
    out_of_stock_count: int = 0
    purchasable_item_count: int = 0
    total_price: float = 0.0
    integrity_errors: List[IntegrityIssue] = []

    @property
    def ok(self) -> bool:
        return not self.integrity_errors

    def raise_for_integrity(self) -> None:
        if self.integrity_errors:
            raise self.integrity_errors[0].to_error()


class ShippingInfo(BaseModel):
    name: str
    address: str
    phone: str
    city: str = ""
    post: str = ""


class OrderItem(BaseModel):
    product_id: Optional[str] = None
    name: str
    price: float
    discount: int = 0
    quantity: int
    image: Optional[str] = None


class CustomerOrder(BaseModel):
    user_id: str
    items: List[OrderItem]
    price: float
    shipping_fee: float = 0.0
    shipping_info: ShippingInfo
    payment_status: Literal["unpaid", "paid"] = "unpaid"
    delivery_status: Literal["pending", "placed", "cancelled", "warehouse", "delivered"] = "pending"


class SellerOrder(BaseModel):
    order_id: Optional[str] = None
    seller_id: Optional[str] = None
    items: List[OrderItem]
    price: float
    shipping_info: str
    payment_status: Literal["unpaid", "paid"] = "unpaid"
    delivery_status: Literal["pending", "placed", "cancelled", "warehouse", "delivered"] = "pending"


class PlacedOrder(BaseModel):
    customer_order: CustomerOrder
    seller_orders: List[SellerOrder]
    cart_ids: List[str] = []
