import logging
import os
from typing import List

from bson.objectid import ObjectId
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from cart import DEFAULT_SHIPPING_FEE_PER_SELLER, aggregate_cart, cart_summary_payload, group_by_seller
from database import (
    count_documents,
    create_document,
    db,
    delete_documents,
    find_cart_entry,
    get_cart_line_items,
    get_documents,
)
from errors import ShopError
from orders import build_orders
from query_products import query_products
from schemas import (
    CartAggregation,
    CartEntry,
    CartLineItem,
    Category as CategorySchema,
    Product as ProductSchema,
    ShippingInfo,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Multi-vendor E-commerce Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------- Settings -----------------------
SHIPPING_FEE_PER_SELLER = float(os.getenv("SHIPPING_FEE_PER_SELLER", DEFAULT_SHIPPING_FEE_PER_SELLER))
CART_STRICT_JOIN = os.getenv("CART_STRICT_JOIN", "false").lower() in ("1", "true", "yes")


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def require_object_id(value: str, field: str) -> str:
    if not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {field}")
    return value


# ----------------------- Models -----------------------
class AddToCartBody(BaseModel):
    user_id: str
    product_id: str
    quantity: int = Field(1, gt=0)


class PlaceOrderBody(BaseModel):
    user_id: str
    shipping_info: ShippingInfo


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "E-commerce API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        if db is not None:
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
            response["collections"] = db.list_collection_names()[:10]
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ----------------------- Home -----------------------
def load_products(docs: List[dict]) -> List[ProductSchema]:
    products = []
    for doc in docs:
        try:
            products.append(ProductSchema(**doc))
        except ValidationError as e:
            logger.warning("Skipping invalid product %s: %s", doc.get("id"), e.errors()[0]["msg"])
    return products


@app.get("/home/get-categorys")
def get_categorys():
    return {"categorys": get_documents("category")}


@app.get("/home/query-products")
def list_products(request: Request):
    query = dict(request.query_params)
    products = load_products(get_documents("product"))
    page = query_products(products, query)
    return page.to_response()


# ----------------------- Cart -----------------------
def load_cart(user_id: str) -> CartAggregation:
    require_object_id(user_id, "user_id")
    items = [CartLineItem(**doc) for doc in get_cart_line_items(user_id)]
    aggregation = aggregate_cart(items)
    if CART_STRICT_JOIN:
        aggregation.raise_for_integrity()
    return aggregation


@app.post("/home/product/add-to-cart", status_code=201)
def add_to_cart(body: AddToCartBody):
    require_object_id(body.user_id, "user_id")
    require_object_id(body.product_id, "product_id")
    if find_cart_entry(body.user_id, body.product_id):
        raise HTTPException(status_code=404, detail="Product Already Added To Cart")
    entry = CartEntry(user_id=body.user_id, product_id=body.product_id, quantity=body.quantity)
    cart_id = create_document("cart", entry)
    logger.info("User %s added product %s to cart", body.user_id, body.product_id)
    return {"message": "Added To Cart Successfully", "id": cart_id}


@app.get("/home/product/get-cart-products/{user_id}")
def get_cart_products(user_id: str):
    return cart_summary_payload(load_cart(user_id), SHIPPING_FEE_PER_SELLER)


# ----------------------- Orders -----------------------
@app.post("/home/order/place-order")
def place_order(body: PlaceOrderBody):
    aggregation = load_cart(body.user_id)
    if not aggregation.in_stock:
        raise HTTPException(status_code=400, detail="No purchasable products in cart")
    placed = build_orders(
        group_by_seller(aggregation.in_stock),
        body.user_id,
        body.shipping_info,
        SHIPPING_FEE_PER_SELLER,
    )
    order_id = create_document("customer_order", placed.customer_order)
    for seller_order in placed.seller_orders:
        create_document("seller_order", seller_order.model_copy(update={"order_id": order_id}))
    delete_documents("cart", placed.cart_ids)
    logger.info(
        "User %s placed order %s across %d sellers",
        body.user_id, order_id, len(placed.seller_orders),
    )
    return {"message": "Order Placed Successfully", "orderId": order_id}


# ----------------------- Seed Demo Data -----------------------
DEMO_SELLERS = {
    "tech": ("65a000000000000000000001", "Gadget Hub"),
    "style": ("65a000000000000000000002", "Street Style"),
}

DEMO_CATEGORIES = [
    {"name": "Mobiles", "slug": "mobiles"},
    {"name": "Laptops", "slug": "laptops"},
    {"name": "Accessories", "slug": "accessories"},
    {"name": "Fashion", "slug": "fashion"},
]

DEMO_PRODUCTS = [
    {
        "name": "Pixel 7A",
        "slug": "pixel-7a",
        "brand": "Google",
        "description": "Powerful camera and smooth Android experience.",
        "price": 349,
        "discount": 10,
        "category": "Mobiles",
        "rating": 4.4,
        "stock": 25,
        "seller": "tech",
    },
    {
        "name": "iPhone 14",
        "slug": "iphone-14",
        "brand": "Apple",
        "description": "A15 Bionic with stunning display.",
        "price": 699,
        "discount": 0,
        "category": "Mobiles",
        "rating": 4.6,
        "stock": 15,
        "seller": "tech",
    },
    {
        "name": "ThinkPad X1",
        "slug": "thinkpad-x1",
        "brand": "Lenovo",
        "description": "Business-class laptop with legendary keyboard.",
        "price": 1199,
        "discount": 5,
        "category": "Laptops",
        "rating": 4.5,
        "stock": 10,
        "seller": "tech",
    },
    {
        "name": "Mechanical Keyboard",
        "slug": "mechanical-keyboard",
        "brand": "Keychron",
        "description": "Hot-swappable RGB keyboard.",
        "price": 79,
        "discount": 0,
        "category": "Accessories",
        "rating": 3.8,
        "stock": 30,
        "seller": "tech",
    },
    {
        "name": "Casual Sneakers",
        "slug": "casual-sneakers",
        "brand": "Nike",
        "description": "Comfortable everyday wear.",
        "price": 49,
        "discount": 20,
        "category": "Fashion",
        "rating": 4.2,
        "stock": 50,
        "seller": "style",
    },
    {
        "name": "Denim Jacket",
        "slug": "denim-jacket",
        "brand": "Levi's",
        "description": "Classic fit, washed blue.",
        "price": 89,
        "discount": 15,
        "category": "Fashion",
        "rating": 5.0,
        "stock": 3,
        "seller": "style",
    },
]


@app.post("/seed")
def seed():
    if count_documents("product") > 0:
        return {"seeded": False, "message": "Products already exist"}
    if count_documents("category") == 0:
        for c in DEMO_CATEGORIES:
            create_document("category", CategorySchema(**c))
    for p in DEMO_PRODUCTS:
        p = dict(p)
        seller_id, shop_name = DEMO_SELLERS[p.pop("seller")]
        create_document("product", ProductSchema(**p, seller_id=seller_id, shop_name=shop_name))
    logger.info("Seeded %d demo products", len(DEMO_PRODUCTS))
    return {"seeded": True, "products": count_documents("product")}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
