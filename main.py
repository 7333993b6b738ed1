import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
from admin import AdminService
from auth import get_current_user, require_admin
from cart import CartService
from catalog import CatalogService
from errors import ShopError
from orders import OrderService
from reviews import ReviewService
from schemas import (
    AddCartItemRequest,
    CreateOrderRequest,
    CreateReviewRequest,
    Product,
    ProductUpdate,
    TokenPayload,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        database.ensure_indexes(database.db)
        logger.info("Indexes ensured on %s", database.db.name)
    yield


app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------
# Utility helpers
# -----------------

def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def get_db() -> Database:
    if database.db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return database.db


def get_catalog(db: Database = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_cart_service(db: Database = Depends(get_db)) -> CartService:
    return CartService(db)


def get_order_service(db: Database = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_review_service(db: Database = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def get_admin_service(db: Database = Depends(get_db)) -> AdminService:
    return AdminService(db)


# -----------------
# Error envelope
# -----------------

@app.exception_handler(ShopError)
def handle_shop_error(request: Request, exc: ShopError):
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return fail(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return fail(400, message)


@app.exception_handler(StarletteHTTPException)
def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return fail(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return fail(500, "Internal server error")

# -----------------
# Health
# -----------------

@app.get("/")
def root():
    return {"name": "Storefront API", "status": "ok"}


@app.get("/api/health")
def health():
    response = {
        "backend": "running",
        "database": "not configured",
        "database_url": "set" if os.getenv("DATABASE_URL") else "not set",
        "collections": [],
    }
    if database.db is not None:
        try:
            response["collections"] = database.db.list_collection_names()[:10]
            response["database"] = "connected"
        except Exception as e:
            response["database"] = f"error: {str(e)[:80]}"
    return ok(response)

# -----------------
# Catalog
# -----------------

@app.get("/api/products")
def list_products(
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
    is_featured: Optional[bool] = Query(None, alias="isFeatured"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog),
):
    result = catalog.list_products(
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search,
        is_featured=is_featured,
        page=page,
        limit=limit,
        sort=sort,
    )
    return {"success": True, "data": result["products"], "pagination": result["pagination"]}


@app.get("/api/products/categories")
def list_categories(catalog: CatalogService = Depends(get_catalog)):
    return ok(catalog.list_categories())


@app.get("/api/products/slug/{slug}")
def get_product_by_slug(slug: str, catalog: CatalogService = Depends(get_catalog)):
    return ok(catalog.get_product_by_slug(slug))


@app.get("/api/products/{product_id}")
def get_product(product_id: str, catalog: CatalogService = Depends(get_catalog)):
    return ok(catalog.get_product(product_id))


@app.post("/api/products", status_code=201)
def create_product(payload: Product, _: TokenPayload = Depends(require_admin), catalog: CatalogService = Depends(get_catalog)):
    return ok(catalog.create_product(payload))


@app.put("/api/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, _: TokenPayload = Depends(require_admin), catalog: CatalogService = Depends(get_catalog)):
    return ok(catalog.update_product(product_id, payload))


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, _: TokenPayload = Depends(require_admin), catalog: CatalogService = Depends(get_catalog)):
    catalog.deactivate_product(product_id)
    return ok(message="Product deleted successfully")

# -----------------
# Reviews
# -----------------

@app.get("/api/products/{product_id}/reviews")
def list_reviews(product_id: str, reviews: ReviewService = Depends(get_review_service)):
    return ok(reviews.list_reviews(product_id))


@app.post("/api/products/{product_id}/reviews", status_code=201)
def create_review(product_id: str, payload: CreateReviewRequest, user: TokenPayload = Depends(get_current_user), reviews: ReviewService = Depends(get_review_service)):
    review = reviews.create_review(product_id, user.user_id, payload.rating, payload.title, payload.comment)
    return ok(review)

# -----------------
# Cart
# -----------------

@app.get("/api/cart")
def get_cart(user: TokenPayload = Depends(get_current_user), carts: CartService = Depends(get_cart_service)):
    return ok(carts.get_cart(user.user_id))


@app.post("/api/cart/items")
def add_cart_item(payload: AddCartItemRequest, user: TokenPayload = Depends(get_current_user), carts: CartService = Depends(get_cart_service)):
    return ok(carts.add_item(user.user_id, payload.product_id, payload.quantity))


@app.put("/api/cart/items/{product_id}")
def update_cart_item(product_id: str, payload: UpdateCartItemRequest, user: TokenPayload = Depends(get_current_user), carts: CartService = Depends(get_cart_service)):
    return ok(carts.update_item(user.user_id, product_id, payload.quantity))


@app.delete("/api/cart/items/{product_id}")
def remove_cart_item(product_id: str, user: TokenPayload = Depends(get_current_user), carts: CartService = Depends(get_cart_service)):
    return ok(carts.remove_item(user.user_id, product_id))


@app.delete("/api/cart")
def clear_cart(user: TokenPayload = Depends(get_current_user), carts: CartService = Depends(get_cart_service)):
    carts.clear(user.user_id)
    return ok(message="Cart cleared successfully")

# -----------------
# Checkout / Orders
# -----------------

@app.post("/api/orders", status_code=201)
def create_order(payload: CreateOrderRequest, user: TokenPayload = Depends(get_current_user), orders: OrderService = Depends(get_order_service)):
    order = orders.place_order(user.user_id, payload.shipping_address, save_address=payload.save_address)
    return ok(order)


@app.get("/api/orders")
def list_orders(user: TokenPayload = Depends(get_current_user), orders: OrderService = Depends(get_order_service)):
    return ok(orders.list_orders(user.user_id))


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, user: TokenPayload = Depends(get_current_user), orders: OrderService = Depends(get_order_service)):
    return ok(orders.get_order(user.user_id, order_id))

# -----------------
# Admin
# -----------------

@app.get("/api/admin/dashboard")
def admin_dashboard(_: TokenPayload = Depends(require_admin), admin: AdminService = Depends(get_admin_service)):
    return ok(admin.dashboard())


@app.get("/api/admin/orders")
def admin_list_orders(_: TokenPayload = Depends(require_admin), orders: OrderService = Depends(get_order_service)):
    return ok(orders.list_all_orders())


@app.put("/api/admin/orders/{order_id}/status")
def admin_update_order_status(order_id: str, payload: UpdateOrderStatusRequest, _: TokenPayload = Depends(require_admin), orders: OrderService = Depends(get_order_service)):
    order = orders.update_status(order_id, payload.status, notes=payload.notes, payment_status=payload.payment_status)
    return ok(order)


@app.get("/api/admin/users")
def admin_list_users(_: TokenPayload = Depends(require_admin), admin: AdminService = Depends(get_admin_service)):
    return ok(admin.list_users())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
