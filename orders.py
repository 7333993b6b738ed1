"""
Order placement and order queries.

Placing an order turns the caller's cart into an immutable order document:

    load cart -> validate every line -> take stock -> price -> persist -> clear cart

All lines are validated before any stock is touched, and stock is taken with a
conditional update per line. If a line loses its stock to a concurrent order
between validation and the update, the units already taken by this attempt are
put back before the error is raised. There is no multi-document transaction,
so a process crash after stock is taken and before the order is written still
leaves the stock decremented.
"""
import logging
import random
import time
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database

from cart import CartService
from catalog import CatalogService, canonical_id, to_object_id, to_public
from database import create_document, get_documents, utcnow
from errors import NotFoundError, ValidationError
from pricing import calculate_pricing
from schemas import Address, Order, OrderItem

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    """ORD-<epoch ms>-<3 random digits>; collisions are left to the unique index."""
    return f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"


def attach_customers(db: Database, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Add the ordering customer (id, names, email) to each order as `user`, None when unknown."""
    oids = {oid for oid in (to_object_id(o["user_id"]) for o in orders) if oid is not None}
    users = {}
    if oids:
        projection = {"first_name": 1, "last_name": 1, "email": 1}
        users = {str(u["_id"]): u for u in db["user"].find({"_id": {"$in": list(oids)}}, projection)}

    for order in orders:
        user = users.get(canonical_id(order["user_id"]))
        order["user"] = {
            "id": str(user["_id"]),
            "first_name": user.get("first_name"),
            "last_name": user.get("last_name"),
            "email": user.get("email"),
        } if user else None
    return orders


class OrderService:
    def __init__(self, db: Database, catalog: Optional[CatalogService] = None, carts: Optional[CartService] = None):
        self.db = db
        self.orders = db["order"]
        self.catalog = catalog or CatalogService(db)
        self.carts = carts or CartService(db, self.catalog)

    def place_order(self, user_id: str, shipping_address: Address, save_address: bool = False) -> Dict[str, Any]:
        cart = self.carts.load(user_id)
        if not cart or not cart.get("items"):
            raise ValidationError("Cart is empty")

        validated = self._validate_lines(cart["items"])
        self._take_stock(validated)

        items = [
            OrderItem(
                product_id=line["product_id"],
                name=product["name"],
                price=product["price"],
                quantity=line["quantity"],
                image=(product.get("images") or [""])[0],
            )
            for line, product in validated
        ]
        pricing = calculate_pricing((item.price, item.quantity) for item in items)
        order = Order(
            order_number=generate_order_number(),
            user_id=user_id,
            items=items,
            shipping_address=shipping_address,
            **pricing.as_floats(),
        )

        try:
            order_id = create_document("order", order, database=self.db)
        except Exception:
            self._return_stock((line["product_id"], line["quantity"]) for line, _ in validated)
            raise

        self.carts.clear(user_id)
        if save_address:
            self._save_address(user_id, shipping_address)

        logger.info("Placed order %s for user %s, total %.2f", order.order_number, user_id, order.total)
        return to_public(self.orders.find_one({"_id": to_object_id(order_id)}))

    def _validate_lines(self, lines: List[Dict[str, Any]]) -> List[Tuple[Dict[str, Any], Dict[str, Any]]]:
        validated = []
        for line in lines:
            product = self.catalog.find_product(line["product_id"])
            if product is None:
                raise NotFoundError(f"Product {line['product_id']} not found")
            if product.get("stock", 0) < line["quantity"]:
                raise ValidationError(f"Insufficient stock for {product['name']}")
            validated.append((line, product))
        return validated

    def _take_stock(self, validated: List[Tuple[Dict[str, Any], Dict[str, Any]]]) -> None:
        taken = []
        for line, product in validated:
            if not self.catalog.decrement_stock(line["product_id"], line["quantity"]):
                self._return_stock(taken)
                raise ValidationError(f"Insufficient stock for {product['name']}")
            taken.append((line["product_id"], line["quantity"]))

    def _return_stock(self, taken) -> None:
        for product_id, quantity in taken:
            logger.warning("Restoring %d unit(s) of product %s after failed checkout", quantity, product_id)
            self.catalog.restore_stock(product_id, quantity)

    def _save_address(self, user_id: str, address: Address) -> None:
        oid = to_object_id(user_id)
        if oid is None:
            logger.debug("User id %s is not a document id; address not saved", user_id)
            return
        self.db["user"].update_one(
            {"_id": oid}, {"$addToSet": {"addresses": address.model_dump()}}
        )

    # -----------------
    # Queries
    # -----------------
    def list_orders(self, user_id: str) -> List[Dict[str, Any]]:
        return [to_public(d) for d in get_documents("order", {"user_id": user_id}, database=self.db)]

    def get_order(self, user_id: str, order_id: str) -> Dict[str, Any]:
        # Someone else's order is reported exactly like a missing one.
        oid = to_object_id(order_id)
        doc = self.orders.find_one({"_id": oid, "user_id": user_id}) if oid is not None else None
        if doc is None:
            raise NotFoundError("Order not found")
        return to_public(doc)

    def list_all_orders(self) -> List[Dict[str, Any]]:
        orders = [to_public(d) for d in get_documents("order", database=self.db)]
        return attach_customers(self.db, orders)

    def update_status(self, order_id: str, status: str, notes: Optional[str] = None, payment_status: Optional[str] = None) -> Dict[str, Any]:
        """Set the order status. Any status may follow any other."""
        updates: Dict[str, Any] = {"status": status, "updated_at": utcnow()}
        if notes is not None:
            updates["notes"] = notes
        if payment_status is not None:
            updates["payment_status"] = payment_status

        oid = to_object_id(order_id)
        doc = None
        if oid is not None:
            doc = self.orders.find_one_and_update(
                {"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER
            )
        if doc is None:
            raise NotFoundError("Order not found")
        logger.info("Order %s status set to %s", doc["order_number"], status)
        return to_public(doc)
