"""Per-user shopping cart stored as one document per user."""
import logging
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from catalog import CatalogService, canonical_id, to_object_id
from database import utcnow
from errors import NotFoundError, ValidationError
from schemas import CartLine

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, db: Database, catalog: Optional[CatalogService] = None):
        self.db = db
        self.carts = db["cart"]
        self.catalog = catalog or CatalogService(db)

    def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.carts.find_one({"user_id": user_id})

    def get_cart(self, user_id: str) -> Dict[str, Any]:
        return self.resolve(user_id, self.load(user_id))

    def add_item(self, user_id: str, product_id: str, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        product = self._sellable_product(product_id, quantity)
        product_id = str(product["_id"])

        cart = self.load(user_id)
        items: List[Dict[str, Any]] = list(cart["items"]) if cart else []
        for line in items:
            if line["product_id"] == product_id:
                # Stock is checked against the added quantity only, not the new total.
                line["quantity"] += quantity
                line["price"] = product["price"]
                break
        else:
            items.append(CartLine(product_id=product_id, quantity=quantity, price=product["price"]).model_dump())

        return self._save(user_id, items)

    def update_item(self, user_id: str, product_id: str, quantity: int) -> Dict[str, Any]:
        product_id = canonical_id(product_id)
        cart = self.load(user_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        items = list(cart["items"])
        index = next((i for i, line in enumerate(items) if line["product_id"] == product_id), None)
        if index is None:
            raise NotFoundError("Item not found in cart")

        if quantity <= 0:
            items.pop(index)
        else:
            product = self._sellable_product(product_id, quantity)
            items[index]["quantity"] = quantity
            items[index]["price"] = product["price"]

        return self._save(user_id, items)

    def remove_item(self, user_id: str, product_id: str) -> Dict[str, Any]:
        product_id = canonical_id(product_id)
        cart = self.load(user_id)
        if cart is None:
            return self.resolve(user_id, None)
        items = [line for line in cart["items"] if line["product_id"] != product_id]
        if len(items) == len(cart["items"]):
            return self.resolve(user_id, cart)
        return self._save(user_id, items)

    def clear(self, user_id: str) -> None:
        self.carts.update_one(
            {"user_id": user_id}, {"$set": {"items": [], "updated_at": utcnow()}}
        )

    def _sellable_product(self, product_id: str, quantity: int) -> Dict[str, Any]:
        product = self.catalog.find_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if product.get("stock", 0) < quantity:
            raise ValidationError(f"Insufficient stock for {product['name']}")
        return product

    def _save(self, user_id: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        now = utcnow()
        self.carts.update_one(
            {"user_id": user_id},
            {"$set": {"items": items, "updated_at": now}, "$setOnInsert": {"created_at": now}},
            upsert=True,
        )
        logger.debug("Saved cart for user %s with %d line(s)", user_id, len(items))
        return self.resolve(user_id, self.load(user_id))

    def resolve(self, user_id: str, cart: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Cart as shown to the client, with each line joined to its live product."""
        items = cart["items"] if cart else []
        oids = [oid for oid in (to_object_id(line["product_id"]) for line in items) if oid is not None]
        products = {}
        if oids:
            products = {str(p["_id"]): p for p in self.catalog.products.find({"_id": {"$in": oids}})}

        lines = []
        subtotal = 0.0
        for line in items:
            product = products.get(line["product_id"])
            line_total = round(line["price"] * line["quantity"], 2)
            subtotal += line_total
            lines.append({
                "product_id": line["product_id"],
                "quantity": line["quantity"],
                "price": line["price"],
                "line_total": line_total,
                "product": {
                    "id": str(product["_id"]),
                    "name": product.get("name"),
                    "price": product.get("price"),
                    "images": product.get("images", []),
                    "stock": product.get("stock", 0),
                    "is_active": product.get("is_active", True),
                } if product else None,
            })

        return {
            "id": str(cart["_id"]) if cart else None,
            "user_id": user_id,
            "items": lines,
            "item_count": sum(line["quantity"] for line in items),
            "subtotal": round(subtotal, 2),
            "updated_at": cart.get("updated_at") if cart else None,
        }
