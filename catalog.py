"""Product catalog: lookups for the storefront, CRUD for the back-office, stock updates."""
import logging
import math
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import config
from database import create_document, utcnow
from errors import NotFoundError, ValidationError
from schemas import Product, ProductUpdate

logger = logging.getLogger(__name__)

SORT_OPTIONS = {
    "price-asc": [("price", ASCENDING)],
    "price-desc": [("price", DESCENDING)],
    "name": [("name", ASCENDING)],
    "rating": [("rating", DESCENDING)],
}
NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


def to_object_id(value: str) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def canonical_id(value: str) -> str:
    """Lower-case hex form of a document id; anything that is not an id is returned as given."""
    oid = to_object_id(value)
    return str(oid) if oid is not None else value


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


class CatalogService:
    def __init__(self, db: Database):
        self.db = db
        self.products = db["product"]

    def find_product(self, product_id: str, include_inactive: bool = False) -> Optional[Dict[str, Any]]:
        """Raw product document, or None when missing (or inactive unless asked for)."""
        oid = to_object_id(product_id)
        if oid is None:
            return None
        doc = self.products.find_one({"_id": oid})
        if doc is None or (not include_inactive and not doc.get("is_active", True)):
            return None
        return doc

    def get_product(self, product_id: str) -> Dict[str, Any]:
        doc = self.find_product(product_id)
        if doc is None:
            raise NotFoundError("Product not found")
        return to_public(doc)

    def get_product_by_slug(self, slug: str) -> Dict[str, Any]:
        doc = self.products.find_one({"slug": slug, "is_active": True})
        if doc is None:
            raise NotFoundError("Product not found")
        return to_public(doc)

    def list_products(
        self,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        search: Optional[str] = None,
        is_featured: Optional[bool] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"is_active": True}
        if category:
            query["category"] = category
        price_filter = {}
        if min_price is not None:
            price_filter["$gte"] = float(min_price)
        if max_price is not None:
            price_filter["$lte"] = float(max_price)
        if price_filter:
            query["price"] = price_filter
        if search:
            pattern = re.escape(search)
            query["$or"] = [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
            ]
        if is_featured is not None:
            query["is_featured"] = is_featured

        page = max(page, 1)
        limit = min(limit or config.DEFAULT_PAGE_SIZE, config.MAX_PAGE_SIZE)
        sort_spec = SORT_OPTIONS.get(sort or "", NEWEST_FIRST)

        total = self.products.count_documents(query)
        cursor = self.products.find(query).sort(sort_spec).skip((page - 1) * limit).limit(limit)
        return {
            "products": [to_public(d) for d in cursor],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }

    def list_categories(self) -> List[str]:
        return sorted(self.products.distinct("category", {"is_active": True}))

    # -----------------
    # Back-office
    # -----------------
    def create_product(self, product: Product) -> Dict[str, Any]:
        try:
            product_id = create_document("product", product, database=self.db)
        except DuplicateKeyError:
            raise ValidationError("A product with this slug or SKU already exists")
        logger.info("Created product %s (%s)", product_id, product.sku)
        return self.get_product_any(product_id)

    def update_product(self, product_id: str, changes: ProductUpdate) -> Dict[str, Any]:
        updates = changes.model_dump(exclude_none=True)
        oid = to_object_id(product_id)
        if oid is None:
            raise NotFoundError("Product not found")
        updates["updated_at"] = utcnow()
        try:
            doc = self.products.find_one_and_update(
                {"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ValidationError("A product with this slug or SKU already exists")
        if doc is None:
            raise NotFoundError("Product not found")
        return to_public(doc)

    def deactivate_product(self, product_id: str) -> None:
        """Soft delete: products are never removed, only hidden from the storefront."""
        oid = to_object_id(product_id)
        result = None
        if oid is not None:
            result = self.products.update_one(
                {"_id": oid}, {"$set": {"is_active": False, "updated_at": utcnow()}}
            )
        if result is None or result.matched_count == 0:
            raise NotFoundError("Product not found")
        logger.info("Deactivated product %s", product_id)

    def get_product_any(self, product_id: str) -> Dict[str, Any]:
        doc = self.find_product(product_id, include_inactive=True)
        if doc is None:
            raise NotFoundError("Product not found")
        return to_public(doc)

    # -----------------
    # Stock
    # -----------------
    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Take `quantity` units only if that many are still on hand.

        The check and the write happen in one update, so two checkouts cannot
        both take the last unit. Returns False when nothing was taken.
        """
        oid = to_object_id(product_id)
        if oid is None:
            return False
        result = self.products.update_one(
            {"_id": oid, "is_active": True, "stock": {"$gte": quantity}},
            {"$inc": {"stock": -quantity}, "$set": {"updated_at": utcnow()}},
        )
        return result.modified_count == 1

    def restore_stock(self, product_id: str, quantity: int) -> None:
        self.products.update_one(
            {"_id": to_object_id(product_id)},
            {"$inc": {"stock": quantity}, "$set": {"updated_at": utcnow()}},
        )
