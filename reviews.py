"""Product reviews and the product's cached rating/review_count."""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from catalog import CatalogService, canonical_id, to_object_id, to_public
from database import create_document, get_documents, utcnow
from errors import NotFoundError, ValidationError
from schemas import Review

logger = logging.getLogger(__name__)

ALREADY_REVIEWED = "You have already reviewed this product"


def average_rating(ratings: List[int]) -> float:
    """Mean of the ratings to one decimal place, halves rounded up (0.0 when empty)."""
    if not ratings:
        return 0.0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ReviewService:
    def __init__(self, db: Database, catalog: Optional[CatalogService] = None):
        self.db = db
        self.reviews = db["review"]
        self.catalog = catalog or CatalogService(db)

    def list_reviews(self, product_id: str) -> List[Dict[str, Any]]:
        product_id = self.catalog.get_product_any(product_id)["id"]
        return [to_public(d) for d in get_documents("review", {"product_id": product_id}, database=self.db)]

    def create_review(self, product_id: str, user_id: str, rating: int, title: str, comment: str) -> Dict[str, Any]:
        # Key by the stored id, not the caller's spelling of it.
        product_id = self.catalog.get_product_any(product_id)["id"]

        if self.reviews.find_one({"product_id": product_id, "user_id": user_id}):
            raise ValidationError(ALREADY_REVIEWED)

        review = Review(product_id=product_id, user_id=user_id, rating=rating, title=title, comment=comment)
        try:
            review_id = create_document("review", review, database=self.db)
        except DuplicateKeyError:
            raise ValidationError(ALREADY_REVIEWED)

        self.refresh_product_rating(product_id)
        logger.info("User %s reviewed product %s (%d stars)", user_id, product_id, rating)
        return to_public(self.reviews.find_one({"_id": to_object_id(review_id)}))

    def refresh_product_rating(self, product_id: str) -> Dict[str, Any]:
        """Recompute and store the product's rating and review_count from its reviews."""
        product_id = canonical_id(product_id)
        ratings = [r["rating"] for r in self.reviews.find({"product_id": product_id}, {"rating": 1})]
        summary = {"rating": average_rating(ratings), "review_count": len(ratings)}
        result = self.catalog.products.update_one(
            {"_id": to_object_id(product_id)}, {"$set": {**summary, "updated_at": utcnow()}}
        )
        if result.matched_count == 0:
            raise NotFoundError("Product not found")
        return summary
