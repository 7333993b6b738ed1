"""Tests for reviews and the cached product rating."""

import pytest

from errors import NotFoundError, ValidationError
from reviews import average_rating
from tests.conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID

THIRD_CUSTOMER_ID = "64b7f0c2a1b2c3d4e5f60003"


class TestAverageRating:
    def test_empty(self):
        assert average_rating([]) == 0.0

    def test_one_decimal(self):
        assert average_rating([4, 4, 5]) == 4.3

    def test_halves_round_up(self):
        # 17 / 4 = 4.25
        assert average_rating([5, 4, 4, 4]) == 4.3


class TestCreateReview:
    def test_updates_product_rating(self, catalog, reviews, add_product):
        pid = add_product()

        review = reviews.create_review(pid, CUSTOMER_ID, 4, "Solid", "Does the job")
        reviews.create_review(pid, OTHER_CUSTOMER_ID, 5, "Great", "Love it")

        assert review["rating"] == 4
        assert review["product_id"] == pid
        product = catalog.get_product(pid)
        assert product["rating"] == 4.5
        assert product["review_count"] == 2

    def test_duplicate_review_rejected(self, catalog, reviews, add_product):
        pid = add_product()
        reviews.create_review(pid, CUSTOMER_ID, 2, "Meh", "Broke quickly")

        with pytest.raises(ValidationError, match="already reviewed"):
            reviews.create_review(pid, CUSTOMER_ID, 5, "Changed my mind", "Actually fine")

        product = catalog.get_product(pid)
        assert product["rating"] == 2.0
        assert product["review_count"] == 1

    def test_upper_case_id_counts_as_same_product(self, catalog, reviews, add_product):
        pid = add_product()
        reviews.create_review(pid, CUSTOMER_ID, 2, "Meh", "Broke quickly")

        with pytest.raises(ValidationError, match="already reviewed"):
            reviews.create_review(pid.upper(), CUSTOMER_ID, 5, "Again", "Different spelling")

        assert catalog.get_product(pid)["review_count"] == 1

    def test_upper_case_id_joins_rating(self, catalog, reviews, add_product):
        pid = add_product()
        reviews.create_review(pid, CUSTOMER_ID, 4, "Good", "ok")
        review = reviews.create_review(pid.upper(), OTHER_CUSTOMER_ID, 2, "Poor", "meh")
        reviews.create_review(pid, THIRD_CUSTOMER_ID, 3, "Fine", "fine")

        assert review["product_id"] == pid
        product = catalog.get_product(pid)
        assert product["review_count"] == 3
        assert product["rating"] == 3.0
        assert len(reviews.list_reviews(pid.upper())) == 3

    def test_same_user_may_review_other_products(self, reviews, add_product):
        reviews.create_review(add_product("A"), CUSTOMER_ID, 3, "A", "ok")
        reviews.create_review(add_product("B"), CUSTOMER_ID, 3, "B", "ok")

    def test_unknown_product(self, reviews):
        with pytest.raises(NotFoundError):
            reviews.create_review("64b7f0c2a1b2c3d4e5f6ffff", CUSTOMER_ID, 5, "t", "c")

    def test_list_reviews_newest_first(self, reviews, add_product):
        pid = add_product()
        first = reviews.create_review(pid, CUSTOMER_ID, 3, "First", "one")
        second = reviews.create_review(pid, OTHER_CUSTOMER_ID, 4, "Second", "two")
        assert [r["id"] for r in reviews.list_reviews(pid)] == [second["id"], first["id"]]

    def test_refresh_product_rating(self, db, catalog, reviews, add_product):
        pid = add_product()
        reviews.create_review(pid, CUSTOMER_ID, 1, "Bad", "bad")
        db["review"].delete_many({})

        assert reviews.refresh_product_rating(pid) == {"rating": 0.0, "review_count": 0}
        assert catalog.get_product(pid)["review_count"] == 0
