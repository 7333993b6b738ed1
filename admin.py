"""Back-office read views."""
from typing import Any, Dict, List

from pymongo.database import Database

from catalog import to_public
from database import get_documents
from orders import attach_customers

HIDDEN_USER_FIELDS = ("password", "password_hash")


class AdminService:
    def __init__(self, db: Database):
        self.db = db

    def dashboard(self) -> Dict[str, Any]:
        revenue = list(self.db["order"].aggregate([
            {"$group": {"_id": None, "total": {"$sum": "$total"}}},
        ]))
        return {
            "total_users": self.db["user"].count_documents({}),
            "total_orders": self.db["order"].count_documents({}),
            "total_products": self.db["product"].count_documents({"is_active": True}),
            "total_revenue": round(revenue[0]["total"], 2) if revenue else 0.0,
            "recent_orders": attach_customers(
                self.db, [to_public(d) for d in get_documents("order", limit=5, database=self.db)]
            ),
        }

    def list_users(self) -> List[Dict[str, Any]]:
        users = []
        for doc in get_documents("user", database=self.db):
            user = to_public(doc)
            for field in HIDDEN_USER_FIELDS:
                user.pop(field, None)
            users.append(user)
        return users
