"""
Collection wrappers used by the order flow.

Driver errors propagate untouched; OrderService decides how to report them.
"""
from typing import Any, Dict, List, Optional

from bson import ObjectId

from schemas import PaymentStatus


class ProductStore:
    def __init__(self, collection):
        self.collection = collection

    def find_by_id(self, product_id: ObjectId, session=None) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": product_id}, session=session)

    def conditional_decrement(self, product_id: ObjectId, amount: int, session=None) -> bool:
        # Guard and $inc run as one document update, so stock can't go below zero
        result = self.collection.update_one(
            {"_id": product_id, "availableQuantity": {"$gte": amount}},
            {"$inc": {"availableQuantity": -amount}},
            session=session,
        )
        return result.modified_count == 1


class OrderStore:
    def __init__(self, collection):
        self.collection = collection

    def insert(self, record: Dict[str, Any], session=None) -> ObjectId:
        return self.collection.insert_one(record, session=session).inserted_id

    def find_by_id(self, order_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": order_id})

    def find_by_email(self, email: str) -> List[Dict[str, Any]]:
        return list(self.collection.find({"userEmail": email}).sort("createdAt", -1))

    def mark_paid(self, order_id: ObjectId) -> bool:
        result = self.collection.update_one(
            {"_id": order_id},
            {"$set": {"paymentStatus": PaymentStatus.PAID.value}},
        )
        return result.matched_count == 1
