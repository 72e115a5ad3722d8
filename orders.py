"""
Order placement and stock reservation.

A placement reads the product, checks the requested quantity against the
minimum order and the current stock, then decrements stock and records the
cart entry. The decrement is guarded at write time, so a stale read can
only turn into InsufficientStock, never into negative stock.
"""
import logging
from typing import Any, Dict, List, Optional

from bson.decimal128 import Decimal128
from pydantic import EmailStr, TypeAdapter, ValidationError
from pymongo.errors import PyMongoError

from database import Database, parse_object_id
from schemas import Order, PaymentStatus
from stores import OrderStore, ProductStore

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


class OrderError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(OrderError):
    status_code = 404


class InvalidArgument(OrderError):
    status_code = 400

    def __init__(self, message: str, minimum: Optional[int] = None):
        super().__init__(message)
        self.minimum = minimum


class InsufficientStock(OrderError):
    status_code = 400


class StoreUnavailable(OrderError):
    status_code = 503


def parse_quantity(value: Any) -> int:
    """Accept ints, integral floats and decimal-digit strings; reject everything else."""
    qty = None
    if isinstance(value, bool) or value is None:
        qty = None
    elif isinstance(value, int):
        qty = value
    elif isinstance(value, float) and value.is_integer():
        qty = int(value)
    elif isinstance(value, str) and value.strip().isdecimal():
        qty = int(value.strip())
    if qty is None:
        raise InvalidArgument("orderedQty must be a whole number")
    if qty < 1:
        raise InvalidArgument("orderedQty must be at least 1")
    return qty


def parse_price(value: Any) -> float:
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument("Product has no valid price")
    if price < 0:
        raise InvalidArgument("Product has no valid price")
    return price


def parse_payment_status(value: Any) -> PaymentStatus:
    if value is None:
        return PaymentStatus.UNPAID
    try:
        return PaymentStatus(value)
    except ValueError:
        raise InvalidArgument(f"paymentStatus must be one of: {', '.join(s.value for s in PaymentStatus)}")


class OrderService:
    def __init__(self, products: ProductStore, orders: OrderStore, database: Database):
        self.products = products
        self.orders = orders
        self.database = database

    @classmethod
    def from_database(cls, database: Database) -> "OrderService":
        return cls(ProductStore(database["products"]), OrderStore(database["carts"]), database)

    def place_order(
        self,
        product_id: Any,
        ordered_qty: Any,
        user_email: Any,
        payment_status: Any = PaymentStatus.UNPAID,
        product_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Place an order for one product and return the stored cart entry.

        Raises NotFound, InvalidArgument or InsufficientStock before any
        write happens; StoreUnavailable when MongoDB can't be reached.
        """
        oid = parse_object_id(product_id)
        if oid is None:
            raise InvalidArgument("productId must be a valid product id")
        qty = parse_quantity(ordered_qty)
        try:
            email = _email_adapter.validate_python(user_email)
        except ValidationError:
            raise InvalidArgument("userEmail must be a valid email address")
        status = parse_payment_status(payment_status)

        try:
            product = self.products.find_by_id(oid)
        except PyMongoError as e:
            logger.exception("Product lookup failed for %s", oid)
            raise StoreUnavailable("Product store is unavailable") from e
        if not product:
            logger.info("Order rejected: product %s not found", oid)
            raise NotFound("Product not found")

        minimum = int(product.get("minimumOrderQuantity") or 1)
        if qty < minimum:
            logger.info("Order rejected: %d below minimum %d for product %s", qty, minimum, oid)
            raise InvalidArgument(f"Minimum order quantity is {minimum}", minimum=minimum)
        if qty > int(product.get("availableQuantity") or 0):
            logger.info("Order rejected: %d exceeds stock for product %s", qty, oid)
            raise InsufficientStock("Not enough stock available")
        price = parse_price(product.get("price"))

        order = Order(
            productId=str(oid),
            productName=product.get("productName") or product_name,
            orderedQty=qty,
            totalPrice=qty * price,
            userEmail=email,
            paymentStatus=status,
        )

        def reserve_and_record(session) -> Dict[str, Any]:
            if not self.products.conditional_decrement(oid, qty, session=session):
                raise InsufficientStock("Not enough stock available")
            record = order.model_dump()
            record["_id"] = self.orders.insert(record, session=session)
            return record

        try:
            record = self.database.run_in_transaction(reserve_and_record)
        except InsufficientStock:
            logger.info("Order rejected: stock for product %s taken by a concurrent order", oid)
            raise
        except PyMongoError as e:
            logger.exception("Order placement failed for product %s", oid)
            raise StoreUnavailable("Order store is unavailable") from e

        logger.info("Order %s placed: product=%s qty=%d total=%s",
                    record["_id"], oid, qty, record["totalPrice"])
        return record

    def mark_paid(self, order_id: Any) -> None:
        oid = parse_object_id(order_id)
        if oid is None:
            raise InvalidArgument("Invalid order id")
        try:
            found = self.orders.mark_paid(oid)
        except PyMongoError as e:
            logger.exception("Payment confirmation failed for order %s", oid)
            raise StoreUnavailable("Order store is unavailable") from e
        if not found:
            raise NotFound("Order not found")
        logger.info("Order %s marked paid", oid)

    def get_order(self, order_id: Any) -> Dict[str, Any]:
        oid = parse_object_id(order_id)
        if oid is None:
            raise InvalidArgument("Invalid order id")
        try:
            order = self.orders.find_by_id(oid)
        except PyMongoError as e:
            logger.exception("Order lookup failed for %s", oid)
            raise StoreUnavailable("Order store is unavailable") from e
        if not order:
            raise NotFound("Order not found")
        return order

    def find_orders(self, user_email: str) -> List[Dict[str, Any]]:
        try:
            return self.orders.find_by_email(user_email)
        except PyMongoError as e:
            logger.exception("Order listing failed for %s", user_email)
            raise StoreUnavailable("Order store is unavailable") from e
