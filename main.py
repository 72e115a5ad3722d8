import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

from auth import get_decoded_email
from config import Settings, get_settings
from database import Database, connect, create_document, get_db, get_documents, parse_object_id, serialize_doc
from orders import OrderError, OrderService
from payments import PaymentsUnavailable, create_checkout_session
from schemas import Comment as CommentSchema, Product as ProductSchema, User as UserSchema

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Dependencies
def get_order_service(db: Database = Depends(get_db)) -> OrderService:
    return OrderService.from_database(db)


def object_id_or_400(value: str):
    oid = parse_object_id(value)
    if oid is None:
        raise HTTPException(status_code=400, detail="Invalid id")
    return oid


# Request models
class RoleUpdateRequest(BaseModel):
    role: str = Field(..., min_length=1)


class ProductUpdateRequest(BaseModel):
    productName: Optional[str] = None
    description: Optional[str] = None
    availableQuantity: Optional[int] = Field(None, ge=0)
    minimumOrderQuantity: Optional[int] = Field(None, ge=1)
    demoVideo: Optional[str] = None


class PlaceOrderRequest(BaseModel):
    # Checked by OrderService.place_order
    productId: Optional[Any] = None
    productName: Optional[str] = None
    orderedQty: Optional[Any] = None
    userEmail: Optional[Any] = None
    paymentStatus: Optional[Any] = None


class CheckoutRequest(BaseModel):
    cartId: str
    productName: Optional[str] = None
    totalPrice: Optional[float] = None
    userEmail: Optional[EmailStr] = None


def update_result(modified: bool, ok: str, failed: str) -> Dict[str, Any]:
    if modified:
        return {"success": True, "message": ok}
    return {"success": False, "message": failed}


def create_app(database: Optional[Database] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.db is None
        if owned:
            app.state.db = connect(settings)
        yield
        if owned:
            app.state.db.close()

    app = FastAPI(title="Garments Marketplace API", lifespan=lifespan)
    app.state.db = database
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OrderError)
    def order_error_handler(request: Request, exc: OrderError):
        content: Dict[str, Any] = {"success": False, "error": exc.message}
        minimum = getattr(exc, "minimum", None)
        if minimum is not None:
            content["minimumOrderQuantity"] = minimum
        return JSONResponse(status_code=exc.status_code, content=content)

    # Routes
    @app.get("/")
    def root():
        return {"message": "Garments marketplace API running"}

    @app.get("/test")
    def test_database(db: Database = Depends(get_db)):
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_name": None,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            if db is not None:
                response["database"] = "✅ Available"
                response["database_name"] = db.name
                response["connection_status"] = "Connected"
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
        except Exception as e:
            logger.warning("Database check failed: %s", e)
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
        return response

    # Users
    @app.get("/all-user")
    def list_users(db: Database = Depends(get_db)):
        return get_documents(db, "users", sort=[("createdAt", -1)])

    @app.get("/users/{email}")
    def get_user(email: str, db: Database = Depends(get_db)):
        return serialize_doc(db["users"].find_one({"email": email})) or {}

    @app.get("/users/{email}/role")
    def get_user_role(email: str, db: Database = Depends(get_db)):
        user = db["users"].find_one({"email": email}) or {}
        return {"role": user.get("role") or "user"}

    @app.post("/users")
    def create_user(req: UserSchema, db: Database = Depends(get_db)):
        if db["users"].find_one({"email": req.email}):
            return {"message": "user already exists"}
        user_id = create_document(db, "users", req)
        return {"acknowledged": True, "insertedId": user_id}

    def set_user_status(db: Database, user_id: str, status: str) -> bool:
        result = db["users"].update_one({"_id": object_id_or_400(user_id)}, {"$set": {"status": status}})
        return result.modified_count > 0

    @app.put("/approve-user/{user_id}")
    def approve_user(user_id: str, db: Database = Depends(get_db)):
        return update_result(
            set_user_status(db, user_id, "Approved"),
            "User approved successfully",
            "User not found or already approved",
        )

    @app.put("/change-role/{user_id}")
    def change_role(user_id: str, req: RoleUpdateRequest, db: Database = Depends(get_db)):
        result = db["users"].update_one({"_id": object_id_or_400(user_id)}, {"$set": {"role": req.role}})
        return update_result(result.modified_count > 0, "User role updated successfully", "Failed to update role")

    @app.put("/blocked-user/{user_id}")
    def block_user(user_id: str, db: Database = Depends(get_db)):
        return update_result(
            set_user_status(db, user_id, "blocked"),
            "User blocked successfully",
            "Failed to block user",
        )

    @app.put("/unblocked-user/{user_id}")
    def unblock_user(user_id: str, db: Database = Depends(get_db)):
        return update_result(
            set_user_status(db, user_id, "active"),
            "User unblocked successfully",
            "Failed to unblock user",
        )

    @app.delete("/delete-user/{user_id}")
    def delete_user(user_id: str, db: Database = Depends(get_db)):
        result = db["users"].delete_one({"_id": object_id_or_400(user_id)})
        return {"acknowledged": True, "deletedCount": result.deleted_count}

    # Products
    @app.get("/products")
    def latest_products(db: Database = Depends(get_db)):
        return get_documents(db, "products", sort=[("createdAt", -1)], limit=6)

    @app.get("/all-products")
    def list_products(db: Database = Depends(get_db)):
        return get_documents(db, "products", sort=[("createdAt", -1)])

    @app.get("/all-products/{product_id}")
    def get_product(product_id: str, db: Database = Depends(get_db)):
        p = db["products"].find_one({"_id": object_id_or_400(product_id)})
        if not p:
            raise HTTPException(status_code=404, detail="Product not found")
        return serialize_doc(p)

    @app.get("/selling-products/{email}")
    def selling_products(email: str, db: Database = Depends(get_db)):
        return get_documents(db, "products", {"createdBy": email})

    @app.post("/products")
    def create_product(req: ProductSchema, db: Database = Depends(get_db)):
        product_id = create_document(db, "products", req)
        return {"acknowledged": True, "insertedId": product_id}

    @app.put("/update-product/{product_id}")
    def update_product(product_id: str, req: ProductUpdateRequest, db: Database = Depends(get_db)):
        updates = req.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No updates provided")
        result = db["products"].update_one({"_id": object_id_or_400(product_id)}, {"$set": updates})
        return update_result(
            result.modified_count > 0,
            "Product updated successfully",
            "No changes made or product not found",
        )

    @app.delete("/delete-product/{product_id}")
    def delete_product(product_id: str, db: Database = Depends(get_db)):
        result = db["products"].delete_one({"_id": object_id_or_400(product_id)})
        return {"acknowledged": True, "deletedCount": result.deleted_count}

    # Carts
    @app.post("/carts")
    def place_order(req: PlaceOrderRequest, service: OrderService = Depends(get_order_service)):
        order = service.place_order(
            req.productId,
            req.orderedQty,
            req.userEmail,
            payment_status=req.paymentStatus,
            product_name=req.productName,
        )
        return {"success": True, "message": "Order placed successfully", "order": serialize_doc(order)}

    @app.get("/carts/{email}")
    def orders_for_user(
        email: str,
        decoded_email: str = Depends(get_decoded_email),
        service: OrderService = Depends(get_order_service),
    ):
        if email != decoded_email:
            raise HTTPException(status_code=403, detail="forbidden access")
        return {"success": True, "data": [serialize_doc(o) for o in service.find_orders(email)]}

    @app.get("/carts/id/{cart_id}")
    def get_cart(cart_id: str, service: OrderService = Depends(get_order_service)):
        return serialize_doc(service.get_order(cart_id))

    @app.patch("/carts/payment-success/{cart_id}")
    def payment_success(cart_id: str, service: OrderService = Depends(get_order_service)):
        service.mark_paid(cart_id)
        return {"success": True, "message": "Payment recorded"}

    # Comments
    @app.get("/comments")
    def list_comments(db: Database = Depends(get_db)):
        return get_documents(db, "comments", sort=[("createdAt", -1)])

    @app.post("/comments")
    def post_comment(req: CommentSchema, db: Database = Depends(get_db)):
        comment_id = create_document(db, "comments", req)
        return {"acknowledged": True, "insertedId": comment_id}

    # Payments
    @app.post("/create-checkout-session")
    def checkout(
        req: CheckoutRequest,
        service: OrderService = Depends(get_order_service),
        settings: Settings = Depends(get_settings),
    ):
        order = service.get_order(req.cartId)
        try:
            url = create_checkout_session(order, settings, req.cartId)
        except PaymentsUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
        return {"url": url}

    # Reviews
    @app.get("/reviews")
    def list_reviews(db: Database = Depends(get_db)):
        return get_documents(db, "reviews", sort=[("date", -1)])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
