import os
import uuid
import logging
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from fastapi import FastAPI, Depends, HTTPException, Request, Body
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import database
import policy
from auth import (
    create_access_token, get_current_user, hash_password, public_user,
    require_area, verify_password,
)
from catalog import compute_visible_page, list_categories, parse_query, to_query_string
from config import CATALOG_PAGE_SIZE, CURRENCY, LOG_LEVEL
from database import create_document, get_db, get_documents, object_id, serialize
from forms import CheckoutForm, LoginForm, ProductForm, RegisterForm, field_errors, validate_form
from payment import MockPaymentGateway, get_payment_gateway
from pricing import compute_count, compute_order_totals, compute_subtotal, format_money, line_total, round_money
from schemas import CartLineItem, Category, Order, OrderItem, Product, SellerVerification, StockFailure, User
from stock import check_stock, failure_message, requested_quantities

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(title="Chocolata Marketplace API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

buyer_only = require_area("/checkout")
seller_only = require_area("/seller")
admin_only = require_area("/admin")


class FormValidationError(Exception):
    def __init__(self, errors: Dict[str, str]):
        self.errors = errors


@app.exception_handler(FormValidationError)
async def form_error_handler(request: Request, exc: FormValidationError):
    return JSONResponse(status_code=422, content={"errors": exc.errors})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"errors": field_errors(exc.errors())})


def validated(form, payload: Dict[str, Any]):
    result = validate_form(form, payload)
    if not result.is_ok:
        raise FormValidationError(result.errors)
    return result.ok


def oid(id_str: str):
    _id = object_id(id_str)
    if _id is None:
        raise HTTPException(status_code=400, detail="Invalid id")
    return _id


# Request models
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    password: Optional[str] = Field(None, min_length=6)

class CartItemAdd(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)

class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=0)

class QuoteRequest(BaseModel):
    country: str = Field(..., min_length=2)

class VerificationSubmit(BaseModel):
    documents: List[str] = Field(..., min_length=1)

class RejectRequest(BaseModel):
    notes: Optional[str] = None

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class StatusUpdate(BaseModel):
    status: str


# Helpers
def to_product(doc: dict) -> Product:
    return Product.model_validate({**doc, "id": str(doc["_id"])})


def active_products(db) -> List[Product]:
    return [to_product(d) for d in db["product"].find({"is_active": {"$ne": False}})]


def fetch_products(db, product_ids: List[str]) -> List[Product]:
    ids = [object_id(i) for i in product_ids]
    docs = db["product"].find({"_id": {"$in": [i for i in ids if i is not None]}})
    return [to_product(d) for d in docs]


def load_cart(db, user_id: str) -> List[CartLineItem]:
    cart = db["cart"].find_one({"user_id": user_id}) or {"items": []}
    return [CartLineItem.model_validate(i) for i in cart.get("items", [])]


def save_cart(db, user_id: str, items: List[CartLineItem]):
    db["cart"].update_one(
        {"user_id": user_id},
        {"$set": {"items": [database.to_document(i) for i in items], "updated_at": datetime.now(timezone.utc)}},
        upsert=True,
    )


def cart_response(items: List[CartLineItem]) -> dict:
    return {
        "items": [{**i.model_dump(), "line_total": line_total(i)} for i in items],
        "subtotal": compute_subtotal(items),
        "count": compute_count(items),
        "currency": CURRENCY,
    }


def stock_conflict(failures: List[StockFailure], items: List[CartLineItem]) -> HTTPException:
    return HTTPException(status_code=409, detail={
        "failures": [f.model_dump() for f in failures],
        "messages": [failure_message(f, items) for f in failures],
    })


def release_stock(db, reserved: Dict[str, int]):
    for product_id, qty in reserved.items():
        db["product"].update_one({"_id": oid(product_id)}, {"$inc": {"stock": qty}})


def reserve_stock(db, items: List[CartLineItem]) -> Dict[str, int]:
    """Take stock for every cart product or for none of them.

    Each decrement only matches while enough stock is left.
    """
    reserved: Dict[str, int] = {}
    for product_id, qty in requested_quantities(items).items():
        res = db["product"].update_one(
            {"_id": oid(product_id), "stock": {"$gte": qty}},
            {"$inc": {"stock": -qty}},
        )
        if res.matched_count == 0:
            release_stock(db, reserved)
            doc = db["product"].find_one({"_id": oid(product_id)})
            available = (doc or {}).get("stock") or 0
            if doc is None:
                failure = StockFailure(product_id=product_id, reason="not_found")
            elif available <= 0:
                failure = StockFailure(product_id=product_id, reason="sold_out")
            else:
                failure = StockFailure(product_id=product_id, reason="insufficient_stock", available_qty=available)
            logger.info("stock for %s changed during checkout: %s", product_id, failure.reason)
            raise stock_conflict([failure], items)
        reserved[product_id] = qty
    return reserved


# Auth
@app.post("/api/auth/register", status_code=201)
def register(payload: Dict[str, Any] = Body(...), db=Depends(get_db)):
    form = validated(RegisterForm, payload)
    email = form.email.lower()
    if db["user"].find_one({"email": email}):
        raise HTTPException(status_code=400, detail="Email already in use")
    user = User(
        name=form.full_name,
        email=email,
        password_hash=hash_password(form.password),
        role=form.role,
        seller_status="pending" if form.role == "seller" else None,
    )
    user_id = create_document(db, "user", user)
    logger.info("registered %s account %s", form.role, user_id)
    return {"id": user_id, "name": user.name, "email": email, "role": user.role, "seller_status": user.seller_status}

@app.post("/api/auth/login")
def login(payload: Dict[str, Any] = Body(...), db=Depends(get_db)):
    form = validated(LoginForm, payload)
    user = db["user"].find_one({"email": form.email.lower()})
    if not user or not verify_password(form.password, user.get("password_hash", "")):
        logger.info("failed login for %s", form.email.lower())
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    access_token = create_access_token({"sub": str(user["_id"])})
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": public_user(user),
        "redirect_to": policy.home_route(user.get("role")),
    }

@app.get("/api/auth/redirect")
def redirect_for(path: str = "/", current_user: dict = Depends(get_current_user)):
    role = current_user.get("role")
    return {"role": role, "home": policy.home_route(role), "redirect_to": policy.resolve_redirect(role, path)}


# Users
@app.get("/api/users/me")
def get_me(current_user: dict = Depends(get_current_user)):
    return public_user(current_user)

@app.put("/api/users/me")
def update_me(body: UserUpdate, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    update: Dict[str, Any] = {}
    if body.name is not None:
        update["name"] = body.name
    if body.password is not None:
        update["password_hash"] = hash_password(body.password)
    if not update:
        return public_user(current_user)
    update["updated_at"] = datetime.now(timezone.utc)
    db["user"].update_one({"_id": current_user["_id"]}, {"$set": update})
    return public_user(db["user"].find_one({"_id": current_user["_id"]}))


# Catalog
@app.get("/api/categories")
def get_categories(db=Depends(get_db)):
    cats = []
    for c in db["category"].find().sort([("name", 1)]):
        cats.append({"id": str(c["_id"]), "name": c["name"], "description": c.get("description")})
    return {"categories": cats}

@app.get("/api/products")
def list_products(request: Request, db=Depends(get_db)):
    query = parse_query(request.query_params)
    products = active_products(db)
    page = compute_visible_page(products, query, CATALOG_PAGE_SIZE)
    category_names = [c["name"] for c in db["category"].find().sort([("name", 1)])]
    return {
        "items": [p.model_dump() for p in page.items],
        "total_count": page.total_count,
        "total_pages": page.total_pages,
        "page": page.page,
        "query": to_query_string(query),
        "state": query.model_dump(),
        "categories": category_names or list_categories(products),
    }

@app.get("/api/products/{product_id}")
def get_product(product_id: str, db=Depends(get_db)):
    doc = db["product"].find_one({"_id": oid(product_id)})
    if not doc or doc.get("is_active") is False:
        raise HTTPException(status_code=404, detail="Product not found")
    product = to_product(doc).model_dump()
    seller = db["user"].find_one({"_id": object_id(doc.get("seller_id") or "")}) if doc.get("seller_id") else None
    product["seller_name"] = seller["name"] if seller else None
    return product

@app.get("/api/sellers/{seller_id}")
def seller_profile(seller_id: str, db=Depends(get_db)):
    seller = db["user"].find_one({"_id": oid(seller_id), "role": "seller"})
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    docs = get_documents(db, "product", {"seller_id": seller_id, "is_active": {"$ne": False}})
    return {
        "id": seller_id,
        "name": seller["name"],
        "approved": seller.get("seller_status") == "approved",
        "products": [to_product(d).model_dump() for d in docs],
    }


# Cart
@app.get("/api/cart")
def get_cart(current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    return cart_response(load_cart(db, str(current_user["_id"])))

@app.post("/api/cart/items")
def add_cart_item(body: CartItemAdd, current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    doc = db["product"].find_one({"_id": oid(body.product_id)})
    if not doc or doc.get("is_active") is False:
        raise HTTPException(status_code=404, detail="Product not found")
    product = to_product(doc)
    user_id = str(current_user["_id"])
    items = load_cart(db, user_id)
    for i, item in enumerate(items):
        if item.product_id == product.id:
            items[i] = item.model_copy(update={"quantity": item.quantity + body.quantity})
            break
    else:
        items.append(CartLineItem(
            id=uuid.uuid4().hex,
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=body.quantity,
            image_url=product.image_url,
        ))
    save_cart(db, user_id, items)
    return cart_response(items)

@app.put("/api/cart/items/{product_id}")
def update_cart_item(product_id: str, body: CartItemUpdate, current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    user_id = str(current_user["_id"])
    items = load_cart(db, user_id)
    if not any(i.product_id == product_id for i in items):
        raise HTTPException(status_code=404, detail="Item not in cart")
    if body.quantity == 0:
        items = [i for i in items if i.product_id != product_id]
    else:
        items = [i.model_copy(update={"quantity": body.quantity}) if i.product_id == product_id else i for i in items]
    save_cart(db, user_id, items)
    return cart_response(items)

@app.delete("/api/cart/items/{product_id}")
def remove_cart_item(product_id: str, current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    user_id = str(current_user["_id"])
    items = [i for i in load_cart(db, user_id) if i.product_id != product_id]
    save_cart(db, user_id, items)
    return cart_response(items)

@app.delete("/api/cart")
def clear_cart(current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    db["cart"].delete_one({"user_id": str(current_user["_id"])})
    return cart_response([])


# Checkout
@app.post("/api/checkout/quote")
def checkout_quote(body: QuoteRequest, current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    items = load_cart(db, str(current_user["_id"]))
    totals = compute_order_totals(items, body.country)
    return {**totals.model_dump(), "currency": CURRENCY, "count": compute_count(items)}

@app.post("/api/checkout", status_code=201)
def place_order(
    payload: Dict[str, Any] = Body(...),
    current_user: dict = Depends(buyer_only),
    db=Depends(get_db),
    gateway: MockPaymentGateway = Depends(get_payment_gateway),
):
    form = validated(CheckoutForm, payload)
    user_id = str(current_user["_id"])
    items = load_cart(db, user_id)

    live: Dict[str, Product] = {}

    def fetch(ids: List[str]) -> List[Product]:
        products = fetch_products(db, ids)
        live.update({p.id: p for p in products})
        return products

    result = check_stock(items, fetch)
    if not result.valid:
        logger.info("checkout rejected for %s: %s", user_id, [f.reason for f in result.failures])
        raise stock_conflict(result.failures, items)

    totals = compute_order_totals(items, form.country)
    reserved = reserve_stock(db, items)
    payment = gateway.process(round_money(totals.total), CURRENCY, form.payment_method)
    if not payment.success:
        release_stock(db, reserved)
        raise HTTPException(status_code=402, detail=payment.error)

    order_items = [
        OrderItem(
            product_id=i.product_id,
            seller_id=live[i.product_id].seller_id,
            name=i.name,
            image_url=i.image_url,
            price=i.price,
            quantity=i.quantity,
        )
        for i in items
    ]
    order = Order(
        user_id=user_id,
        items=order_items,
        seller_ids=sorted({i.seller_id for i in order_items if i.seller_id}),
        shipping_name=form.full_name,
        shipping_email=form.email,
        shipping_address=f"{form.address}, {form.city}, {form.postal_code}, {form.country.upper()}",
        shipping_country=form.country.upper(),
        subtotal=round_money(totals.subtotal),
        shipping_cost=round_money(totals.shipping_cost),
        tax_amount=round_money(totals.tax_amount),
        total_amount=round_money(totals.total),
        currency=CURRENCY,
        estimated_delivery_date=totals.estimated_delivery_date.isoformat(),
        payment_method=form.payment_method,
        transaction_id=payment.transaction_id,
        status="paid",
    )
    order_id = create_document(db, "order", order)
    db["cart"].delete_one({"user_id": user_id})
    logger.info("order %s placed by %s: %s", order_id, user_id, format_money(order.total_amount, CURRENCY))
    return {
        "order_id": order_id,
        "status": order.status,
        "transaction_id": payment.transaction_id,
        "currency": CURRENCY,
        "subtotal": order.subtotal,
        "shipping_cost": order.shipping_cost,
        "tax_amount": order.tax_amount,
        "total": order.total_amount,
        "estimated_delivery_date": order.estimated_delivery_date,
    }


# Orders
@app.get("/api/orders")
def my_orders(current_user: dict = Depends(buyer_only), db=Depends(get_db)):
    orders = [serialize(o) for o in db["order"].find({"user_id": str(current_user["_id"])}).sort([("created_at", -1)])]
    return {"orders": orders}

@app.get("/api/orders/{order_id}")
def order_detail(order_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    o = db["order"].find_one({"_id": oid(order_id)})
    user_id = str(current_user["_id"])
    role = current_user.get("role")
    if not o or not (
        o.get("user_id") == user_id
        or role == "admin"
        or (role == "seller" and user_id in o.get("seller_ids", []))
    ):
        raise HTTPException(status_code=404, detail="Order not found")
    return serialize(o)

ORDER_STATUSES = ("pending", "paid", "processing", "shipped", "delivered", "cancelled")

@app.put("/api/orders/{order_id}/status")
def update_order_status(order_id: str, body: StatusUpdate, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    if body.status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="Unknown order status")
    o = db["order"].find_one({"_id": oid(order_id)})
    user_id = str(current_user["_id"])
    role = current_user.get("role")
    if not o:
        raise HTTPException(status_code=404, detail="Order not found")
    if not (role == "admin" or (role == "seller" and user_id in o.get("seller_ids", []))):
        raise HTTPException(status_code=403, detail="Not allowed to update this order")
    db["order"].update_one({"_id": o["_id"]}, {"$set": {"status": body.status, "updated_at": datetime.now(timezone.utc)}})
    logger.info("order %s set to %s by %s", order_id, body.status, user_id)
    return serialize(db["order"].find_one({"_id": o["_id"]}))


# Seller
@app.get("/api/seller/products")
def seller_products(current_user: dict = Depends(seller_only), db=Depends(get_db)):
    docs = db["product"].find({"seller_id": str(current_user["_id"])}).sort([("created_at", -1)])
    return {"products": [to_product(d).model_dump() for d in docs]}

@app.post("/api/seller/products", status_code=201)
def create_product(payload: Dict[str, Any] = Body(...), current_user: dict = Depends(seller_only), db=Depends(get_db)):
    if current_user.get("seller_status") != "approved":
        raise HTTPException(status_code=403, detail="Seller account is not approved yet")
    form = validated(ProductForm, payload)
    doc = {**database.to_document(form), "seller_id": str(current_user["_id"])}
    product_id = create_document(db, "product", doc)
    return to_product(db["product"].find_one({"_id": oid(product_id)})).model_dump()

def own_product(db, product_id: str, seller_id: str) -> dict:
    doc = db["product"].find_one({"_id": oid(product_id)})
    if not doc or doc.get("seller_id") != seller_id:
        raise HTTPException(status_code=404, detail="Product not found")
    return doc

@app.put("/api/seller/products/{product_id}")
def update_product(product_id: str, payload: Dict[str, Any] = Body(...), current_user: dict = Depends(seller_only), db=Depends(get_db)):
    doc = own_product(db, product_id, str(current_user["_id"]))
    form = validated(ProductForm, payload)
    update = {**database.to_document(form), "updated_at": datetime.now(timezone.utc)}
    db["product"].update_one({"_id": doc["_id"]}, {"$set": update})
    return to_product(db["product"].find_one({"_id": doc["_id"]})).model_dump()

@app.delete("/api/seller/products/{product_id}")
def delete_product(product_id: str, current_user: dict = Depends(seller_only), db=Depends(get_db)):
    doc = own_product(db, product_id, str(current_user["_id"]))
    db["product"].delete_one({"_id": doc["_id"]})
    return {"success": True}

def seller_view(order: dict, seller_id: str) -> dict:
    o = serialize(order)
    o["items"] = [i for i in o.get("items", []) if i.get("seller_id") == seller_id]
    return o

@app.get("/api/seller/orders")
def seller_orders(current_user: dict = Depends(seller_only), db=Depends(get_db)):
    seller_id = str(current_user["_id"])
    docs = db["order"].find({"seller_ids": seller_id}).sort([("created_at", -1)])
    return {"orders": [seller_view(o, seller_id) for o in docs]}

@app.get("/api/seller/dashboard")
def seller_dashboard(current_user: dict = Depends(seller_only), db=Depends(get_db)):
    seller_id = str(current_user["_id"])
    orders = [seller_view(o, seller_id) for o in db["order"].find({"seller_ids": seller_id})]
    revenue = sum(
        round_money(OrderItem.model_validate(i).price * i["quantity"])
        for o in orders if o.get("status") != "cancelled"
        for i in o["items"]
    )
    return {
        "seller_status": current_user.get("seller_status"),
        "product_count": db["product"].count_documents({"seller_id": seller_id}),
        "order_count": len(orders),
        "revenue": revenue,
        "currency": CURRENCY,
    }

@app.get("/api/seller/verification")
def get_verification(current_user: dict = Depends(seller_only), db=Depends(get_db)):
    return {"verification": serialize(db["sellerverification"].find_one({"seller_id": str(current_user["_id"])}))}

@app.post("/api/seller/verification", status_code=201)
def submit_verification(body: VerificationSubmit, current_user: dict = Depends(seller_only), db=Depends(get_db)):
    seller_id = str(current_user["_id"])
    existing = db["sellerverification"].find_one({"seller_id": seller_id})
    if existing and existing.get("status") != "rejected":
        raise HTTPException(status_code=400, detail="Verification already submitted")
    if existing:
        db["sellerverification"].update_one(
            {"_id": existing["_id"]},
            {"$set": {"documents": body.documents, "status": "pending", "admin_notes": None, "updated_at": datetime.now(timezone.utc)}},
        )
        verification_id = str(existing["_id"])
    else:
        verification_id = create_document(db, "sellerverification", SellerVerification(
            seller_id=seller_id,
            seller_name=current_user["name"],
            seller_email=current_user["email"],
            documents=body.documents,
        ))
    db["user"].update_one({"_id": current_user["_id"]}, {"$set": {"seller_status": "pending"}})
    logger.info("seller %s submitted verification %s", seller_id, verification_id)
    return serialize(db["sellerverification"].find_one({"_id": oid(verification_id)}))


# Admin
@app.get("/api/admin/dashboard")
def admin_dashboard(current_user: dict = Depends(admin_only), db=Depends(get_db)):
    revenue = sum(o.get("total_amount", 0) for o in db["order"].find({"status": {"$ne": "cancelled"}}))
    return {
        "users": {r: db["user"].count_documents({"role": r}) for r in policy.ROLES},
        "pending_sellers": db["sellerverification"].count_documents({"status": "pending"}),
        "products": db["product"].count_documents({}),
        "orders": db["order"].count_documents({}),
        "revenue": round(revenue, 2),
        "currency": CURRENCY,
    }

@app.get("/api/admin/sellers")
def admin_sellers(status: Optional[str] = None, current_user: dict = Depends(admin_only), db=Depends(get_db)):
    query = {"status": status} if status else {}
    docs = db["sellerverification"].find(query).sort([("created_at", -1)])
    return {"verifications": [serialize(v) for v in docs]}

def _review_seller(db, verification_id: str, status: str, notes: Optional[str] = None) -> dict:
    v = db["sellerverification"].find_one({"_id": oid(verification_id)})
    if not v:
        raise HTTPException(status_code=404, detail="Verification not found")
    db["sellerverification"].update_one(
        {"_id": v["_id"]},
        {"$set": {"status": status, "admin_notes": notes, "updated_at": datetime.now(timezone.utc)}},
    )
    user_update = {"seller_status": status}
    if status == "approved":
        user_update["role"] = "seller"
    seller_oid = object_id(v["seller_id"])
    if seller_oid is not None:
        db["user"].update_one({"_id": seller_oid}, {"$set": user_update})
    logger.info("seller verification %s %s", verification_id, status)
    return serialize(db["sellerverification"].find_one({"_id": v["_id"]}))

@app.post("/api/admin/sellers/{verification_id}/approve")
def approve_seller(verification_id: str, current_user: dict = Depends(admin_only), db=Depends(get_db)):
    return _review_seller(db, verification_id, "approved")

@app.post("/api/admin/sellers/{verification_id}/reject")
def reject_seller(verification_id: str, body: RejectRequest, current_user: dict = Depends(admin_only), db=Depends(get_db)):
    return _review_seller(db, verification_id, "rejected", body.notes)

@app.post("/api/admin/categories", status_code=201)
def create_category(body: CategoryCreate, current_user: dict = Depends(admin_only), db=Depends(get_db)):
    name = body.name.strip()
    if db["category"].find_one({"name": name}):
        raise HTTPException(status_code=400, detail="Category already exists")
    category_id = create_document(db, "category", Category(name=name, description=body.description))
    return {"id": category_id, "name": name, "description": body.description}

@app.delete("/api/admin/categories/{category_id}")
def delete_category(category_id: str, current_user: dict = Depends(admin_only), db=Depends(get_db)):
    res = db["category"].delete_one({"_id": oid(category_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True}

@app.get("/api/admin/products")
def admin_products(current_user: dict = Depends(admin_only), db=Depends(get_db)):
    docs = db["product"].find().sort([("created_at", -1)])
    return {"products": [to_product(d).model_dump() for d in docs]}

@app.delete("/api/admin/products/{product_id}")
def admin_delete_product(product_id: str, current_user: dict = Depends(admin_only), db=Depends(get_db)):
    res = db["product"].delete_one({"_id": oid(product_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("admin %s removed product %s", current_user["_id"], product_id)
    return {"success": True}

@app.get("/api/admin/orders")
def admin_orders(current_user: dict = Depends(admin_only), db=Depends(get_db)):
    return {"orders": [serialize(o) for o in db["order"].find().sort([("created_at", -1)])]}


# Health + test
@app.get("/")
def root():
    return {"message": "Chocolata Marketplace API running"}

@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "collections": []
    }
    try:
        if database.db is not None:
            response["collections"] = database.db.list_collection_names()[:10]
    except Exception as e:
        response["error"] = str(e)[:120]
    return response

@app.get('/seed/init')
def seed(db=Depends(get_db)):
    if not db['user'].find_one({'email': 'admin@example.com'}):
        create_document(db, 'user', User(name='Admin', email='admin@example.com', password_hash=hash_password('Admin@123'), role='admin'))
    seller = db['user'].find_one({'email': 'seller@example.com'})
    if not seller:
        create_document(db, 'user', User(name='Cocoa House', email='seller@example.com', password_hash=hash_password('Seller@123'), role='seller', seller_status='approved'))
        seller = db['user'].find_one({'email': 'seller@example.com'})
    for name in ('Dark Chocolate', 'Milk Chocolate', 'White Chocolate'):
        if not db['category'].find_one({'name': name}):
            create_document(db, 'category', Category(name=name))
    sample_products = [
        {'name': 'Dark Chocolate 70%', 'description': 'Premium Belgian dark chocolate', 'price': 15.99, 'category': 'Dark Chocolate', 'stock': 50},
        {'name': 'Milk Chocolate Truffles', 'description': 'Hand-crafted milk chocolate truffles', 'price': 24.99, 'category': 'Milk Chocolate', 'stock': 25},
        {'name': 'White Chocolate Hearts', 'description': 'Valentine special white chocolate', 'price': 19.99, 'category': 'White Chocolate', 'stock': 30},
    ]
    for p in sample_products:
        if not db['product'].find_one({'name': p['name']}):
            create_document(db, 'product', {**p, 'image_url': None, 'is_active': True, 'seller_id': str(seller['_id'])})
    return {'ok': True}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
