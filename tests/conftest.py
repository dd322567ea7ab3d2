from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import hash_password
from database import create_document, get_db
from main import app
from payment import MockPaymentGateway, get_payment_gateway
from schemas import User


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def gateway():
    return MockPaymentGateway(failure_rate=0)


@pytest.fixture
def client(db, gateway):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email, role="buyer", seller_status=None, password="secret123"):
    user = User(
        name=email.split("@")[0].title(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        seller_status=seller_status,
    )
    return create_document(db, "user", user)


def login(client, email, password="secret123"):
    res = client.post("/api/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def buyer(client, db):
    make_user(db, "buyer@example.com")
    return login(client, "buyer@example.com")


@pytest.fixture
def seller_id(db):
    return make_user(db, "seller@example.com", role="seller", seller_status="approved")


@pytest.fixture
def seller(client, seller_id):
    return login(client, "seller@example.com")


@pytest.fixture
def admin(client, db):
    make_user(db, "admin@example.com", role="admin")
    return login(client, "admin@example.com")


@pytest.fixture
def products(db, seller_id):
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    rows = [
        {"name": "Dark Chocolate 70%", "description": "Premium Belgian dark chocolate", "price": 100.0, "category": "Dark Chocolate", "stock": 5},
        {"name": "Milk Chocolate Truffles", "description": "Hand-crafted milk chocolate truffles", "price": 50.0, "category": "Milk Chocolate", "stock": 2},
        {"name": "White Chocolate Hearts", "description": "Valentine special white chocolate", "price": 19.99, "category": "White Chocolate", "stock": 0},
    ]
    ids = []
    for n, row in enumerate(rows):
        ids.append(create_document(db, "product", {
            **row,
            "seller_id": seller_id,
            "is_active": True,
            "created_at": base + timedelta(days=n),
        }))
    return ids
