"""
Shared fixtures: an in-memory MongoDB, a seeded product and an API client.
"""
import uuid
from datetime import datetime, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from config import Settings
from database import Database
from main import create_app
from orders import OrderService


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        stripe_secret="sk_test_123",
        site_domain="http://shop.test",
        use_transactions=False,
        log_level="WARNING",
    )


@pytest.fixture
def database():
    return Database(mongomock.MongoClient(), f"garments_{uuid.uuid4().hex}", use_transactions=False)


def insert_product(database, **overrides):
    doc = {
        "productName": "Denim Jacket",
        "price": 10,
        "availableQuantity": 5,
        "minimumOrderQuantity": 2,
        "createdBy": "seller@shop.com",
        "createdAt": datetime.now(timezone.utc),
    }
    doc.update(overrides)
    return database["products"].insert_one(doc).inserted_id


@pytest.fixture
def product_id(database):
    return insert_product(database)


@pytest.fixture
def service(database):
    return OrderService.from_database(database)


@pytest.fixture
def client(database, settings):
    return TestClient(create_app(database=database, settings=settings))


@pytest.fixture
def make_token(settings):
    def _make(email, **claims):
        return jwt.encode({"email": email, **claims}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return _make


@pytest.fixture
def add_product(database):
    def _add(**overrides):
        return insert_product(database, **overrides)
    return _add
