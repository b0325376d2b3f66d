import asyncio
import os
from datetime import datetime

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/haatbazar_test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BANK_DATA_ENCRYPTION_KEY", "test-bank-data-key")
os.environ.setdefault("ADMIN_PHONE", "01700000000")
os.environ["DELIVERY_APPLY_WEIGHT_SURCHARGE"] = "false"

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app
from utils.jwt import create_access_token

SHIPPING = {
    "full_name": "Rahim Uddin",
    "phone_number": "01712345678",
    "division": "Dhaka",
    "district": "Dhaka",
    "upazilla": "Savar",
    "house_address": "House 12, Block C",
}


def run(coro):
    return asyncio.run(coro)


def auth(user_id: str, is_admin: bool = False) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, is_admin)}"}


async def seed_user(db, user_id, *, is_admin=False, addresses=None, withdrawal_methods=None):
    user = {
        "_id": user_id,
        "name": user_id.title(),
        "email": f"{user_id}@example.com",
        "phone_number": None,
        "is_admin": is_admin,
        "addresses": addresses or [],
        "withdrawal_methods": withdrawal_methods or [],
        "created_at": datetime.utcnow(),
    }
    await db.users.insert_one(user)
    return user


async def seed_product(
    db,
    product_id,
    *,
    seller_id="seller1",
    price=100.0,
    stock=10,
    status="approved",
    category_id="electronics",
    weight_kg=None,
):
    product = {
        "_id": product_id,
        "name": product_id.replace("-", " ").title(),
        "price": price,
        "stock": stock,
        "status": status,
        "seller_id": seller_id,
        "category_id": category_id,
        "sub_category_id": None,
        "weight_kg": weight_kg,
        "images": [f"/uploads/images/{product_id}.jpg"],
        "selected_attributes": [],
        "created_at": datetime.utcnow(),
    }
    await db.products.insert_one(product)
    return product


async def seed_settled_order(db, order_id, items, *, status="delivered", payment_status="paid"):
    await db.orders.insert_one({
        "_id": order_id,
        "user_id": "buyer1",
        "items": items,
        "total_amount": sum(i["price"] * i["quantity"] for i in items),
        "status": status,
        "payment_status": payment_status,
        "created_at": datetime.utcnow(),
    })


@pytest.fixture
def db():
    return AsyncMongoMockClient()["haatbazar_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
