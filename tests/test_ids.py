import re

from utils.ids import (
    ensure_unique_id,
    generate_category_id,
    generate_order_id,
    generate_product_id,
    generate_user_id,
    generate_withdrawal_request_id,
)


def test_id_formats():
    assert re.fullmatch(r"ORD-\d{6}-\d{6}", generate_order_id())
    assert re.fullmatch(r"WR-\d{8}-\d{2}", generate_withdrawal_request_id())
    assert re.fullmatch(r"prod-redshirt-\d{11}", generate_product_id("Red Shirt!"))
    assert re.fullmatch(r"prod-\d{11}", generate_product_id("!!!"))
    assert re.fullmatch(r"karimmia\d{6}", generate_user_id("Karim Mia"))
    assert generate_category_id("Home & Living") == "homeliving"


async def test_unique_id_appends_counter(db):
    assert await ensure_unique_id(db.orders, "ORD-260101-123456") == "ORD-260101-123456"

    await db.orders.insert_one({"_id": "ORD-260101-123456"})
    await db.orders.insert_one({"_id": "ORD-260101-123456-1"})

    assert await ensure_unique_id(db.orders, "ORD-260101-123456") == "ORD-260101-123456-2"


async def test_unique_user_id_without_separator(db):
    await db.users.insert_one({"_id": "karim123456"})
    assert await ensure_unique_id(db.users, "karim123456", separator="") == "karim1234561"
