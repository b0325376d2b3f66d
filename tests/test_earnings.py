import pytest
from fastapi import HTTPException

from conftest import SHIPPING, auth, run, seed_product, seed_settled_order, seed_user
from utils.commissions import get_category_rate, list_commissions, replace_commissions
from utils.earnings_service import (
    compute_line,
    get_earnings_summary,
    get_platform_commission_total,
    get_withdrawable,
)
from utils.order_service import create_order, update_order


def _line(product_id, price, quantity, seller_id="seller1", category_id="electronics", rate=None):
    item = {
        "product_id": product_id,
        "seller_id": seller_id,
        "category_id": category_id,
        "price": price,
        "quantity": quantity,
    }
    if rate is not None:
        item["commission_percent"] = rate
    return item


def test_compute_line():
    line = compute_line(100, 2, 8)
    assert line["line_total"] == pytest.approx(200)
    assert line["commission"] == pytest.approx(16)
    assert line["seller_earning"] == pytest.approx(184)


def test_compute_line_zero_rate():
    line = compute_line(250, 1, 0)
    assert line["commission"] == 0
    assert line["seller_earning"] == 250


async def test_category_rate_defaults_to_five_percent(db):
    assert await get_category_rate(db, "unknown") == 5.0
    await db.commissions.insert_one({"category_id": "fashion", "percentage": 12})
    assert await get_category_rate(db, "fashion") == 12.0


async def test_replace_commissions_rejects_unknown_category(db):
    await db.categories.insert_one({"_id": "fashion", "name": "Fashion", "parent_id": None})
    await db.commissions.insert_one({"category_id": "fashion", "percentage": 12})

    with pytest.raises(HTTPException) as exc:
        await replace_commissions(db, [
            {"category_id": "fashion", "percentage": 9},
            {"category_id": "ghost", "percentage": 3},
        ])
    assert exc.value.status_code == 400

    # nothing written on failure
    assert await get_category_rate(db, "fashion") == 12.0


async def test_list_commissions_sorted_by_category_name(db):
    await db.categories.insert_many([
        {"_id": "toys", "name": "Toys", "parent_id": None},
        {"_id": "books", "name": "Books", "parent_id": None},
    ])
    await replace_commissions(db, [
        {"category_id": "toys", "percentage": 7},
        {"category_id": "books", "percentage": 3},
    ])

    rows = await list_commissions(db)
    assert [r["category_name"] for r in rows] == ["Books", "Toys"]


async def test_earnings_use_snapshot_then_live_rate_then_default(db):
    await db.commissions.insert_one({"category_id": "fashion", "percentage": 10})
    # rate changed after the sale; the snapshot on the line still wins
    await db.commissions.insert_one({"category_id": "electronics", "percentage": 20})

    await seed_settled_order(db, "ORD-1", [
        _line("p1", 100, 2, rate=8),                        # 184
        _line("p2", 50, 1, category_id="fashion"),          # legacy line, live 10% -> 45
        _line("p3", 200, 1, category_id="groceries"),       # no rate row, 5% -> 190
        _line("p4", 999, 1, seller_id="seller2", rate=8),   # someone else's line
    ])

    summary = await get_earnings_summary(db, "seller1")
    assert summary["total_earnings"] == pytest.approx(184 + 45 + 190)
    assert summary["total_commission_deducted"] == pytest.approx(16 + 5 + 10)
    assert summary["order_count"] == 3


async def test_only_delivered_and_paid_orders_count(db):
    await seed_settled_order(db, "ORD-1", [_line("p1", 100, 1, rate=10)])
    await seed_settled_order(db, "ORD-2", [_line("p1", 100, 1, rate=10)], payment_status="unpaid")
    await seed_settled_order(db, "ORD-3", [_line("p1", 100, 1, rate=10)], status="shipped")
    await seed_settled_order(db, "ORD-4", [_line("p1", 100, 1, rate=10)], status="cancelled")

    summary = await get_earnings_summary(db, "seller1")
    assert summary["total_earnings"] == pytest.approx(90)


async def test_withdrawable_reserves_pending_and_never_goes_negative(db):
    await seed_settled_order(db, "ORD-1", [_line("p1", 100, 2, rate=8)])  # 184 earned
    await db.withdrawal_requests.insert_many([
        {"_id": "WR-1", "user_id": "seller1", "amount": 100, "status": "approved"},
        {"_id": "WR-2", "user_id": "seller1", "amount": 50, "status": "pending"},
        {"_id": "WR-3", "user_id": "seller1", "amount": 500, "status": "rejected"},
    ])

    balance = await get_withdrawable(db, "seller1")
    assert balance["total_earnings"] == 184
    assert balance["total_withdrawn"] == 150
    assert balance["withdrawable_amount"] == 34
    assert balance["can_withdraw"] is True

    summary = await get_earnings_summary(db, "seller1")
    assert summary["total_withdrawn"] == 100
    assert summary["pending_withdrawals"] == 50
    assert summary["available_balance"] == 84
    assert summary["withdrawable_amount"] == 34

    await db.withdrawal_requests.insert_one(
        {"_id": "WR-4", "user_id": "seller1", "amount": 100, "status": "approved"}
    )
    balance = await get_withdrawable(db, "seller1")
    assert balance["withdrawable_amount"] == 0
    assert balance["can_withdraw"] is False


async def test_platform_commission_total(db):
    await seed_settled_order(db, "ORD-1", [
        _line("p1", 100, 2, rate=8),
        _line("p4", 100, 1, seller_id="seller2", rate=10),
    ])
    assert await get_platform_commission_total(db) == pytest.approx(26)


def test_earnings_endpoint_only_for_self_or_admin(client, db):
    run(seed_user(db, "seller1"))
    run(seed_user(db, "seller2"))
    run(seed_user(db, "admin1", is_admin=True))
    run(seed_settled_order(db, "ORD-1", [_line("p1", 100, 2, rate=8)]))

    r = client.get("/api/users/earnings", headers=auth("seller1"))
    assert r.status_code == 200
    assert r.json()["total_earnings"] == 184

    r = client.get("/api/users/earnings", params={"user_id": "seller1"}, headers=auth("seller2"))
    assert r.status_code == 403

    r = client.get("/api/users/withdrawable", params={"user_id": "seller1"}, headers=auth("admin1", True))
    assert r.status_code == 200
    assert r.json()["withdrawable_amount"] == 184


async def test_rate_change_after_sale_leaves_past_earnings_alone(db):
    await db.categories.insert_one({"_id": "electronics", "name": "Electronics", "parent_id": None})
    await replace_commissions(db, [{"category_id": "electronics", "percentage": 8}])
    await seed_product(db, "prod-fan", price=100, stock=5)

    order = await create_order(
        db, buyer={"_id": "buyer1", "name": "Buyer"},
        items=[{"product_id": "prod-fan", "quantity": 2}],
        shipping_address=SHIPPING, total_amount=200, delivery_charge_amount=0,
    )
    await update_order(db, order["_id"], {"status": "delivered", "payment_status": "paid"}, actor_id="admin1")

    before = await get_earnings_summary(db, "seller1")
    await replace_commissions(db, [{"category_id": "electronics", "percentage": 20}])
    after = await get_earnings_summary(db, "seller1")

    assert before["total_earnings"] == pytest.approx(184)
    assert after["total_earnings"] == pytest.approx(184)
    assert after["total_commission_deducted"] == pytest.approx(16)
    assert await get_platform_commission_total(db) == pytest.approx(16)
