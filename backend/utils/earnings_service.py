
from config.constants import (
    DEFAULT_COMMISSION_PERCENT,
    ORDER_STATUS_DELIVERED,
    WITHDRAWAL_APPROVED,
    WITHDRAWAL_PENDING,
)
from utils.commissions import get_rate_map

SETTLED_ORDER_QUERY = {"status": ORDER_STATUS_DELIVERED, "payment_status": "paid"}


def compute_line(price: float, quantity: int, commission_percent: float) -> dict:
    """
    Split one sold line into platform commission and seller earning.
    100 x 2 at 8% -> line_total 200, commission 16, seller_earning 184.
    """
    line_total = float(price) * int(quantity)
    commission = line_total * (float(commission_percent) / 100)
    return {
        "line_total": line_total,
        "commission": commission,
        "seller_earning": line_total - commission,
    }


async def _item_rate(db, item: dict, live_rates: dict | None) -> float:
    # the rate snapshotted at order time is final; later rate edits never reprice a sold line.
    # lines written before rates were snapshotted fall back to the live category rate
    if item.get("commission_percent") is not None:
        return float(item["commission_percent"])

    category_id = item.get("category_id")
    if not category_id:
        product = await db.products.find_one({"_id": item.get("product_id")}, {"category_id": 1})
        category_id = product.get("category_id") if product else None

    return (live_rates or {}).get(category_id, DEFAULT_COMMISSION_PERCENT)


async def iter_settled_lines(db, seller_id: str | None = None):
    """
    Yield (order, item) for every line of a delivered and paid order,
    optionally restricted to one seller.
    """
    query = dict(SETTLED_ORDER_QUERY)
    if seller_id:
        query["items.seller_id"] = seller_id

    async for order in db.orders.find(query):
        for item in order.get("items", []):
            if seller_id and item.get("seller_id") != seller_id:
                continue
            yield order, item


async def get_seller_earnings(db, seller_id: str) -> dict:
    live_rates = None
    total_earnings = 0.0
    total_commission = 0.0
    line_count = 0

    async for _, item in iter_settled_lines(db, seller_id):
        if item.get("commission_percent") is None and live_rates is None:
            live_rates = await get_rate_map(db)

        rate = await _item_rate(db, item, live_rates)
        line = compute_line(item["price"], item["quantity"], rate)
        total_earnings += line["seller_earning"]
        total_commission += line["commission"]
        line_count += 1

    return {
        "total_earnings": total_earnings,
        "total_commission_deducted": total_commission,
        "line_count": line_count,
    }


async def sum_withdrawals(db, user_id: str) -> dict:
    totals = {WITHDRAWAL_APPROVED: 0.0, WITHDRAWAL_PENDING: 0.0}
    async for wr in db.withdrawal_requests.find(
        {"user_id": user_id, "status": {"$in": list(totals)}},
        {"amount": 1, "status": 1},
    ):
        totals[wr["status"]] += float(wr["amount"])
    return totals


async def get_earnings_summary(db, user_id: str) -> dict:
    earnings = await get_seller_earnings(db, user_id)
    withdrawals = await sum_withdrawals(db, user_id)

    total_earnings = earnings["total_earnings"]
    approved = withdrawals[WITHDRAWAL_APPROVED]
    pending = withdrawals[WITHDRAWAL_PENDING]

    return {
        "total_earnings": round(total_earnings, 2),
        "total_commission_deducted": round(earnings["total_commission_deducted"], 2),
        "total_withdrawn": round(approved, 2),
        "pending_withdrawals": round(pending, 2),
        "available_balance": round(max(0.0, total_earnings - approved), 2),
        "withdrawable_amount": round(max(0.0, total_earnings - approved - pending), 2),
        "order_count": earnings["line_count"],
    }


async def get_withdrawable(db, user_id: str) -> dict:
    """
    Earnings minus approved and pending withdrawals, floored at zero.
    Pending requests are reserved so the same balance cannot be claimed twice.
    """
    earnings = await get_seller_earnings(db, user_id)
    withdrawals = await sum_withdrawals(db, user_id)

    total_earnings = round(earnings["total_earnings"], 2)
    claimed = round(withdrawals[WITHDRAWAL_APPROVED] + withdrawals[WITHDRAWAL_PENDING], 2)
    withdrawable = round(max(0.0, total_earnings - claimed), 2)

    return {
        "user_id": user_id,
        "total_earnings": total_earnings,
        "total_withdrawn": claimed,
        "withdrawable_amount": withdrawable,
        "can_withdraw": withdrawable > 0,
    }


async def get_platform_commission_total(db) -> float:
    live_rates = None
    total = 0.0
    async for _, item in iter_settled_lines(db):
        if item.get("commission_percent") is None and live_rates is None:
            live_rates = await get_rate_map(db)
        rate = await _item_rate(db, item, live_rates)
        total += compute_line(item["price"], item["quantity"], rate)["commission"]
    return round(total, 2)
