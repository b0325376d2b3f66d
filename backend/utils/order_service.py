import logging
from datetime import datetime

from fastapi import HTTPException
from pymongo import ReturnDocument

from config.constants import (
    DEFAULT_COMMISSION_PERCENT,
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_RANK,
    TERMINAL_ORDER_STATUSES,
)
from utils.commissions import get_rate_map
from utils.delivery_charges import quote_for_sellers
from utils.earnings_service import compute_line
from utils.ids import ensure_unique_id, generate_order_id
from utils.order_timeline import record_order_event

logger = logging.getLogger(__name__)


def _merge_lines(items: list[dict]) -> list[tuple[str, int]]:
    merged: dict[str, int] = {}
    for item in items:
        merged[item["product_id"]] = merged.get(item["product_id"], 0) + int(item["quantity"])
    return list(merged.items())


def _insufficient_stock(product: dict, requested: int) -> HTTPException:
    return HTTPException(
        400,
        f"Insufficient stock for {product.get('name', product['_id'])}. "
        f"Available: {product.get('stock', 0)}, Requested: {requested}",
    )


async def _load_and_check(db, lines: list[tuple[str, int]]) -> dict[str, dict]:
    """
    Every product must exist, be approved and hold enough stock.
    Nothing is written until all lines pass.
    """
    products = {}
    for product_id, quantity in lines:
        product = await db.products.find_one({"_id": product_id})
        if not product:
            raise HTTPException(404, f"Product {product_id} not found")
        if product.get("status") != "approved":
            raise HTTPException(400, f"Product {product.get('name', product_id)} is not available")
        if product.get("stock", 0) < quantity:
            raise _insufficient_stock(product, quantity)
        products[product_id] = product
    return products


async def _check_shipping_method(db, name: str | None) -> None:
    if name and not await db.shipping_methods.find_one({"name": name}, {"_id": 1}):
        raise HTTPException(400, f"Unknown shipping method: {name}")


async def release_stock(db, lines) -> None:
    for product_id, quantity in lines:
        result = await db.products.update_one(
            {"_id": product_id},
            {"$inc": {"stock": quantity}, "$set": {"updated_at": datetime.utcnow()}},
        )
        if result.matched_count == 0:
            logger.warning("STOCK_RESTORE_SKIPPED product=%s missing", product_id)
        else:
            logger.info("Restored %s stock for product %s", quantity, product_id)


async def _reserve_stock(db, product: dict, quantity: int) -> dict:
    # conditional decrement: two checkouts racing for the last unit cannot both win
    updated = await db.products.find_one_and_update(
        {"_id": product["_id"], "stock": {"$gte": quantity}},
        {"$inc": {"stock": -quantity}, "$set": {"updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        current = await db.products.find_one({"_id": product["_id"]}) or product
        raise _insufficient_stock(current, quantity)
    return updated


def _build_line(product: dict, quantity: int, rate: float) -> dict:
    images = product.get("images") or []
    line = compute_line(product["price"], quantity, rate)
    return {
        "product_id": product["_id"],
        "seller_id": product["seller_id"],
        "name": product.get("name"),
        "image_url": images[0] if images else "",
        "category_id": product.get("category_id"),
        "price": float(product["price"]),
        "quantity": quantity,
        "weight_kg": product.get("weight_kg"),
        "commission_percent": rate,
        "line_total": round(line["line_total"], 2),
        "commission_amount": round(line["commission"], 2),
    }


async def create_order(
    db,
    *,
    buyer: dict,
    items: list[dict],
    shipping_address: dict,
    total_amount: float,
    delivery_charge_amount: float | None = None,
    shipping_method_name: str | None = None,
    payment_status: str = "unpaid",
) -> dict:
    """
    Check stock, reserve it, and persist the order with its line items.

    Either the order document (header and items together) is written and
    every line's stock is decremented, or nothing is: decrements already
    taken are given back before the error propagates.
    """
    if not items:
        raise HTTPException(400, "Order must contain at least one item")

    await _check_shipping_method(db, shipping_method_name)

    lines = _merge_lines(items)
    products = await _load_and_check(db, lines)

    order_id = await ensure_unique_id(db.orders, generate_order_id())
    rates = await get_rate_map(db)
    now = datetime.utcnow()

    reserved: list[tuple[str, int]] = []
    sold_out: list[str] = []
    try:
        order_items = []
        for product_id, quantity in lines:
            product = products[product_id]
            updated = await _reserve_stock(db, product, quantity)
            reserved.append((product_id, quantity))
            if updated.get("stock", 0) == 0:
                sold_out.append(product_id)

            rate = rates.get(product.get("category_id"), DEFAULT_COMMISSION_PERCENT)
            order_items.append(_build_line(updated, quantity, rate))

        if delivery_charge_amount is None:
            weights: dict[str, float] = {}
            for line in order_items:
                weights[line["seller_id"]] = weights.get(line["seller_id"], 0) + (
                    (line.get("weight_kg") or 0) * line["quantity"]
                )
            delivery_charge_amount = await quote_for_sellers(
                db,
                shipping_address,
                [line["seller_id"] for line in order_items],
                weights,
            )

        order = {
            "_id": order_id,
            "user_id": buyer["_id"],
            "items": order_items,
            "items_subtotal": round(sum(i["line_total"] for i in order_items), 2),
            "total_amount": float(total_amount),
            "delivery_charge_amount": float(delivery_charge_amount),
            "platform_commission": round(sum(i["commission_amount"] for i in order_items), 2),
            "shipping_address": dict(shipping_address),
            "shipping_method_name": shipping_method_name,
            "status": "pending",
            "payment_status": payment_status,
            "created_at": now,
            "updated_at": now,
        }

        await db.orders.insert_one(order)
    except Exception:
        if reserved:
            logger.warning("ORDER_ROLLBACK order=%s releasing %s lines", order_id, len(reserved))
            await release_stock(db, reserved)
        raise

    for product_id in sold_out:
        # stock 0 hides the product from listings; status stays untouched
        logger.info("Product %s is now sold out (stock = 0)", product_id)

    logger.info("ORDER_CREATED order=%s buyer=%s lines=%s", order_id, buyer["_id"], len(lines))

    try:
        await record_order_event(
            db,
            order_id=order_id,
            event="ORDER_CREATED",
            actor_id=buyer["_id"],
            metadata={"total_amount": order["total_amount"], "lines": len(lines)},
        )
    except Exception:
        # timeline must never undo a persisted order
        logger.exception("TIMELINE_ERROR order=%s", order_id)

    return order


# ======================================================
# STATUS TRANSITIONS
# ======================================================

def assert_status_transition(current: str, new: str) -> None:
    if current in TERMINAL_ORDER_STATUSES:
        raise HTTPException(400, f"Order is already {current}")
    if new == ORDER_STATUS_CANCELLED:
        return
    if ORDER_STATUS_RANK.get(new, -1) <= ORDER_STATUS_RANK.get(current, -1):
        raise HTTPException(400, f"Cannot move order from {current} to {new}")


def _order_lines(order: dict) -> list[tuple[str, int]]:
    return [(i["product_id"], int(i["quantity"])) for i in order.get("items", [])]


async def update_order(db, order_id: str, changes: dict, actor_id: str) -> dict:
    order = await db.orders.find_one({"_id": order_id})
    if not order:
        raise HTTPException(404, "Order not found")

    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        raise HTTPException(400, "No valid fields to update")

    await _check_shipping_method(db, changes.get("shipping_method_name"))

    new_status = changes.pop("status", None)
    # terminal orders keep their status; payment fields may still be settled
    if new_status and order["status"] in TERMINAL_ORDER_STATUSES:
        raise HTTPException(400, f"Order is already {order['status']}")
    if new_status == order["status"]:
        new_status = None

    update = {**changes, "updated_at": datetime.utcnow()}
    query = {"_id": order_id}

    if new_status:
        assert_status_transition(order["status"], new_status)
        update["status"] = new_status
        if new_status == ORDER_STATUS_DELIVERED:
            update["delivered_at"] = update["updated_at"]
        # guard on the status we validated against so a concurrent change
        # (or a second cancellation) cannot slip through
        query["status"] = order["status"]

    result = await db.orders.update_one(query, {"$set": update})
    if result.modified_count == 0:
        if new_status:
            raise HTTPException(409, "Order was modified concurrently, retry")
        raise HTTPException(404, "Order not found")

    if new_status == ORDER_STATUS_CANCELLED:
        logger.info("Order %s was cancelled, restoring product stock", order_id)
        await release_stock(db, _order_lines(order))

    if new_status or "payment_status" in changes:
        await record_order_event(
            db,
            order_id=order_id,
            event="ORDER_UPDATED",
            actor_id=actor_id,
            metadata={
                "from_status": order["status"],
                "status": new_status or order["status"],
                "payment_status": changes.get("payment_status", order.get("payment_status")),
            },
        )

    return await db.orders.find_one({"_id": order_id})


async def delete_order(db, order_id: str, actor_id: str) -> None:
    order = await db.orders.find_one_and_delete({"_id": order_id})
    if not order:
        raise HTTPException(404, "Order not found")

    if order["status"] not in TERMINAL_ORDER_STATUSES:
        await release_stock(db, _order_lines(order))

    await record_order_event(
        db,
        order_id=order_id,
        event="ORDER_DELETED",
        actor_id=actor_id,
        metadata={"status": order["status"]},
    )
