from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Literal, Optional
import re

from database import get_db
from models.order import OrderCreate, OrderUpdate
from utils.audit import log_audit
from utils.idempotency import (
    reserve_idempotency_key,
    complete_idempotency_key,
    clear_idempotency_key,
)
from utils.order_service import create_order, delete_order, update_order
from utils.order_timeline import get_order_timeline
from utils.security import get_current_user, require_admin
from utils.serializers import serialize_order

router = APIRouter(prefix="/orders", tags=["Orders"])

SORTS = {
    "date_desc": ("created_at", -1),
    "date_asc": ("created_at", 1),
    "total_asc": ("total_amount", 1),
    "total_desc": ("total_amount", -1),
}


def _can_view(user: dict, order: dict) -> bool:
    if user.get("is_admin") or order["user_id"] == user["_id"]:
        return True
    return any(i.get("seller_id") == user["_id"] for i in order.get("items", []))


# ======================================================
# CREATE ORDER (BUYER)
# ======================================================

async def _place_order(data: OrderCreate, buyer: dict, db) -> dict:
    key = data.idempotency_key
    if key:
        existing = await reserve_idempotency_key(
            db=db, key=key, scope="create_order", owner_id=buyer["_id"]
        )
        if existing:
            return existing

    try:
        order = await create_order(
            db,
            buyer=buyer,
            items=[i.dict() for i in data.items],
            shipping_address=data.shipping_address.dict(),
            total_amount=data.total_amount,
            delivery_charge_amount=data.delivery_charge_amount,
            shipping_method_name=data.shipping_method_name,
            payment_status=data.payment_status,
        )
    except Exception:
        if key:
            await clear_idempotency_key(db=db, key=key, scope="create_order", owner_id=buyer["_id"])
        raise

    response = {
        "success": True,
        "order_id": order["_id"],
        "message": "Order created successfully",
        "delivery_charge_amount": order["delivery_charge_amount"],
        "platform_commission": order["platform_commission"],
    }
    if key:
        await complete_idempotency_key(
            db=db, key=key, scope="create_order", owner_id=buyer["_id"], response=response
        )
    return response


@router.post("/create")
async def create_order_checked(
    data: OrderCreate,
    buyer=Depends(get_current_user),
    db=Depends(get_db),
):
    return await _place_order(data, buyer, db)


@router.post("")
async def create_order_legacy(
    data: OrderCreate,
    buyer=Depends(get_current_user),
    db=Depends(get_db),
):
    # older clients post here; same stock-checked pipeline
    return await _place_order(data, buyer, db)


# ======================================================
# LIST ORDERS
# ======================================================

@router.get("")
async def list_orders(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    user_id: Optional[str] = None,
    seller_id: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Literal["date_desc", "date_asc", "total_asc", "total_desc"] = "date_desc",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    include_items: bool = False,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    query: dict = {}

    if not user.get("is_admin"):
        # non-admins see what they bought, or what they sold when filtering by themselves
        if seller_id == user["_id"]:
            query["items.seller_id"] = user["_id"]
        else:
            query["user_id"] = user["_id"]
    else:
        if user_id:
            query["user_id"] = user_id
        if seller_id:
            query["items.seller_id"] = seller_id

    if status:
        query["status"] = status
    if payment_status:
        query["payment_status"] = payment_status
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"_id": {"$regex": pattern, "$options": "i"}},
            {"user_id": {"$regex": pattern, "$options": "i"}},
        ]

    field, direction = SORTS[sort_by]
    cursor = db.orders.find(query).sort(field, direction).skip(offset).limit(limit)
    orders = [o async for o in cursor]

    buyers = {}
    buyer_ids = list({o["user_id"] for o in orders})
    if buyer_ids:
        async for u in db.users.find({"_id": {"$in": buyer_ids}}, {"name": 1, "email": 1}):
            buyers[u["_id"]] = u

    include = include_items or bool(seller_id)
    return [serialize_order(o, include_items=include, user=buyers.get(o["user_id"])) for o in orders]


# ======================================================
# ORDER DETAIL
# ======================================================

@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    order = await db.orders.find_one({"_id": order_id})
    if not order or not _can_view(user, order):
        raise HTTPException(404, "Order not found")

    buyer = await db.users.find_one({"_id": order["user_id"]}, {"name": 1, "email": 1})
    return serialize_order(order, user=buyer)


@router.get("/{order_id}/timeline")
async def order_timeline(
    order_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    order = await db.orders.find_one({"_id": order_id})
    if not order or not _can_view(user, order):
        raise HTTPException(404, "Order not found")

    return {"order_id": order_id, "events": await get_order_timeline(db, order_id)}


# ======================================================
# ADMIN STATUS / PAYMENT TRANSITIONS
# ======================================================

@router.put("/{order_id}")
async def admin_update_order(
    order_id: str,
    data: OrderUpdate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    changes = data.dict(exclude_none=True)
    order = await update_order(db, order_id, changes, actor_id=admin["_id"])

    await log_audit(
        db,
        actor_id=admin["_id"],
        action="ORDER_UPDATED",
        target_id=order_id,
        metadata=changes,
    )

    return {"success": True, "order": serialize_order(order)}


@router.delete("/{order_id}")
async def admin_delete_order(
    order_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    await delete_order(db, order_id, actor_id=admin["_id"])

    await log_audit(db, actor_id=admin["_id"], action="ORDER_DELETED", target_id=order_id)

    return {"success": True}
