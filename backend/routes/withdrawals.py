from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Literal, Optional

from database import get_db
from models.withdrawal import WithdrawalDecision, WithdrawalRequestCreate
from utils.audit import log_audit
from utils.security import get_current_user, require_admin, resolve_target_user_id
from utils.withdrawal_service import (
    create_withdrawal_request,
    decide_withdrawal_request,
    serialize_withdrawal_request,
)

router = APIRouter(prefix="/withdrawal-requests", tags=["Withdrawals"])


async def _users_by_id(db, user_ids) -> dict:
    ids = list(set(user_ids))
    if not ids:
        return {}
    return {u["_id"]: u async for u in db.users.find({"_id": {"$in": ids}}, {"name": 1, "email": 1})}


@router.get("")
async def list_withdrawal_requests(
    user_id: Optional[str] = None,
    status: Optional[Literal["pending", "approved", "rejected"]] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    query = {}
    if user.get("is_admin"):
        if user_id:
            query["user_id"] = user_id
    else:
        query["user_id"] = resolve_target_user_id(user, user_id)

    if status:
        query["status"] = status

    cursor = db.withdrawal_requests.find(query).sort("requested_at", -1).skip(offset).limit(limit)
    requests = [r async for r in cursor]
    users = await _users_by_id(db, (r["user_id"] for r in requests))

    return [serialize_withdrawal_request(r, users.get(r["user_id"])) for r in requests]


@router.post("")
async def request_withdrawal(
    data: WithdrawalRequestCreate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    doc = await create_withdrawal_request(db, user, data.amount, data.withdrawal_method_id)

    return {
        "success": True,
        "request_id": doc["_id"],
        "message": "Withdrawal request submitted successfully",
    }


@router.put("")
async def decide_withdrawal(
    data: WithdrawalDecision,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    doc = await decide_withdrawal_request(db, data.request_id, data.status, data.admin_note)

    await log_audit(
        db,
        actor_id=admin["_id"],
        action=f"WITHDRAWAL_{data.status.upper()}",
        target_id=data.request_id,
        metadata={"amount": doc["amount"], "user_id": doc["user_id"], "note": data.admin_note},
    )

    return {
        "success": True,
        "message": f"Withdrawal request {data.status} successfully",
    }


@router.get("/{request_id}")
async def get_withdrawal_request(
    request_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    doc = await db.withdrawal_requests.find_one({"_id": request_id})
    if not doc or (not user.get("is_admin") and doc["user_id"] != user["_id"]):
        raise HTTPException(404, "Withdrawal request not found")

    owner = await db.users.find_one({"_id": doc["user_id"]}, {"name": 1, "email": 1})
    # admins need the full account number to send the payout by hand
    return serialize_withdrawal_request(doc, owner, reveal=bool(user.get("is_admin")))
