import logging
import uuid
from datetime import datetime

from fastapi import HTTPException

from config.constants import WITHDRAWAL_PENDING
from utils.crypto import open_account_number, seal_account_number
from utils.earnings_service import get_withdrawable
from utils.ids import ensure_unique_id, generate_withdrawal_request_id

logger = logging.getLogger(__name__)


# ==============================
# Withdrawal methods
# ==============================

def store_method(method: dict, now: datetime) -> dict:
    """
    Turn a validated bkash/bank method into its stored shape.
    The account number is kept encrypted, with a masked copy for display.
    """
    details = dict(method["details"])
    details.update(seal_account_number(details.pop("account_number")))

    return {
        "id": method.get("id") or f"wm-{uuid.uuid4().hex[:12]}",
        "type": details.pop("type"),
        "details": details,
        "is_default": bool(method.get("is_default")),
        "created_at": method.get("created_at") or now,
    }


def normalize_defaults(methods: list[dict]) -> list[dict]:
    # at most one default; the first flagged one wins, else the first method
    default_seen = False
    for m in methods:
        if m["is_default"] and not default_seen:
            default_seen = True
        else:
            m["is_default"] = False
    if methods and not default_seen:
        methods[0]["is_default"] = True
    return methods


def public_method(method: dict, reveal: bool = False) -> dict:
    details = dict(method.get("details") or {})
    details["account_number"] = open_account_number(details, reveal=reveal)
    details.pop("account_number_encrypted", None)
    details.pop("account_number_masked", None)
    return {
        "id": method["id"],
        "type": method["type"],
        "details": details,
        "is_default": method.get("is_default", False),
        "created_at": method.get("created_at"),
    }


# ==============================
# Withdrawal requests
# ==============================

async def create_withdrawal_request(db, user: dict, amount: float, withdrawal_method_id: str) -> dict:
    method = next(
        (m for m in user.get("withdrawal_methods", []) if m["id"] == withdrawal_method_id),
        None,
    )
    if not method:
        raise HTTPException(404, "Withdrawal method not found")

    balance = await get_withdrawable(db, user["_id"])
    if amount > balance["withdrawable_amount"]:
        raise HTTPException(
            400,
            f"Insufficient balance. Withdrawable: {balance['withdrawable_amount']:.2f}",
        )

    request_id = await ensure_unique_id(db.withdrawal_requests, generate_withdrawal_request_id())
    doc = {
        "_id": request_id,
        "user_id": user["_id"],
        "amount": round(float(amount), 2),
        "withdrawal_method_id": method["id"],
        "withdrawal_method": method,
        "status": WITHDRAWAL_PENDING,
        "admin_note": None,
        "requested_at": datetime.utcnow(),
        "processed_at": None,
    }
    await db.withdrawal_requests.insert_one(doc)

    logger.info("WITHDRAWAL_REQUESTED id=%s user=%s amount=%.2f", request_id, user["_id"], amount)
    return doc


async def decide_withdrawal_request(db, request_id: str, status: str, admin_note: str | None) -> dict:
    """
    pending -> approved | rejected. Decided requests never change again.
    """
    result = await db.withdrawal_requests.update_one(
        {"_id": request_id, "status": WITHDRAWAL_PENDING},
        {"$set": {
            "status": status,
            "admin_note": admin_note,
            "processed_at": datetime.utcnow(),
        }},
    )

    if result.modified_count == 0:
        existing = await db.withdrawal_requests.find_one({"_id": request_id}, {"status": 1})
        if not existing:
            raise HTTPException(404, "Withdrawal request not found")
        raise HTTPException(400, f"Withdrawal request already {existing['status']}")

    logger.info("WITHDRAWAL_%s id=%s", status.upper(), request_id)
    return await db.withdrawal_requests.find_one({"_id": request_id})


def serialize_withdrawal_request(doc: dict, user: dict | None = None, reveal: bool = False) -> dict:
    method = doc.get("withdrawal_method")
    return {
        "id": doc["_id"],
        "user_id": doc["user_id"],
        "user_name": user.get("name") if user else None,
        "user_email": user.get("email") if user else None,
        "amount": float(doc["amount"]),
        "withdrawal_method_id": doc.get("withdrawal_method_id"),
        "withdrawal_method": public_method(method, reveal=reveal) if method else None,
        "status": doc["status"],
        "requested_at": doc.get("requested_at"),
        "processed_at": doc.get("processed_at"),
        "admin_note": doc.get("admin_note"),
    }
