from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
from typing import List, Optional
import uuid

from database import get_db
from models.user import (
    ShippingAddressCreate,
    ShippingAddressUpdate,
    UserUpdate,
    WithdrawalMethodIn,
)
from utils.earnings_service import get_earnings_summary, get_withdrawable
from utils.guards import get_or_404
from utils.mongo import serialize_doc
from utils.security import get_current_user, require_admin, resolve_target_user_id
from utils.serializers import serialize_user
from utils.validators import normalize_email
from utils.withdrawal_service import normalize_defaults, public_method, store_method

router = APIRouter(prefix="/users", tags=["Users"])


# ======================================================
# EARNINGS (STATIC ROUTES, BEFORE /{user_id})
# ======================================================

@router.get("/earnings")
async def user_earnings(
    user_id: Optional[str] = Query(None),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    return await get_earnings_summary(db, target)


@router.get("/withdrawable")
async def user_withdrawable(
    user_id: Optional[str] = Query(None),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    return await get_withdrawable(db, target)


# ======================================================
# USERS
# ======================================================

@router.get("")
async def list_users(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    cursor = db.users.find({}).sort("created_at", -1).skip(offset).limit(limit)
    return [serialize_user(u) async for u in cursor]


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    found = await get_or_404(db.users, target, "User")

    data = serialize_user(found)
    data["addresses"] = [serialize_doc(a) for a in found.get("addresses", [])]
    data["withdrawal_methods"] = [public_method(m) for m in found.get("withdrawal_methods", [])]
    return data


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    await get_or_404(db.users, target, "User")

    changes = data.dict(exclude_none=True)
    if "email" in changes:
        changes["email"] = normalize_email(changes["email"])
        taken = await db.users.find_one({"email": changes["email"], "_id": {"$ne": target}}, {"_id": 1})
        if taken:
            raise HTTPException(409, "Email already in use")
    if "name" in changes:
        changes["name"] = changes["name"].strip()

    if not changes:
        raise HTTPException(400, "No valid fields to update")

    changes["updated_at"] = datetime.utcnow()
    await db.users.update_one({"_id": target}, {"$set": changes})

    return serialize_user(await db.users.find_one({"_id": target}))


# ======================================================
# SHIPPING ADDRESSES
# ======================================================

def _with_single_default(addresses: list[dict], default_id: str | None = None) -> list[dict]:
    if default_id:
        for a in addresses:
            a["is_default"] = a["_id"] == default_id
    if addresses and not any(a.get("is_default") for a in addresses):
        addresses[0]["is_default"] = True
    return addresses


@router.get("/{user_id}/shipping-addresses")
async def list_addresses(
    user_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    found = await get_or_404(db.users, target, "User")
    return [serialize_doc(a) for a in found.get("addresses", [])]


@router.post("/{user_id}/shipping-addresses")
async def add_address(
    user_id: str,
    data: ShippingAddressCreate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    found = await get_or_404(db.users, target, "User")

    address = {
        "_id": f"addr-{uuid.uuid4().hex[:12]}",
        **data.dict(),
        "created_at": datetime.utcnow(),
    }
    addresses = list(found.get("addresses", [])) + [address]
    addresses = _with_single_default(addresses, address["_id"] if data.is_default else None)

    await db.users.update_one({"_id": target}, {"$set": {"addresses": addresses}})

    return {
        "message": "Address added",
        "address": serialize_doc(next(a for a in addresses if a["_id"] == address["_id"])),
    }


@router.put("/{user_id}/shipping-addresses/{address_id}")
async def update_address(
    user_id: str,
    address_id: str,
    data: ShippingAddressUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    found = await get_or_404(db.users, target, "User")

    addresses = list(found.get("addresses", []))
    address = next((a for a in addresses if a["_id"] == address_id), None)
    if not address:
        raise HTTPException(404, "Address not found")

    changes = data.dict(exclude_none=True)
    make_default = changes.pop("is_default", None)
    address.update(changes)
    address["updated_at"] = datetime.utcnow()

    addresses = _with_single_default(addresses, address_id if make_default else None)
    await db.users.update_one({"_id": target}, {"$set": {"addresses": addresses}})

    return {"message": "Address updated", "address": serialize_doc(address)}


@router.delete("/{user_id}/shipping-addresses/{address_id}")
async def delete_address(
    user_id: str,
    address_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    found = await get_or_404(db.users, target, "User")

    addresses = [a for a in found.get("addresses", []) if a["_id"] != address_id]
    if len(addresses) == len(found.get("addresses", [])):
        raise HTTPException(404, "Address not found")

    await db.users.update_one(
        {"_id": target},
        {"$set": {"addresses": _with_single_default(addresses)}},
    )

    return {"message": "Address deleted"}


# ======================================================
# WITHDRAWAL METHODS
# ======================================================

@router.get("/{user_id}/withdrawal-methods")
async def list_withdrawal_methods(
    user_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    found = await get_or_404(db.users, target, "User")
    return {"methods": [public_method(m) for m in found.get("withdrawal_methods", [])]}


@router.put("/{user_id}/withdrawal-methods")
async def replace_withdrawal_methods(
    user_id: str,
    methods: List[WithdrawalMethodIn],
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    target = resolve_target_user_id(user, user_id)
    await get_or_404(db.users, target, "User")

    now = datetime.utcnow()
    stored = normalize_defaults([store_method(m.dict(), now) for m in methods])

    ids = [m["id"] for m in stored]
    if len(ids) != len(set(ids)):
        raise HTTPException(400, "Duplicate withdrawal method id")

    await db.users.update_one(
        {"_id": target},
        {"$set": {"withdrawal_methods": stored, "updated_at": now}},
    )

    return {"success": True, "methods": [public_method(m) for m in stored]}
