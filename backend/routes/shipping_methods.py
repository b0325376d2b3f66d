from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime

from database import get_db
from models.catalog import ShippingMethodCreate
from utils.audit import log_audit
from utils.guards import get_or_404
from utils.ids import ensure_unique_id, generate_category_id
from utils.security import require_admin

router = APIRouter(prefix="/shipping-methods", tags=["Shipping Methods"])


def _serialize(doc: dict) -> dict:
    return {"id": doc["_id"], "name": doc["name"]}


@router.get("")
async def list_shipping_methods(db=Depends(get_db)):
    return [_serialize(m) async for m in db.shipping_methods.find({}).sort("name", 1)]


@router.post("")
async def create_shipping_method(
    data: ShippingMethodCreate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    name = data.name.strip()
    if await db.shipping_methods.find_one({"name": name}, {"_id": 1}):
        raise HTTPException(409, "Shipping method already exists")

    base = (data.id or "").strip() or f"ship-{generate_category_id(name)}"
    doc = {
        "_id": await ensure_unique_id(db.shipping_methods, base),
        "name": name,
        "created_at": datetime.utcnow(),
    }
    await db.shipping_methods.insert_one(doc)

    await log_audit(db, actor_id=admin["_id"], action="SHIPPING_METHOD_CREATED", target_id=doc["_id"])

    return {"success": True, "id": doc["_id"], "method": _serialize(doc)}


@router.delete("/{method_id}")
async def delete_shipping_method(
    method_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    await get_or_404(db.shipping_methods, method_id, "Shipping method")
    await db.shipping_methods.delete_one({"_id": method_id})

    await log_audit(db, actor_id=admin["_id"], action="SHIPPING_METHOD_DELETED", target_id=method_id)

    return {"success": True}
