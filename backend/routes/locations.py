from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
from typing import Literal, Optional
import re

from database import get_db
from models.catalog import LocationCreate
from utils.audit import log_audit
from utils.ids import ensure_unique_id, generate_category_id
from utils.security import require_admin

router = APIRouter(prefix="/locations", tags=["Locations"])

# level -> (collection, parent level, parent field)
LEVELS = {
    "division": ("divisions", None, None),
    "district": ("districts", "division", "division_id"),
    "upazilla": ("upazillas", "district", "district_id"),
}


def _name_query(name: str) -> dict:
    return {"$regex": f"^{re.escape(name.strip())}$", "$options": "i"}


async def _resolve(collection, ref: str) -> dict | None:
    # callers may pass either the stored id or the display name
    return await collection.find_one({"$or": [{"_id": ref}, {"name": _name_query(ref)}]})


def _serialize(doc: dict, parent_field: str | None) -> dict:
    data = {"id": doc["_id"], "name": doc["name"]}
    if parent_field:
        data[parent_field] = doc.get(parent_field)
    return data


# =========================
# LOOKUP
# =========================

@router.get("")
async def list_locations(
    location_type: Literal["divisions", "districts", "upazillas"] = Query(..., alias="type"),
    division_id: Optional[str] = None,
    district_id: Optional[str] = None,
    db=Depends(get_db),
):
    collection_name, parent_level, parent_field = LEVELS[location_type[:-1]]
    query: dict = {}

    parent_ref = {"division": division_id, "district": district_id}.get(parent_level)
    if parent_ref:
        parent = await _resolve(db[LEVELS[parent_level][0]], parent_ref)
        if not parent:
            return []
        query[parent_field] = parent["_id"]

    cursor = db[collection_name].find(query).sort("name", 1)
    return [_serialize(doc, parent_field) async for doc in cursor]


# =========================
# ADMIN
# =========================

@router.post("")
async def create_location(
    data: LocationCreate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    collection_name, parent_level, parent_field = LEVELS[data.type]
    collection = db[collection_name]
    doc = {"name": data.name.strip()}

    if parent_level:
        if not data.parent_id:
            raise HTTPException(400, f"A {data.type} needs a parent {parent_level}")
        parent = await _resolve(db[LEVELS[parent_level][0]], data.parent_id)
        if not parent:
            raise HTTPException(404, f"{parent_level.title()} not found")
        doc[parent_field] = parent["_id"]

    duplicate = {"name": _name_query(doc["name"])}
    if parent_field:
        duplicate[parent_field] = doc[parent_field]
    if await collection.find_one(duplicate, {"_id": 1}):
        raise HTTPException(409, f"{data.type.title()} already exists")

    doc["_id"] = await ensure_unique_id(collection, generate_category_id(doc["name"]))
    doc["created_at"] = datetime.utcnow()
    await collection.insert_one(doc)

    await log_audit(
        db,
        actor_id=admin["_id"],
        action=f"{data.type.upper()}_CREATED",
        target_id=doc["_id"],
        metadata={"name": doc["name"], "parent_id": doc.get(parent_field) if parent_field else None},
    )

    return {"message": f"{data.type.title()} created", "location": _serialize(doc, parent_field)}
