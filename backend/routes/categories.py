from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
from typing import Optional
import uuid

from database import get_db
from models.catalog import AttributeTypeCreate, CategoryCreate, CategoryUpdate
from utils.audit import log_audit
from utils.guards import get_or_404
from utils.ids import ensure_unique_id, generate_category_id
from utils.mongo import serialize_doc
from utils.security import require_admin

router = APIRouter(tags=["Catalog"])


# =========================
# CATEGORIES
# =========================

@router.get("/categories")
async def list_categories(db=Depends(get_db)):
    categories = [c async for c in db.categories.find({}).sort("name", 1)]

    children: dict[str, list] = {}
    for c in categories:
        if c.get("parent_id"):
            children.setdefault(c["parent_id"], []).append(
                {"id": c["_id"], "name": c["name"], "parent_id": c["parent_id"]}
            )

    return [
        {
            "id": c["_id"],
            "name": c["name"],
            "sub_categories": children.get(c["_id"], []),
        }
        for c in categories
        if not c.get("parent_id")
    ]


@router.post("/categories")
async def create_category(
    data: CategoryCreate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    if data.parent_id:
        parent = await get_or_404(db.categories, data.parent_id, "Parent category")
        if parent.get("parent_id"):
            raise HTTPException(400, "Sub-categories cannot be nested further")

    category_id = await ensure_unique_id(db.categories, generate_category_id(data.name))
    doc = {
        "_id": category_id,
        "name": data.name.strip(),
        "parent_id": data.parent_id,
        "created_at": datetime.utcnow(),
    }
    await db.categories.insert_one(doc)

    await log_audit(db, actor_id=admin["_id"], action="CATEGORY_CREATED", target_id=category_id)

    return {"message": "Category created", "category": serialize_doc(doc)}


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    await get_or_404(db.categories, category_id, "Category")

    if data.name:
        await db.categories.update_one(
            {"_id": category_id},
            {"$set": {"name": data.name.strip(), "updated_at": datetime.utcnow()}},
        )
        await log_audit(
            db,
            actor_id=admin["_id"],
            action="CATEGORY_RENAMED",
            target_id=category_id,
            metadata={"name": data.name},
        )

    return {"message": "Category updated"}


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    await get_or_404(db.categories, category_id, "Category")

    if await db.categories.find_one({"parent_id": category_id}, {"_id": 1}):
        raise HTTPException(400, "Category has sub-categories")

    in_use = await db.products.find_one(
        {"$or": [{"category_id": category_id}, {"sub_category_id": category_id}]},
        {"_id": 1},
    )
    if in_use:
        raise HTTPException(400, "Category is used by products")

    await db.categories.delete_one({"_id": category_id})
    await db.commissions.delete_many({"category_id": category_id})
    await db.attribute_types.delete_many({"category_id": category_id})

    await log_audit(db, actor_id=admin["_id"], action="CATEGORY_DELETED", target_id=category_id)

    return {"message": "Category deleted"}


# =========================
# ATTRIBUTE TYPES
# =========================

@router.get("/attribute-types")
async def list_attribute_types(
    category_id: Optional[str] = Query(None),
    db=Depends(get_db),
):
    query = {"category_id": category_id} if category_id else {}
    return [serialize_doc(a) async for a in db.attribute_types.find(query).sort("name", 1)]


@router.post("/attribute-types")
async def create_attribute_type(
    data: AttributeTypeCreate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    await get_or_404(db.categories, data.category_id, "Category")

    values = []
    for value in dict.fromkeys(v.strip() for v in data.values if v.strip()):
        values.append({"id": f"val-{uuid.uuid4().hex[:10]}", "value": value})

    doc = {
        "_id": f"attr-{uuid.uuid4().hex[:10]}",
        "name": data.name.strip(),
        "category_id": data.category_id,
        "values": values,
        "created_at": datetime.utcnow(),
    }
    await db.attribute_types.insert_one(doc)

    await log_audit(db, actor_id=admin["_id"], action="ATTRIBUTE_TYPE_CREATED", target_id=doc["_id"])

    return serialize_doc(doc)


@router.delete("/attribute-types/{attribute_type_id}")
async def delete_attribute_type(
    attribute_type_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    result = await db.attribute_types.delete_one({"_id": attribute_type_id})
    if result.deleted_count == 0:
        raise HTTPException(404, "Attribute type not found")

    await log_audit(db, actor_id=admin["_id"], action="ATTRIBUTE_TYPE_DELETED", target_id=attribute_type_id)

    return {"message": "Attribute type deleted"}
