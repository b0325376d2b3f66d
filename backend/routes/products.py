from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
from typing import Literal, Optional
import logging
import re

from database import get_db
from models.product import ProductCreate, ProductUpdate
from utils.audit import log_audit
from utils.commissions import get_category_rate
from utils.guards import assert_owner_or_admin, get_or_404
from utils.ids import ensure_unique_id, generate_product_id
from utils.security import get_current_user
from utils.serializers import serialize_product

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger(__name__)

SORTS = {
    "price_asc": ("price", 1),
    "price_desc": ("price", -1),
    "date_newest": ("created_at", -1),
    "date_oldest": ("created_at", 1),
}

REQUIRED_FIELDS = {"name", "price", "stock", "category_id", "images", "selected_attributes", "status"}


# =========================
# HELPERS
# =========================

async def _check_category(db, category_id: str, sub_category_id: str | None):
    category = await db.categories.find_one({"_id": category_id})
    if not category or category.get("parent_id"):
        raise HTTPException(400, f"Unknown category: {category_id}")

    if sub_category_id:
        sub = await db.categories.find_one({"_id": sub_category_id})
        if not sub or sub.get("parent_id") != category_id:
            raise HTTPException(400, f"Unknown sub-category for {category_id}: {sub_category_id}")


async def _check_attributes(db, category_id: str, selected: list[dict]):
    for attr in selected:
        attr_type = await db.attribute_types.find_one({
            "_id": attr["attribute_type_id"],
            "category_id": category_id,
        })
        if not attr_type:
            raise HTTPException(400, f"Unknown attribute type: {attr['attribute_type_id']}")
        if not any(v["id"] == attr["attribute_value_id"] for v in attr_type.get("values", [])):
            raise HTTPException(400, f"Unknown attribute value: {attr['attribute_value_id']}")


async def _sellers_by_id(db, products: list[dict]) -> dict:
    ids = list({p["seller_id"] for p in products})
    if not ids:
        return {}
    return {u["_id"]: u async for u in db.users.find({"_id": {"$in": ids}}, {"name": 1})}


# =========================
# PUBLIC LISTING
# =========================

@router.get("")
async def list_products(
    search: Optional[str] = Query(None),
    category_id: Optional[str] = None,
    sub_category_id: Optional[str] = None,
    seller_id: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    sort_by: Literal["price_asc", "price_desc", "date_newest", "date_oldest"] = "date_newest",
    page: int = 1,
    limit: int = 20,
    db=Depends(get_db),
):
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    # sold-out products (stock 0) drop out of public listings
    query: dict = {"status": "approved", "stock": {"$gt": 0}}

    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    if category_id:
        query["category_id"] = category_id
    if sub_category_id:
        query["sub_category_id"] = sub_category_id
    if seller_id:
        query["seller_id"] = seller_id

    if min_price is not None or max_price is not None:
        query["price"] = {}
        if min_price is not None:
            query["price"]["$gte"] = min_price
        if max_price is not None:
            query["price"]["$lte"] = max_price

    field, direction = SORTS[sort_by]
    cursor = (
        db.products
        .find(query)
        .sort(field, direction)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    products = [p async for p in cursor]
    sellers = await _sellers_by_id(db, products)

    return [serialize_product(p, sellers.get(p["seller_id"])) for p in products]


# =========================
# SELLER'S OWN PRODUCTS (STATIC ROUTE, BEFORE /{product_id})
# =========================

@router.get("/mine")
async def my_products(
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    cursor = db.products.find({"seller_id": user["_id"]}).sort("created_at", -1)
    return [serialize_product(p, user) async for p in cursor]


# =========================
# PRODUCT DETAIL
# =========================

@router.get("/{product_id}")
async def product_detail(product_id: str, db=Depends(get_db)):
    product = await get_or_404(db.products, product_id, "Product")
    seller = await db.users.find_one({"_id": product["seller_id"]}, {"name": 1})
    return serialize_product(product, seller)


# =========================
# SELLER CREATE PRODUCT
# =========================

@router.post("")
async def create_product(
    data: ProductCreate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    await _check_category(db, data.category_id, data.sub_category_id)
    selected = [a.dict() for a in data.selected_attributes]
    await _check_attributes(db, data.category_id, selected)

    product_id = await ensure_unique_id(db.products, generate_product_id(data.name))
    now = datetime.utcnow()

    product_doc = {
        "_id": product_id,
        "name": data.name.strip(),
        "description": data.description,
        "price": data.price,
        "stock": data.stock,
        "status": "pending",
        "seller_id": user["_id"],
        "category_id": data.category_id,
        "sub_category_id": data.sub_category_id,
        # rate at listing time; settlement uses the rate snapshotted on the order line
        "commission_percent": await get_category_rate(db, data.category_id),
        "weight_kg": data.weight_kg,
        "images": data.images,
        "selected_attributes": selected,
        "created_at": now,
        "updated_at": now,
    }
    await db.products.insert_one(product_doc)

    return {
        "message": "Product submitted for review",
        "product_id": product_id,
        "product": serialize_product(product_doc, user),
    }


# =========================
# UPDATE PRODUCT
# =========================

@router.put("/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await get_or_404(db.products, product_id, "Product")
    assert_owner_or_admin(user, product["seller_id"], "product")

    changes = data.dict(exclude_unset=True)
    is_admin = bool(user.get("is_admin"))

    # only optional fields may be cleared with an explicit null
    cleared = sorted(f for f in REQUIRED_FIELDS if f in changes and changes[f] is None)
    if cleared:
        raise HTTPException(400, f"Fields cannot be null: {', '.join(cleared)}")

    if "status" in changes and not is_admin:
        raise HTTPException(403, "Only admins can change product status")

    if not changes:
        raise HTTPException(400, "No valid fields to update")

    category_id = changes.get("category_id") or product["category_id"]
    if "category_id" in changes or "sub_category_id" in changes:
        sub_category_id = changes.get("sub_category_id", product.get("sub_category_id"))
        if "category_id" in changes and "sub_category_id" not in changes:
            sub_category_id = None
            changes["sub_category_id"] = None
        await _check_category(db, category_id, sub_category_id)
        if "category_id" in changes:
            changes["commission_percent"] = await get_category_rate(db, category_id)

    if changes.get("selected_attributes") is not None:
        await _check_attributes(db, category_id, changes["selected_attributes"])

    # a seller's content edit goes back through review; restocking does not
    content_fields = set(changes) - {"stock", "status"}
    if not is_admin and content_fields:
        changes["status"] = "pending"

    if "stock" in changes:
        logger.info("Stock updated for product %s: %s", product_id, changes["stock"])

    changes["updated_at"] = datetime.utcnow()
    await db.products.update_one({"_id": product_id}, {"$set": changes})

    if is_admin:
        await log_audit(
            db,
            actor_id=user["_id"],
            action="PRODUCT_UPDATED",
            target_id=product_id,
            metadata={"fields": sorted(k for k in changes if k != "updated_at")},
        )

    updated = await db.products.find_one({"_id": product_id})
    return {"message": "Product updated", "product": serialize_product(updated)}


# =========================
# DELETE PRODUCT
# =========================

@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await get_or_404(db.products, product_id, "Product")
    assert_owner_or_admin(user, product["seller_id"], "product")

    await db.products.delete_one({"_id": product_id})

    if user.get("is_admin"):
        await log_audit(db, actor_id=user["_id"], action="PRODUCT_DELETED", target_id=product_id)

    return {"message": "Product deleted"}
