from fastapi import APIRouter, Depends

from database import get_db
from models.catalog import DeliveryChargeSettings
from utils.audit import log_audit
from utils.delivery_charges import (
    default_address,
    get_delivery_settings,
    resolve_delivery_charge,
    save_delivery_settings,
)
from utils.guards import get_or_404
from utils.security import get_current_user, require_admin

router = APIRouter(prefix="/delivery-charges", tags=["Delivery"])


@router.get("")
async def read_delivery_charges(db=Depends(get_db)):
    return await get_delivery_settings(db)


@router.put("")
async def update_delivery_charges(
    data: DeliveryChargeSettings,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    settings = await save_delivery_settings(db, data.dict())

    await log_audit(
        db,
        actor_id=admin["_id"],
        action="DELIVERY_CHARGES_UPDATED",
        metadata=settings,
    )

    return {"success": True, "settings": settings}


@router.get("/quote")
async def quote_delivery_charge(
    product_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    product = await get_or_404(db.products, product_id, "Product")
    seller = await db.users.find_one({"_id": product["seller_id"]}, {"addresses": 1})

    quote = resolve_delivery_charge(
        default_address(user),
        default_address(seller),
        await get_delivery_settings(db),
        weight_kg=product.get("weight_kg"),
    )

    return {"product_id": product_id, "seller_id": product["seller_id"], **quote}
