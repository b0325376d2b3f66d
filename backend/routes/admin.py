from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
import logging

from config.constants import (
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_PENDING,
    WITHDRAWAL_APPROVED,
)
from database import get_db
from models.product import ProductReview
from utils.audit import log_audit
from utils.earnings_service import SETTLED_ORDER_QUERY, get_platform_commission_total
from utils.guards import get_or_404
from utils.security import require_admin

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


# =====================================================
# DASHBOARD
# =====================================================

@router.get("/dashboard")
async def dashboard(admin=Depends(require_admin), db=Depends(get_db)):
    revenue = 0.0
    async for order in db.orders.find(SETTLED_ORDER_QUERY, {"total_amount": 1}):
        revenue += float(order.get("total_amount") or 0)

    approved_withdrawals = 0.0
    async for req in db.withdrawal_requests.find({"status": WITHDRAWAL_APPROVED}, {"amount": 1}):
        approved_withdrawals += float(req.get("amount") or 0)

    commission = await get_platform_commission_total(db)

    return {
        "total_users": await db.users.count_documents({}),
        "total_products": await db.products.count_documents({}),
        "pending_products": await db.products.count_documents({"status": "pending"}),
        "approved_products": await db.products.count_documents({"status": "approved"}),
        "total_orders": await db.orders.count_documents({}),
        "pending_orders": await db.orders.count_documents({"status": ORDER_STATUS_PENDING}),
        "delivered_orders": await db.orders.count_documents({"status": ORDER_STATUS_DELIVERED}),
        "cancelled_orders": await db.orders.count_documents({"status": ORDER_STATUS_CANCELLED}),
        "total_revenue": round(revenue, 2),
        "commission_earned": commission,
        "approved_withdrawals": round(approved_withdrawals, 2),
        "cash_in_hand": round(commission - approved_withdrawals, 2),
    }


# =====================================================
# PRODUCT REVIEW
# =====================================================

@router.post("/products/{product_id}/review")
async def review_product(
    product_id: str,
    data: ProductReview,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    await get_or_404(db.products, product_id, "Product")

    if data.action == "reject" and not (data.reason or "").strip():
        raise HTTPException(400, "Rejection reason is required")

    new_status = "approved" if data.action == "approve" else "rejected"

    await db.products.update_one(
        {"_id": product_id},
        {"$set": {
            "status": new_status,
            "rejection_reason": data.reason if data.action == "reject" else None,
            "reviewed_at": datetime.utcnow(),
            "reviewed_by": admin["_id"],
            "updated_at": datetime.utcnow(),
        }},
    )

    await log_audit(
        db,
        actor_id=admin["_id"],
        action=f"PRODUCT_{new_status.upper()}",
        target_id=product_id,
        metadata={"reason": data.reason},
    )
    logger.info("Product %s %s by %s", product_id, new_status, admin["_id"])

    return {"message": f"Product {new_status}", "product_id": product_id, "status": new_status}
