from fastapi import APIRouter, Depends

from database import get_db
from models.catalog import CommissionUpdate
from utils.audit import log_audit
from utils.commissions import list_commissions, replace_commissions
from utils.security import require_admin

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.get("")
async def get_commissions(db=Depends(get_db)):
    return await list_commissions(db)


@router.put("")
async def update_commissions(
    data: CommissionUpdate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    entries = [c.dict() for c in data.commissions]
    count = await replace_commissions(db, entries)

    await log_audit(
        db,
        actor_id=admin["_id"],
        action="COMMISSIONS_UPDATED",
        metadata={"commissions": entries},
    )

    return {"message": "Commission settings updated successfully", "count": count}
