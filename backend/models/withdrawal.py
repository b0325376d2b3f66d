from pydantic import BaseModel, Field
from typing import Literal, Optional


class WithdrawalRequestCreate(BaseModel):
    amount: float = Field(..., gt=0)
    withdrawal_method_id: str


class WithdrawalDecision(BaseModel):
    request_id: str
    status: Literal["approved", "rejected"]
    admin_note: Optional[str] = None
