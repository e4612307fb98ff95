"""Admin schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import APPROVED_VERIFICATION_STATUSES
from ..users.schemas import UserResponse


class ApproveProRequest(BaseModel):
    level: str = "basic"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        if v not in APPROVED_VERIFICATION_STATUSES:
            raise ValueError(f"level must be one of: {', '.join(APPROVED_VERIFICATION_STATUSES)}")
        return v


class RejectProRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=1000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("A rejection reason is required")
        return v


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int
    limit: int
    offset: int


class CreditStats(BaseModel):
    purchased: int
    spent: int
    refunded: int
    bonus: int


class RevenueStats(BaseModel):
    total_aed: float
    vat_aed: float
    completed_purchases: int


class DashboardStats(BaseModel):
    users_by_role: dict[str, int]
    pros_by_verification: dict[str, int]
    leads_by_status: dict[str, int]
    quotes_by_status: dict[str, int]
    credits: CreditStats
    revenue: RevenueStats


class ProDetail(BaseModel):
    user: UserResponse
    credit_balance: int
    lifetime_spent: int
    claims: int
    quotes: int
    accepted_quotes: int
    last_claim_at: Optional[str] = None
