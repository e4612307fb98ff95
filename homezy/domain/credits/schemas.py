"""Credit domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CreditBalanceResponse(BaseModel):
    professional_id: int
    total_balance: int
    free_credits: int
    paid_credits: int
    lifetime_earned: int
    lifetime_spent: int
    last_purchase_at: Optional[datetime] = None
    last_spend_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreditTransactionResponse(BaseModel):
    id: int
    professional_id: int
    type: str
    credit_type: str
    amount: int
    balance_before: int
    balance_after: int
    description: Optional[str] = None
    lead_id: Optional[int] = None
    purchase_id: Optional[int] = None
    remaining_amount: Optional[int] = None
    expires_at: Optional[datetime] = None
    metadata: dict = {}
    created_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    transactions: list[CreditTransactionResponse]
    total: int
    limit: int
    offset: int


class CreditPackageResponse(BaseModel):
    id: str
    name: str
    credits: int
    bonus_credits: int
    price_aed: float
    vat_aed: float
    total_aed: float
    price_per_credit: float


class PurchaseCreate(BaseModel):
    package_id: str


class PurchaseResponse(BaseModel):
    id: int
    package_id: str
    credits: int
    bonus_credits: int
    price_aed: float
    vat_aed: float
    total_aed: float
    payment_reference: str
    status: str
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentWebhookPayload(BaseModel):
    event: str  # payment.succeeded, payment.failed
    payment_reference: str


class AdminCreditGrant(BaseModel):
    professional_id: int
    amount: int = Field(..., gt=0, le=10000)
    reason: str = Field(..., min_length=3, max_length=500)


class AdminCreditRefund(BaseModel):
    professional_id: int
    amount: int = Field(..., gt=0, le=10000)
    reason: str = Field(..., min_length=3, max_length=500)
    lead_id: Optional[int] = None
