"""Credit router - balance, history, packages, purchases and payment webhook"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from ...auth import require_admin, require_pro
from ...config import PAYMENT_WEBHOOK_SECRET
from ...database import get_db
from ...exceptions import BadRequestError, UnauthorizedError
from ...models import User
from ...security_utils import verify_webhook_signature
from .schemas import (
    AdminCreditGrant,
    AdminCreditRefund,
    CreditBalanceResponse,
    CreditPackageResponse,
    CreditTransactionResponse,
    PaymentWebhookPayload,
    PurchaseCreate,
    PurchaseResponse,
    TransactionListResponse,
)
from .service import CreditService, serialize_transaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/credits", tags=["Credits"])
admin_router = APIRouter(prefix="/admin/credits", tags=["Admin - Credits"])

TRANSACTION_TYPE_PATTERN = "^(purchase|spend|refund|bonus|expiry|adjustment)$"


def get_credit_service(db: Session = Depends(get_db)) -> CreditService:
    """Dependency injection for CreditService"""
    return CreditService(db)


# ============================================================================
# PRO ENDPOINTS
# ============================================================================


@router.get("/balance", response_model=CreditBalanceResponse)
async def get_balance(
    current_user: User = Depends(require_pro),
    service: CreditService = Depends(get_credit_service),
):
    return service.get_balance(current_user.id)


@router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    type: Optional[str] = Query(None, pattern=TRANSACTION_TYPE_PATTERN),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_pro),
    service: CreditService = Depends(get_credit_service),
):
    return service.list_transactions(current_user.id, type, limit, offset)


@router.get("/packages", response_model=list[CreditPackageResponse])
async def get_packages(service: CreditService = Depends(get_credit_service)):
    return service.list_packages()


@router.post("/purchases", response_model=PurchaseResponse, status_code=201)
async def create_purchase(
    data: PurchaseCreate,
    current_user: User = Depends(require_pro),
    service: CreditService = Depends(get_credit_service),
):
    """Start a package purchase; credits land when the payment webhook confirms it"""
    return service.create_purchase(current_user.id, data.package_id)


@router.get("/purchases", response_model=list[PurchaseResponse])
async def list_purchases(
    current_user: User = Depends(require_pro),
    service: CreditService = Depends(get_credit_service),
):
    return service.list_purchases(current_user.id)


# ============================================================================
# PAYMENT WEBHOOK
# ============================================================================


@router.post("/webhooks/payment")
async def payment_webhook(
    request: Request,
    x_homezy_signature: Optional[str] = Header(None),
    service: CreditService = Depends(get_credit_service),
):
    body = await request.body()
    if not verify_webhook_signature(PAYMENT_WEBHOOK_SECRET, body, x_homezy_signature):
        logger.warning("❌ Payment webhook rejected: bad signature")
        raise UnauthorizedError("Invalid webhook signature", code="INVALID_SIGNATURE")

    try:
        payload = PaymentWebhookPayload(**json.loads(body))
    except (ValueError, TypeError) as e:
        raise BadRequestError("Malformed webhook payload") from e

    logger.info(f"📥 Payment webhook {payload.event} for {payload.payment_reference}")
    if payload.event == "payment.succeeded":
        purchase = service.complete_purchase(payload.payment_reference)
    elif payload.event == "payment.failed":
        purchase = service.fail_purchase(payload.payment_reference)
    else:
        return {"received": True, "ignored": True}

    return {"received": True, "status": purchase.status}


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@admin_router.post("/grant", response_model=CreditTransactionResponse)
async def admin_grant_credits(
    data: AdminCreditGrant,
    current_user: User = Depends(require_admin),
    service: CreditService = Depends(get_credit_service),
):
    service.ensure_professional(data.professional_id)
    tx = service.grant_bonus(data.professional_id, data.amount, data.reason, granted_by=current_user.id)
    return serialize_transaction(tx)


@admin_router.post("/refund", response_model=CreditTransactionResponse)
async def admin_refund_credits(
    data: AdminCreditRefund,
    current_user: User = Depends(require_admin),
    service: CreditService = Depends(get_credit_service),
):
    service.ensure_professional(data.professional_id)
    tx = service.refund_credits(data.professional_id, data.amount, data.reason, lead_id=data.lead_id)
    return serialize_transaction(tx)


@admin_router.get("/transactions", response_model=TransactionListResponse)
async def admin_list_transactions(
    professional_id: Optional[int] = Query(None),
    type: Optional[str] = Query(None, pattern=TRANSACTION_TYPE_PATTERN),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    service: CreditService = Depends(get_credit_service),
):
    return service.list_transactions(professional_id, type, limit, offset)


@admin_router.post("/purchases/{payment_reference}/complete", response_model=PurchaseResponse)
async def admin_complete_purchase(
    payment_reference: str,
    current_user: User = Depends(require_admin),
    service: CreditService = Depends(get_credit_service),
):
    """Manually confirm a purchase (bank transfer, support cases)"""
    return service.complete_purchase(payment_reference)


__all__ = ["router", "admin_router"]
