"""Lead router - marketplace, claims and direct requests"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_approved_pro, require_homeowner, require_pro, require_roles
from ...database import get_db
from ...models import User
from .schemas import (
    ClaimResult,
    DirectLeadDecline,
    LeadCancel,
    LeadClaimResponse,
    LeadCreate,
    LeadListResponse,
    LeadResponse,
    LeadUpdate,
)
from .service import LeadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["Leads"])

LEAD_STATUS_PATTERN = "^(open|quoted|full|accepted|expired|cancelled)$"
SORT_PATTERN = "^(newest|urgency|ending-soon|budget-high)$"


def get_lead_service(db: Session = Depends(get_db)) -> LeadService:
    """Dependency injection for LeadService"""
    return LeadService(db)


# ============================================================================
# HOMEOWNER ENDPOINTS
# ============================================================================


@router.post("", response_model=LeadResponse, status_code=201)
async def create_lead(
    data: LeadCreate,
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: LeadService = Depends(get_lead_service),
):
    return service.create_lead(current_user, data)


@router.get("/me", response_model=LeadListResponse)
async def my_leads(
    status: Optional[str] = Query(None, pattern=LEAD_STATUS_PATTERN),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_homeowner),
    service: LeadService = Depends(get_lead_service),
):
    return service.my_leads(current_user, status, limit, offset)


# ============================================================================
# PRO ENDPOINTS
# ============================================================================


@router.get("/marketplace", response_model=LeadListResponse)
async def browse_marketplace(
    category: Optional[str] = None,
    emirate: Optional[str] = None,
    budget_bracket: Optional[str] = None,
    urgency: Optional[str] = None,
    has_slots: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    sort: str = Query("newest", pattern=SORT_PATTERN),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_pro),
    service: LeadService = Depends(get_lead_service),
):
    return service.browse_marketplace(
        current_user,
        limit=limit,
        offset=offset,
        category=category,
        emirate=emirate,
        budget_bracket=budget_bracket,
        urgency=urgency,
        has_slots=has_slots,
        search=search,
        sort=sort,
    )


@router.get("/claimed", response_model=LeadListResponse)
async def my_claimed_leads(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_pro),
    service: LeadService = Depends(get_lead_service),
):
    return service.my_claimed_leads(current_user, limit, offset)


@router.get("/direct", response_model=list[LeadResponse])
async def list_direct_leads(
    status: Optional[str] = Query(None, pattern="^(pending|accepted|declined|converted)$"),
    current_user: User = Depends(require_pro),
    service: LeadService = Depends(get_lead_service),
):
    return service.list_direct_leads(current_user, status)


@router.post("/direct/{lead_id}/accept", response_model=LeadResponse)
async def accept_direct_lead(
    lead_id: int,
    current_user: User = Depends(require_approved_pro),
    service: LeadService = Depends(get_lead_service),
):
    return service.accept_direct_lead(lead_id, current_user)


@router.post("/direct/{lead_id}/decline", response_model=LeadResponse)
async def decline_direct_lead(
    lead_id: int,
    data: Optional[DirectLeadDecline] = None,
    current_user: User = Depends(require_pro),
    service: LeadService = Depends(get_lead_service),
):
    return service.decline_direct_lead(lead_id, current_user, data.reason if data else None)


# ============================================================================
# SINGLE LEAD ENDPOINTS
# ============================================================================


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: int,
    current_user: User = Depends(get_current_user),
    service: LeadService = Depends(get_lead_service),
):
    return service.get_lead(lead_id, current_user)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: int,
    data: LeadUpdate,
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: LeadService = Depends(get_lead_service),
):
    return service.update_lead(lead_id, current_user, data)


@router.post("/{lead_id}/cancel")
async def cancel_lead(
    lead_id: int,
    data: Optional[LeadCancel] = None,
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: LeadService = Depends(get_lead_service),
):
    return service.cancel_lead(lead_id, current_user, data.reason if data else None)


@router.post("/{lead_id}/claim", response_model=ClaimResult, status_code=201)
async def claim_lead(
    lead_id: int,
    current_user: User = Depends(require_approved_pro),
    service: LeadService = Depends(get_lead_service),
):
    return service.claim_lead(lead_id, current_user)


@router.get("/{lead_id}/claims", response_model=list[LeadClaimResponse])
async def claims_for_lead(
    lead_id: int,
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: LeadService = Depends(get_lead_service),
):
    return service.claims_for_lead(lead_id, current_user)


__all__ = ["router"]
