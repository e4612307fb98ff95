"""Admin router - dashboard, pro verification, users and leads"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ..leads.schemas import LeadListResponse
from ..leads.service import LeadService
from ..users.schemas import UserResponse
from .schemas import (
    ApproveProRequest,
    DashboardStats,
    ProDetail,
    RejectProRequest,
    UserListResponse,
    UserStatusUpdate,
)
from .service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])

VERIFICATION_PATTERN = "^(pending|basic|comprehensive|rejected)$"


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard_stats(
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.dashboard_stats()


# ============================================================================
# PROFESSIONALS
# ============================================================================


@router.get("/pros", response_model=UserListResponse)
async def list_pros(
    verification_status: Optional[str] = Query(None, pattern=VERIFICATION_PATTERN),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_pros(verification_status, search, limit, offset)


@router.get("/pros/{pro_id}", response_model=ProDetail)
async def get_pro(
    pro_id: int,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.pro_detail(pro_id)


@router.post("/pros/{pro_id}/approve", response_model=UserResponse)
async def approve_pro(
    pro_id: int,
    data: ApproveProRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.approve_pro(pro_id, data.level, current_user, background_tasks)


@router.post("/pros/{pro_id}/reject", response_model=UserResponse)
async def reject_pro(
    pro_id: int,
    data: RejectProRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.reject_pro(pro_id, data.reason, current_user, background_tasks)


# ============================================================================
# USERS
# ============================================================================


@router.get("/homeowners", response_model=UserListResponse)
async def list_homeowners(
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_homeowners(search, limit, offset)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.get_user(user_id)


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: int,
    data: UserStatusUpdate,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.set_user_active(user_id, data.is_active, current_user)


# ============================================================================
# LEADS
# ============================================================================


@router.get("/leads", response_model=LeadListResponse)
async def list_leads(
    status: Optional[str] = Query(None, pattern="^(open|quoted|full|accepted|expired|cancelled)$"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return LeadService(db).list_all_leads(
        current_user, limit=limit, offset=offset, status=status, category=category, search=search
    )


@router.get("/leads/{lead_id}")
async def get_lead(
    lead_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return LeadService(db).admin_lead_detail(lead_id, current_user)


__all__ = ["router"]
