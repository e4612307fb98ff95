"""Quote router - submit, review and decide on quotes"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_approved_pro, require_pro, require_roles
from ...database import get_db
from ...models import User
from .schemas import (
    QuoteAcceptResponse,
    QuoteCreate,
    QuoteDecline,
    QuoteListResponse,
    QuoteResponse,
    QuoteUpdate,
)
from .service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


# ============================================================================
# PRO ENDPOINTS
# ============================================================================


@router.post("", response_model=QuoteResponse, status_code=201)
async def submit_quote(
    data: QuoteCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_approved_pro),
    service: QuoteService = Depends(get_quote_service),
):
    return service.submit_quote(current_user, data, background_tasks)


@router.get("/me", response_model=QuoteListResponse)
async def my_quotes(
    status: Optional[str] = Query(None, pattern="^(pending|accepted|declined|withdrawn)$"),
    current_user: User = Depends(require_pro),
    service: QuoteService = Depends(get_quote_service),
):
    return service.my_quotes(current_user, status)


@router.get("/lead/{lead_id}/mine", response_model=QuoteResponse)
async def my_quote_for_lead(
    lead_id: int,
    current_user: User = Depends(require_pro),
    service: QuoteService = Depends(get_quote_service),
):
    return service.my_quote_for_lead(lead_id, current_user)


@router.patch("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    current_user: User = Depends(require_pro),
    service: QuoteService = Depends(get_quote_service),
):
    return service.update_quote(quote_id, current_user, data)


@router.post("/{quote_id}/withdraw", response_model=QuoteResponse)
async def withdraw_quote(
    quote_id: int,
    current_user: User = Depends(require_pro),
    service: QuoteService = Depends(get_quote_service),
):
    return service.withdraw_quote(quote_id, current_user)


# ============================================================================
# HOMEOWNER ENDPOINTS
# ============================================================================


@router.get("/lead/{lead_id}", response_model=QuoteListResponse)
async def list_quotes_for_lead(
    lead_id: int,
    sort: str = Query("newest", pattern="^(price-low|price-high|newest)$"),
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: QuoteService = Depends(get_quote_service),
):
    return service.list_for_lead(lead_id, current_user, sort)


@router.post("/{quote_id}/accept", response_model=QuoteAcceptResponse)
async def accept_quote(
    quote_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: QuoteService = Depends(get_quote_service),
):
    return service.accept_quote(quote_id, current_user, background_tasks)


@router.post("/{quote_id}/decline", response_model=QuoteResponse)
async def decline_quote(
    quote_id: int,
    data: Optional[QuoteDecline] = None,
    current_user: User = Depends(require_roles("homeowner", "admin")),
    service: QuoteService = Depends(get_quote_service),
):
    return service.decline_quote(quote_id, current_user, data.reason if data else None)


# ============================================================================
# SHARED
# ============================================================================


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return service.get_quote(quote_id, current_user)


__all__ = ["router"]
