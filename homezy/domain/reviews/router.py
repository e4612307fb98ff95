"""Review router - submit, read and answer reviews"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_approved_pro, require_homeowner
from ...database import get_db
from ...models import User
from .schemas import ReviewCreate, ReviewEligibility, ReviewListResponse, ReviewReply, ReviewResponse
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["Admin"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.post("", response_model=ReviewResponse, status_code=201)
async def submit_review(
    data: ReviewCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_homeowner),
    service: ReviewService = Depends(get_review_service),
):
    return service.submit_review(current_user, data, background_tasks)


@router.get("/can-review/{lead_id}", response_model=ReviewEligibility)
async def can_review(
    lead_id: int,
    current_user: User = Depends(require_homeowner),
    service: ReviewService = Depends(get_review_service),
):
    return service.can_review(current_user, lead_id)


@router.get("/lead/{lead_id}", response_model=ReviewResponse)
async def get_review_for_lead(
    lead_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_for_lead(lead_id, current_user)


@router.get("/pros/{professional_id}", response_model=ReviewListResponse)
async def list_pro_reviews(
    professional_id: int,
    min_rating: Optional[int] = Query(None, ge=1, le=5),
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    service: ReviewService = Depends(get_review_service),
):
    """Public: a pro's reviews, newest first, with aggregate stats"""
    return service.list_for_pro(professional_id, limit, offset, min_rating)


@router.post("/{review_id}/response", response_model=ReviewResponse)
async def respond_to_review(
    review_id: int,
    data: ReviewReply,
    current_user: User = Depends(require_approved_pro),
    service: ReviewService = Depends(get_review_service),
):
    return service.respond(review_id, current_user, data.text)


@admin_router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.delete_review(review_id)


__all__ = ["router", "admin_router"]
