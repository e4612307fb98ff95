"""Ideas router - pro portfolio, public gallery and admin moderation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user, require_admin, require_pro
from ...database import get_db
from ...models import User
from .schemas import (
    GalleryResponse,
    PhotoBulkStatusUpdate,
    PhotoCreate,
    PhotoResponse,
    PhotoStatusUpdate,
    PhotoUpdate,
    PortfolioProjectCreate,
    PortfolioProjectResponse,
    PortfolioProjectUpdate,
    RoomCount,
)
from .service import IdeasService

logger = logging.getLogger(__name__)

portfolio_router = APIRouter(prefix="/portfolio", tags=["Portfolio"])
router = APIRouter(prefix="/ideas", tags=["Ideas"])
admin_router = APIRouter(prefix="/admin/ideas", tags=["Admin - Ideas"])


def get_ideas_service(db: Session = Depends(get_db)) -> IdeasService:
    """Dependency injection for IdeasService"""
    return IdeasService(db)


# ============================================================================
# PRO PORTFOLIO
# ============================================================================


@portfolio_router.post("/projects", response_model=PortfolioProjectResponse, status_code=201)
async def create_project(
    data: PortfolioProjectCreate,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.create_project(current_user, data)


@portfolio_router.get("/projects", response_model=list[PortfolioProjectResponse])
async def list_my_projects(
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.list_my_projects(current_user)


@portfolio_router.get("/projects/{project_id}", response_model=PortfolioProjectResponse)
async def get_project(
    project_id: int,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.get_my_project(project_id, current_user)


@portfolio_router.patch("/projects/{project_id}", response_model=PortfolioProjectResponse)
async def update_project(
    project_id: int,
    data: PortfolioProjectUpdate,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.update_project(project_id, current_user, data)


@portfolio_router.delete("/projects/{project_id}")
async def delete_project(
    project_id: int,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.delete_project(project_id, current_user)


@portfolio_router.post(
    "/projects/{project_id}/photos", response_model=PhotoResponse, status_code=201
)
async def add_photo(
    project_id: int,
    data: PhotoCreate,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.add_photo(project_id, current_user, data)


@portfolio_router.post(
    "/projects/{project_id}/photos/upload", response_model=PhotoResponse, status_code=201
)
async def upload_photo(
    project_id: int,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    photo_type: str = Form("main"),
    room_categories: Optional[str] = Form(None, description="Comma separated room categories"),
    allow_ideas: bool = Form(True),
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    content = await file.read()
    rooms = [r.strip() for r in room_categories.split(",") if r.strip()] if room_categories else []
    return service.upload_photo(
        project_id,
        current_user,
        content,
        file.filename or "photo",
        file.content_type or "application/octet-stream",
        caption=caption,
        photo_type=photo_type,
        room_categories=rooms,
        allow_ideas=allow_ideas,
    )


@portfolio_router.patch("/photos/{photo_id}", response_model=PhotoResponse)
async def update_photo(
    photo_id: int,
    data: PhotoUpdate,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.update_photo(photo_id, current_user, data)


@portfolio_router.delete("/photos/{photo_id}")
async def delete_photo(
    photo_id: int,
    current_user: User = Depends(require_pro),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.delete_photo(photo_id, current_user)


@portfolio_router.get("/pros/{pro_id}/projects", response_model=list[PortfolioProjectResponse])
async def public_projects(pro_id: int, service: IdeasService = Depends(get_ideas_service)):
    return service.public_projects(pro_id)


# ============================================================================
# PUBLIC GALLERY
# ============================================================================


@router.get("", response_model=GalleryResponse)
async def gallery(
    room: Optional[str] = None,
    service_category: Optional[str] = None,
    sort: str = Query("newest", pattern="^(newest|popular)$"),
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: Optional[User] = Depends(get_optional_user),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.gallery(current_user, room, service_category, sort, limit, offset)


@router.get("/rooms", response_model=list[RoomCount])
async def room_counts(service: IdeasService = Depends(get_ideas_service)):
    return service.room_counts()


@router.get("/saved", response_model=GalleryResponse)
async def saved_photos(
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.saved_photos(current_user, limit, offset)


@router.get("/{photo_id}", response_model=PhotoResponse)
async def get_photo(
    photo_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.get_photo(photo_id, current_user)


@router.post("/{photo_id}/save")
async def save_photo(
    photo_id: int,
    current_user: User = Depends(get_current_user),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.save_photo(photo_id, current_user)


@router.delete("/{photo_id}/save")
async def unsave_photo(
    photo_id: int,
    current_user: User = Depends(get_current_user),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.unsave_photo(photo_id, current_user)


# ============================================================================
# ADMIN MODERATION
# ============================================================================


@admin_router.get("/photos", response_model=GalleryResponse)
async def admin_list_photos(
    status: Optional[str] = Query(None, pattern="^(active|flagged|removed)$"),
    published: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.admin_list_photos(status, published, limit, offset)


@admin_router.post("/photos/bulk-status")
async def bulk_update_photo_status(
    data: PhotoBulkStatusUpdate,
    current_user: User = Depends(require_admin),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.bulk_update_status(data.photo_ids, current_user, data.status, data.reason)


@admin_router.patch("/photos/{photo_id}/status", response_model=PhotoResponse)
async def update_photo_status(
    photo_id: int,
    data: PhotoStatusUpdate,
    current_user: User = Depends(require_admin),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.update_photo_status(photo_id, current_user, data.status, data.reason)


@admin_router.post("/photos/{photo_id}/publish", response_model=PhotoResponse)
async def publish_photo(
    photo_id: int,
    current_user: User = Depends(require_admin),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.publish_photo(photo_id, current_user)


@admin_router.post("/photos/{photo_id}/unpublish", response_model=PhotoResponse)
async def unpublish_photo(
    photo_id: int,
    current_user: User = Depends(require_admin),
    service: IdeasService = Depends(get_ideas_service),
):
    return service.unpublish_photo(photo_id, current_user)


__all__ = ["portfolio_router", "router", "admin_router"]
