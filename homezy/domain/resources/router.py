"""Resource router - public help center and admin CMS"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    CategoryCount,
    ResourceBulkDelete,
    ResourceBulkUpdate,
    ResourceCreate,
    ResourceListResponse,
    ResourceResponse,
    ResourceStats,
    ResourceUpdate,
)
from .service import ResourceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["Resources"])
admin_router = APIRouter(prefix="/admin/resources", tags=["Admin - Resources"])


def get_resource_service(db: Session = Depends(get_db)) -> ResourceService:
    """Dependency injection for ResourceService"""
    return ResourceService(db)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("", response_model=ResourceListResponse)
async def list_resources(
    category: Optional[str] = None,
    type: Optional[str] = None,
    tag: Optional[str] = None,
    audience: Optional[str] = Query(None, pattern="^(homeowner|pro|both)$"),
    featured: Optional[bool] = None,
    popular: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(12, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ResourceService = Depends(get_resource_service),
):
    return service.list_published(
        limit=limit,
        offset=offset,
        category=category,
        type=type,
        tag=tag,
        audience=audience,
        featured=featured,
        popular=popular,
        search=search,
    )


@router.get("/featured", response_model=list[ResourceResponse])
async def featured_resources(
    limit: int = Query(6, ge=1, le=24),
    service: ResourceService = Depends(get_resource_service),
):
    return service.featured(limit)


@router.get("/popular", response_model=list[ResourceResponse])
async def popular_resources(
    limit: int = Query(6, ge=1, le=24),
    service: ResourceService = Depends(get_resource_service),
):
    return service.popular(limit)


@router.get("/latest", response_model=list[ResourceResponse])
async def latest_resources(
    limit: int = Query(6, ge=1, le=24),
    service: ResourceService = Depends(get_resource_service),
):
    return service.latest(limit)


@router.get("/categories", response_model=list[CategoryCount])
async def resource_categories(service: ResourceService = Depends(get_resource_service)):
    return service.categories()


@router.get("/{slug}/related", response_model=list[ResourceResponse])
async def related_resources(
    slug: str,
    limit: int = Query(4, ge=1, le=12),
    service: ResourceService = Depends(get_resource_service),
):
    return service.related(slug, limit)


@router.get("/{slug}", response_model=ResourceResponse)
async def get_resource(slug: str, service: ResourceService = Depends(get_resource_service)):
    return service.get_published_by_slug(slug)


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@admin_router.get("", response_model=ResourceListResponse)
async def admin_list_resources(
    status: Optional[str] = Query(None, pattern="^(draft|published|archived)$"),
    category: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.list_admin(
        limit=limit, offset=offset, status=status, category=category, search=search
    )


@admin_router.get("/stats", response_model=ResourceStats)
async def resource_stats(
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.stats()


@admin_router.post("", response_model=ResourceResponse, status_code=201)
async def create_resource(
    data: ResourceCreate,
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.create_resource(data, current_user.id)


@admin_router.post("/bulk-update")
async def bulk_update_resources(
    data: ResourceBulkUpdate,
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.bulk_update(data)


@admin_router.post("/bulk-delete")
async def bulk_delete_resources(
    data: ResourceBulkDelete,
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.bulk_delete(data.ids)


@admin_router.get("/{resource_id}", response_model=ResourceResponse)
async def admin_get_resource(
    resource_id: int,
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.get_by_id(resource_id)


@admin_router.patch("/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    resource_id: int,
    data: ResourceUpdate,
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.update_resource(resource_id, data)


@admin_router.delete("/{resource_id}")
async def delete_resource(
    resource_id: int,
    current_user: User = Depends(require_admin),
    service: ResourceService = Depends(get_resource_service),
):
    return service.delete_resource(resource_id)


__all__ = ["router", "admin_router"]
