"""Home project router - homeowner renovation tracker"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_homeowner
from ...database import get_db
from ...models import User
from .schemas import (
    BudgetSummary,
    CostItemCreate,
    CostItemUpdate,
    HomeProjectCreate,
    HomeProjectResponse,
    HomeProjectUpdate,
    TaskCreate,
    TaskUpdate,
)
from .service import HomeProjectService

router = APIRouter(prefix="/home-projects", tags=["Home Projects"])


def get_home_project_service(db: Session = Depends(get_db)) -> HomeProjectService:
    """Dependency injection for HomeProjectService"""
    return HomeProjectService(db)


@router.post("", response_model=HomeProjectResponse, status_code=201)
async def create_project(
    data: HomeProjectCreate,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.create_project(current_user, data)


@router.get("", response_model=list[HomeProjectResponse])
async def list_projects(
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.list_projects(current_user, status)


@router.get("/default", response_model=HomeProjectResponse)
async def get_default_project(
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.get_or_create_default(current_user)


@router.get("/{project_id}", response_model=HomeProjectResponse)
async def get_project(
    project_id: int,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.get_project(project_id, current_user)


@router.patch("/{project_id}", response_model=HomeProjectResponse)
async def update_project(
    project_id: int,
    data: HomeProjectUpdate,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.update_project(project_id, current_user, data)


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.delete_project(project_id, current_user)


@router.get("/{project_id}/budget", response_model=BudgetSummary)
async def budget_summary(
    project_id: int,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.budget_summary(project_id, current_user)


# ============================================================================
# TASKS
# ============================================================================


@router.post("/{project_id}/tasks", response_model=HomeProjectResponse, status_code=201)
async def add_task(
    project_id: int,
    data: TaskCreate,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.add_task(project_id, current_user, data)


@router.patch("/{project_id}/tasks/{task_id}", response_model=HomeProjectResponse)
async def update_task(
    project_id: int,
    task_id: str,
    data: TaskUpdate,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.update_task(project_id, task_id, current_user, data)


@router.delete("/{project_id}/tasks/{task_id}", response_model=HomeProjectResponse)
async def delete_task(
    project_id: int,
    task_id: str,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.delete_task(project_id, task_id, current_user)


# ============================================================================
# COST ITEMS
# ============================================================================


@router.post("/{project_id}/cost-items", response_model=HomeProjectResponse, status_code=201)
async def add_cost_item(
    project_id: int,
    data: CostItemCreate,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.add_cost_item(project_id, current_user, data)


@router.patch("/{project_id}/cost-items/{item_id}", response_model=HomeProjectResponse)
async def update_cost_item(
    project_id: int,
    item_id: str,
    data: CostItemUpdate,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.update_cost_item(project_id, item_id, current_user, data)


@router.delete("/{project_id}/cost-items/{item_id}", response_model=HomeProjectResponse)
async def delete_cost_item(
    project_id: int,
    item_id: str,
    current_user: User = Depends(require_homeowner),
    service: HomeProjectService = Depends(get_home_project_service),
):
    return service.delete_cost_item(project_id, item_id, current_user)


__all__ = ["router"]
