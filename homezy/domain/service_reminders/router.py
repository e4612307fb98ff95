"""Service reminders router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_homeowner
from ...database import get_db
from ...models import User
from .schemas import (
    ReminderComplete,
    ReminderCompleteResponse,
    ReminderCreate,
    ReminderResponse,
    ReminderSnooze,
    ReminderUpdate,
)
from .service import ServiceReminderService

router = APIRouter(prefix="/service-reminders", tags=["Service Reminders"])


def get_service_reminder_service(db: Session = Depends(get_db)) -> ServiceReminderService:
    return ServiceReminderService(db)


@router.post("", response_model=ReminderResponse, status_code=201)
async def create_reminder(
    data: ReminderCreate,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.create_reminder(current_user, data)


@router.get("", response_model=list[ReminderResponse])
async def list_reminders(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    property_id: Optional[int] = Query(None),
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.list_reminders(current_user, status=status, category=category, property_id=property_id)


@router.get("/upcoming", response_model=list[ReminderResponse])
async def upcoming_reminders(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.upcoming(current_user, days=days)


@router.get("/overdue", response_model=list[ReminderResponse])
async def overdue_reminders(
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.overdue(current_user)


@router.get("/{reminder_id}", response_model=ReminderResponse)
async def get_reminder(
    reminder_id: int,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.get_reminder(reminder_id, current_user)


@router.patch("/{reminder_id}", response_model=ReminderResponse)
async def update_reminder(
    reminder_id: int,
    data: ReminderUpdate,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.update_reminder(reminder_id, current_user, data)


@router.delete("/{reminder_id}")
async def delete_reminder(
    reminder_id: int,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.delete_reminder(reminder_id, current_user)


@router.post("/{reminder_id}/snooze", response_model=ReminderResponse)
async def snooze_reminder(
    reminder_id: int,
    data: ReminderSnooze,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.snooze(reminder_id, current_user, data)


@router.post("/{reminder_id}/pause", response_model=ReminderResponse)
async def pause_reminder(
    reminder_id: int,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.pause(reminder_id, current_user)


@router.post("/{reminder_id}/resume", response_model=ReminderResponse)
async def resume_reminder(
    reminder_id: int,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.resume(reminder_id, current_user)


@router.post("/{reminder_id}/complete", response_model=ReminderCompleteResponse)
async def complete_reminder(
    reminder_id: int,
    data: ReminderComplete,
    current_user: User = Depends(require_homeowner),
    service: ServiceReminderService = Depends(get_service_reminder_service),
):
    return service.complete(reminder_id, current_user, data)


__all__ = ["router"]
