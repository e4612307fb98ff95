"""Service history router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_homeowner
from ...database import get_db
from ...models import User
from .schemas import ServiceRecordCreate, ServiceRecordResponse, ServiceRecordUpdate, TimelineYear
from .service import ServiceHistoryService

router = APIRouter(prefix="/service-history", tags=["Service History"])


def get_service_history_service(db: Session = Depends(get_db)) -> ServiceHistoryService:
    return ServiceHistoryService(db)


@router.post("", response_model=ServiceRecordResponse, status_code=201)
async def create_record(
    data: ServiceRecordCreate,
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.create_record(current_user, data)


@router.get("", response_model=list[ServiceRecordResponse])
async def list_records(
    property_id: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    service_type: Optional[str] = Query(None),
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.list_records(
        current_user, property_id=property_id, category=category, service_type=service_type
    )


@router.get("/timeline", response_model=list[TimelineYear])
async def get_timeline(
    property_id: Optional[int] = Query(None),
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.timeline(current_user, property_id=property_id)


@router.get("/latest-by-category", response_model=dict[str, ServiceRecordResponse])
async def latest_by_category(
    property_id: Optional[int] = Query(None),
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.last_service_by_category(current_user, property_id=property_id)


@router.get("/{record_id}", response_model=ServiceRecordResponse)
async def get_record(
    record_id: int,
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.get_record(record_id, current_user)


@router.patch("/{record_id}", response_model=ServiceRecordResponse)
async def update_record(
    record_id: int,
    data: ServiceRecordUpdate,
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.update_record(record_id, current_user, data)


@router.delete("/{record_id}")
async def delete_record(
    record_id: int,
    current_user: User = Depends(require_homeowner),
    service: ServiceHistoryService = Depends(get_service_history_service),
):
    return service.delete_record(record_id, current_user)


__all__ = ["router"]
