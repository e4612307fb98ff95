"""Property router - homeowner properties and rooms"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_homeowner
from ...database import get_db
from ...models import User
from .schemas import PropertyCreate, PropertyResponse, PropertyUpdate, RoomCreate, RoomUpdate
from .service import PropertyService

router = APIRouter(prefix="/properties", tags=["Properties"])


def get_property_service(db: Session = Depends(get_db)) -> PropertyService:
    """Dependency injection for PropertyService"""
    return PropertyService(db)


@router.post("", response_model=PropertyResponse, status_code=201)
async def create_property(
    data: PropertyCreate,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.create_property(current_user, data)


@router.get("", response_model=list[PropertyResponse])
async def list_properties(
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.list_properties(current_user)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: int,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.get_property(property_id, current_user)


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: int,
    data: PropertyUpdate,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.update_property(property_id, current_user, data)


@router.delete("/{property_id}")
async def delete_property(
    property_id: int,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.delete_property(property_id, current_user)


@router.post("/{property_id}/primary", response_model=PropertyResponse)
async def set_primary(
    property_id: int,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.set_primary(property_id, current_user)


# ============================================================================
# ROOMS
# ============================================================================


@router.post("/{property_id}/rooms", response_model=PropertyResponse, status_code=201)
async def add_room(
    property_id: int,
    data: RoomCreate,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.add_room(property_id, current_user, data)


@router.patch("/{property_id}/rooms/{room_id}", response_model=PropertyResponse)
async def update_room(
    property_id: int,
    room_id: str,
    data: RoomUpdate,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.update_room(property_id, room_id, current_user, data)


@router.delete("/{property_id}/rooms/{room_id}", response_model=PropertyResponse)
async def delete_room(
    property_id: int,
    room_id: str,
    current_user: User = Depends(require_homeowner),
    service: PropertyService = Depends(get_property_service),
):
    return service.delete_room(property_id, room_id, current_user)


__all__ = ["router"]
