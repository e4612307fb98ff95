"""Portfolio and Ideas gallery schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import (
    BUDGET_BRACKETS,
    PHOTO_ADMIN_STATUSES,
    PHOTO_TYPES,
    ROOM_CATEGORIES,
    SERVICE_CATEGORIES,
)
from ...shared.validators import validate_choice, validate_emirate


def validate_rooms(rooms: Optional[list[str]]) -> Optional[list[str]]:
    if rooms is None:
        return rooms
    for room in rooms:
        validate_choice(room, ROOM_CATEGORIES, "room_categories")
    return list(dict.fromkeys(rooms))


class PortfolioProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    service_category: str
    completion_date: Optional[datetime] = None
    location_emirate: Optional[str] = None
    budget_bracket: Optional[str] = None
    is_featured: bool = False

    @field_validator("service_category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, SERVICE_CATEGORIES, "service_category")

    @field_validator("location_emirate")
    @classmethod
    def validate_emirate_field(cls, v):
        return validate_emirate(v)

    @field_validator("budget_bracket")
    @classmethod
    def validate_budget(cls, v):
        return validate_choice(v, list(BUDGET_BRACKETS), "budget_bracket")


class PortfolioProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    service_category: Optional[str] = None
    completion_date: Optional[datetime] = None
    location_emirate: Optional[str] = None
    budget_bracket: Optional[str] = None
    is_featured: Optional[bool] = None

    @field_validator("service_category")
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, SERVICE_CATEGORIES, "service_category")

    @field_validator("location_emirate")
    @classmethod
    def validate_emirate_field(cls, v):
        return validate_emirate(v)

    @field_validator("budget_bracket")
    @classmethod
    def validate_budget(cls, v):
        return validate_choice(v, list(BUDGET_BRACKETS), "budget_bracket")


class PhotoCreate(BaseModel):
    image_url: str = Field(..., max_length=500)
    thumbnail_url: Optional[str] = Field(None, max_length=500)
    caption: Optional[str] = Field(None, max_length=500)
    photo_type: str = "main"
    room_categories: list[str] = Field(default_factory=list)
    allow_ideas: bool = True

    @field_validator("photo_type")
    @classmethod
    def validate_photo_type(cls, v):
        return validate_choice(v, PHOTO_TYPES, "photo_type")

    @field_validator("room_categories")
    @classmethod
    def validate_room_categories(cls, v):
        return validate_rooms(v)


class PhotoUpdate(BaseModel):
    caption: Optional[str] = Field(None, max_length=500)
    photo_type: Optional[str] = None
    room_categories: Optional[list[str]] = None
    allow_ideas: Optional[bool] = None

    @field_validator("photo_type")
    @classmethod
    def validate_photo_type(cls, v):
        return validate_choice(v, PHOTO_TYPES, "photo_type")

    @field_validator("room_categories")
    @classmethod
    def validate_room_categories(cls, v):
        return validate_rooms(v)


class PhotoStatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = Field(None, max_length=1000)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, PHOTO_ADMIN_STATUSES, "status")


class PhotoBulkStatusUpdate(PhotoStatusUpdate):
    photo_ids: list[int] = Field(..., min_length=1, max_length=100)


class PhotoProfessional(BaseModel):
    id: int
    first_name: str
    last_name: str
    business_name: Optional[str] = None
    slug: Optional[str] = None


class PhotoResponse(BaseModel):
    id: int
    project_id: int
    professional_id: int
    image_url: str
    thumbnail_url: Optional[str] = None
    caption: Optional[str] = None
    photo_type: str
    room_categories: list[str] = []
    allow_ideas: bool
    is_published_to_ideas: bool
    published_at: Optional[datetime] = None
    admin_status: str
    removal_reason: Optional[str] = None
    save_count: int
    view_count: int
    created_at: Optional[datetime] = None
    project_name: Optional[str] = None
    service_category: Optional[str] = None
    professional: Optional[PhotoProfessional] = None
    is_saved: bool = False


class PortfolioProjectResponse(BaseModel):
    id: int
    professional_id: int
    name: str
    description: Optional[str] = None
    service_category: str
    completion_date: Optional[datetime] = None
    location_emirate: Optional[str] = None
    budget_bracket: Optional[str] = None
    is_featured: bool
    photos: list[PhotoResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GalleryResponse(BaseModel):
    photos: list[PhotoResponse]
    total: int
    limit: int
    offset: int


class RoomCount(BaseModel):
    room: str
    count: int
