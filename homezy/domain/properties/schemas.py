"""Property schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import PROPERTY_OWNERSHIP_TYPES, PROPERTY_TYPES, ROOM_CATEGORIES
from ...shared.validators import validate_choice, validate_emirate


class PropertyBase(BaseModel):
    @field_validator("emirate", check_fields=False)
    @classmethod
    def validate_emirate_field(cls, v):
        return validate_emirate(v)

    @field_validator("ownership_type", check_fields=False)
    @classmethod
    def validate_ownership(cls, v):
        return validate_choice(v, PROPERTY_OWNERSHIP_TYPES, "ownership_type")

    @field_validator("property_type", check_fields=False)
    @classmethod
    def validate_property_type(cls, v):
        return validate_choice(v, PROPERTY_TYPES, "property_type")


class PropertyCreate(PropertyBase):
    name: str = Field(..., min_length=1, max_length=255)
    emirate: Optional[str] = None
    neighborhood: Optional[str] = Field(None, max_length=255)
    full_address: Optional[str] = Field(None, max_length=500)
    ownership_type: Optional[str] = None
    property_type: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    size_sqft: Optional[int] = Field(None, gt=0)
    year_built: Optional[int] = Field(None, ge=1900, le=2100)
    is_primary: bool = False


class PropertyUpdate(PropertyBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    emirate: Optional[str] = None
    neighborhood: Optional[str] = Field(None, max_length=255)
    full_address: Optional[str] = Field(None, max_length=500)
    ownership_type: Optional[str] = None
    property_type: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    size_sqft: Optional[int] = Field(None, gt=0)
    year_built: Optional[int] = Field(None, ge=1900, le=2100)


class RoomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = "other"
    floor: Optional[int] = Field(None, ge=-5, le=200)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        return validate_choice(v, ROOM_CATEGORIES, "type")


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[str] = None
    floor: Optional[int] = Field(None, ge=-5, le=200)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        return validate_choice(v, ROOM_CATEGORIES, "type")


class Room(BaseModel):
    id: str
    name: str
    type: str
    floor: Optional[int] = None
    notes: Optional[str] = None


class PropertyResponse(BaseModel):
    id: int
    owner_id: int
    name: str
    emirate: Optional[str] = None
    neighborhood: Optional[str] = None
    full_address: Optional[str] = None
    ownership_type: Optional[str] = None
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size_sqft: Optional[int] = None
    year_built: Optional[int] = None
    rooms: list[Room] = []
    is_primary: bool
    profile_completeness: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
