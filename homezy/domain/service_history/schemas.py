"""Service history schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import SERVICE_CATEGORIES, SERVICE_TYPES, VENDOR_TYPES
from ...shared.validators import validate_choice


class ServiceRecordFields(BaseModel):
    """Validators shared by create and update"""

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, SERVICE_CATEGORIES, "category")

    @field_validator("service_type", check_fields=False)
    @classmethod
    def validate_service_type(cls, v):
        return validate_choice(v, SERVICE_TYPES, "service_type")

    @field_validator("provider_type", check_fields=False)
    @classmethod
    def validate_provider_type(cls, v):
        return validate_choice(v, VENDOR_TYPES, "provider_type")


class ServiceRecordCreate(ServiceRecordFields):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category: str
    service_type: str
    property_id: Optional[int] = None
    provider_type: str = "external"
    provider_name: Optional[str] = Field(None, max_length=255)
    professional_id: Optional[int] = None
    quote_id: Optional[int] = None
    cost: Optional[float] = Field(None, ge=0)
    completed_at: datetime
    rating: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=2000)
    documents: list[str] = []


class ServiceRecordUpdate(ServiceRecordFields):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = None
    service_type: Optional[str] = None
    property_id: Optional[int] = None
    provider_type: Optional[str] = None
    provider_name: Optional[str] = Field(None, max_length=255)
    cost: Optional[float] = Field(None, ge=0)
    completed_at: Optional[datetime] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=2000)
    documents: Optional[list[str]] = None


class ServiceRecordResponse(BaseModel):
    id: int
    homeowner_id: int
    property_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    category: str
    service_type: str
    provider_type: str
    provider_name: Optional[str] = None
    professional_id: Optional[int] = None
    quote_id: Optional[int] = None
    cost: Optional[float] = None
    completed_at: datetime
    rating: Optional[int] = None
    notes: Optional[str] = None
    documents: list[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TimelineYear(BaseModel):
    year: int
    count: int
    total_cost: float
    services: list[ServiceRecordResponse]
