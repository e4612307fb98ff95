"""Service reminder schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...constants import (
    DEFAULT_REMINDER_LEAD_DAYS,
    REMINDER_FREQUENCIES,
    REMINDER_TRIGGER_TYPES,
    SERVICE_CATEGORIES,
)
from ...shared.validators import validate_choice


class ReminderFields(BaseModel):
    """Validators shared by create and update"""

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v):
        return validate_choice(v, SERVICE_CATEGORIES, "category")

    @field_validator("frequency", check_fields=False)
    @classmethod
    def validate_frequency(cls, v):
        return validate_choice(v, list(REMINDER_FREQUENCIES), "frequency")

    @field_validator("reminder_lead_days", check_fields=False)
    @classmethod
    def normalize_lead_days(cls, v):
        if v is None:
            return v
        if any(day < 0 or day > 365 for day in v):
            raise ValueError("Reminder lead days must be between 0 and 365")
        return sorted(set(v), reverse=True)


class ReminderCreate(ReminderFields):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category: str
    property_id: Optional[int] = None
    trigger_type: str = "custom"
    frequency: str
    custom_interval_days: Optional[int] = Field(None, ge=1, le=3650)
    last_service_date: Optional[datetime] = None
    next_due_date: Optional[datetime] = None
    reminder_lead_days: list[int] = Field(default_factory=lambda: list(DEFAULT_REMINDER_LEAD_DAYS))

    @field_validator("trigger_type")
    @classmethod
    def validate_trigger_type(cls, v):
        return validate_choice(v, REMINDER_TRIGGER_TYPES, "trigger_type")

    @model_validator(mode="after")
    def custom_needs_interval(self):
        if self.frequency == "custom" and not self.custom_interval_days:
            raise ValueError("custom_interval_days is required for a custom frequency")
        return self


class ReminderUpdate(ReminderFields):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = None
    property_id: Optional[int] = None
    frequency: Optional[str] = None
    custom_interval_days: Optional[int] = Field(None, ge=1, le=3650)
    next_due_date: Optional[datetime] = None
    reminder_lead_days: Optional[list[int]] = None


class ReminderSnooze(BaseModel):
    days: int = Field(7, ge=1, le=90)


class ReminderComplete(BaseModel):
    completed_at: Optional[datetime] = None
    cost: Optional[float] = Field(None, ge=0)
    provider_name: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=2000)
    # Also log the visit in service history
    record_service: bool = True


class ReminderResponse(BaseModel):
    id: int
    homeowner_id: int
    property_id: Optional[int] = None
    category: str
    title: str
    description: Optional[str] = None
    trigger_type: str
    frequency: str
    custom_interval_days: Optional[int] = None
    last_service_date: Optional[datetime] = None
    next_due_date: datetime
    reminder_lead_days: list[int] = []
    reminders_sent: list[dict[str, Any]] = []
    status: str
    snooze_until: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReminderCompleteResponse(BaseModel):
    reminder: ReminderResponse
    service_record_id: Optional[int] = None
