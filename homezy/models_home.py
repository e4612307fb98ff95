from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)

from .database import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    emirate = Column(String(30), nullable=True)
    neighborhood = Column(String(255), nullable=True)
    full_address = Column(String(500), nullable=True)
    ownership_type = Column(String(20), nullable=True)  # owned, rental
    property_type = Column(String(20), nullable=True)  # villa, townhouse, apartment, penthouse
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    size_sqft = Column(Integer, nullable=True)
    year_built = Column(Integer, nullable=True)
    # [{"id": uuid, "name": "Master bedroom", "type": "bedroom", "floor": 1, "notes": ...}]
    rooms = Column(JSON, default=list)
    is_primary = Column(Boolean, default=False, nullable=False)
    profile_completeness = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class HomeProject(Base):
    """A homeowner's own renovation / maintenance tracker"""

    __tablename__ = "home_projects"

    id = Column(Integer, primary_key=True, index=True)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(30), nullable=False, default="custom")
    status = Column(String(20), nullable=False, default="planning", index=True)
    is_default = Column(Boolean, default=False, nullable=False)
    budget_estimated = Column(Float, nullable=True)
    budget_actual = Column(Float, nullable=False, default=0.0)
    start_date = Column(DateTime, nullable=True)
    target_end_date = Column(DateTime, nullable=True)
    actual_end_date = Column(DateTime, nullable=True)
    # [{"id", "title", "status", "priority", "due_date", "completed_at"}]
    tasks = Column(JSON, default=list)
    # [{"id", "title", "category", "estimated", "actual", "status"}]
    cost_items = Column(JSON, default=list)
    linked_lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True)
    linked_quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True)
    home_project_id = Column(Integer, ForeignKey("home_projects.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    category = Column(String(30), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="AED")
    date = Column(DateTime, nullable=False, index=True)
    vendor_name = Column(String(255), nullable=True)
    vendor_type = Column(String(20), nullable=False, default="external")  # homezy, external
    receipt_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ServiceHistory(Base):
    __tablename__ = "service_history"

    id = Column(Integer, primary_key=True, index=True)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, index=True)
    # maintenance, repair, installation, renovation, inspection
    service_type = Column(String(20), nullable=False)
    provider_type = Column(String(20), nullable=False, default="external")  # homezy, external
    provider_name = Column(String(255), nullable=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    cost = Column(Float, nullable=True)
    completed_at = Column(DateTime, nullable=False, index=True)
    rating = Column(Integer, nullable=True)  # 1-5
    notes = Column(Text, nullable=True)
    documents = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ServiceReminder(Base):
    """Recurring maintenance a homeowner wants to be reminded about"""

    __tablename__ = "service_reminders"

    id = Column(Integer, primary_key=True, index=True)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True)
    category = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    trigger_type = Column(String(20), nullable=False, default="custom")  # custom, seasonal, pattern-based
    frequency = Column(String(20), nullable=False)  # monthly, quarterly, biannual, annual, custom
    custom_interval_days = Column(Integer, nullable=True)
    last_service_date = Column(DateTime, nullable=True)
    next_due_date = Column(DateTime, nullable=False, index=True)
    reminder_lead_days = Column(JSON, default=list)  # e.g. [30, 7, 1]
    # [{"sent_at", "days_before_due", "due_date"}] for the current due date
    reminders_sent = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default="active", index=True)  # active, snoozed, paused
    snooze_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
