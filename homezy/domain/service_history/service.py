"""
Service history - completed work on a homeowner's properties.

Records can be entered by hand (external providers) or tied to an accepted
Homezy quote, in which case the provider fields are taken from the quote.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import BadRequestError, NotFoundError
from ...models import Lead, Quote, User
from ...models_home import Property, ServiceHistory
from .schemas import ServiceRecordCreate, ServiceRecordUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "category", "service_type", "provider_type", "completed_at", "documents")


class ServiceHistoryService:
    def __init__(self, db: Session):
        self.db = db

    def _get_own(self, record_id: int, owner: User) -> ServiceHistory:
        record = (
            self.db.query(ServiceHistory)
            .filter(ServiceHistory.id == record_id, ServiceHistory.homeowner_id == owner.id)
            .first()
        )
        if not record:
            raise NotFoundError("Service record not found")
        return record

    def _check_property(self, property_id: Optional[int], owner: User):
        if property_id is None:
            return
        found = (
            self.db.query(Property.id)
            .filter(Property.id == property_id, Property.owner_id == owner.id)
            .first()
        )
        if not found:
            raise NotFoundError("Property not found")

    def _accepted_quote(self, quote_id: int, owner: User) -> Quote:
        quote = (
            self.db.query(Quote)
            .join(Lead, Lead.id == Quote.lead_id)
            .filter(Quote.id == quote_id, Lead.homeowner_id == owner.id)
            .first()
        )
        if not quote:
            raise NotFoundError("Quote not found")
        if quote.status != "accepted":
            raise BadRequestError("Only accepted quotes can be linked", code="QUOTE_NOT_ACCEPTED")
        return quote

    def create_record(self, owner: User, data: ServiceRecordCreate) -> ServiceHistory:
        self._check_property(data.property_id, owner)
        values = data.model_dump()

        if data.quote_id is not None:
            quote = self._accepted_quote(data.quote_id, owner)
            values["provider_type"] = "homezy"
            values["professional_id"] = quote.professional_id
            if not values.get("provider_name") and quote.professional:
                values["provider_name"] = quote.professional.full_name
            if values.get("cost") is None:
                values["cost"] = quote.total
        elif data.professional_id is not None:
            values["provider_type"] = "homezy"

        record = ServiceHistory(homeowner_id=owner.id, **values)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"✅ Service record {record.id} added for user {owner.id} ({record.category})")
        return record

    def list_records(
        self,
        owner: User,
        property_id: Optional[int] = None,
        category: Optional[str] = None,
        service_type: Optional[str] = None,
    ) -> list[ServiceHistory]:
        query = self.db.query(ServiceHistory).filter(ServiceHistory.homeowner_id == owner.id)
        if property_id is not None:
            query = query.filter(ServiceHistory.property_id == property_id)
        if category:
            query = query.filter(ServiceHistory.category == category)
        if service_type:
            query = query.filter(ServiceHistory.service_type == service_type)
        return query.order_by(ServiceHistory.completed_at.desc(), ServiceHistory.id.desc()).all()

    def get_record(self, record_id: int, owner: User) -> ServiceHistory:
        return self._get_own(record_id, owner)

    def update_record(self, record_id: int, owner: User, data: ServiceRecordUpdate) -> ServiceHistory:
        record = self._get_own(record_id, owner)
        updates = data.model_dump(exclude_unset=True)
        if "property_id" in updates:
            self._check_property(updates["property_id"], owner)

        for key, value in updates.items():
            if key in REQUIRED_FIELDS and value is None:
                continue
            setattr(record, key, value)
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete_record(self, record_id: int, owner: User) -> dict:
        record = self._get_own(record_id, owner)
        self.db.delete(record)
        self.db.commit()
        return {"message": "Service record deleted"}

    def timeline(self, owner: User, property_id: Optional[int] = None) -> list[dict]:
        """Records grouped by the year they were completed, newest year first"""
        years: dict[int, dict] = {}
        for record in self.list_records(owner, property_id=property_id):
            year = record.completed_at.year
            group = years.setdefault(year, {"year": year, "count": 0, "total_cost": 0.0, "services": []})
            group["count"] += 1
            group["total_cost"] = round(group["total_cost"] + (record.cost or 0), 2)
            group["services"].append(record)
        return [years[year] for year in sorted(years, reverse=True)]

    def last_service_by_category(self, owner: User, property_id: Optional[int] = None) -> dict:
        latest: dict[str, ServiceHistory] = {}
        # list_records is newest first, so the first hit per category wins
        for record in self.list_records(owner, property_id=property_id):
            latest.setdefault(record.category, record)
        return latest
