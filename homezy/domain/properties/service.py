"""Property service - a homeowner's homes and their rooms"""

import logging
import uuid

from sqlalchemy.orm import Session

from ...constants import PROPERTY_COMPLETENESS_WEIGHTS
from ...exceptions import NotFoundError
from ...models import User
from ...models_home import Property
from .repository import PropertyRepository
from .schemas import PropertyCreate, PropertyUpdate, RoomCreate, RoomUpdate

logger = logging.getLogger(__name__)


def calculate_completeness(prop: Property) -> int:
    """Percentage of the property profile that has been filled in"""
    score = 0
    for field, weight in PROPERTY_COMPLETENESS_WEIGHTS.items():
        value = getattr(prop, field)
        if field == "rooms":
            filled = bool(value)
        else:
            filled = value is not None and value != ""
        if filled:
            score += weight
    return min(score, 100)


class PropertyService:
    """Service layer for property business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PropertyRepository()

    def _get_own(self, property_id: int, owner: User) -> Property:
        prop = self.repo.get_for_owner(self.db, property_id, owner.id)
        if not prop:
            raise NotFoundError("Property not found")
        return prop

    def _save(self, prop: Property) -> Property:
        prop.profile_completeness = calculate_completeness(prop)
        self.db.commit()
        self.db.refresh(prop)
        return prop

    def create_property(self, owner: User, data: PropertyCreate) -> Property:
        values = data.model_dump()
        make_primary = values.pop("is_primary") or self.repo.count_for_owner(self.db, owner.id) == 0
        if make_primary:
            self.repo.clear_primary(self.db, owner.id)

        prop = Property(owner_id=owner.id, rooms=[], is_primary=make_primary, **values)
        self.db.add(prop)
        prop = self._save(prop)
        logger.info(f"✅ Property {prop.id} created for user {owner.id} (primary={prop.is_primary})")
        return prop

    def list_properties(self, owner: User) -> list[Property]:
        return self.repo.list_for_owner(self.db, owner.id)

    def get_property(self, property_id: int, owner: User) -> Property:
        return self._get_own(property_id, owner)

    def update_property(self, property_id: int, owner: User, data: PropertyUpdate) -> Property:
        prop = self._get_own(property_id, owner)
        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "name" and value is None:
                continue
            setattr(prop, key, value)
        return self._save(prop)

    def delete_property(self, property_id: int, owner: User) -> dict:
        prop = self._get_own(property_id, owner)
        was_primary = prop.is_primary
        self.db.delete(prop)
        self.db.flush()

        promoted = None
        if was_primary:
            promoted = self.repo.oldest_for_owner(self.db, owner.id)
            if promoted:
                promoted.is_primary = True
        self.db.commit()
        logger.info(f"🗑️ Property {property_id} deleted" + (f", {promoted.id} is now primary" if promoted else ""))
        return {"message": "Property deleted", "new_primary_id": promoted.id if promoted else None}

    def set_primary(self, property_id: int, owner: User) -> Property:
        prop = self._get_own(property_id, owner)
        self.repo.clear_primary(self.db, owner.id)
        prop.is_primary = True
        return self._save(prop)

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    def add_room(self, property_id: int, owner: User, data: RoomCreate) -> Property:
        prop = self._get_own(property_id, owner)
        room = {"id": uuid.uuid4().hex, **data.model_dump()}
        # JSON columns only detect reassignment, not in-place mutation
        prop.rooms = [*(prop.rooms or []), room]
        return self._save(prop)

    def update_room(self, property_id: int, room_id: str, owner: User, data: RoomUpdate) -> Property:
        prop = self._get_own(property_id, owner)
        rooms = [dict(r) for r in (prop.rooms or [])]
        room = next((r for r in rooms if r.get("id") == room_id), None)
        if room is None:
            raise NotFoundError("Room not found")
        for key, value in data.model_dump(exclude_unset=True).items():
            if key in ("name", "type") and value is None:
                continue
            room[key] = value
        prop.rooms = rooms
        return self._save(prop)

    def delete_room(self, property_id: int, room_id: str, owner: User) -> Property:
        prop = self._get_own(property_id, owner)
        rooms = [r for r in (prop.rooms or []) if r.get("id") != room_id]
        if len(rooms) == len(prop.rooms or []):
            raise NotFoundError("Room not found")
        prop.rooms = rooms
        return self._save(prop)
