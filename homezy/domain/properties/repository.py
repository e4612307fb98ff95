"""Property repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_home import Property


class PropertyRepository:
    @staticmethod
    def get_for_owner(db: Session, property_id: int, owner_id: int) -> Optional[Property]:
        return (
            db.query(Property)
            .filter(Property.id == property_id, Property.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def list_for_owner(db: Session, owner_id: int) -> list[Property]:
        return (
            db.query(Property)
            .filter(Property.owner_id == owner_id)
            .order_by(Property.is_primary.desc(), Property.created_at.asc(), Property.id.asc())
            .all()
        )

    @staticmethod
    def count_for_owner(db: Session, owner_id: int) -> int:
        return db.query(Property).filter(Property.owner_id == owner_id).count()

    @staticmethod
    def oldest_for_owner(db: Session, owner_id: int) -> Optional[Property]:
        return (
            db.query(Property)
            .filter(Property.owner_id == owner_id)
            .order_by(Property.created_at.asc(), Property.id.asc())
            .first()
        )

    @staticmethod
    def clear_primary(db: Session, owner_id: int) -> int:
        return (
            db.query(Property)
            .filter(Property.owner_id == owner_id, Property.is_primary.is_(True))
            .update({Property.is_primary: False}, synchronize_session="fetch")
        )
