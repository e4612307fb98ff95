"""User repository - Database operations for users and pro profiles"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...constants import APPROVED_VERIFICATION_STATUSES
from ...models import ProProfile, User
from ...shared.queries import json_array_contains, paginate, text_search


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return (
            db.query(User)
            .options(joinedload(User.pro_profile))
            .filter(User.id == user_id)
            .first()
        )

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        """Create a user; pros get an empty profile. Caller commits."""
        user = User(**user_data)
        if user.role == "pro":
            user.pro_profile = ProProfile(verification_status="pending")
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def slug_taken(db: Session, slug: str, exclude_profile_id: Optional[int] = None) -> bool:
        query = db.query(ProProfile.id).filter(ProProfile.slug == slug)
        if exclude_profile_id:
            query = query.filter(ProProfile.id != exclude_profile_id)
        return query.first() is not None

    @staticmethod
    def get_approved_pro(db: Session, user_id: int) -> Optional[User]:
        return (
            db.query(User)
            .join(ProProfile, ProProfile.user_id == User.id)
            .options(joinedload(User.pro_profile))
            .filter(
                User.id == user_id,
                User.role == "pro",
                User.is_active.is_(True),
                ProProfile.verification_status.in_(APPROVED_VERIFICATION_STATUSES),
            )
            .first()
        )

    @staticmethod
    def search_pros(
        db: Session,
        category: Optional[str] = None,
        emirate: Optional[str] = None,
        verification_level: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        """Approved, active pros matching the filters, best rated first"""
        statuses = (
            (verification_level,) if verification_level else APPROVED_VERIFICATION_STATUSES
        )
        query = (
            db.query(User)
            .join(ProProfile, ProProfile.user_id == User.id)
            .options(joinedload(User.pro_profile))
            .filter(
                User.role == "pro",
                User.is_active.is_(True),
                ProProfile.verification_status.in_(statuses),
            )
        )
        if category:
            query = query.filter(json_array_contains(ProProfile.service_categories, category))
        if emirate:
            query = query.filter(json_array_contains(ProProfile.service_areas, emirate))
        if search:
            query = query.filter(
                text_search(search, ProProfile.business_name, ProProfile.bio, User.first_name, User.last_name)
            )

        query = query.order_by(ProProfile.rating_average.desc(), User.id.asc())
        return paginate(query, limit, offset)
