"""Resource repository - Database operations for CMS articles"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models_content import Resource
from ...shared.queries import json_array_contains, paginate, text_search


class ResourceRepository:
    """Repository for resource database operations"""

    @staticmethod
    def get_by_id(db: Session, resource_id: int) -> Optional[Resource]:
        return db.query(Resource).filter(Resource.id == resource_id).first()

    @staticmethod
    def get_by_slug(db: Session, slug: str, published_only: bool = False) -> Optional[Resource]:
        query = db.query(Resource).filter(Resource.slug == slug)
        if published_only:
            query = query.filter(Resource.status == "published")
        return query.first()

    @staticmethod
    def slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Resource.id).filter(Resource.slug == slug)
        if exclude_id:
            query = query.filter(Resource.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def list_published(
        db: Session,
        category: Optional[str] = None,
        type: Optional[str] = None,
        tag: Optional[str] = None,
        audience: Optional[str] = None,
        featured: Optional[bool] = None,
        popular: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 12,
        offset: int = 0,
    ) -> tuple[list[Resource], int]:
        query = db.query(Resource).filter(Resource.status == "published")
        if category:
            query = query.filter(Resource.category == category)
        if type:
            query = query.filter(Resource.type == type)
        if tag:
            query = query.filter(json_array_contains(Resource.tags, tag))
        if audience:
            # Articles for everyone match any audience
            query = query.filter(Resource.target_audience.in_((audience, "both")))
        if featured is not None:
            query = query.filter(Resource.featured.is_(featured))
        if popular is not None:
            query = query.filter(Resource.popular.is_(popular))
        if search:
            query = query.filter(text_search(search, Resource.title, Resource.excerpt))
        query = query.order_by(Resource.published_at.desc(), Resource.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def list_admin(
        db: Session,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Resource], int]:
        query = db.query(Resource)
        if status:
            query = query.filter(Resource.status == status)
        if category:
            query = query.filter(Resource.category == category)
        if search:
            query = query.filter(text_search(search, Resource.title, Resource.excerpt, Resource.slug))
        query = query.order_by(Resource.updated_at.desc(), Resource.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def featured(db: Session, limit: int) -> list[Resource]:
        return (
            db.query(Resource)
            .filter(Resource.status == "published", Resource.featured.is_(True))
            .order_by(Resource.published_at.desc(), Resource.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def most_viewed(db: Session, limit: int) -> list[Resource]:
        return (
            db.query(Resource)
            .filter(Resource.status == "published")
            .order_by(Resource.view_count.desc(), Resource.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def latest(db: Session, limit: int) -> list[Resource]:
        return (
            db.query(Resource)
            .filter(Resource.status == "published")
            .order_by(Resource.published_at.desc(), Resource.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def published_by_ids(db: Session, ids: list[int]) -> list[Resource]:
        if not ids:
            return []
        return db.query(Resource).filter(Resource.id.in_(ids), Resource.status == "published").all()

    @staticmethod
    def same_category(db: Session, category: str, exclude_ids: list[int], limit: int) -> list[Resource]:
        return (
            db.query(Resource)
            .filter(
                Resource.status == "published",
                Resource.category == category,
                Resource.id.notin_(exclude_ids),
            )
            .order_by(Resource.published_at.desc(), Resource.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def category_counts(db: Session) -> list[tuple[str, int]]:
        return (
            db.query(Resource.category, func.count(Resource.id))
            .filter(Resource.status == "published")
            .group_by(Resource.category)
            .order_by(func.count(Resource.id).desc(), Resource.category.asc())
            .all()
        )

    @staticmethod
    def status_counts(db: Session) -> dict[str, int]:
        rows = db.query(Resource.status, func.count(Resource.id)).group_by(Resource.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def total_views(db: Session) -> int:
        return int(db.query(func.coalesce(func.sum(Resource.view_count), 0)).scalar() or 0)

    @staticmethod
    def by_ids(db: Session, ids: list[int]) -> list[Resource]:
        return db.query(Resource).filter(Resource.id.in_(ids)).all()
