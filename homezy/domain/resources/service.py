"""Resource service - help-center articles and their admin workflow"""

import logging
import math
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import RESOURCE_STATUSES, WORDS_PER_MINUTE
from ...exceptions import BadRequestError, ConflictError, NotFoundError
from ...models_content import Resource
from ...shared.validators import slugify
from ...utils.sanitization import sanitize_html, strip_tags
from .repository import ResourceRepository
from .schemas import ResourceBulkUpdate, ResourceCreate, ResourceUpdate

logger = logging.getLogger(__name__)

PLAIN_TEXT_FIELDS = ("title", "excerpt", "author_name", "author_title")


def calculate_reading_time(content: Optional[str]) -> int:
    words = len((strip_tags(content) or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _clean_fields(values: dict) -> dict:
    for field in PLAIN_TEXT_FIELDS:
        if values.get(field) is not None:
            values[field] = strip_tags(values[field])
    if values.get("tags") is not None:
        values["tags"] = [t for t in (strip_tags(tag).lower() for tag in values["tags"]) if t]
    if values.get("content_body") is not None and values.get("content_format", "html") == "html":
        values["content_body"] = sanitize_html(values["content_body"])
    return values


class ResourceService:
    """Service layer for resource business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ResourceRepository()

    def _get_or_404(self, resource_id: int) -> Resource:
        resource = self.repo.get_by_id(self.db, resource_id)
        if not resource:
            raise NotFoundError("Resource not found")
        return resource

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def list_published(self, limit: int = 12, offset: int = 0, **filters) -> dict:
        resources, total = self.repo.list_published(self.db, limit=limit, offset=offset, **filters)
        return {"resources": resources, "total": total, "limit": limit, "offset": offset}

    def get_published_by_slug(self, slug: str) -> Resource:
        resource = self.repo.get_by_slug(self.db, slug, published_only=True)
        if not resource:
            raise NotFoundError("Resource not found")
        self.db.query(Resource).filter(Resource.id == resource.id).update(
            {Resource.view_count: Resource.view_count + 1}, synchronize_session=False
        )
        self.db.commit()
        self.db.refresh(resource)
        return resource

    def featured(self, limit: int = 6) -> list[Resource]:
        return self.repo.featured(self.db, limit)

    def popular(self, limit: int = 6) -> list[Resource]:
        return self.repo.most_viewed(self.db, limit)

    def latest(self, limit: int = 6) -> list[Resource]:
        return self.repo.latest(self.db, limit)

    def related(self, slug: str, limit: int = 4) -> list[Resource]:
        """Hand-picked related articles first, topped up from the same category"""
        resource = self.repo.get_by_slug(self.db, slug, published_only=True)
        if not resource:
            raise NotFoundError("Resource not found")

        explicit_ids = [rid for rid in (resource.related_resource_ids or []) if rid != resource.id]
        by_id = {r.id: r for r in self.repo.published_by_ids(self.db, explicit_ids)}
        related = [by_id[rid] for rid in explicit_ids if rid in by_id][:limit]

        if len(related) < limit:
            exclude = [resource.id] + [r.id for r in related]
            related += self.repo.same_category(
                self.db, resource.category, exclude, limit - len(related)
            )
        return related

    def categories(self) -> list[dict]:
        return [
            {"category": category, "count": count}
            for category, count in self.repo.category_counts(self.db)
        ]

    def stats(self) -> dict:
        counts = self.repo.status_counts(self.db)
        return {
            "total": sum(counts.values()),
            **{status: counts.get(status, 0) for status in RESOURCE_STATUSES},
            "total_views": self.repo.total_views(self.db),
        }

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_admin(self, limit: int = 20, offset: int = 0, **filters) -> dict:
        resources, total = self.repo.list_admin(self.db, limit=limit, offset=offset, **filters)
        return {"resources": resources, "total": total, "limit": limit, "offset": offset}

    def get_by_id(self, resource_id: int) -> Resource:
        return self._get_or_404(resource_id)

    def create_resource(self, data: ResourceCreate, admin_id: int) -> Resource:
        values = _clean_fields(data.model_dump())

        slug = values.pop("slug") or slugify(values["title"])
        if not slug:
            raise BadRequestError("A slug could not be derived from the title", code="INVALID_SLUG")
        if self.repo.slug_taken(self.db, slug):
            raise ConflictError(f"A resource with slug '{slug}' already exists", code="SLUG_TAKEN")

        status = values.pop("status")
        if status is None:
            status = "published" if values.get("published_at") else "draft"
        if status == "published" and not values.get("published_at"):
            values["published_at"] = datetime.utcnow()

        resource = Resource(
            **values,
            slug=slug,
            status=status,
            reading_time=calculate_reading_time(values.get("content_body")),
            created_by=admin_id,
        )
        self.db.add(resource)
        self.db.commit()
        self.db.refresh(resource)
        logger.info(f"✅ Resource '{resource.slug}' created ({resource.status})")
        return resource

    def update_resource(self, resource_id: int, data: ResourceUpdate) -> Resource:
        resource = self._get_or_404(resource_id)
        values = data.model_dump(exclude_unset=True)
        if "content_body" in values and "content_format" not in values:
            values["content_format"] = resource.content_format
        values = _clean_fields(values)

        slug = values.get("slug")
        if slug and slug != resource.slug and self.repo.slug_taken(self.db, slug, exclude_id=resource.id):
            raise ConflictError(f"A resource with slug '{slug}' already exists", code="SLUG_TAKEN")

        for key, value in values.items():
            if value is not None or key in ("content_body", "video_url", "published_at"):
                setattr(resource, key, value)

        if "content_body" in values:
            resource.reading_time = calculate_reading_time(resource.content_body)
        if resource.status == "published" and not resource.published_at:
            resource.published_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(resource)
        logger.info(f"✅ Resource {resource.id} updated")
        return resource

    def delete_resource(self, resource_id: int) -> dict:
        resource = self._get_or_404(resource_id)
        self.db.delete(resource)
        self.db.commit()
        logger.info(f"🗑️ Resource {resource_id} deleted")
        return {"message": "Resource deleted"}

    def bulk_update(self, data: ResourceBulkUpdate) -> dict:
        changes = data.model_dump(exclude={"ids"}, exclude_none=True)
        if not changes:
            raise BadRequestError("Nothing to update: provide status, featured or popular")

        resources = self.repo.by_ids(self.db, data.ids)
        now = datetime.utcnow()
        for resource in resources:
            for key, value in changes.items():
                setattr(resource, key, value)
            if resource.status == "published" and not resource.published_at:
                resource.published_at = now
        self.db.commit()
        logger.info(f"✅ Bulk updated {len(resources)} resource(s): {changes}")
        return {"updated": len(resources)}

    def bulk_delete(self, ids: list[int]) -> dict:
        deleted = (
            self.db.query(Resource).filter(Resource.id.in_(ids)).delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"🗑️ Bulk deleted {deleted} resource(s)")
        return {"deleted": deleted}
