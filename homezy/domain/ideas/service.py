"""
Ideas service - pro portfolios and the public inspiration gallery.

A photo reaches the gallery only when the pro has opted in (allow_ideas),
an admin has published it, its moderation status is active and its pro
is an approved, active professional.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import ROOM_CATEGORIES
from ...exceptions import BadRequestError, ForbiddenError, NotFoundError
from ...models import User
from ...models_content import PhotoSave, PortfolioProject, ProjectPhoto
from ...utils.sanitization import strip_tags
from ...utils.storage import delete_file, generate_storage_key, upload_file, validate_upload
from ..users.repository import UserRepository
from .repository import IdeasRepository
from .schemas import (
    PhotoCreate,
    PhotoUpdate,
    PortfolioProjectCreate,
    PortfolioProjectUpdate,
)

logger = logging.getLogger(__name__)


def serialize_photo(photo: ProjectPhoto, is_saved: bool = False) -> dict:
    data = {
        "id": photo.id,
        "project_id": photo.project_id,
        "professional_id": photo.professional_id,
        "image_url": photo.image_url,
        "thumbnail_url": photo.thumbnail_url,
        "caption": photo.caption,
        "photo_type": photo.photo_type,
        "room_categories": photo.room_categories or [],
        "allow_ideas": photo.allow_ideas,
        "is_published_to_ideas": photo.is_published_to_ideas,
        "published_at": photo.published_at,
        "admin_status": photo.admin_status,
        "removal_reason": photo.removal_reason,
        "save_count": photo.save_count,
        "view_count": photo.view_count,
        "created_at": photo.created_at,
        "project_name": photo.project.name if photo.project else None,
        "service_category": photo.project.service_category if photo.project else None,
        "professional": None,
        "is_saved": is_saved,
    }
    pro = photo.professional
    if pro is not None:
        profile = pro.pro_profile
        data["professional"] = {
            "id": pro.id,
            "first_name": pro.first_name,
            "last_name": pro.last_name,
            "business_name": profile.business_name if profile else None,
            "slug": profile.slug if profile else None,
        }
    return data


def serialize_project(project: PortfolioProject, include_removed: bool = True) -> dict:
    photos = [
        p for p in project.photos if include_removed or p.admin_status != "removed"
    ]
    return {
        "id": project.id,
        "professional_id": project.professional_id,
        "name": project.name,
        "description": project.description,
        "service_category": project.service_category,
        "completion_date": project.completion_date,
        "location_emirate": project.location_emirate,
        "budget_bracket": project.budget_bracket,
        "is_featured": project.is_featured,
        "photos": [serialize_photo(p) for p in photos],
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


class IdeasService:
    """Service layer for portfolio and gallery business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = IdeasRepository()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_own_project(self, project_id: int, pro: User) -> PortfolioProject:
        project = self.repo.get_project(self.db, project_id)
        if not project:
            raise NotFoundError("Project not found")
        if project.professional_id != pro.id:
            raise ForbiddenError("You can only manage your own portfolio")
        return project

    def _get_photo_or_404(self, photo_id: int) -> ProjectPhoto:
        photo = self.repo.get_photo(self.db, photo_id)
        if not photo:
            raise NotFoundError("Photo not found")
        return photo

    def _get_own_photo(self, photo_id: int, pro: User) -> ProjectPhoto:
        photo = self._get_photo_or_404(photo_id)
        if photo.professional_id != pro.id:
            raise ForbiddenError("You can only manage your own photos")
        return photo

    def _require_gallery_photo(self, photo_id: int) -> ProjectPhoto:
        if not self.repo.is_in_gallery(self.db, photo_id):
            raise NotFoundError("Photo not found")
        return self._get_photo_or_404(photo_id)

    # ------------------------------------------------------------------
    # Portfolio projects
    # ------------------------------------------------------------------

    def create_project(self, pro: User, data: PortfolioProjectCreate) -> dict:
        values = data.model_dump()
        values["name"] = strip_tags(values["name"])
        values["description"] = strip_tags(values["description"])
        project = PortfolioProject(professional_id=pro.id, **values)
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"✅ Portfolio project {project.id} created by pro {pro.id}")
        return serialize_project(project)

    def list_my_projects(self, pro: User) -> list[dict]:
        return [serialize_project(p) for p in self.repo.list_projects(self.db, pro.id)]

    def get_my_project(self, project_id: int, pro: User) -> dict:
        return serialize_project(self._get_own_project(project_id, pro))

    def update_project(self, project_id: int, pro: User, data: PortfolioProjectUpdate) -> dict:
        project = self._get_own_project(project_id, pro)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(project, key, strip_tags(value) if key in ("name", "description") else value)
        self.db.commit()
        self.db.refresh(project)
        return serialize_project(project)

    def delete_project(self, project_id: int, pro: User) -> dict:
        project = self._get_own_project(project_id, pro)
        keys = [p.storage_key for p in project.photos if p.storage_key]
        self.db.delete(project)
        self.db.commit()
        for key in keys:
            delete_file(key)
        logger.info(f"🗑️ Portfolio project {project_id} deleted with {len(keys)} stored photo(s)")
        return {"message": "Project deleted"}

    def public_projects(self, pro_id: int) -> list[dict]:
        if not UserRepository.get_approved_pro(self.db, pro_id):
            raise NotFoundError("Professional not found")
        return [
            serialize_project(p, include_removed=False)
            for p in self.repo.list_projects(self.db, pro_id)
        ]

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    def _create_photo(self, project: PortfolioProject, values: dict) -> ProjectPhoto:
        photo = ProjectPhoto(
            project_id=project.id,
            professional_id=project.professional_id,
            admin_status="active",
            is_published_to_ideas=False,
            **values,
        )
        self.db.add(photo)
        self.db.commit()
        self.db.refresh(photo)
        logger.info(f"✅ Photo {photo.id} added to project {project.id}")
        return photo

    def add_photo(self, project_id: int, pro: User, data: PhotoCreate) -> dict:
        project = self._get_own_project(project_id, pro)
        values = data.model_dump()
        values["caption"] = strip_tags(values["caption"])
        return serialize_photo(self._create_photo(project, values))

    def upload_photo(
        self,
        project_id: int,
        pro: User,
        content: bytes,
        filename: str,
        content_type: str,
        caption: Optional[str] = None,
        photo_type: str = "main",
        room_categories: Optional[list[str]] = None,
        allow_ideas: bool = True,
    ) -> dict:
        project = self._get_own_project(project_id, pro)

        is_valid, error = validate_upload(filename, len(content), content_type)
        if not is_valid:
            raise BadRequestError(error, code="INVALID_FILE")

        # Form fields skip pydantic, so validate through the same schema
        try:
            fields = PhotoCreate(
                image_url="pending-upload",
                caption=caption,
                photo_type=photo_type,
                room_categories=room_categories or [],
                allow_ideas=allow_ideas,
            )
        except ValueError as e:
            raise BadRequestError(str(e), code="VALIDATION_ERROR") from e

        key = generate_storage_key("portfolio", pro.id, filename)
        url = upload_file(content, key, content_type)

        values = fields.model_dump()
        values.update(
            image_url=url, storage_key=key, caption=strip_tags(values["caption"])
        )
        return serialize_photo(self._create_photo(project, values))

    def update_photo(self, photo_id: int, pro: User, data: PhotoUpdate) -> dict:
        photo = self._get_own_photo(photo_id, pro)
        updates = data.model_dump(exclude_unset=True)
        for key, value in updates.items():
            if value is not None:
                setattr(photo, key, strip_tags(value) if key == "caption" else value)

        if updates.get("allow_ideas") is False and photo.is_published_to_ideas:
            # Withdrawing consent takes the photo out of the gallery
            photo.is_published_to_ideas = False
            logger.info(f"⚠️ Photo {photo.id} unpublished after pro opted out")

        self.db.commit()
        self.db.refresh(photo)
        return serialize_photo(photo)

    def delete_photo(self, photo_id: int, pro: User) -> dict:
        photo = self._get_own_photo(photo_id, pro)
        key = photo.storage_key
        self.db.delete(photo)
        self.db.commit()
        if key:
            delete_file(key)
        return {"message": "Photo deleted"}

    # ------------------------------------------------------------------
    # Public gallery
    # ------------------------------------------------------------------

    def gallery(
        self,
        viewer: Optional[User] = None,
        room: Optional[str] = None,
        service_category: Optional[str] = None,
        sort: str = "newest",
        limit: int = 24,
        offset: int = 0,
    ) -> dict:
        photos, total = self.repo.list_gallery(self.db, room, service_category, sort, limit, offset)
        saved = (
            self.repo.saved_photo_ids(self.db, viewer.id, [p.id for p in photos]) if viewer else set()
        )
        return {
            "photos": [serialize_photo(p, is_saved=p.id in saved) for p in photos],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def get_photo(self, photo_id: int, viewer: Optional[User] = None) -> dict:
        photo = self._require_gallery_photo(photo_id)
        self.db.query(ProjectPhoto).filter(ProjectPhoto.id == photo.id).update(
            {ProjectPhoto.view_count: ProjectPhoto.view_count + 1}, synchronize_session=False
        )
        self.db.commit()
        self.db.refresh(photo)
        is_saved = viewer is not None and self.repo.get_save(self.db, viewer.id, photo.id) is not None
        return serialize_photo(photo, is_saved=is_saved)

    def room_counts(self) -> list[dict]:
        return [
            {"room": room, "count": self.repo.gallery_room_count(self.db, room)}
            for room in ROOM_CATEGORIES
        ]

    def save_photo(self, photo_id: int, user: User) -> dict:
        """Idempotent: saving twice keeps one save"""
        photo = self._require_gallery_photo(photo_id)
        if not self.repo.get_save(self.db, user.id, photo.id):
            try:
                self.db.add(PhotoSave(user_id=user.id, photo_id=photo.id))
                self.db.query(ProjectPhoto).filter(ProjectPhoto.id == photo.id).update(
                    {ProjectPhoto.save_count: ProjectPhoto.save_count + 1},
                    synchronize_session=False,
                )
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
        self.db.refresh(photo)
        return {"photo_id": photo.id, "is_saved": True, "save_count": photo.save_count}

    def unsave_photo(self, photo_id: int, user: User) -> dict:
        photo = self._get_photo_or_404(photo_id)
        save = self.repo.get_save(self.db, user.id, photo.id)
        if save:
            self.db.delete(save)
            self.db.query(ProjectPhoto).filter(
                ProjectPhoto.id == photo.id, ProjectPhoto.save_count > 0
            ).update(
                {ProjectPhoto.save_count: ProjectPhoto.save_count - 1}, synchronize_session=False
            )
            self.db.commit()
        self.db.refresh(photo)
        return {"photo_id": photo.id, "is_saved": False, "save_count": photo.save_count}

    def saved_photos(self, user: User, limit: int = 24, offset: int = 0) -> dict:
        photos, total = self.repo.list_saved(self.db, user.id, limit, offset)
        return {
            "photos": [serialize_photo(p, is_saved=True) for p in photos],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    # ------------------------------------------------------------------
    # Admin moderation
    # ------------------------------------------------------------------

    def admin_list_photos(
        self,
        status: Optional[str] = None,
        published: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> dict:
        photos, total = self.repo.list_admin_photos(self.db, status, published, limit, offset)
        return {
            "photos": [serialize_photo(p) for p in photos],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def _apply_status(self, photo: ProjectPhoto, status: str, admin: User, reason: Optional[str]):
        photo.admin_status = status
        if status == "removed":
            if not reason:
                raise BadRequestError("A reason is required when removing a photo")
            photo.removal_reason = reason
            photo.removed_by = admin.id
            photo.removed_at = datetime.utcnow()
            photo.is_published_to_ideas = False
        else:
            photo.removal_reason = None
            photo.removed_by = None
            photo.removed_at = None

    def update_photo_status(
        self, photo_id: int, admin: User, status: str, reason: Optional[str] = None
    ) -> dict:
        photo = self._get_photo_or_404(photo_id)
        self._apply_status(photo, status, admin, reason)
        self.db.commit()
        self.db.refresh(photo)
        logger.info(f"✅ Photo {photo.id} moderated to {status} by admin {admin.id}")
        return serialize_photo(photo)

    def bulk_update_status(
        self, photo_ids: list[int], admin: User, status: str, reason: Optional[str] = None
    ) -> dict:
        photos = self.repo.photos_by_ids(self.db, photo_ids)
        try:
            for photo in photos:
                self._apply_status(photo, status, admin, reason)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"✅ Bulk moderated {len(photos)} photo(s) to {status}")
        return {"updated": len(photos)}

    def publish_photo(self, photo_id: int, admin: User) -> dict:
        photo = self._get_photo_or_404(photo_id)
        if not photo.allow_ideas:
            raise BadRequestError(
                "The professional has not allowed this photo in Ideas", code="IDEAS_NOT_ALLOWED"
            )
        if photo.admin_status != "active":
            raise BadRequestError(
                f"Only active photos can be published (this one is {photo.admin_status})",
                code="PHOTO_NOT_ACTIVE",
            )
        photo.is_published_to_ideas = True
        photo.published_at = datetime.utcnow()
        photo.published_by = admin.id
        self.db.commit()
        self.db.refresh(photo)
        logger.info(f"✅ Photo {photo.id} published to Ideas by admin {admin.id}")
        return serialize_photo(photo)

    def unpublish_photo(self, photo_id: int, admin: User) -> dict:
        photo = self._get_photo_or_404(photo_id)
        photo.is_published_to_ideas = False
        self.db.commit()
        self.db.refresh(photo)
        logger.info(f"⚠️ Photo {photo.id} unpublished by admin {admin.id}")
        return serialize_photo(photo)
