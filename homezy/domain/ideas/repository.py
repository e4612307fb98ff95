"""Ideas repository - portfolio projects, photos and saves"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...constants import APPROVED_VERIFICATION_STATUSES
from ...models import ProProfile, User
from ...models_content import PhotoSave, PortfolioProject, ProjectPhoto
from ...shared.queries import json_array_contains, paginate


class IdeasRepository:
    """Repository for portfolio and gallery database operations"""

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    @staticmethod
    def get_project(db: Session, project_id: int) -> Optional[PortfolioProject]:
        return (
            db.query(PortfolioProject)
            .options(joinedload(PortfolioProject.photos))
            .filter(PortfolioProject.id == project_id)
            .first()
        )

    @staticmethod
    def list_projects(db: Session, professional_id: int) -> list[PortfolioProject]:
        return (
            db.query(PortfolioProject)
            .options(joinedload(PortfolioProject.photos))
            .filter(PortfolioProject.professional_id == professional_id)
            .order_by(
                PortfolioProject.is_featured.desc(),
                PortfolioProject.completion_date.desc(),
                PortfolioProject.id.desc(),
            )
            .all()
        )

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    @staticmethod
    def get_photo(db: Session, photo_id: int) -> Optional[ProjectPhoto]:
        return (
            db.query(ProjectPhoto)
            .options(
                joinedload(ProjectPhoto.project),
                joinedload(ProjectPhoto.professional).joinedload(User.pro_profile),
            )
            .filter(ProjectPhoto.id == photo_id)
            .first()
        )

    @staticmethod
    def gallery_query(db: Session):
        """Photos visible in the public gallery"""
        return (
            db.query(ProjectPhoto)
            .join(PortfolioProject, PortfolioProject.id == ProjectPhoto.project_id)
            .join(User, User.id == ProjectPhoto.professional_id)
            .join(ProProfile, ProProfile.user_id == User.id)
            .filter(
                ProjectPhoto.is_published_to_ideas.is_(True),
                ProjectPhoto.admin_status == "active",
                User.is_active.is_(True),
                ProProfile.verification_status.in_(APPROVED_VERIFICATION_STATUSES),
            )
        )

    @staticmethod
    def list_gallery(
        db: Session,
        room: Optional[str] = None,
        service_category: Optional[str] = None,
        sort: str = "newest",
        limit: int = 24,
        offset: int = 0,
    ) -> tuple[list[ProjectPhoto], int]:
        query = IdeasRepository.gallery_query(db).options(
            joinedload(ProjectPhoto.project),
            joinedload(ProjectPhoto.professional).joinedload(User.pro_profile),
        )
        if room:
            query = query.filter(json_array_contains(ProjectPhoto.room_categories, room))
        if service_category:
            query = query.filter(PortfolioProject.service_category == service_category)

        if sort == "popular":
            query = query.order_by(ProjectPhoto.save_count.desc(), ProjectPhoto.id.desc())
        else:
            query = query.order_by(ProjectPhoto.published_at.desc(), ProjectPhoto.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def gallery_room_count(db: Session, room: str) -> int:
        return (
            IdeasRepository.gallery_query(db)
            .filter(json_array_contains(ProjectPhoto.room_categories, room))
            .count()
        )

    @staticmethod
    def is_in_gallery(db: Session, photo_id: int) -> bool:
        return (
            IdeasRepository.gallery_query(db).filter(ProjectPhoto.id == photo_id).first() is not None
        )

    @staticmethod
    def list_admin_photos(
        db: Session,
        status: Optional[str] = None,
        published: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ProjectPhoto], int]:
        query = db.query(ProjectPhoto).options(
            joinedload(ProjectPhoto.project),
            joinedload(ProjectPhoto.professional).joinedload(User.pro_profile),
        )
        if status:
            query = query.filter(ProjectPhoto.admin_status == status)
        if published is not None:
            query = query.filter(ProjectPhoto.is_published_to_ideas.is_(published))
        query = query.order_by(ProjectPhoto.created_at.desc(), ProjectPhoto.id.desc())
        return paginate(query, limit, offset)

    @staticmethod
    def photos_by_ids(db: Session, photo_ids: list[int]) -> list[ProjectPhoto]:
        return db.query(ProjectPhoto).filter(ProjectPhoto.id.in_(photo_ids)).all()

    # ------------------------------------------------------------------
    # Saves
    # ------------------------------------------------------------------

    @staticmethod
    def get_save(db: Session, user_id: int, photo_id: int) -> Optional[PhotoSave]:
        return (
            db.query(PhotoSave)
            .filter(PhotoSave.user_id == user_id, PhotoSave.photo_id == photo_id)
            .first()
        )

    @staticmethod
    def saved_photo_ids(db: Session, user_id: int, photo_ids: list[int]) -> set[int]:
        if not photo_ids:
            return set()
        rows = (
            db.query(PhotoSave.photo_id)
            .filter(PhotoSave.user_id == user_id, PhotoSave.photo_id.in_(photo_ids))
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def list_saved(
        db: Session, user_id: int, limit: int, offset: int
    ) -> tuple[list[ProjectPhoto], int]:
        query = (
            IdeasRepository.gallery_query(db)
            .join(PhotoSave, PhotoSave.photo_id == ProjectPhoto.id)
            .options(
                joinedload(ProjectPhoto.project),
                joinedload(ProjectPhoto.professional).joinedload(User.pro_profile),
            )
            .filter(PhotoSave.user_id == user_id)
            .order_by(PhotoSave.created_at.desc(), PhotoSave.id.desc())
        )
        return paginate(query, limit, offset)
