from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


class Resource(Base):
    """Help-center / CMS article"""

    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(200), unique=True, index=True, nullable=False)
    title = Column(String(200), nullable=False)
    excerpt = Column(String(500), nullable=False)
    content_body = Column(Text, nullable=True)
    content_format = Column(String(20), nullable=False, default="html")  # html, markdown, blocks
    video_url = Column(String(500), nullable=True)
    reading_time = Column(Integer, nullable=True)  # minutes
    type = Column(String(30), nullable=False, default="guide", index=True)
    category = Column(String(50), nullable=False, index=True)
    tags = Column(JSON, default=list)
    target_audience = Column(String(20), nullable=False, default="both")  # homeowner, pro, both
    author_name = Column(String(255), nullable=True)
    author_title = Column(String(255), nullable=True)
    author_avatar = Column(String(500), nullable=True)
    featured_image = Column(String(500), nullable=True)
    featured = Column(Boolean, default=False, nullable=False)
    popular = Column(Boolean, default=False, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    related_resource_ids = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default="draft", index=True)  # draft, published, archived
    published_at = Column(DateTime, nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PortfolioProject(Base):
    """A finished job a pro shows on their profile"""

    __tablename__ = "portfolio_projects"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    service_category = Column(String(50), nullable=False)
    completion_date = Column(DateTime, nullable=True)
    location_emirate = Column(String(30), nullable=True)
    budget_bracket = Column(String(20), nullable=True)
    is_featured = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    photos = relationship(
        "ProjectPhoto",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectPhoto.id",
    )


class ProjectPhoto(Base):
    __tablename__ = "project_photos"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(
        Integer, ForeignKey("portfolio_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    thumbnail_url = Column(String(500), nullable=True)
    storage_key = Column(String(500), nullable=True)  # R2 key when uploaded through us
    caption = Column(String(500), nullable=True)
    photo_type = Column(String(10), nullable=False, default="main")  # main, before, after
    room_categories = Column(JSON, default=list)
    allow_ideas = Column(Boolean, default=True, nullable=False)  # Pro opt-in for the gallery
    is_published_to_ideas = Column(Boolean, default=False, nullable=False, index=True)
    published_at = Column(DateTime, nullable=True)
    published_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    admin_status = Column(String(20), nullable=False, default="active", index=True)  # active, flagged, removed
    removal_reason = Column(Text, nullable=True)
    removed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    removed_at = Column(DateTime, nullable=True)
    save_count = Column(Integer, default=0, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    project = relationship("PortfolioProject", back_populates="photos")
    professional = relationship("User", foreign_keys=[professional_id])


class PhotoSave(Base):
    __tablename__ = "photo_saves"
    __table_args__ = (UniqueConstraint("user_id", "photo_id", name="uq_photo_save_user"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    photo_id = Column(Integer, ForeignKey("project_photos.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    photo = relationship("ProjectPhoto")
