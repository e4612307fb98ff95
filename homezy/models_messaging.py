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


class Conversation(Base):
    """One thread per homeowner/pro pair"""

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("homeowner_id", "professional_id", name="uq_conversation_participants"),
    )

    id = Column(Integer, primary_key=True, index=True)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    related_lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True)
    last_message_content = Column(String(100), nullable=True)  # Preview only
    last_message_sender_id = Column(Integer, nullable=True)
    last_message_at = Column(DateTime, nullable=True, index=True)
    unread_homeowner = Column(Integer, nullable=False, default=0)
    unread_professional = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")  # active, archived, blocked
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    homeowner = relationship("User", foreign_keys=[homeowner_id])
    professional = relationship("User", foreign_keys=[professional_id])
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan")

    def participant_ids(self) -> tuple[int, int]:
        return self.homeowner_id, self.professional_id

    def other_participant_id(self, user_id: int) -> int:
        return self.professional_id if user_id == self.homeowner_id else self.homeowner_id


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(
        Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    # [{"type": "image", "url": ..., "filename": ..., "size": ...}]
    attachments = Column(JSON, default=list)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime, nullable=True)
    deleted_for = Column(JSON, default=list)  # user ids (as strings) that hid this message
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    conversation = relationship("Conversation", back_populates="messages")
