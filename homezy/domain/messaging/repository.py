"""Messaging repository - conversations and messages"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...models import User
from ...models_messaging import Conversation, Message
from ...shared.queries import json_array_contains


class MessagingRepository:
    """Repository for conversation and message database operations"""

    @staticmethod
    def get_conversation(db: Session, conversation_id: int) -> Optional[Conversation]:
        return (
            db.query(Conversation)
            .options(
                joinedload(Conversation.homeowner),
                joinedload(Conversation.professional).joinedload(User.pro_profile),
            )
            .filter(Conversation.id == conversation_id)
            .first()
        )

    @staticmethod
    def get_between(db: Session, homeowner_id: int, professional_id: int) -> Optional[Conversation]:
        return (
            db.query(Conversation)
            .filter(
                Conversation.homeowner_id == homeowner_id,
                Conversation.professional_id == professional_id,
            )
            .first()
        )

    @staticmethod
    def list_for_user(db: Session, user_id: int, status: Optional[str] = None) -> list[Conversation]:
        query = (
            db.query(Conversation)
            .options(
                joinedload(Conversation.homeowner),
                joinedload(Conversation.professional).joinedload(User.pro_profile),
            )
            .filter(or_(Conversation.homeowner_id == user_id, Conversation.professional_id == user_id))
        )
        if status:
            query = query.filter(Conversation.status == status)
        return query.order_by(
            func.coalesce(Conversation.last_message_at, Conversation.created_at).desc(),
            Conversation.id.desc(),
        ).all()

    @staticmethod
    def total_unread(db: Session, user_id: int) -> int:
        as_homeowner = (
            db.query(func.coalesce(func.sum(Conversation.unread_homeowner), 0))
            .filter(Conversation.homeowner_id == user_id)
            .scalar()
        )
        as_pro = (
            db.query(func.coalesce(func.sum(Conversation.unread_professional), 0))
            .filter(Conversation.professional_id == user_id)
            .scalar()
        )
        return int(as_homeowner or 0) + int(as_pro or 0)

    @staticmethod
    def get_message(db: Session, message_id: int) -> Optional[Message]:
        return db.query(Message).filter(Message.id == message_id).first()

    @staticmethod
    def list_messages(
        db: Session, conversation_id: int, viewer_id: int, before: Optional[int], limit: int
    ) -> list[Message]:
        """Newest first; callers reverse for display"""
        query = db.query(Message).filter(
            Message.conversation_id == conversation_id,
            ~json_array_contains(Message.deleted_for, str(viewer_id)),
        )
        if before:
            query = query.filter(Message.id < before)
        return query.order_by(Message.id.desc()).limit(limit).all()

    @staticmethod
    def mark_read(db: Session, conversation_id: int, recipient_id: int, read_at) -> int:
        return (
            db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.recipient_id == recipient_id,
                Message.is_read.is_(False),
            )
            .update({Message.is_read: True, Message.read_at: read_at}, synchronize_session=False)
        )
