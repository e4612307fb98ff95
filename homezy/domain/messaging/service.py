"""
Messaging service - homeowner/pro conversations.

There is one conversation per homeowner/pro pair. Each side has its own
unread counter on the conversation row. Realtime delivery happens in the
router once the write has been committed.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import PLATFORM_CONFIG
from ...exceptions import BadRequestError, ForbiddenError, NotFoundError
from ...models import User
from ...models_messaging import Conversation, Message
from ...realtime import is_online
from ...services.notification_service import create_notification
from ..users.repository import UserRepository
from .repository import MessagingRepository
from .schemas import MessageCreate

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


def serialize_message(message: Message) -> dict:
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "recipient_id": message.recipient_id,
        "content": message.content,
        "attachments": message.attachments or [],
        "is_read": message.is_read,
        "read_at": message.read_at,
        "is_edited": message.is_edited,
        "edited_at": message.edited_at,
        "created_at": message.created_at,
    }


def serialize_participant(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "avatar_url": user.avatar_url,
        "role": user.role,
        "business_name": user.pro_profile.business_name if user.pro_profile else None,
        "is_online": is_online(user.id),
    }


def serialize_conversation(conversation: Conversation, viewer_id: int) -> dict:
    is_homeowner = viewer_id == conversation.homeowner_id
    other = conversation.professional if is_homeowner else conversation.homeowner
    return {
        "id": conversation.id,
        "homeowner_id": conversation.homeowner_id,
        "professional_id": conversation.professional_id,
        "related_lead_id": conversation.related_lead_id,
        "last_message_content": conversation.last_message_content,
        "last_message_sender_id": conversation.last_message_sender_id,
        "last_message_at": conversation.last_message_at,
        "unread_count": (
            conversation.unread_homeowner if is_homeowner else conversation.unread_professional
        ),
        "status": conversation.status,
        "other_participant": serialize_participant(other),
        "created_at": conversation.created_at,
    }


class MessagingService:
    """Service layer for messaging business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MessagingRepository()

    def _get_conversation_for(self, conversation_id: int, user: User) -> Conversation:
        conversation = self.repo.get_conversation(self.db, conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        if user.id not in conversation.participant_ids():
            raise ForbiddenError("You are not part of this conversation")
        return conversation

    def _get_or_create_conversation(
        self, homeowner_id: int, professional_id: int, related_lead_id: Optional[int]
    ) -> Conversation:
        conversation = self.repo.get_between(self.db, homeowner_id, professional_id)
        if conversation:
            return conversation

        conversation = Conversation(
            homeowner_id=homeowner_id,
            professional_id=professional_id,
            related_lead_id=related_lead_id,
            status="active",
        )
        self.db.add(conversation)
        try:
            self.db.flush()
        except IntegrityError:
            # Created concurrently by the other participant
            self.db.rollback()
            conversation = self.repo.get_between(self.db, homeowner_id, professional_id)
        logger.info(f"✅ Conversation opened between homeowner {homeowner_id} and pro {professional_id}")
        return conversation

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send_message(self, sender: User, data: MessageCreate) -> dict:
        if data.recipient_id == sender.id:
            raise BadRequestError("You cannot message yourself")

        recipient = UserRepository.get_by_id(self.db, data.recipient_id)
        if not recipient or not recipient.is_active:
            raise NotFoundError("Recipient not found")

        roles = {sender.role, recipient.role}
        if roles != {"homeowner", "pro"}:
            raise BadRequestError(
                "Conversations are only between homeowners and professionals",
                code="INVALID_PARTICIPANTS",
            )

        homeowner_id, professional_id = (
            (sender.id, recipient.id) if sender.role == "homeowner" else (recipient.id, sender.id)
        )
        conversation = self._get_or_create_conversation(
            homeowner_id, professional_id, data.related_lead_id
        )
        if conversation.status == "blocked":
            raise ForbiddenError("This conversation has been blocked", code="CONVERSATION_BLOCKED")

        now = datetime.utcnow()
        try:
            message = Message(
                conversation_id=conversation.id,
                sender_id=sender.id,
                recipient_id=recipient.id,
                content=data.content,
                attachments=[a.model_dump() for a in data.attachments],
                deleted_for=[],
                created_at=now,
            )
            self.db.add(message)

            if conversation.status == "archived":
                conversation.status = "active"
            if data.related_lead_id and not conversation.related_lead_id:
                conversation.related_lead_id = data.related_lead_id
            conversation.last_message_content = data.content[:PREVIEW_LENGTH]
            conversation.last_message_sender_id = sender.id
            conversation.last_message_at = now
            if recipient.id == conversation.homeowner_id:
                conversation.unread_homeowner = (conversation.unread_homeowner or 0) + 1
            else:
                conversation.unread_professional = (conversation.unread_professional or 0) + 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(message)
        self.db.refresh(conversation)
        logger.info(f"📤 Message {message.id} from {sender.id} to {recipient.id}")

        if not is_online(recipient.id):
            create_notification(
                self.db,
                recipient.id,
                "new_message",
                f"New message from {sender.full_name}",
                data.content[:PREVIEW_LENGTH],
                {"conversation_id": conversation.id, "message_id": message.id},
            )

        return {
            "message": serialize_message(message),
            "conversation": serialize_conversation(conversation, sender.id),
        }

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def list_conversations(self, user: User, status: Optional[str] = None) -> dict:
        conversations = self.repo.list_for_user(self.db, user.id, status)
        return {
            "conversations": [serialize_conversation(c, user.id) for c in conversations],
            "total_unread": self.repo.total_unread(self.db, user.id),
        }

    def get_conversation(self, conversation_id: int, user: User) -> dict:
        return serialize_conversation(self._get_conversation_for(conversation_id, user), user.id)

    def get_messages(
        self, conversation_id: int, user: User, before: Optional[int] = None, limit: int = 50
    ) -> dict:
        self._get_conversation_for(conversation_id, user)
        # One extra row tells us whether older messages exist
        rows = self.repo.list_messages(self.db, conversation_id, user.id, before, limit + 1)
        has_more = len(rows) > limit
        rows = rows[:limit]
        return {
            "messages": [serialize_message(m) for m in reversed(rows)],
            "has_more": has_more,
        }

    def unread_count(self, user: User) -> dict:
        return {"total_unread": self.repo.total_unread(self.db, user.id)}

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def mark_read(self, conversation_id: int, user: User) -> dict:
        conversation = self._get_conversation_for(conversation_id, user)
        marked = self.repo.mark_read(self.db, conversation.id, user.id, datetime.utcnow())
        if user.id == conversation.homeowner_id:
            conversation.unread_homeowner = 0
        else:
            conversation.unread_professional = 0
        self.db.commit()
        return {
            "conversation_id": conversation.id,
            "marked_read": marked,
            "other_participant_id": conversation.other_participant_id(user.id),
        }

    def edit_message(self, message_id: int, user: User, content: str) -> dict:
        message = self.repo.get_message(self.db, message_id)
        if not message or str(user.id) in (message.deleted_for or []):
            raise NotFoundError("Message not found")
        if message.sender_id != user.id:
            raise ForbiddenError("You can only edit your own messages")

        window = timedelta(minutes=PLATFORM_CONFIG["MESSAGE_EDIT_WINDOW_MINUTES"])
        if datetime.utcnow() - message.created_at > window:
            raise BadRequestError(
                f"Messages can only be edited within {PLATFORM_CONFIG['MESSAGE_EDIT_WINDOW_MINUTES']} minutes of sending",
                code="EDIT_WINDOW_EXPIRED",
            )

        message.content = content
        message.is_edited = True
        message.edited_at = datetime.utcnow()

        conversation = message.conversation
        if conversation.last_message_sender_id == user.id and conversation.last_message_at == message.created_at:
            conversation.last_message_content = content[:PREVIEW_LENGTH]
        self.db.commit()
        self.db.refresh(message)
        return serialize_message(message)

    def delete_message(self, message_id: int, user: User) -> dict:
        """Hide a message for the caller only"""
        message = self.repo.get_message(self.db, message_id)
        if not message or user.id not in (message.sender_id, message.recipient_id):
            raise NotFoundError("Message not found")

        deleted_for = list(message.deleted_for or [])
        if str(user.id) not in deleted_for:
            deleted_for.append(str(user.id))
            message.deleted_for = deleted_for
            self.db.commit()
        return {"message": "Message deleted", "message_id": message.id}

    def archive_conversation(self, conversation_id: int, user: User) -> dict:
        conversation = self._get_conversation_for(conversation_id, user)
        if conversation.status == "blocked":
            raise BadRequestError("Blocked conversations cannot be archived")
        conversation.status = "archived"
        self.db.commit()
        self.db.refresh(conversation)
        return serialize_conversation(conversation, user.id)
