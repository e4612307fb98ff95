"""Messaging router - conversations, messages and attachments"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...exceptions import BadRequestError
from ...models import User
from ...realtime import conversation_room, emit_to, send_to_user, user_room
from ...utils.storage import generate_storage_key, upload_file, validate_upload
from .schemas import (
    ConversationListResponse,
    ConversationResponse,
    MarkReadResponse,
    MessageAttachment,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
    MessageUpdate,
    SendMessageResponse,
    UnreadCountResponse,
)
from .service import MessagingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messaging"])


def get_messaging_service(db: Session = Depends(get_db)) -> MessagingService:
    """Dependency injection for MessagingService"""
    return MessagingService(db)


# ============================================================================
# MESSAGES
# ============================================================================


@router.post("", response_model=SendMessageResponse, status_code=201)
async def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    result = service.send_message(current_user, data)
    message = result["message"]
    await emit_to(
        "message:new",
        {"message": message, "conversation_id": message["conversation_id"]},
        rooms=[conversation_room(message["conversation_id"]), user_room(message["recipient_id"])],
        exclude_user=current_user.id,
    )
    return result


@router.post("/attachments", response_model=MessageAttachment)
async def upload_attachment(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """Upload an image or PDF to attach to a message"""
    content = await file.read()
    filename = file.filename or "attachment"
    content_type = file.content_type or "application/octet-stream"

    is_valid, error = validate_upload(filename, len(content), content_type, documents=True)
    if not is_valid:
        raise BadRequestError(error, code="INVALID_FILE")

    key = generate_storage_key("messages", current_user.id, filename)
    url = upload_file(content, key, content_type)
    return MessageAttachment(
        type="document" if content_type == "application/pdf" else "image",
        url=url,
        filename=filename,
        size=len(content),
    )


@router.patch("/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: int,
    data: MessageUpdate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    message = service.edit_message(message_id, current_user, data.content)
    await emit_to(
        "message:edited",
        {"message": message, "conversation_id": message["conversation_id"]},
        rooms=[conversation_room(message["conversation_id"]), user_room(message["recipient_id"])],
        exclude_user=current_user.id,
    )
    return message


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.delete_message(message_id, current_user)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.unread_count(current_user)


# ============================================================================
# CONVERSATIONS
# ============================================================================


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    status: Optional[str] = Query(None, pattern="^(active|archived|blocked)$"),
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.list_conversations(current_user, status)


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.get_conversation(conversation_id, current_user)


@router.get("/conversations/{conversation_id}/messages", response_model=MessageListResponse)
async def get_messages(
    conversation_id: int,
    before: Optional[int] = Query(None, ge=1, description="Return messages older than this id"),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.get_messages(conversation_id, current_user, before, limit)


@router.post("/conversations/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_read(
    conversation_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    result = service.mark_read(conversation_id, current_user)
    if result["marked_read"]:
        await send_to_user(
            result["other_participant_id"],
            "message:read",
            {
                "conversation_id": conversation_id,
                "reader_id": current_user.id,
                "count": result["marked_read"],
            },
        )
    return result


@router.post("/conversations/{conversation_id}/archive", response_model=ConversationResponse)
async def archive_conversation(
    conversation_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.archive_conversation(conversation_id, current_user)


__all__ = ["router"]
