"""Messaging schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MessageAttachment(BaseModel):
    type: str = Field("image", pattern="^(image|document)$")
    url: str = Field(..., max_length=1000)
    filename: Optional[str] = Field(None, max_length=255)
    size: Optional[int] = Field(None, ge=0)


class MessageCreate(BaseModel):
    recipient_id: int
    content: str = Field(..., min_length=1, max_length=5000)
    attachments: list[MessageAttachment] = Field(default_factory=list, max_length=5)
    related_lead_id: Optional[int] = None


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    recipient_id: int
    content: str
    attachments: list[dict] = []
    is_read: bool
    read_at: Optional[datetime] = None
    is_edited: bool
    edited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Participant(BaseModel):
    id: int
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None
    role: str
    business_name: Optional[str] = None
    is_online: bool = False


class ConversationResponse(BaseModel):
    id: int
    homeowner_id: int
    professional_id: int
    related_lead_id: Optional[int] = None
    last_message_content: Optional[str] = None
    last_message_sender_id: Optional[int] = None
    last_message_at: Optional[datetime] = None
    unread_count: int
    status: str
    other_participant: Optional[Participant] = None
    created_at: Optional[datetime] = None


class ConversationListResponse(BaseModel):
    conversations: list[ConversationResponse]
    total_unread: int


class SendMessageResponse(BaseModel):
    message: MessageResponse
    conversation: ConversationResponse


class MessageListResponse(BaseModel):
    messages: list[MessageResponse]
    has_more: bool


class MarkReadResponse(BaseModel):
    conversation_id: int
    marked_read: int


class UnreadCountResponse(BaseModel):
    total_unread: int
