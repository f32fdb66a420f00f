"""Chat schemas"""
from datetime import datetime
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field


class DirectConversationCreate(BaseModel):
    user_id: int = Field(..., gt=0)


class GroupConversationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    participant_ids: List[int] = Field(..., min_length=1)


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    type: Literal["text", "image", "file"] = "text"
    reply_to_id: Optional[int] = None
    attachments: Optional[List[Any]] = None


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageSender(BaseModel):
    id: int
    name: str
    username: str
    avatar: Optional[str] = None


class ReplyPreview(BaseModel):
    id: int
    content: str
    sender_name: str


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    content: str
    type: str
    attachments: Optional[List[Any]] = None
    is_edited: bool
    edited_at: Optional[datetime] = None
    sender: MessageSender
    reply_to: Optional[ReplyPreview] = None
    is_own_message: bool
    created_at: datetime


class ParticipantResponse(BaseModel):
    id: int
    name: str
    username: str
    avatar: Optional[str] = None
    role: str
    is_muted: bool
    last_read_at: Optional[datetime] = None


class LastMessagePreview(BaseModel):
    id: int
    content: str
    type: str
    sender_name: str
    created_at: datetime


class ConversationResponse(BaseModel):
    id: int
    type: str
    name: str
    avatar: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_by: Optional[int] = None
    last_message: Optional[LastMessagePreview] = None
    participants_count: int
    unread_count: int = 0
    last_message_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ConversationDetailResponse(ConversationResponse):
    participants: List[ParticipantResponse] = []


class DirectConversationResult(BaseModel):
    conversation: ConversationDetailResponse
    exists: bool
