"""
Chat API endpoints - conversations and messages
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.chat import (
    ConversationDetailResponse,
    ConversationResponse,
    DirectConversationCreate,
    DirectConversationResult,
    GroupConversationCreate,
    MessageCreate,
    MessageResponse,
    MessageUpdate,
)
from app.schemas.common import ApiResponse, Page, PageMeta, success
from app.services.chat_service import chat_service

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/conversations", response_model=ApiResponse[Page[ConversationResponse]])
async def list_conversations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Conversations of the current user, most recent activity first"""
    conversations, total = chat_service.list_conversations(db, current_user.id, limit, offset)
    return success(Page(
        items=[chat_service.to_response(db, c, current_user.id) for c in conversations],
        meta=PageMeta(total=total, limit=limit, offset=offset)
    ))


@router.post("/conversations/direct", response_model=ApiResponse[DirectConversationResult])
async def start_direct_conversation(
    data: DirectConversationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Start (or reopen) a one-to-one conversation"""
    conversation, existed = chat_service.start_direct_conversation(db, current_user.id, data.user_id)
    return success(
        DirectConversationResult(
            conversation=chat_service.to_detail_response(db, conversation, current_user.id),
            exists=existed
        ),
        "Conversation already exists" if existed else "Conversation created successfully"
    )


@router.post(
    "/conversations/group",
    response_model=ApiResponse[ConversationDetailResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_group_conversation(
    data: GroupConversationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a group conversation; the creator joins as admin"""
    conversation = chat_service.create_group_conversation(
        db, current_user.id, data.name, data.participant_ids, data.description
    )
    return success(
        chat_service.to_detail_response(db, conversation, current_user.id),
        "Group conversation created successfully"
    )


@router.get("/conversations/{conversation_id}", response_model=ApiResponse[ConversationDetailResponse])
async def get_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    conversation = chat_service.get_conversation_for(db, current_user.id, conversation_id)
    return success(chat_service.to_detail_response(db, conversation, current_user.id))


@router.delete("/conversations/{conversation_id}", response_model=ApiResponse[None])
async def delete_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    chat_service.delete_conversation(db, current_user.id, conversation_id)
    return success(message="Conversation deleted successfully")


@router.get("/conversations/{conversation_id}/messages", response_model=ApiResponse[Page[MessageResponse]])
async def get_messages(
    conversation_id: int,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Messages newest first; reading them marks the conversation as read"""
    messages, total = chat_service.get_messages(db, current_user.id, conversation_id, limit, offset)
    return success(Page(
        items=[chat_service.message_to_response(m, current_user.id) for m in messages],
        meta=PageMeta(total=total, limit=limit, offset=offset)
    ))


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ApiResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED
)
async def send_message(
    conversation_id: int,
    data: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    message = chat_service.send_message(
        db,
        current_user.id,
        conversation_id,
        data.content,
        message_type=data.type,
        reply_to_id=data.reply_to_id,
        attachments=data.attachments
    )
    return success(chat_service.message_to_response(message, current_user.id), "Message sent successfully")


@router.put("/messages/{message_id}", response_model=ApiResponse[MessageResponse])
async def edit_message(
    message_id: int,
    data: MessageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Edit one of your own messages"""
    message = chat_service.edit_message(db, current_user.id, message_id, data.content)
    return success(chat_service.message_to_response(message, current_user.id), "Message updated successfully")
