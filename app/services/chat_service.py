"""
Chat service - conversations, participants and messages
"""
import logging
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, case, and_, select

from app.core.exceptions import (
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from app.database import transaction
from app.models.chat import Conversation, ConversationParticipant, Message
from app.models.user import User
from app.schemas.chat import (
    ConversationDetailResponse,
    ConversationResponse,
    LastMessagePreview,
    MessageResponse,
    MessageSender,
    ParticipantResponse,
    ReplyPreview,
)
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


class ChatService:
    """Service for chat operations"""

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_participant(self, db: Session, conversation_id: int, user_id: int) -> Optional[ConversationParticipant]:
        return db.query(ConversationParticipant).filter(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id
        ).first()

    def get_conversation_for(self, db: Session, user_id: int, conversation_id: int) -> Conversation:
        """Conversation the user participates in; 404 otherwise"""
        conversation = db.get(Conversation, conversation_id)
        if not conversation or not self._get_participant(db, conversation_id, user_id):
            raise NotFoundError("Conversation not found or access denied")
        return conversation

    def find_direct_conversation(self, db: Session, user_a: int, user_b: int) -> Optional[Conversation]:
        """Existing direct conversation between two users, if any"""
        mine = select(ConversationParticipant.conversation_id).where(
            ConversationParticipant.user_id == user_a
        )
        theirs = select(ConversationParticipant.conversation_id).where(
            ConversationParticipant.user_id == user_b
        )
        return db.query(Conversation).filter(
            Conversation.type == "direct",
            Conversation.id.in_(mine),
            Conversation.id.in_(theirs)
        ).first()

    def _unread_count(self, db: Session, conversation_id: int, participant: ConversationParticipant) -> int:
        query = db.query(func.count(Message.id)).filter(
            Message.conversation_id == conversation_id,
            Message.sender_id != participant.user_id
        )
        if participant.last_read_at is not None:
            query = query.filter(Message.created_at > participant.last_read_at)
        return query.scalar() or 0

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def _display_name(self, conversation: Conversation, viewer_id: int) -> str:
        if conversation.type == "direct":
            other = next(
                (p.user for p in conversation.participants if p.user_id != viewer_id),
                None
            )
            return other.name if other else "Unknown User"
        return conversation.name or "Unnamed Conversation"

    def _display_avatar(self, conversation: Conversation, viewer_id: int) -> Optional[str]:
        if conversation.type == "direct":
            other = next(
                (p.user for p in conversation.participants if p.user_id != viewer_id),
                None
            )
            return other.avatar_url if other else None
        return conversation.avatar

    def to_response(self, db: Session, conversation: Conversation, viewer_id: int) -> ConversationResponse:
        latest = db.query(Message).filter(
            Message.conversation_id == conversation.id
        ).order_by(Message.created_at.desc(), Message.id.desc()).first()

        participant = next(
            (p for p in conversation.participants if p.user_id == viewer_id),
            None
        )

        return ConversationResponse(
            id=conversation.id,
            type=conversation.type,
            name=self._display_name(conversation, viewer_id),
            avatar=self._display_avatar(conversation, viewer_id),
            description=conversation.description,
            is_active=conversation.is_active,
            created_by=conversation.created_by,
            last_message=LastMessagePreview(
                id=latest.id,
                content=latest.content,
                type=latest.type,
                sender_name=latest.sender.name if latest.sender else "Unknown User",
                created_at=latest.created_at
            ) if latest else None,
            participants_count=len(conversation.participants),
            unread_count=self._unread_count(db, conversation.id, participant) if participant else 0,
            last_message_at=conversation.last_message_at,
            created_at=conversation.created_at
        )

    def to_detail_response(self, db: Session, conversation: Conversation, viewer_id: int) -> ConversationDetailResponse:
        base = self.to_response(db, conversation, viewer_id)
        return ConversationDetailResponse(
            **base.model_dump(),
            participants=[
                ParticipantResponse(
                    id=p.user_id,
                    name=p.user.name,
                    username=p.user.username,
                    avatar=p.user.avatar_url,
                    role=p.role,
                    is_muted=p.is_muted,
                    last_read_at=p.last_read_at
                )
                for p in conversation.participants
            ]
        )

    def message_to_response(self, message: Message, viewer_id: int) -> MessageResponse:
        reply = message.reply_to
        return MessageResponse(
            id=message.id,
            conversation_id=message.conversation_id,
            content=message.content,
            type=message.type,
            attachments=message.attachments,
            is_edited=message.is_edited,
            edited_at=message.edited_at,
            sender=MessageSender(
                id=message.sender.id,
                name=message.sender.name,
                username=message.sender.username,
                avatar=message.sender.avatar_url
            ),
            reply_to=ReplyPreview(
                id=reply.id,
                content=reply.content,
                sender_name=reply.sender.name
            ) if reply else None,
            is_own_message=message.sender_id == viewer_id,
            created_at=message.created_at
        )

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def list_conversations(
        self,
        db: Session,
        user_id: int,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Conversation], int]:
        """Active conversations of the user, most recent activity first"""
        member_of = select(ConversationParticipant.conversation_id).where(
            ConversationParticipant.user_id == user_id
        )
        query = db.query(Conversation).filter(
            Conversation.id.in_(member_of),
            Conversation.is_active.is_(True)
        )
        total = query.count()

        activity = case(
            (Conversation.last_message_at.is_(None), Conversation.created_at),
            else_=Conversation.last_message_at
        )
        conversations = query.order_by(
            activity.desc(), Conversation.id.desc()
        ).offset(offset).limit(limit).all()
        return conversations, total

    def start_direct_conversation(self, db: Session, user_id: int, other_user_id: int) -> Tuple[Conversation, bool]:
        """
        Get or create the direct conversation between two users.
        Returns (conversation, existed).
        """
        if user_id == other_user_id:
            raise InvalidOperationError("Cannot start conversation with yourself")

        other = db.query(User).filter(User.id == other_user_id, User.deleted_at.is_(None)).first()
        if not other:
            raise ValidationError.for_field("user_id", "The selected user id is invalid.")

        existing = self.find_direct_conversation(db, user_id, other_user_id)
        if existing:
            return existing, True

        now = utc_now()
        conversation = Conversation(type="direct", created_by=user_id, is_active=True)
        with transaction(db):
            db.add(conversation)
            db.flush()
            for participant_id in (user_id, other_user_id):
                db.add(ConversationParticipant(
                    conversation_id=conversation.id,
                    user_id=participant_id,
                    role="member",
                    joined_at=now,
                    last_read_at=now,
                    is_muted=False
                ))

        db.refresh(conversation)
        logger.info(f"Direct conversation {conversation.id} created between {user_id} and {other_user_id}")
        return conversation, False

    def create_group_conversation(
        self,
        db: Session,
        user_id: int,
        name: str,
        participant_ids: List[int],
        description: Optional[str] = None
    ) -> Conversation:
        member_ids = sorted(set(participant_ids) - {user_id})
        if not member_ids:
            raise ValidationError.for_field("participant_ids", "At least one other participant is required.")

        found = {
            row.id for row in db.query(User.id).filter(
                User.id.in_(member_ids),
                User.deleted_at.is_(None)
            ).all()
        }
        missing = [uid for uid in member_ids if uid not in found]
        if missing:
            raise ValidationError.for_field(
                "participant_ids", f"Unknown users: {', '.join(str(uid) for uid in missing)}"
            )

        now = utc_now()
        conversation = Conversation(
            type="group", name=name, description=description, created_by=user_id, is_active=True
        )
        with transaction(db):
            db.add(conversation)
            db.flush()
            db.add(ConversationParticipant(
                conversation_id=conversation.id, user_id=user_id, role="admin",
                joined_at=now, last_read_at=now
            ))
            for member_id in member_ids:
                db.add(ConversationParticipant(
                    conversation_id=conversation.id, user_id=member_id, role="member", joined_at=now
                ))

        db.refresh(conversation)
        logger.info(f"Group conversation {conversation.id} created by {user_id} with {len(member_ids)} members")
        return conversation

    def delete_conversation(self, db: Session, user_id: int, conversation_id: int) -> None:
        """Delete a conversation with its participants and messages (creator only)"""
        conversation = self.get_conversation_for(db, user_id, conversation_id)
        if conversation.created_by != user_id:
            raise ForbiddenError("Only the creator can delete this conversation")

        with transaction(db):
            db.delete(conversation)
        logger.info(f"Conversation {conversation_id} deleted by {user_id}")

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def get_messages(
        self,
        db: Session,
        user_id: int,
        conversation_id: int,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Message], int]:
        """Messages newest first; marks the conversation read for the caller"""
        self.get_conversation_for(db, user_id, conversation_id)

        query = db.query(Message).filter(Message.conversation_id == conversation_id)
        total = query.count()
        messages = query.order_by(
            Message.created_at.desc(), Message.id.desc()
        ).offset(offset).limit(limit).all()

        self.mark_as_read(db, conversation_id, user_id)
        return messages, total

    def mark_as_read(self, db: Session, conversation_id: int, user_id: int) -> None:
        with transaction(db):
            db.query(ConversationParticipant).filter(
                and_(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id == user_id
                )
            ).update({"last_read_at": utc_now()}, synchronize_session=False)

    def send_message(
        self,
        db: Session,
        user_id: int,
        conversation_id: int,
        content: str,
        message_type: str = "text",
        reply_to_id: Optional[int] = None,
        attachments: Optional[list] = None
    ) -> Message:
        """Post a message and bump the conversation's last activity together"""
        conversation = self.get_conversation_for(db, user_id, conversation_id)

        if reply_to_id is not None:
            reply_to = db.get(Message, reply_to_id)
            if not reply_to or reply_to.conversation_id != conversation_id:
                raise ValidationError.for_field("reply_to_id", "The selected reply to id is invalid.")

        now = utc_now()
        message = Message(
            conversation_id=conversation_id,
            sender_id=user_id,
            reply_to_id=reply_to_id,
            type=message_type,
            content=content,
            attachments=attachments,
            created_at=now
        )
        with transaction(db):
            db.add(message)
            conversation.last_message_at = now
            self._get_participant(db, conversation_id, user_id).last_read_at = now

        db.refresh(message)
        logger.info(f"Message {message.id} sent to conversation {conversation_id} by {user_id}")
        return message

    def edit_message(self, db: Session, user_id: int, message_id: int, content: str) -> Message:
        message = db.get(Message, message_id)
        if not message or not self._get_participant(db, message.conversation_id, user_id):
            raise NotFoundError("Message not found")
        if message.sender_id != user_id:
            raise ForbiddenError("You can only edit your own messages")

        with transaction(db):
            message.content = content
            message.is_edited = True
            message.edited_at = utc_now()

        db.refresh(message)
        return message


chat_service = ChatService()
