"""
Social service for managing friend requests and friendships
"""
import logging
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_, and_

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from app.database import transaction
from app.models.social import (
    Friend,
    FriendRequest,
    REQUEST_ACCEPTED,
    REQUEST_PENDING,
    REQUEST_REJECTED,
    canonical_pair,
)
from app.models.user import User
from app.schemas.social import ReceivedFriendRequest
from app.schemas.user import FriendInfo
from app.utils.time_utils import time_ago, utc_now

logger = logging.getLogger(__name__)


class SocialService:
    """Service for friend request / friendship operations"""

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_existing_user(self, db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    def _pending_between(self, db: Session, user_a: int, user_b: int) -> Optional[FriendRequest]:
        """Pending request for the unordered pair, in either direction"""
        low, high = canonical_pair(user_a, user_b)
        return db.query(FriendRequest).filter(
            FriendRequest.user_low_id == low,
            FriendRequest.user_high_id == high,
            FriendRequest.status == REQUEST_PENDING
        ).first()

    def _find_received_pending(self, db: Session, receiver_id: int, request_id: int) -> FriendRequest:
        if db.get(FriendRequest, request_id) is None:
            raise ValidationError.for_field("request_id", "The selected request id is invalid.")

        friend_request = db.query(FriendRequest).filter(
            FriendRequest.id == request_id,
            FriendRequest.receiver_id == receiver_id,  # We are the recipient
            FriendRequest.status == REQUEST_PENDING
        ).first()

        if not friend_request:
            logger.warning(
                f"Pending friend request {request_id} not found for receiver {receiver_id}"
            )
            raise NotFoundError("Pending friend request not found or not for this user.")

        if not self._get_existing_user(db, friend_request.sender_id):
            logger.warning(f"Friend request {request_id} was sent by deleted user {friend_request.sender_id}")
            raise NotFoundError("Pending friend request not found or not for this user.")
        return friend_request

    def _transition(self, db: Session, friend_request: FriendRequest, new_status: str) -> None:
        """
        Move a pending request to a terminal state.

        The UPDATE is conditional on the row still being pending, so two
        concurrent accept/reject calls cannot both win.
        """
        updated = db.query(FriendRequest).filter(
            FriendRequest.id == friend_request.id,
            FriendRequest.status == REQUEST_PENDING
        ).update(
            {"status": new_status, "updated_at": utc_now()},
            synchronize_session=False
        )
        if updated != 1:
            raise NotFoundError("Pending friend request not found or not for this user.")

    def _get_or_create_friend(self, db: Session, user_a: int, user_b: int) -> Tuple[Friend, bool]:
        """Idempotent insert of the canonical (min, max) edge"""
        low, high = canonical_pair(user_a, user_b)

        def lookup():
            return db.query(Friend).filter(Friend.user_id == low, Friend.friend_id == high).first()

        existing = lookup()
        if existing:
            return existing, False

        try:
            with db.begin_nested():
                friend = Friend(user_id=low, friend_id=high)
                db.add(friend)
                db.flush()
            return friend, True
        except IntegrityError:
            # Created concurrently by another accept
            existing = lookup()
            if existing is None:
                raise
            return existing, False

    # ------------------------------------------------------------------
    # Friend request state machine
    # ------------------------------------------------------------------

    def send_friend_request(self, db: Session, sender_id: int, receiver_id: int) -> FriendRequest:
        """
        Send a friend request.

        Raises:
            InvalidOperationError: sender and receiver are the same user
            ValidationError: receiver does not exist
            ConflictError: already friends, or a request is already pending
        """
        if sender_id == receiver_id:
            logger.warning(f"User {sender_id} tried to send a friend request to themselves")
            raise InvalidOperationError("You cannot send a friend request to yourself.")

        if not self._get_existing_user(db, receiver_id):
            raise ValidationError.for_field("receiver_id", "The selected receiver id is invalid.")

        if self.are_friends(db, sender_id, receiver_id):
            raise ConflictError("You are already friends with this user.")

        if self._pending_between(db, sender_id, receiver_id):
            raise ConflictError("A friend request is already pending.")

        friend_request = FriendRequest(
            sender_id=sender_id,
            receiver_id=receiver_id,
            status=REQUEST_PENDING
        )
        try:
            with transaction(db):
                db.add(friend_request)
        except IntegrityError:
            # Lost the race against a concurrent send for the same pair
            logger.warning(f"Concurrent pending request detected for users {sender_id}/{receiver_id}")
            raise ConflictError("A friend request is already pending.")

        db.refresh(friend_request)
        logger.info(f"Friend request {friend_request.id} sent: {sender_id} -> {receiver_id}")
        return friend_request

    def cancel_friend_request(self, db: Session, sender_id: int, receiver_id: int) -> None:
        """Cancel a pending request the caller sent"""
        if not self._get_existing_user(db, receiver_id):
            raise ValidationError.for_field("receiver_id", "The selected receiver id is invalid.")

        friend_request = db.query(FriendRequest).filter(
            FriendRequest.sender_id == sender_id,  # We are the sender
            FriendRequest.receiver_id == receiver_id,
            FriendRequest.status == REQUEST_PENDING
        ).first()

        if not friend_request:
            raise NotFoundError("Pending friend request not found.")

        with transaction(db):
            db.delete(friend_request)

        logger.info(f"Friend request {friend_request.id} cancelled by {sender_id}")

    def accept_friend_request(self, db: Session, receiver_id: int, request_id: int) -> FriendRequest:
        """
        Accept a received request and create the friendship.

        The status change and the friendship insert commit together.
        """
        friend_request = self._find_received_pending(db, receiver_id, request_id)

        with transaction(db):
            self._transition(db, friend_request, REQUEST_ACCEPTED)
            friend, created = self._get_or_create_friend(
                db, friend_request.sender_id, friend_request.receiver_id
            )

        db.refresh(friend_request)
        logger.info(
            f"Friend request {request_id} accepted; friendship {friend.id} "
            f"{'created' if created else 'already existed'}"
        )
        return friend_request

    def reject_friend_request(self, db: Session, receiver_id: int, request_id: int) -> FriendRequest:
        """Reject a received request. No friendship is created."""
        friend_request = self._find_received_pending(db, receiver_id, request_id)

        with transaction(db):
            self._transition(db, friend_request, REQUEST_REJECTED)

        db.refresh(friend_request)
        logger.info(f"Friend request {request_id} rejected by {receiver_id}")
        return friend_request

    def get_sent_requests(self, db: Session, user_id: int) -> List[int]:
        """Receiver ids of the caller's pending sent requests"""
        rows = db.query(FriendRequest.receiver_id).filter(
            FriendRequest.sender_id == user_id,
            FriendRequest.status == REQUEST_PENDING
        ).order_by(FriendRequest.created_at, FriendRequest.id).all()
        return [row.receiver_id for row in rows]

    def get_received_requests(self, db: Session, user_id: int) -> List[ReceivedFriendRequest]:
        """Pending received requests with the sender's profile"""
        rows = db.query(FriendRequest, User).join(
            User, User.id == FriendRequest.sender_id
        ).filter(
            FriendRequest.receiver_id == user_id,
            FriendRequest.status == REQUEST_PENDING,
            User.deleted_at.is_(None)
        ).order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc()).all()

        return [
            ReceivedFriendRequest(
                id=fr.id,
                sender_id=sender.id,
                sender_name=sender.name,
                sender_email=sender.email,
                sender_avatar_url=sender.avatar_url or settings.DEFAULT_AVATAR_URL,
                created_at=time_ago(fr.created_at)
            )
            for fr, sender in rows
        ]

    # ------------------------------------------------------------------
    # Friendships
    # ------------------------------------------------------------------

    def are_friends(self, db: Session, user_id: int, other_user_id: int) -> bool:
        """Check if two users are friends"""
        if user_id == other_user_id:
            return False
        friendship = db.query(Friend.id).filter(
            or_(
                and_(Friend.user_id == user_id, Friend.friend_id == other_user_id),
                and_(Friend.user_id == other_user_id, Friend.friend_id == user_id)
            )
        ).first()
        return friendship is not None

    def get_friends(
        self,
        db: Session,
        user_id: int,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[User]:
        """Users on the other side of every friendship edge of user_id"""
        query = db.query(Friend).filter(
            or_(Friend.user_id == user_id, Friend.friend_id == user_id)
        ).order_by(Friend.created_at.desc(), Friend.id.desc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        friend_ids = [fs.other_user_id(user_id) for fs in query.all()]
        if not friend_ids:
            return []

        users = db.query(User).filter(
            User.id.in_(friend_ids),
            User.deleted_at.is_(None)
        ).all()
        by_id = {u.id: u for u in users}
        return [by_id[fid] for fid in friend_ids if fid in by_id]

    def get_friend_infos(self, db: Session, user_id: int, limit: Optional[int] = None, offset: int = 0) -> List[FriendInfo]:
        return [
            FriendInfo(
                id=friend.id,
                name=friend.name,
                email=friend.email,
                username=friend.username,
                avatar_url=friend.avatar_url or settings.DEFAULT_AVATAR_URL,
                bio=friend.bio,
                location=friend.location,
                created_at=time_ago(friend.created_at)
            )
            for friend in self.get_friends(db, user_id, limit, offset)
        ]

    def get_friend_count(self, db: Session, user_id: int) -> int:
        """Get count of friends, skipping deleted accounts like get_friends does"""
        return db.query(Friend).join(
            User,
            or_(
                and_(Friend.user_id == user_id, User.id == Friend.friend_id),
                and_(Friend.friend_id == user_id, User.id == Friend.user_id)
            )
        ).filter(User.deleted_at.is_(None)).count()

    def remove_friend(self, db: Session, user_id: int, friend_id: int) -> None:
        """Remove a friend"""
        low, high = canonical_pair(user_id, friend_id)
        friendship = db.query(Friend).filter(
            Friend.user_id == low,
            Friend.friend_id == high
        ).first()

        if not friendship:
            raise NotFoundError("Friendship not found")

        with transaction(db):
            db.delete(friendship)
        logger.info(f"Friendship {low}/{high} removed by {user_id}")


social_service = SocialService()
