"""
Social features models - Friend requests and friendships
"""
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, text,
)
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now

REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"
REQUEST_REJECTED = "rejected"


def canonical_pair(a: int, b: int):
    """(min, max) ordering used for undirected relationships"""
    return (a, b) if a < b else (b, a)


class FriendRequest(Base):
    """Directed friend request between two users"""
    __tablename__ = "friend_requests"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Canonical pair, filled from sender/receiver on creation
    user_low_id = Column(Integer, nullable=False)
    user_high_id = Column(Integer, nullable=False)

    # Status: 'pending', 'accepted', 'rejected'
    status = Column(String(20), default=REQUEST_PENDING, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_friend_requests_not_self"),
        # At most one pending request per unordered pair
        Index(
            "uq_friend_requests_pending_pair",
            "user_low_id",
            "user_high_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.sender_id is not None and self.receiver_id is not None:
            self.user_low_id, self.user_high_id = canonical_pair(self.sender_id, self.receiver_id)


class Friend(Base):
    """Undirected friendship edge, stored as (min id, max id)"""
    __tablename__ = "friends"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="unique_friendship"),
        CheckConstraint("user_id < friend_id", name="ck_friends_canonical_order"),
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    friend = relationship("User", foreign_keys=[friend_id])

    def other_user_id(self, user_id: int) -> int:
        return self.friend_id if self.user_id == user_id else self.user_id
