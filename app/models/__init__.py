"""
Database models for Campus Connect Backend

All models should be imported here for Alembic to detect them.
"""
from app.models.user import User
from app.models.social import FriendRequest, Friend
from app.models.group import Group, GroupMember
from app.models.chat import Conversation, ConversationParticipant, Message
from app.models.job import JobPosting, Application

__all__ = [
    # User
    "User",
    # Social
    "FriendRequest",
    "Friend",
    # Groups
    "Group",
    "GroupMember",
    # Chat
    "Conversation",
    "ConversationParticipant",
    "Message",
    # Jobs
    "JobPosting",
    "Application",
]
