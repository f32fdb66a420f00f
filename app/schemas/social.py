"""
Friend request and friendship schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class FriendRequestCreate(BaseModel):
    """Send a friend request"""
    receiver_id: int = Field(..., gt=0)


class FriendRequestCancel(BaseModel):
    """Cancel a sent request, addressed by its receiver"""
    receiver_id: int = Field(..., gt=0)


class FriendRequestAction(BaseModel):
    """Accept or reject a received request"""
    request_id: int = Field(..., gt=0)


class FriendRequestResponse(BaseModel):
    """Friend request response"""
    id: int
    sender_id: int
    receiver_id: int
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReceivedFriendRequest(BaseModel):
    """Pending request enriched with the sender's profile"""
    id: int
    sender_id: int
    sender_name: str
    sender_email: str
    sender_avatar_url: str
    created_at: str  # relative, e.g. "5 minutes ago"


class FriendshipCheck(BaseModel):
    user_id: int
    is_friend: bool


class FriendCount(BaseModel):
    count: int
