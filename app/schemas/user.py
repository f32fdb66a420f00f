"""User schemas for request/response validation"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    name: str
    username: str
    email: str
    role: str
    status: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Schema for updating user profile"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)


class UserSummary(BaseModel):
    """Public user card used in search results and member lists"""
    id: int
    name: str
    username: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class FriendInfo(BaseModel):
    """Friend entry returned by the friends list"""
    id: int
    name: str
    email: str
    username: str
    avatar_url: str
    bio: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[str] = None  # relative, e.g. "2 days ago"
