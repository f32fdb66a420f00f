"""Group schemas"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from app.schemas.user import UserSummary


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    is_private: bool = False
    avatar: Optional[str] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    is_private: Optional[bool] = None
    avatar: Optional[str] = None


class MemberAdd(BaseModel):
    user_id: int = Field(..., gt=0)
    role: Literal["member", "admin"] = "member"


class GroupMemberResponse(BaseModel):
    user: UserSummary
    role: str
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str
    created_by: Optional[int] = None
    is_private: bool
    avatar: Optional[str] = None
    member_count: int = 0
    created_at: Optional[datetime] = None


class GroupDetailResponse(GroupResponse):
    members: List[GroupMemberResponse] = []
