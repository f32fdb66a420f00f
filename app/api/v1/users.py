"""
User API endpoints - profile, search and group listing
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.group import GroupResponse
from app.schemas.user import UserResponse, UserSummary, UserUpdate
from app.services.auth_service import AuthService
from app.services.group_service import group_service

router = APIRouter(tags=["users"])


@router.put("/users/me", response_model=ApiResponse[UserResponse])
async def update_profile(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update the current user's profile"""
    user = AuthService(db).update_profile(current_user, data)
    return success(UserResponse.model_validate(user), "Profile updated successfully")


@router.delete("/users/me", response_model=ApiResponse[None])
async def delete_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Soft-delete the current user's account"""
    AuthService(db).deactivate_user(current_user)
    return success(message="Account deleted successfully")


@router.get("/users/search", response_model=ApiResponse[List[UserSummary]])
async def search_users(
    q: str = Query(..., min_length=2, max_length=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Search active users by name, username or email"""
    users = AuthService(db).search_users(current_user.id, q)
    return success([UserSummary.model_validate(u) for u in users], "Users found successfully")


@router.get("/users/{user_id}/groups", response_model=ApiResponse[List[GroupResponse]])
async def get_user_groups(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Groups the user created or belongs to (own groups only)"""
    groups = group_service.list_user_groups(db, current_user.id, user_id)
    return success([group_service.to_response(db, g) for g in groups])
