"""
Group API endpoints - groups and membership management
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse, Page, PageMeta, success
from app.schemas.group import (
    GroupCreate,
    GroupDetailResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdate,
    MemberAdd,
)
from app.services.group_service import group_service

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=ApiResponse[Page[GroupResponse]])
async def list_groups(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List public groups"""
    groups = group_service.list_public_groups(db, limit, offset)
    return success(Page(
        items=[group_service.to_response(db, g) for g in groups],
        meta=PageMeta(total=group_service.count_public_groups(db), limit=limit, offset=offset)
    ))


@router.post("", response_model=ApiResponse[GroupDetailResponse], status_code=status.HTTP_201_CREATED)
async def create_group(
    data: GroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a group; the creator becomes its owner"""
    group = group_service.create_group(db, current_user.id, data)
    return success(group_service.to_detail_response(db, group), "Group created successfully")


@router.get("/{group_id}", response_model=ApiResponse[GroupDetailResponse])
async def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get group details with members"""
    group = group_service.get_group(db, group_id)
    return success(group_service.to_detail_response(db, group))


@router.put("/{group_id}", response_model=ApiResponse[GroupDetailResponse])
async def update_group(
    group_id: int,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a group (owner or admin)"""
    group = group_service.update_group(db, current_user.id, group_id, data)
    return success(group_service.to_detail_response(db, group), "Group updated successfully")


@router.delete("/{group_id}", response_model=ApiResponse[None])
async def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a group (owner only)"""
    group_service.delete_group(db, current_user.id, group_id)
    return success(message="Group deleted successfully")


@router.get("/{group_id}/members", response_model=ApiResponse[list[GroupMemberResponse]])
async def get_members(
    group_id: int,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List group members"""
    return success(group_service.list_members(db, group_id, limit, offset))


@router.post("/{group_id}/members", response_model=ApiResponse[list[GroupMemberResponse]], status_code=status.HTTP_201_CREATED)
async def add_member(
    group_id: int,
    data: MemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Add a member to a group (owner/admin)"""
    group_service.add_member(db, current_user.id, group_id, data.user_id, data.role)
    return success(group_service.list_members(db, group_id), "Member added successfully")


@router.post("/{group_id}/members/join", response_model=ApiResponse[None])
async def join_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Join a public group"""
    group_service.join_group(db, current_user.id, group_id)
    return success(message="Successfully joined the group")


@router.post("/{group_id}/members/leave", response_model=ApiResponse[None])
async def leave_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Leave a group"""
    group_service.leave_group(db, current_user.id, group_id)
    return success(message="Successfully left the group")


@router.delete("/{group_id}/members/{user_id}", response_model=ApiResponse[None])
async def remove_member(
    group_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Remove a member (owner/admin, or yourself)"""
    group_service.remove_member(db, current_user.id, group_id, user_id)
    return success(message="Member removed successfully")
