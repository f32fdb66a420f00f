"""
Social API endpoints - friend requests and friendships
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.core.exceptions import ConflictError, InvalidOperationError
from app.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.social import (
    FriendCount,
    FriendRequestAction,
    FriendRequestCancel,
    FriendRequestCreate,
    FriendRequestResponse,
    FriendshipCheck,
    ReceivedFriendRequest,
)
from app.schemas.user import FriendInfo
from app.services.social_service import social_service

router = APIRouter(tags=["social"])


@router.post(
    "/friend-requests",
    response_model=ApiResponse[FriendRequestResponse],
    status_code=status.HTTP_201_CREATED
)
async def send_friend_request(
    data: FriendRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Send a friend request to another user"""
    try:
        friend_request = social_service.send_friend_request(db, current_user.id, data.receiver_id)
    except ConflictError as e:
        # Friend-request conflicts are reported as 400
        raise InvalidOperationError(e.message)

    return success(
        FriendRequestResponse.model_validate(friend_request),
        "Friend request sent successfully."
    )


@router.get("/friend-requests/sent", response_model=ApiResponse[List[int]])
async def get_sent_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Receiver ids of the pending requests the current user sent"""
    return success(social_service.get_sent_requests(db, current_user.id))


@router.post("/friend-requests/cancel", response_model=ApiResponse[None])
async def cancel_friend_request(
    data: FriendRequestCancel,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Cancel a sent friend request"""
    social_service.cancel_friend_request(db, current_user.id, data.receiver_id)
    return success(message="Friend request cancelled successfully.")


@router.get("/friend-requests/received", response_model=ApiResponse[List[ReceivedFriendRequest]])
async def get_received_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Pending requests addressed to the current user"""
    return success(social_service.get_received_requests(db, current_user.id))


@router.post("/friend-requests/accept", response_model=ApiResponse[FriendRequestResponse])
async def accept_friend_request(
    data: FriendRequestAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Accept a friend request"""
    friend_request = social_service.accept_friend_request(db, current_user.id, data.request_id)
    return success(
        FriendRequestResponse.model_validate(friend_request),
        "Friend request accepted successfully."
    )


@router.post("/friend-requests/reject", response_model=ApiResponse[FriendRequestResponse])
async def reject_friend_request(
    data: FriendRequestAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Reject a friend request"""
    friend_request = social_service.reject_friend_request(db, current_user.id, data.request_id)
    return success(
        FriendRequestResponse.model_validate(friend_request),
        "Friend request rejected successfully."
    )


@router.get("/user/friends", response_model=ApiResponse[List[FriendInfo]])
async def get_friends(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get current user's friends list"""
    return success(social_service.get_friend_infos(db, current_user.id, limit, offset))


@router.get("/friends/check/{user_id}", response_model=ApiResponse[FriendshipCheck])
async def check_friendship(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Check if you are friends with another user"""
    is_friend = social_service.are_friends(db, current_user.id, user_id)
    return success(FriendshipCheck(user_id=user_id, is_friend=is_friend))


@router.get("/friends/count", response_model=ApiResponse[FriendCount])
async def get_friend_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get friend count for current user"""
    return success(FriendCount(count=social_service.get_friend_count(db, current_user.id)))


@router.delete("/friends/{friend_id}", response_model=ApiResponse[None])
async def remove_friend(
    friend_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Remove a friend"""
    social_service.remove_friend(db, current_user.id, friend_id)
    return success(message="Friend removed")
