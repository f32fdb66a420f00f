"""
Authentication endpoints - signup, credentials login and JWT management
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.dependencies import get_current_user
from app.core.rate_limit import limiter
from app.database import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, SignupRequest, Token
from app.schemas.common import ApiResponse, success
from app.schemas.user import UserResponse
from app.services.auth_service import AuthService
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_response(auth_service: AuthService, user: User) -> Token:
    return Token(
        access_token=auth_service.create_access_token_for_user(user),
        token_type="bearer",
        user_type=user.role,
        user=UserResponse.model_validate(user)
    )


@router.post("/signup", response_model=ApiResponse[Token], status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    db: Session = Depends(get_db)
):
    """
    Create an account and return a token for it

    - **name**: display name (a unique username is derived from it unless given)
    - **email**: unique email address
    - **password**: at least 8 characters
    - **role**: 'student' (default) or 'company'
    """
    auth_service = AuthService(db)
    user = auth_service.create_user(data)
    logger.info(f"Signup successful for user: {user.id}")
    return success(_token_response(auth_service, user), "Account created successfully")


@router.post("/login", response_model=ApiResponse[Token])
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate with email and password

    Returns a backend JWT to be sent as `Authorization: Bearer <token>`.
    """
    auth_service = AuthService(db)
    user = auth_service.authenticate(credentials.email, credentials.password)
    logger.info(f"Authentication successful for user: {user.id}")
    return success(_token_response(auth_service, user), "Login successful")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current authenticated user information

    Requires Bearer token in Authorization header.
    """
    return success(UserResponse.model_validate(current_user))


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    current_user: User = Depends(get_current_user)
):
    """
    Logout user

    JWT tokens are stateless so this is mostly for client-side cleanup.
    """
    logger.info(f"User logged out: {current_user.id}")
    return success(message="Logged out successfully")


@router.post("/refresh", response_model=ApiResponse[Token])
async def refresh_token(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Refresh JWT token

    Returns a new JWT token for the authenticated user.
    """
    return success(_token_response(AuthService(db), current_user))
