"""
Authentication Service - credentials, accounts and JWT management
"""
import logging
import re
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_

from app.core.exceptions import ConflictError, ValidationError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.database import transaction
from app.models.user import User
from app.schemas.auth import SignupRequest
from app.schemas.user import UserUpdate
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def slugify_username(name: str) -> str:
    """Lowercase alphanumerics of the name, e.g. "Ada Lovelace" -> "adalovelace" """
    base = re.sub(r"[^a-z0-9]", "", name.lower())
    return base or "user"


class AuthService:
    """Service for authentication and user directory operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        return self.db.query(User).filter(User.email == email.lower()).first()

    def generate_username(self, name: str) -> str:
        """Unique username derived from the display name"""
        base = slugify_username(name)
        username = base
        counter = 1
        while self.db.query(User.id).filter(User.username == username).first():
            username = f"{base}{counter}"
            counter += 1
        return username

    def create_user(self, data: SignupRequest) -> User:
        """
        Create a new account

        Raises:
            ValidationError: email or username already taken
        """
        email = data.email.lower()
        if self.get_user_by_email(email):
            raise ValidationError.for_field("email", "The email has already been taken.")

        if data.username:
            if self.db.query(User.id).filter(User.username == data.username).first():
                raise ValidationError.for_field("username", "The username has already been taken.")
            username = data.username
        else:
            username = self.generate_username(data.name)

        user = User(
            name=data.name,
            username=username,
            email=email,
            password_hash=get_password_hash(data.password),
            role=data.role,
            status="active",
        )
        try:
            with transaction(self.db):
                self.db.add(user)
        except IntegrityError:
            # Another signup took the email or username after the checks above
            logger.warning(f"Concurrent signup detected for {email}")
            if self.db.query(User.id).filter(User.email == email).first():
                raise ValidationError.for_field("email", "The email has already been taken.")
            raise ValidationError.for_field("username", "The username has already been taken.")

        self.db.refresh(user)
        logger.info(f"Created new user with ID: {user.id}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials

        Raises:
            ValidationError: unknown email, wrong password or disabled account
        """
        user = self.get_user_by_email(email)
        if not user or user.is_deleted:
            raise ValidationError("Email not found", errors={"email": ["Email not found"]})
        if not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for user {user.id}")
            raise ValidationError("Invalid credentials.", errors={"password": ["Invalid credentials."]})
        if not user.is_active:
            raise ValidationError("Account is not active.", errors={"email": ["Account is not active."]})

        with transaction(self.db):
            user.last_login_at = utc_now()
        self.db.refresh(user)
        return user

    def update_profile(self, user: User, data: UserUpdate) -> User:
        with transaction(self.db):
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(user, field, value)
        self.db.refresh(user)
        return user

    def deactivate_user(self, user: User) -> User:
        """Soft delete: the row stays, the account can no longer log in"""
        if user.is_deleted:
            raise ConflictError("Account already deleted")
        with transaction(self.db):
            user.soft_delete()
        self.db.refresh(user)
        logger.info(f"User {user.id} soft-deleted")
        return user

    def search_users(self, current_user_id: int, term: str) -> List[User]:
        """Active users other than the caller whose name, username or email matches"""
        pattern = f"%{term}%"
        return self.db.query(User).filter(
            User.id != current_user_id,
            User.status == "active",
            User.deleted_at.is_(None),
            or_(
                User.name.ilike(pattern),
                User.username.ilike(pattern),
                User.email.ilike(pattern)
            )
        ).order_by(User.name).limit(SEARCH_LIMIT).all()

    def create_access_token_for_user(self, user: User) -> str:
        """Create JWT access token for user"""
        return create_access_token(data={"sub": str(user.id)})
