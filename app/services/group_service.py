"""
Group service - groups and their membership rules
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, or_, select

from app.core import permissions
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.database import transaction
from app.models.group import Group, GroupMember, ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER
from app.models.user import User
from app.schemas.group import (
    GroupCreate,
    GroupDetailResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdate,
)
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)


class GroupService:
    """Service for group and membership operations"""

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_group(self, db: Session, group_id: int) -> Group:
        group = db.get(Group, group_id)
        if not group:
            raise NotFoundError("Group not found")
        return group

    def get_membership(self, db: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
        return db.query(GroupMember).filter(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        ).first()

    def get_role(self, db: Session, group_id: int, user_id: int) -> Optional[str]:
        membership = self.get_membership(db, group_id, user_id)
        return membership.role if membership else None

    def _owner_count(self, db: Session, group_id: int) -> int:
        return db.query(func.count(GroupMember.id)).filter(
            GroupMember.group_id == group_id,
            GroupMember.role == ROLE_OWNER
        ).scalar() or 0

    def _member_count(self, db: Session, group_id: int) -> int:
        return db.query(func.count(GroupMember.id)).filter(
            GroupMember.group_id == group_id
        ).scalar() or 0

    def _insert_member(self, db: Session, group_id: int, user_id: int, role: str) -> GroupMember:
        membership = GroupMember(group_id=group_id, user_id=user_id, role=role)
        try:
            with transaction(db):
                db.add(membership)
        except IntegrityError:
            raise ConflictError("User is already a member of this group")
        db.refresh(membership)
        return membership

    def _delete_member(self, db: Session, membership: GroupMember) -> None:
        """Delete a membership, refusing to leave the group without an owner"""
        if membership.role == ROLE_OWNER and self._owner_count(db, membership.group_id) <= 1:
            raise ConflictError(
                "The last owner cannot leave the group. Transfer ownership or delete the group."
            )
        with transaction(db):
            db.delete(membership)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def to_response(self, db: Session, group: Group) -> GroupResponse:
        return GroupResponse(
            id=group.id,
            name=group.name,
            description=group.description,
            created_by=group.created_by,
            is_private=group.is_private,
            avatar=group.avatar,
            member_count=self._member_count(db, group.id),
            created_at=group.created_at
        )

    def to_detail_response(self, db: Session, group: Group) -> GroupDetailResponse:
        base = self.to_response(db, group)
        return GroupDetailResponse(
            **base.model_dump(),
            members=self.list_members(db, group.id)
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def create_group(self, db: Session, creator_id: int, data: GroupCreate) -> Group:
        """Create a group; the creator becomes its owner in the same transaction"""
        group = Group(
            name=data.name,
            description=data.description,
            created_by=creator_id,
            is_private=data.is_private,
            avatar=data.avatar,
        )
        with transaction(db):
            db.add(group)
            db.flush()
            db.add(GroupMember(group_id=group.id, user_id=creator_id, role=ROLE_OWNER))

        db.refresh(group)
        logger.info(f"Group {group.id} created by {creator_id}")
        return group

    def update_group(self, db: Session, actor_id: int, group_id: int, data: GroupUpdate) -> Group:
        group = self.get_group(db, group_id)
        if not permissions.is_group_manager(self.get_role(db, group_id, actor_id)):
            raise ForbiddenError("Unauthorized")

        changes = data.model_dump(exclude_unset=True)
        with transaction(db):
            for field, value in changes.items():
                setattr(group, field, value)

        db.refresh(group)
        return group

    def delete_group(self, db: Session, actor_id: int, group_id: int) -> None:
        group = self.get_group(db, group_id)
        if not permissions.is_group_owner(self.get_role(db, group_id, actor_id)):
            raise ForbiddenError("Unauthorized")

        with transaction(db):
            db.delete(group)
        logger.info(f"Group {group_id} deleted by {actor_id}")

    def list_public_groups(self, db: Session, limit: int = 10, offset: int = 0) -> List[Group]:
        return db.query(Group).filter(
            Group.is_private.is_(False)
        ).order_by(Group.created_at.desc(), Group.id.desc()).offset(offset).limit(limit).all()

    def count_public_groups(self, db: Session) -> int:
        return db.query(Group).filter(Group.is_private.is_(False)).count()

    def list_user_groups(self, db: Session, actor_id: int, user_id: int) -> List[Group]:
        """Groups the user created or belongs to. Users may only list their own."""
        if actor_id != user_id:
            raise ForbiddenError("Unauthorized access to user groups")

        member_of = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
        return db.query(Group).filter(
            or_(Group.created_by == user_id, Group.id.in_(member_of))
        ).order_by(Group.created_at.desc(), Group.id.desc()).all()

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def list_members(self, db: Session, group_id: int, limit: Optional[int] = None, offset: int = 0) -> List[GroupMemberResponse]:
        self.get_group(db, group_id)
        query = db.query(GroupMember, User).join(
            User, User.id == GroupMember.user_id
        ).filter(
            GroupMember.group_id == group_id
        ).order_by(GroupMember.joined_at, GroupMember.id)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return [
            GroupMemberResponse(
                user=UserSummary.model_validate(user),
                role=membership.role,
                joined_at=membership.joined_at
            )
            for membership, user in query.all()
        ]

    def add_member(
        self,
        db: Session,
        actor_id: int,
        group_id: int,
        user_id: int,
        role: str = ROLE_MEMBER
    ) -> GroupMember:
        """Add a user to a group (owner/admin only)"""
        self.get_group(db, group_id)
        actor_role = self.get_role(db, group_id, actor_id)

        if not permissions.is_group_manager(actor_role):
            logger.warning(f"User {actor_id} tried to add a member to group {group_id} without rights")
            raise ForbiddenError("Unauthorized")

        if role not in (ROLE_MEMBER, ROLE_ADMIN):
            raise ValidationError.for_field("role", "The selected role is invalid.")

        if not permissions.can_grant_role(actor_role, role):
            raise ForbiddenError("Only group owners can add admins")

        target = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        if not target:
            raise ValidationError.for_field("user_id", "The selected user id is invalid.")

        if self.get_membership(db, group_id, user_id):
            raise ConflictError("User is already a member of this group")

        membership = self._insert_member(db, group_id, user_id, role)
        logger.info(f"User {user_id} added to group {group_id} as {role} by {actor_id}")
        return membership

    def remove_member(self, db: Session, actor_id: int, group_id: int, user_id: int) -> None:
        """Remove a member; managers may remove others, anyone may remove themselves"""
        self.get_group(db, group_id)
        actor_role = self.get_role(db, group_id, actor_id)

        if actor_id != user_id and not permissions.is_group_manager(actor_role):
            raise ForbiddenError("Unauthorized")

        membership = self.get_membership(db, group_id, user_id)
        if not membership:
            raise NotFoundError("User is not a member of this group")

        if not permissions.can_remove_member(actor_id, actor_role, user_id, membership.role):
            raise ForbiddenError("Only group owners can remove an owner")

        self._delete_member(db, membership)
        logger.info(f"User {user_id} removed from group {group_id} by {actor_id}")

    def join_group(self, db: Session, user_id: int, group_id: int) -> GroupMember:
        """Self-service join of a public group"""
        group = self.get_group(db, group_id)

        if group.is_private:
            raise ForbiddenError("Cannot join a private group. Please request an invitation.")

        if self.get_membership(db, group_id, user_id):
            raise ConflictError("You are already a member of this group")

        membership = self._insert_member(db, group_id, user_id, ROLE_MEMBER)
        logger.info(f"User {user_id} joined group {group_id}")
        return membership

    def leave_group(self, db: Session, user_id: int, group_id: int) -> None:
        """Self-service leave"""
        self.get_group(db, group_id)

        membership = self.get_membership(db, group_id, user_id)
        if not membership:
            raise NotFoundError("You are not a member of this group")

        self._delete_member(db, membership)
        logger.info(f"User {user_id} left group {group_id}")


group_service = GroupService()

