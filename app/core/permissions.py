"""
Authorization checks as plain functions of (actor, resource) fields
"""
from typing import Optional

from app.models.group import ROLE_OWNER, ROLE_ADMIN

MANAGER_ROLES = (ROLE_OWNER, ROLE_ADMIN)


def is_group_manager(role: Optional[str]) -> bool:
    """Owners and admins may add and remove members"""
    return role in MANAGER_ROLES


def is_group_owner(role: Optional[str]) -> bool:
    return role == ROLE_OWNER


def can_grant_role(actor_role: Optional[str], target_role: str) -> bool:
    """Admins may add plain members; only owners may hand out the admin role"""
    if target_role == ROLE_ADMIN:
        return is_group_owner(actor_role)
    return is_group_manager(actor_role)


def can_remove_member(actor_id: int, actor_role: Optional[str], target_id: int, target_role: str) -> bool:
    """Anyone may remove themselves; managers may remove others, but only owners remove owners"""
    if actor_id == target_id:
        return True
    if target_role == ROLE_OWNER:
        return is_group_owner(actor_role)
    return is_group_manager(actor_role)


def is_company(user) -> bool:
    return user.role == "company"


def is_student(user) -> bool:
    return user.role == "student"


def owns_job_posting(user_id: int, job_posting) -> bool:
    return job_posting.company_id == user_id


def can_view_application(user_id: int, application) -> bool:
    """The applying student or the company that owns the posting"""
    return application.student_id == user_id or application.job_posting.company_id == user_id
