"""
Role definitions and the trusted caller identity.

The upstream gateway authenticates callers; every operation here receives an
already-resolved (user_id, role) pair and trusts it.
"""

from dataclasses import dataclass
from typing import List
from uuid import UUID

from engagements.errors import ForbiddenError


class Roles:
    """Caller roles known to the engagement service."""
    ASSOCIATE = "associate"
    FREELANCER = "freelancer"
    ADMIN = "admin"

    ALL = [ASSOCIATE, FREELANCER, ADMIN]

    # Parties to an interview
    PARTIES = [ASSOCIATE, FREELANCER]


@dataclass(frozen=True)
class CallerIdentity:
    user_id: UUID
    role: str

    @property
    def is_associate(self) -> bool:
        return self.role == Roles.ASSOCIATE

    @property
    def is_freelancer(self) -> bool:
        return self.role == Roles.FREELANCER


def check_role_permission(user_role: str, allowed_roles: List[str]) -> bool:
    """
    Check if user's role is in the list of allowed roles.

    Args:
        user_role: The caller's role
        allowed_roles: List of roles that are permitted

    Returns:
        True if the caller has permission, False otherwise
    """
    if not user_role or not allowed_roles:
        return False
    return user_role in allowed_roles


def ensure_role(caller: CallerIdentity, allowed_roles: List[str]) -> None:
    """Raise ForbiddenError unless the caller holds one of the allowed roles."""
    if not check_role_permission(caller.role, allowed_roles):
        raise ForbiddenError(
            f"Access denied. Required roles: {', '.join(allowed_roles)}",
            {"role": caller.role},
        )
