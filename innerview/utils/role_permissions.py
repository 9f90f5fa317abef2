"""
Role-based permission utilities for staff accounts and RTI team members.

Staff roles gate API access; team roles describe a member's function inside
an RTI team and carry no API permissions of their own.
"""

from typing import Iterable, Set, FrozenSet
from enum import Enum


# Central role constants to ensure consistency across the codebase
ROLE_ADMIN = "ADMIN"
ROLE_TEACHER = "TEACHER"
ROLE_SPECIALIST = "SPECIALIST"

ROLE_DESCRIPTIONS = {
    ROLE_ADMIN: "School administrator with full access",
    ROLE_TEACHER: "Classroom teacher responsible for students",
    ROLE_SPECIALIST: "RTI specialist (psychologist, interventionist, counselor)",
}

ALLOWED_ROLES = set(ROLE_DESCRIPTIONS.keys())

# Derived role groups
ALL_STAFF: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_TEACHER, ROLE_SPECIALIST})
TEAM_MANAGERS: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_SPECIALIST})
CONTENT_EDITORS: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_TEACHER})
ADMIN_ONLY: FrozenSet[str] = frozenset({ROLE_ADMIN})


class UserRole(str, Enum):
    """Staff roles used in schemas and validation."""
    ADMIN = ROLE_ADMIN
    TEACHER = ROLE_TEACHER
    SPECIALIST = ROLE_SPECIALIST


class TeamRole(str, Enum):
    """Function of a member inside an RTI team."""
    COORDINATOR = "COORDINATOR"
    SPECIALIST = "SPECIALIST"
    TEACHER = "TEACHER"
    COUNSELOR = "COUNSELOR"
    PSYCHOLOGIST = "PSYCHOLOGIST"
    OTHER = "OTHER"


def get_allowed_roles() -> Set[str]:
    """Get the set of all allowed staff roles."""
    return ALLOWED_ROLES.copy()


def get_team_manager_roles() -> Set[str]:
    """Get the set of roles allowed to manage RTI teams and the catalogue."""
    return set(TEAM_MANAGERS)


def validate_role(role: str) -> None:
    """
    Validate that a staff role is allowed.

    Args:
        role: The role name to validate

    Raises:
        ValueError: If role is not allowed
    """
    if role not in ALLOWED_ROLES:
        raise ValueError(f"Invalid role '{role}'. Allowed roles: {sorted(ALLOWED_ROLES)}")


def validate_team_role(role: str) -> None:
    if role not in {r.value for r in TeamRole}:
        raise ValueError(f"Invalid team role '{role}'. Allowed roles: {sorted(r.value for r in TeamRole)}")


def role_allows(role: str, allowed: Iterable[str]) -> bool:
    """Return True if the role is one of the allowed roles."""
    return role in set(allowed)


def is_admin(role: str) -> bool:
    return role == ROLE_ADMIN
