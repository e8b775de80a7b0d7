# src/shared/roles.py

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """
    Role names as issued by the auth service (`role.name` on the user record
    and the `role` claim of the access token).
    """
    ADMIN = "admin"
    RECEPTIONIST = "receptionist"
    VETERINARIAN = "veterinarian"
    CLIENT = "client"


# Roles allowed to act on any appointment or pharmacy order, not just their own.
STAFF_ROLES = frozenset({Role.ADMIN, Role.RECEPTIONIST})


def parse_role(value: Optional[str]) -> Optional[Role]:
    """Map a raw role claim to a Role; unknown or missing values map to None."""
    if not value:
        return None
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        return None


def is_staff(role: Optional[Role]) -> bool:
    return role in STAFF_ROLES
