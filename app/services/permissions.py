"""Role and ownership checks shared by the domain services"""
import uuid
from typing import Optional

from app.models.user import User, ROLE_ADMIN


def has_role(user: Optional[User], role: str) -> bool:
    """Check whether a user carries the given role"""
    return user is not None and user.role == role


def can_modify(caller: Optional[User], owner_id: Optional[uuid.UUID]) -> bool:
    """
    Capability check for owned resources.

    Args:
        caller: Authenticated user
        owner_id: Id of the user owning the resource (None if unknown)

    Returns:
        True if caller owns the resource or is an admin
    """
    if caller is None:
        return False
    if has_role(caller, ROLE_ADMIN):
        return True
    return owner_id is not None and caller.id == owner_id
