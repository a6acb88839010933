"""
Authentication and Authorization

Identity is asserted by a trusted upstream: the client forwards the identity
provider's uid in X-Identity-UID (email in X-User-Email as a fallback) and
both resolve against the local user directory. This is not a cryptographic
scheme; deployments must only accept these headers from the trusted gateway.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import AuthenticationError, AuthorizationError
from app.models.user import User, ROLE_ADMIN
from app.services.identity_directory import IdentityDirectory
from app.services.permissions import has_role

logger = logging.getLogger(__name__)


async def get_current_user(
    x_identity_uid: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the calling user from identity headers.

    FastAPI caches this dependency per request, so the directory lookup
    happens at most once per request.

    Raises:
        AuthenticationError: No user matches the supplied identity
        AuthorizationError: The account is deactivated
    """
    if not x_identity_uid and not x_user_email:
        raise AuthenticationError("User not found. Please provide identity UID or email.")

    user = await IdentityDirectory(db).resolve(x_identity_uid, x_user_email)

    if user is None:
        logger.warning(f"Unresolvable identity: uid={x_identity_uid!r} email={x_user_email!r}")
        raise AuthenticationError("User not found. Please provide identity UID or email.")

    if not user.is_active:
        raise AuthorizationError("Account is inactive")

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency restricting an endpoint to administrators"""
    if not has_role(user, ROLE_ADMIN):
        raise AuthorizationError("Admin access required")
    return user
