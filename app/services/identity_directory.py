"""
Identity Directory

Maps identities asserted by the external identity provider onto internal
user records. Users are created on first sync and refreshed on every later
sync; they are never hard-deleted.
"""
import logging
import uuid
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.user import User, USER_ROLES, ROLE_STUDENT

logger = logging.getLogger(__name__)


def serialize_user(user: User, detailed: bool = False) -> Dict[str, Any]:
    data = {
        "id": user.id,
        "external_uid": user.external_uid,
        "email": user.email,
        "display_name": user.display_name,
        "photo_url": user.photo_url,
        "role": user.role,
        "email_verified": user.email_verified,
    }
    if detailed:
        data["created_at"] = user.created_at
        data["last_login"] = user.last_login
    return data


def user_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    """Public fields used when a user is embedded in another resource"""
    if user is None:
        return None
    return {
        "id": user.id,
        "display_name": user.display_name,
        "email": user.email,
        "photo_url": user.photo_url,
    }


class IdentityDirectory:
    """User lookups and provider synchronisation"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_external_uid(self, external_uid: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.external_uid == external_uid)
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def resolve(self, external_uid: Optional[str], email: Optional[str]) -> Optional[User]:
        """
        Resolve the caller from identity headers.

        The external uid is authoritative; email is only a fallback.
        """
        user = None
        if external_uid:
            user = await self.find_by_external_uid(external_uid)
        if user is None and email:
            user = await self.find_by_email(email)
        return user

    async def sync_user(self, payload: Dict[str, Any]) -> Tuple[User, bool, str]:
        """
        Create or refresh a user from an identity provider payload.

        Args:
            payload: external_uid, email, display_name, photo_url, email_verified

        Returns:
            Tuple of (user, created, message)

        Raises:
            ConflictError: If the email belongs to another identity
        """
        external_uid = payload["external_uid"]
        email = payload["email"].strip().lower()
        email_verified = payload.get("email_verified")

        user = await self.find_by_external_uid(external_uid)
        created = False

        if user is not None:
            message = "User updated successfully"
        else:
            # Records created before the provider uid existed are matched by email
            user = await self.find_by_email(email)
            if user is not None:
                user.external_uid = external_uid
                message = "User migrated and updated successfully"
            else:
                user = User(
                    id=uuid.uuid4(),
                    external_uid=external_uid,
                    email=email,
                    role=ROLE_STUDENT,
                    email_verified=bool(email_verified),
                )
                self.session.add(user)
                created = True
                message = "User created successfully"

        user.email = email
        user.display_name = payload.get("display_name") or user.display_name
        user.photo_url = payload.get("photo_url") or user.photo_url
        if email_verified is not None:
            user.email_verified = email_verified
        user.last_login = utcnow()

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Email already exists")

        logger.info(f"Identity sync for {email}: {message}")
        return user, created, message

    async def get_profile(self, external_uid: str) -> User:
        user = await self.find_by_external_uid(external_uid)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_role(self, user_id: uuid.UUID, role: str) -> User:
        if role not in USER_ROLES:
            raise ValidationError(
                "Valid role is required",
                errors=[{"field": "role", "message": f"Role must be one of {list(USER_ROLES)}"}],
            )

        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        user.role = role
        await self.session.commit()
        logger.info(f"Role of user {user.id} set to {role}")
        return user
