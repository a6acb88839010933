"""User model - Students and admins synced from the identity provider"""
from sqlalchemy import Column, String, Boolean, DateTime, CheckConstraint, Index, Uuid
import uuid

from app.database import Base, utcnow

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_STUDENT, ROLE_ADMIN)


class User(Base):
    """Internal user record keyed by the external identity reference"""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    external_uid = Column(String(128), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    display_name = Column(String(200), nullable=True)
    photo_url = Column(String(500), nullable=True)
    role = Column(
        String(20),
        CheckConstraint("role IN ('student', 'admin')", name="ck_users_role"),
        nullable=False,
        default=ROLE_STUDENT,
    )
    email_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_users_role", "role"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
