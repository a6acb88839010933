"""
Identity API Endpoints

POST /api/auth/sync - Upsert a user from the identity provider payload
GET /api/auth/profile/{external_uid} - Fetch a user by external identity
PATCH /api/auth/role/{user_id} - Admin endpoint to change a user's role
"""
import uuid
from typing import Optional, Literal

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import require_admin
from app.database import get_db
from app.models.user import User
from app.services.identity_directory import IdentityDirectory, serialize_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SyncUserRequest(BaseModel):
    """Identity provider payload forwarded by the client after sign-in"""
    model_config = ConfigDict(str_strip_whitespace=True)

    external_uid: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    display_name: Optional[str] = Field(None, max_length=200)
    photo_url: Optional[str] = Field(None, max_length=500)
    email_verified: Optional[bool] = None


class RoleUpdateRequest(BaseModel):
    role: Literal["student", "admin"]


@router.post("/sync")
async def sync_user(payload: SyncUserRequest, db: AsyncSession = Depends(get_db)):
    """Create the user on first sign-in, refresh profile fields afterwards"""
    user, created, message = await IdentityDirectory(db).sync_user(payload.model_dump())

    return JSONResponse(
        status_code=201 if created else 200,
        content=jsonable_encoder({
            "success": True,
            "message": message,
            "user": serialize_user(user),
        }),
    )


@router.get("/profile/{external_uid}")
async def get_profile(
    external_uid: str = Path(..., description="Identity provider uid"),
    db: AsyncSession = Depends(get_db),
):
    user = await IdentityDirectory(db).get_profile(external_uid)
    return {"success": True, "user": serialize_user(user, detailed=True)}


@router.patch("/role/{user_id}")
async def update_role(
    payload: RoleUpdateRequest,
    user_id: uuid.UUID = Path(..., description="Internal user id"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await IdentityDirectory(db).update_role(user_id, payload.role)
    return {
        "success": True,
        "message": "User role updated successfully",
        "user": {"id": user.id, "email": user.email, "role": user.role},
    }
