"""
User models for Lea.

Profiles extend Supabase auth.users with a role and contact details.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, EmailStr, field_validator


class UserRole(str, Enum):
  """User roles for access control."""

  PRACTITIONER = "practitioner"
  ADMIN = "admin"
  CLIENT = "client"
  STUDENT = "student"


STAFF_ROLES = (UserRole.PRACTITIONER.value, UserRole.ADMIN.value)


class UserProfile(BaseModel):
  """
  Profile for an authenticated user.

  Links to Supabase auth.users; the role drives which rows RLS exposes.
  """

  id: str
  email: Optional[str] = None
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  role: UserRole = UserRole.PRACTITIONER
  created_at: Optional[datetime] = None

  class Config:
    from_attributes = True

  @classmethod
  def from_auth_user(cls, auth_user, profile: Optional[dict] = None) -> "UserProfile":
    """
    Build a profile from a Supabase auth user and an optional profile row.

    The profile row wins over auth metadata; role falls back to practitioner.
    """
    metadata = getattr(auth_user, "user_metadata", None) or {}
    profile = profile or {}
    role = profile.get("role") or metadata.get("role") or UserRole.PRACTITIONER.value
    if role not in {r.value for r in UserRole}:
      role = UserRole.PRACTITIONER.value
    return cls(
      id=str(auth_user.id),
      email=profile.get("email") or getattr(auth_user, "email", None),
      first_name=profile.get("first_name") or metadata.get("first_name"),
      last_name=profile.get("last_name") or metadata.get("last_name"),
      role=role,
      created_at=getattr(auth_user, "created_at", None),
    )


class SignUpRequest(BaseModel):
  """Request model for user signup."""

  email: EmailStr
  password: str = Field(..., min_length=8)
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  role: UserRole = UserRole.PRACTITIONER

  @field_validator("role")
  @classmethod
  def no_self_service_admin(cls, v: UserRole) -> UserRole:
    if v == UserRole.ADMIN:
      raise ValueError("admin accounts cannot be created through signup")
    return v


class LoginRequest(BaseModel):
  """Request model for user login."""

  email: EmailStr
  password: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
  email: EmailStr
