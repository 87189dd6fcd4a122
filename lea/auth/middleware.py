"""
Auth middleware for FastAPI.

Provides dependency injection for authenticated routes.
"""

import logging
import os
from typing import Optional
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from lea.db.client import get_client, get_data_client, is_configured
from lea.db.repositories import ProfileRepository
from lea.models.user import STAFF_ROLES, UserRole

logger = logging.getLogger(__name__)

# Supabase JWT settings
ALGORITHM = "HS256"
AUDIENCE = "authenticated"

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
  """Represents an authenticated user from JWT."""
  id: str
  email: Optional[str]
  role: str = UserRole.PRACTITIONER.value
  first_name: Optional[str] = None
  last_name: Optional[str] = None

  @property
  def is_admin(self) -> bool:
    return self.role == UserRole.ADMIN.value

  @property
  def is_staff(self) -> bool:
    return self.role in STAFF_ROLES


def _jwt_secret() -> Optional[str]:
  return os.environ.get("SUPABASE_JWT_SECRET")


def _decode_locally(token: str, secret: str) -> dict:
  """Verify a Supabase access token signed with the project JWT secret."""
  try:
    claims = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=AUDIENCE)
  except JWTError as e:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail=f"Invalid or expired token: {e}"
    )
  if not claims.get("sub"):
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail="Invalid or expired token"
    )
  return {
    "sub": claims["sub"],
    "email": claims.get("email"),
    "user_metadata": claims.get("user_metadata") or {},
  }


def _decode_remotely(token: str) -> dict:
  """Ask Supabase Auth who the token belongs to."""
  if not is_configured():
    raise HTTPException(
      status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
      detail="Database not configured"
    )

  try:
    user_response = get_client().get_user(token)
  except Exception as e:
    logger.info("Token rejected by Supabase: %s", e)
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail=f"Token validation failed: {e}"
    )

  if not user_response or not user_response.user:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail="Invalid or expired token"
    )

  user = user_response.user
  return {
    "sub": str(user.id),
    "email": user.email,
    "user_metadata": user.user_metadata or {},
  }


def decode_token(token: str) -> dict:
  """
  Decode and verify a Supabase JWT token.

  With SUPABASE_JWT_SECRET set the signature is checked locally; otherwise
  the token is verified by calling Supabase's auth.get_user().
  """
  secret = _jwt_secret()
  if secret:
    return _decode_locally(token, secret)
  return _decode_remotely(token)


def load_profile(user_id: str) -> Optional[dict]:
  """Fetch the user_profiles row, using the service role when available."""
  if not is_configured():
    return None
  try:
    repo = ProfileRepository(client=get_data_client())
    return repo.get_by_id(user_id)
  except Exception as e:
    # The profile only refines the role; auth metadata is still usable
    logger.warning("Could not load profile for %s: %s", user_id, e)
    return None


def build_user(token_data: dict) -> AuthenticatedUser:
  """Combine token claims with the stored profile."""
  metadata = token_data.get("user_metadata") or {}
  profile = load_profile(token_data["sub"]) or {}
  role = profile.get("role") or metadata.get("role") or UserRole.PRACTITIONER.value
  return AuthenticatedUser(
    id=token_data["sub"],
    email=token_data.get("email"),
    role=role,
    first_name=profile.get("first_name") or metadata.get("first_name"),
    last_name=profile.get("last_name") or metadata.get("last_name"),
  )


async def get_current_user(
  credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthenticatedUser:
  """
  Dependency to get the current authenticated user.

  Use this for routes that REQUIRE authentication.
  Raises 401 if not authenticated.
  """
  if not credentials:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail="Authentication required",
      headers={"WWW-Authenticate": "Bearer"},
    )

  return build_user(decode_token(credentials.credentials))


async def get_current_user_optional(
  credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[AuthenticatedUser]:
  """
  Dependency to get the current user if authenticated.

  Use this for routes that work with OR without authentication.
  Returns None for a missing or rejected token.
  """
  if not credentials:
    return None

  try:
    return build_user(decode_token(credentials.credentials))
  except HTTPException as e:
    logger.debug("Ignoring unusable token on optional route: %s", e.detail)
    return None


async def get_staff_user(
  user: AuthenticatedUser = Depends(get_current_user)
) -> AuthenticatedUser:
  """
  Dependency to require a practitioner or admin.

  Raises 403 for clients and students.
  """
  if not user.is_staff:
    raise HTTPException(
      status_code=status.HTTP_403_FORBIDDEN,
      detail="Practitioner access required"
    )
  return user


async def get_admin_user(
  user: AuthenticatedUser = Depends(get_current_user)
) -> AuthenticatedUser:
  """
  Dependency to require admin role.

  Raises 403 if user is not an admin.
  """
  if not user.is_admin:
    raise HTTPException(
      status_code=status.HTTP_403_FORBIDDEN,
      detail="Admin access required"
    )
  return user
