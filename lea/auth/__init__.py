"""
Authentication module for Lea.

Provides JWT verification and user context for FastAPI.
"""

from lea.auth.middleware import (
  get_current_user,
  get_current_user_optional,
  get_staff_user,
  get_admin_user,
  AuthenticatedUser,
  load_profile,
  security,
)

__all__ = [
  "get_current_user",
  "get_current_user_optional",
  "get_staff_user",
  "get_admin_user",
  "AuthenticatedUser",
  "load_profile",
  "security",
]
