"""
Supabase client wrapper for Lea.

Provides singleton access to Supabase clients with proper configuration.
"""

import os
from typing import Mapping, Optional

from supabase import create_client, Client


URL_VARS = ("SUPABASE_URL", "DATABASE_SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
ANON_KEY_VARS = (
  "SUPABASE_ANON_KEY",
  "DATABASE_NEXT_PUBLIC_SUPABASE_ANON_KEY",
  "NEXT_PUBLIC_SUPABASE_ANON_KEY",
)
SERVICE_KEY_VARS = (
  "SUPABASE_SERVICE_KEY",
  "SUPABASE_SERVICE_ROLE_KEY",
  "DATABASE_SUPABASE_SERVICE_ROLE_KEY",
)


def _first_set(environ: Mapping[str, str], names: tuple) -> Optional[str]:
  for name in names:
    value = environ.get(name)
    if value:
      return value
  return None


class SupabaseConfig:
  """Configuration for Supabase connection."""

  def __init__(self, environ: Optional[Mapping[str, str]] = None):
    environ = os.environ if environ is None else environ
    self.url = _first_set(environ, URL_VARS)
    self.anon_key = _first_set(environ, ANON_KEY_VARS)
    self.service_key = _first_set(environ, SERVICE_KEY_VARS)

  @property
  def is_configured(self) -> bool:
    """Check if Supabase is properly configured."""
    return bool(self.url and self.anon_key)

  @property
  def has_service_key(self) -> bool:
    return bool(self.url and self.service_key)

  def validate(self) -> None:
    """Raise error if not properly configured."""
    if not self.url:
      raise ValueError("SUPABASE_URL environment variable not set")
    if not self.anon_key:
      raise ValueError("SUPABASE_ANON_KEY environment variable not set")


class SupabaseClient:
  """
  Wrapper around Supabase client with convenience methods.

  Provides both authenticated (user context) and admin (service role) access.
  """

  def __init__(self, client: Client):
    self._client = client

  @property
  def client(self) -> Client:
    """Get the underlying Supabase client."""
    return self._client

  @property
  def auth(self):
    """Get the auth module."""
    return self._client.auth

  def table(self, name: str):
    """Get a table reference for queries."""
    return self._client.table(name)

  def rpc(self, fn_name: str, params: dict = None):
    """Call a database function."""
    return self._client.rpc(fn_name, params or {})

  # -------------------------------------------------------------------------
  # Auth convenience methods
  # -------------------------------------------------------------------------

  def sign_up(self, email: str, password: str, metadata: dict = None):
    """Sign up a new user, storing metadata on the auth record."""
    credentials = {"email": email, "password": password}
    if metadata:
      credentials["options"] = {"data": metadata}
    return self._client.auth.sign_up(credentials)

  def sign_in(self, email: str, password: str):
    """Sign in an existing user."""
    return self._client.auth.sign_in_with_password({
      "email": email,
      "password": password,
    })

  def sign_out(self) -> None:
    """Sign out the current user."""
    self._client.auth.sign_out()

  def get_user(self, token: str = None):
    """Get the user for a token (or the current session)."""
    return self._client.auth.get_user(token)

  def reset_password(self, email: str) -> None:
    """Send a password reset email."""
    self._client.auth.reset_password_for_email(email)

  # -------------------------------------------------------------------------
  # Admin (service role only)
  # -------------------------------------------------------------------------

  def create_user(self, email: str, password: str, metadata: dict = None, confirm: bool = True):
    """Create a user directly, skipping email confirmation by default."""
    return self._client.auth.admin.create_user({
      "email": email,
      "password": password,
      "email_confirm": confirm,
      "user_metadata": metadata or {},
    })

  def list_users(self, page: int = None, per_page: int = None) -> list:
    """List auth users."""
    if page is None and per_page is None:
      return self._client.auth.admin.list_users()
    return self._client.auth.admin.list_users(page=page, per_page=per_page)

  def delete_user(self, user_id: str) -> None:
    """Delete an auth user."""
    self._client.auth.admin.delete_user(user_id)

  def revoke_session(self, token: str) -> None:
    """Invalidate the refresh tokens behind an access token."""
    self._client.auth.admin.sign_out(token)


# -----------------------------------------------------------------------------
# Singleton instances
# -----------------------------------------------------------------------------

_client: Optional[SupabaseClient] = None
_admin_client: Optional[SupabaseClient] = None
_config: Optional[SupabaseConfig] = None


def get_config() -> SupabaseConfig:
  """Get the Supabase configuration (singleton)."""
  global _config
  if _config is None:
    _config = SupabaseConfig()
  return _config


def get_client() -> SupabaseClient:
  """
  Get the Supabase client (singleton).

  Uses the anon key, which respects Row Level Security.
  Use this for user-facing operations.
  """
  global _client
  if _client is None:
    config = get_config()
    config.validate()
    raw_client = create_client(config.url, config.anon_key)
    _client = SupabaseClient(raw_client)
  return _client


def get_admin_client() -> SupabaseClient:
  """
  Get the admin Supabase client (singleton).

  Uses the service_role key, which bypasses Row Level Security.
  Use this for admin operations and maintenance scripts.
  """
  global _admin_client
  if _admin_client is None:
    config = get_config()
    if not config.url:
      raise ValueError("SUPABASE_URL environment variable not set")
    if not config.service_key:
      raise ValueError("SUPABASE_SERVICE_KEY environment variable not set")
    raw_client = create_client(config.url, config.service_key)
    _admin_client = SupabaseClient(raw_client)
  return _admin_client


def is_configured() -> bool:
  """Check if Supabase is configured without raising errors."""
  return get_config().is_configured


def reset_clients() -> None:
  """Reset client singletons (useful for testing)."""
  global _client, _admin_client, _config
  _client = None
  _admin_client = None
  _config = None


def new_client() -> SupabaseClient:
  """
  Create a fresh anon-key client for a single auth flow.

  Signing in stores the session on the client, so login/signup never run on
  the shared singleton.
  """
  config = get_config()
  config.validate()
  return SupabaseClient(create_client(config.url, config.anon_key))


def get_data_client() -> SupabaseClient:
  """
  Get the client used by request handlers for table access.

  Handlers check ownership themselves, so the service role is preferred;
  without one, the anon client (and RLS) is used.
  """
  if get_config().has_service_key:
    return get_admin_client()
  return get_client()
