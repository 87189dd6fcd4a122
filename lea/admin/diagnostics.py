"""
Deployment diagnostics: environment report, connection check, smoke test.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

import httpx

from lea.db.client import ANON_KEY_VARS, SERVICE_KEY_VARS, URL_VARS, SupabaseClient

logger = logging.getLogger(__name__)

RELEVANT_MARKERS = ("SUPABASE", "DATABASE", "POSTGRES", "STRIPE")


def environment_report(environ: Optional[Mapping[str, str]] = None) -> dict:
  """Which configuration variables are set. Values are never included."""
  environ = os.environ if environ is None else environ
  relevant = sorted(k for k in environ if any(m in k for m in RELEVANT_MARKERS))
  return {
    "timestamp": datetime.now(timezone.utc).isoformat(),
    "key_variables": {
      name: bool(environ.get(name))
      for name in (*URL_VARS, *ANON_KEY_VARS, *SERVICE_KEY_VARS, "SUPABASE_JWT_SECRET", "STRIPE_SECRET_KEY")
    },
    "all_relevant_vars": {k: "SET" if environ.get(k) else "NOT SET" for k in relevant},
    "total_env_vars": len(environ),
  }


@dataclass
class ConnectionStatus:
  ok: bool
  message: str


def check_connection(client: SupabaseClient) -> ConnectionStatus:
  """Make the cheapest admin call there is: list one user."""
  try:
    client.list_users(page=1, per_page=1)
  except Exception as e:
    logger.error("Supabase connection failed: %s", e)
    return ConnectionStatus(ok=False, message=str(e))
  return ConnectionStatus(ok=True, message="Supabase connection successful")


@dataclass
class CheckResult:
  name: str
  method: str
  path: str
  ok: bool
  status: Optional[int] = None
  detail: str = ""


def _check(http: httpx.Client, name: str, method: str, path: str, judge, **kwargs) -> CheckResult:
  try:
    response = http.request(method, path, **kwargs)
  except httpx.HTTPError as e:
    return CheckResult(name=name, method=method, path=path, ok=False, detail=str(e))
  ok, detail = judge(response)
  return CheckResult(
    name=name, method=method, path=path, ok=ok, status=response.status_code, detail=detail,
  )


def _root_ok(response):
  return response.status_code < 400, response.headers.get("content-type", "")


def _health_ok(response):
  if response.status_code != 200:
    return False, response.text[:200]
  try:
    body = response.json()
  except ValueError:
    return False, "health endpoint did not return JSON"
  return True, f"database configured: {body.get('database_configured')}"


def _cors_ok(response):
  origin = response.headers.get("access-control-allow-origin")
  return bool(origin), f"Access-Control-Allow-Origin: {origin or 'Not set'}"


def _setup_validates(response):
  if response.status_code in (400, 405):
    return True, "responding (expected validation error)"
  if response.status_code >= 500:
    return False, response.text[:200]
  return False, f"unexpected status {response.status_code}"


def verify_deployment(base_url: str, http: Optional[httpx.Client] = None) -> list[CheckResult]:
  """
  Smoke-test a running deployment.

  The admin setup POST is sent with an empty body, so a healthy server
  answers 400 without creating anything.
  """
  owns_client = http is None
  if owns_client:
    http = httpx.Client(
      base_url=base_url.rstrip("/"),
      headers={"User-Agent": "DeploymentVerifier/1.0"},
      timeout=15.0,
    )
  try:
    return [
      _check(http, "Root page", "GET", "/", _root_ok),
      _check(http, "Health endpoint", "GET", "/api/health", _health_ok),
      _check(
        http, "CORS preflight", "OPTIONS", "/api/admin/setup", _cors_ok,
        headers={"Origin": "https://example.com", "Access-Control-Request-Method": "POST"},
      ),
      _check(http, "Admin setup validation", "POST", "/api/admin/setup", _setup_validates, json={}),
    ]
  finally:
    if owns_client:
      http.close()
