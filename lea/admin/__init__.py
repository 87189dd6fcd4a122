"""
Operational tooling for Lea: SQL application, account seeding, diagnostics.
"""

from lea.admin.accounts import (
  DEMO_ACCOUNTS,
  DEMO_ADMIN,
  RESET_CONFIRMATION,
  SetupError,
  bootstrap_admin,
  create_demo_accounts,
  create_demo_admin,
  delete_all_users,
  login_credentials,
)
from lea.admin.diagnostics import check_connection, environment_report, verify_deployment
from lea.admin.sql import apply_statements, count_policies, split_statements

__all__ = [
  "DEMO_ACCOUNTS",
  "DEMO_ADMIN",
  "RESET_CONFIRMATION",
  "SetupError",
  "bootstrap_admin",
  "create_demo_accounts",
  "create_demo_admin",
  "delete_all_users",
  "login_credentials",
  "check_connection",
  "environment_report",
  "verify_deployment",
  "apply_statements",
  "count_policies",
  "split_statements",
]
