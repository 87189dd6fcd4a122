"""
Account maintenance: first-admin bootstrap, demo accounts, bulk deletion.

All functions take a service-role SupabaseClient and work through the
Supabase Auth admin API, one user at a time.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from lea.db.client import SupabaseClient
from lea.db.repositories import ProfileRepository
from lea.models.user import UserRole

logger = logging.getLogger(__name__)

RESET_CONFIRMATION = "DELETE_ALL_USERS"

_ALREADY_REGISTERED = re.compile(r"already (?:been )?registered|already exists", re.IGNORECASE)


class SetupError(Exception):
  """An admin operation was refused; carries the HTTP status to report."""

  def __init__(self, message: str, status_code: int = 400):
    self.message = message
    self.status_code = status_code
    super().__init__(message)


@dataclass(frozen=True)
class DemoAccount:
  kind: str
  email: str
  password: str
  first_name: str
  last_name: str
  role: str
  metadata: dict = field(default_factory=dict)

  @property
  def name(self) -> str:
    return f"{self.first_name} {self.last_name}"

  def user_metadata(self) -> dict:
    return {
      "first_name": self.first_name,
      "last_name": self.last_name,
      "role": self.role,
      **self.metadata,
    }


DEMO_CLIENT = DemoAccount(
  kind="client",
  email="client@demo.com",
  password="DemoClient123!",
  first_name="Emma",
  last_name="Johnson",
  role=UserRole.CLIENT.value,
  metadata={
    "phone": "+44 20 7946 0123",
    "date_of_birth": "1985-03-15",
    "preferred_treatments": ["Facial", "Microdermabrasion"],
    "skin_type": "Combination",
    "allergies": "None known",
  },
)

DEMO_PRACTITIONER = DemoAccount(
  kind="practitioner",
  email="student@demo.com",
  password="DemoStudent123!",
  first_name="Sarah",
  last_name="Williams",
  role=UserRole.PRACTITIONER.value,
  metadata={
    "phone": "+44 20 7946 0456",
    "qualification": "Level 3 Beauty Therapy Diploma",
    "specializations": ["Advanced Facials", "Chemical Peels", "Microneedling"],
    "experience_years": 2,
    "certification_date": "2022-06-15",
  },
)

DEMO_ADMIN = DemoAccount(
  kind="admin",
  email="admin@leaaesthetics.com",
  password="AdminLea2024!",
  first_name="Lea",
  last_name="Admin",
  role=UserRole.ADMIN.value,
  metadata={
    "phone": "+44 20 7946 0958",
    "clinic_name": "Lea Aesthetics Clinic",
    "license_number": "LAC-2024-001",
    "clinic_address": "123 Harley Street, London W1G 6BA",
  },
)

DEMO_ACCOUNTS = (DEMO_CLIENT, DEMO_PRACTITIONER)


def is_already_registered(error: Exception) -> bool:
  return bool(_ALREADY_REGISTERED.search(str(error)))


def _user_summary(user, name: str, role: str) -> dict:
  return {
    "id": str(user.id) if user else None,
    "email": user.email if user else None,
    "name": name,
    "role": role,
  }


def _store_profile(client: SupabaseClient, user, first_name: str, last_name: str, role: str) -> None:
  """Mirror a new auth user into user_profiles; the auth record is what matters."""
  try:
    ProfileRepository(client=client).upsert(
      user.id, user.email, first_name=first_name, last_name=last_name, role=role,
    )
  except Exception as e:
    logger.warning("Profile row for %s not stored: %s", user.email, e)


@dataclass
class SeedReport:
  accounts: list[dict] = field(default_factory=list)
  errors: list[dict] = field(default_factory=list)


def create_demo_account(client: SupabaseClient, account: DemoAccount, report: SeedReport) -> None:
  """Create one demo user, recording the outcome on `report`."""
  logger.info("Creating demo %s account %s", account.kind, account.email)
  try:
    response = client.create_user(account.email, account.password, account.user_metadata())
  except Exception as e:
    if is_already_registered(e):
      report.errors.append({"type": account.kind, "error": f"Demo {account.kind} already exists"})
    else:
      logger.error("Demo %s creation failed: %s", account.kind, e)
      report.errors.append({"type": account.kind, "error": str(e)})
    return

  user = response.user
  _store_profile(client, user, account.first_name, account.last_name, account.role)
  report.accounts.append({
    "type": account.kind,
    "user": _user_summary(user, account.name, account.role),
  })


def create_demo_accounts(client: SupabaseClient, accounts=DEMO_ACCOUNTS) -> SeedReport:
  """Create each demo account in turn; failures do not stop the rest."""
  report = SeedReport()
  for account in accounts:
    create_demo_account(client, account, report)
  logger.info("Demo accounts: %d created, %d errors", len(report.accounts), len(report.errors))
  return report


def create_demo_admin(client: SupabaseClient) -> SeedReport:
  return create_demo_accounts(client, accounts=(DEMO_ADMIN,))


def login_credentials(accounts=DEMO_ACCOUNTS) -> dict:
  return {
    a.kind: {"email": a.email, "password": a.password, "name": f"{a.name} ({a.kind.title()})"}
    for a in accounts
  }


def list_all_users(client: SupabaseClient, per_page: int = 1000) -> list:
  """Page through every auth user."""
  users = []
  page = 1
  while True:
    batch = client.list_users(page=page, per_page=per_page) or []
    users.extend(batch)
    if len(batch) < per_page:
      return users
    page += 1


def bootstrap_admin(
  client: SupabaseClient,
  email: Optional[str],
  password: Optional[str],
  first_name: Optional[str],
  last_name: Optional[str],
) -> dict:
  """
  Create the first admin of a fresh project.

  Refused once any user exists; after that admins are managed in-app.
  """
  if not all([email, password, first_name, last_name]):
    raise SetupError("Missing required fields: email, password, first_name, last_name")

  existing = client.list_users(page=1, per_page=1) or []
  if existing:
    raise SetupError("Admin user already exists. Use the login system to access your account.")

  first_name, last_name = first_name.strip(), last_name.strip()
  try:
    response = client.create_user(
      email, password,
      {"first_name": first_name, "last_name": last_name, "role": UserRole.ADMIN.value},
    )
  except Exception as e:
    raise SetupError(f"Failed to create admin user: {e}")

  user = response.user
  if not user:
    raise SetupError("User creation failed - no user returned", status_code=500)

  _store_profile(client, user, first_name, last_name, UserRole.ADMIN.value)
  logger.info("Admin user created: %s", user.email)
  return {
    "id": str(user.id),
    "email": user.email,
    "first_name": first_name,
    "last_name": last_name,
    "role": UserRole.ADMIN.value,
    "created_at": str(user.created_at) if getattr(user, "created_at", None) else None,
  }


@dataclass
class ResetReport:
  total_users: int
  deleted_count: int = 0
  errors: list[dict] = field(default_factory=list)


def delete_all_users(client: SupabaseClient) -> ResetReport:
  """Delete every auth user, one at a time, collecting per-user errors."""
  users = list_all_users(client)
  report = ResetReport(total_users=len(users))
  logger.info("Found %d users to delete", len(users))

  for user in users:
    try:
      client.delete_user(str(user.id))
      report.deleted_count += 1
    except Exception as e:
      logger.error("Failed to delete user %s: %s", user.email, e)
      report.errors.append({"email": user.email, "error": str(e)})

  logger.info("Deleted %d/%d users", report.deleted_count, report.total_users)
  return report
