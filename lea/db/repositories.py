"""
Repository classes for database operations.

Each repository handles CRUD operations for a specific table,
providing a clean interface for the rest of the application.
"""

from datetime import datetime, timezone
from typing import Optional, Any, Iterable
from uuid import UUID

from lea.db.client import get_client, get_admin_client, SupabaseClient


def utcnow_iso() -> str:
  return datetime.now(timezone.utc).isoformat()


class BaseRepository:
  """Base class for all repositories."""

  table_name: str = ""

  def __init__(self, client: Optional[SupabaseClient] = None, use_admin: bool = False):
    """
    Initialize repository with optional client.

    Args:
      client: Supabase client to use. If None, gets default client.
      use_admin: If True and no client provided, use admin client.
    """
    if client:
      self._client = client
    elif use_admin:
      self._client = get_admin_client()
    else:
      self._client = get_client()

  @property
  def table(self):
    """Get the table reference."""
    return self._client.table(self.table_name)

  def _to_dict(self, obj: Any) -> dict:
    """Convert object to dict for storage."""
    if hasattr(obj, "model_dump"):
      return obj.model_dump(mode="json", exclude_none=True)
    elif isinstance(obj, dict):
      return obj
    else:
      raise ValueError(f"Cannot convert {type(obj)} to dict")

  @staticmethod
  def _first(response) -> Optional[dict]:
    return response.data[0] if response.data else None

  def get_by_id(self, row_id: str | UUID) -> Optional[dict]:
    """Get a row by ID."""
    response = self.table.select("*").eq("id", str(row_id)).limit(1).execute()
    return self._first(response)

  def create(self, obj: Any, **extra) -> Optional[dict]:
    """Insert a row and return it."""
    data = {**self._to_dict(obj), **extra}
    response = self.table.insert(data).execute()
    return self._first(response)

  def update(self, row_id: str | UUID, obj: Any = None, **kwargs) -> Optional[dict]:
    """Update a row, stamping updated_at."""
    data = {**(self._to_dict(obj) if obj is not None else {}), **kwargs}
    data["updated_at"] = utcnow_iso()
    response = self.table.update(data).eq("id", str(row_id)).execute()
    return self._first(response)

  def delete(self, row_id: str | UUID) -> Optional[dict]:
    """Delete a row, returning it if it existed."""
    response = self.table.delete().eq("id", str(row_id)).execute()
    return self._first(response)

  def _where_in(self, column: str, values: Iterable[str], order: str = "created_at") -> list[dict]:
    ids = [str(v) for v in values]
    if not ids:
      return []
    response = self.table.select("*").in_(column, ids).order(order, desc=True).execute()
    return response.data or []


class ProfileRepository(BaseRepository):
  """Repository for user profiles (extends auth.users)."""

  table_name = "user_profiles"

  def upsert(self, user_id: str | UUID, email: str, **kwargs) -> Optional[dict]:
    """Create or refresh a user profile."""
    data = {
      "id": str(user_id),
      "email": email,
      "updated_at": utcnow_iso(),
      **kwargs,
    }
    response = self.table.upsert(data, on_conflict="id").execute()
    return self._first(response)


class OwnedRepository(BaseRepository):
  """Rows owned by a practitioner through user_id."""

  def get_by_owner(self, user_id: str | UUID) -> list[dict]:
    response = (
      self.table.select("*")
      .eq("user_id", str(user_id))
      .order("created_at", desc=True)
      .execute()
    )
    return response.data or []


class ClientRepository(OwnedRepository):
  """Repository for treatment recipients."""

  table_name = "clients"

  def set_consent_status(self, client_id: str | UUID, status: str) -> Optional[dict]:
    return self.update(client_id, consent_status=status)


class StudentRepository(OwnedRepository):
  """Repository for course participants."""

  table_name = "students"

  def get_by_email(self, email: str) -> list[dict]:
    """Student rows for a signed-in student, matched on email."""
    response = self.table.select("*").eq("email", email).execute()
    return response.data or []


class TreatmentRepository(BaseRepository):
  """Repository for the treatment catalogue."""

  table_name = "treatments"

  def get_active(self, category: str = None, target_audience: str = None) -> list[dict]:
    """
    Get active treatments.

    A treatment aimed at "both" audiences matches either audience filter.
    """
    query = self.table.select("*").eq("active", True)
    if category:
      query = query.eq("category", category)
    if target_audience:
      query = query.in_("target_audience", [target_audience, "both"])
    response = query.order("name").execute()
    return response.data or []


class CourseRepository(BaseRepository):
  """Repository for training courses."""

  table_name = "courses"

  def get_active(self) -> list[dict]:
    response = self.table.select("*").eq("active", True).order("name").execute()
    return response.data or []


class BookingRepository(BaseRepository):
  """Repository for treatment bookings."""

  table_name = "bookings"

  def get_by_client(self, client_id: str | UUID) -> list[dict]:
    return self.get_by_clients([client_id])

  def get_by_clients(self, client_ids: Iterable[str]) -> list[dict]:
    return self._where_in("client_id", client_ids, order="scheduled_date")


class EnrollmentRepository(BaseRepository):
  """Repository for course enrollments."""

  table_name = "enrollments"

  def get_by_students(self, student_ids: Iterable[str]) -> list[dict]:
    return self._where_in("student_id", student_ids, order="enrollment_date")

  def get_by_course(self, course_id: str | UUID) -> list[dict]:
    response = self.table.select("*").eq("course_id", str(course_id)).execute()
    return response.data or []


class ConsentFormRepository(BaseRepository):
  """Repository for consent forms."""

  table_name = "consent_forms"

  def get_by_client(self, client_id: str | UUID) -> list[dict]:
    return self.get_by_clients([client_id])

  def get_by_clients(self, client_ids: Iterable[str]) -> list[dict]:
    return self._where_in("client_id", client_ids)

  def sign(self, form_id: str | UUID, signature_data: Optional[str]) -> Optional[dict]:
    """Mark a consent form as signed now."""
    return self.update(
      form_id,
      signed=True,
      signed_date=utcnow_iso(),
      signature_data=signature_data,
    )


class PaymentRepository(BaseRepository):
  """Repository for payments."""

  table_name = "payments"

  def get_by_clients(self, client_ids: Iterable[str]) -> list[dict]:
    return self._where_in("client_id", client_ids)

  def get_by_students(self, student_ids: Iterable[str]) -> list[dict]:
    return self._where_in("student_id", student_ids)

  def verify_age(self, payment_id: str | UUID) -> Optional[dict]:
    return self.update(payment_id, age_verified=True)


class CourseContentRepository(BaseRepository):
  """Repository for course modules."""

  table_name = "course_content"

  def get_by_course(self, course_id: str | UUID) -> list[dict]:
    response = (
      self.table.select("*")
      .eq("course_id", str(course_id))
      .order("order_index")
      .execute()
    )
    return response.data or []


class AssessmentRepository(BaseRepository):
  """Repository for student assessments."""

  table_name = "assessments"

  def get_by_student(self, student_id: str | UUID) -> list[dict]:
    response = (
      self.table.select("*")
      .eq("student_id", str(student_id))
      .order("created_at", desc=True)
      .execute()
    )
    return response.data or []

  def get_by_course(self, course_id: str | UUID) -> list[dict]:
    response = self.table.select("*").eq("course_id", str(course_id)).execute()
    return response.data or []
