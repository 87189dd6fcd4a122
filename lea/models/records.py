"""
Clinic and training records for Lea.

Create/update payloads for each table. Rows themselves live in Supabase and
are passed around as plain dicts; these models only shape what we write.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, EmailStr


class ConsentStatus(str, Enum):
  PENDING = "pending"
  SIGNED = "signed"
  EXPIRED = "expired"


class TargetAudience(str, Enum):
  """Who a treatment is offered to."""

  CLIENT = "client"
  PRACTITIONER = "practitioner"
  BOTH = "both"


class BookingStatus(str, Enum):
  SCHEDULED = "scheduled"
  CONFIRMED = "confirmed"
  COMPLETED = "completed"
  CANCELLED = "cancelled"


class EnrollmentStatus(str, Enum):
  ACTIVE = "active"
  COMPLETED = "completed"
  DROPPED = "dropped"


class FormType(str, Enum):
  TREATMENT = "treatment"
  PSYCHOLOGICAL_SCREENING = "psychological_screening"
  MEDICAL_HISTORY = "medical_history"


class PaymentStatus(str, Enum):
  PENDING = "pending"
  COMPLETED = "completed"
  FAILED = "failed"
  REFUNDED = "refunded"


class ContentType(str, Enum):
  TEXT = "text"
  VIDEO = "video"
  PDF = "pdf"
  QUIZ = "quiz"


class AssessmentType(str, Enum):
  QUIZ = "quiz"
  PRACTICAL = "practical"
  PORTFOLIO = "portfolio"
  OSCE = "osce"  # Objective structured clinical examination


# =============================================================================
# People
# =============================================================================

class ClientCreate(BaseModel):
  """A treatment recipient, owned by the practitioner who registers them."""

  first_name: str = Field(..., min_length=1)
  last_name: str = Field(..., min_length=1)
  email: EmailStr
  phone: Optional[str] = None
  date_of_birth: Optional[date] = None
  medical_history: Optional[str] = None
  allergies: Optional[str] = None
  current_medications: Optional[str] = None
  age_verified: bool = False
  consent_status: ConsentStatus = ConsentStatus.PENDING


class ClientUpdate(BaseModel):
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  email: Optional[EmailStr] = None
  phone: Optional[str] = None
  date_of_birth: Optional[date] = None
  medical_history: Optional[str] = None
  allergies: Optional[str] = None
  current_medications: Optional[str] = None
  age_verified: Optional[bool] = None
  consent_status: Optional[ConsentStatus] = None


class StudentCreate(BaseModel):
  """A course participant."""

  first_name: str = Field(..., min_length=1)
  last_name: str = Field(..., min_length=1)
  email: EmailStr
  phone: Optional[str] = None
  qualification_level: Optional[str] = None
  prior_experience: Optional[str] = None
  cpd_hours: int = Field(0, ge=0)


class StudentUpdate(BaseModel):
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  email: Optional[EmailStr] = None
  phone: Optional[str] = None
  qualification_level: Optional[str] = None
  prior_experience: Optional[str] = None
  cpd_hours: Optional[int] = Field(None, ge=0)


# =============================================================================
# Catalogue
# =============================================================================

class TreatmentCreate(BaseModel):
  name: str = Field(..., min_length=1)
  description: Optional[str] = None
  category: Optional[str] = None
  target_audience: TargetAudience = TargetAudience.CLIENT
  duration: Optional[int] = Field(None, ge=0, description="Minutes")
  price: Decimal = Field(..., ge=0, decimal_places=2)
  requires_consent: bool = True
  age_restriction: int = Field(18, ge=0)
  active: bool = True


class TreatmentUpdate(BaseModel):
  name: Optional[str] = None
  description: Optional[str] = None
  category: Optional[str] = None
  target_audience: Optional[TargetAudience] = None
  duration: Optional[int] = Field(None, ge=0)
  price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
  requires_consent: Optional[bool] = None
  age_restriction: Optional[int] = Field(None, ge=0)
  active: Optional[bool] = None


class CourseCreate(BaseModel):
  name: str = Field(..., min_length=1)
  description: Optional[str] = None
  level: Optional[str] = Field(None, description="Qualification level, e.g. 'Level 4'")
  duration: Optional[int] = Field(None, ge=0, description="Days")
  price: Decimal = Field(..., ge=0, decimal_places=2)
  max_students: Optional[int] = Field(None, ge=1)
  ofqual_compliant: bool = True
  active: bool = True


class CourseUpdate(BaseModel):
  name: Optional[str] = None
  description: Optional[str] = None
  level: Optional[str] = None
  duration: Optional[int] = Field(None, ge=0)
  price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
  max_students: Optional[int] = Field(None, ge=1)
  ofqual_compliant: Optional[bool] = None
  active: Optional[bool] = None


# =============================================================================
# Bookings and enrollments
# =============================================================================

class BookingCreate(BaseModel):
  client_id: str
  treatment_id: str
  scheduled_date: datetime
  status: BookingStatus = BookingStatus.SCHEDULED
  notes: Optional[str] = None


class BookingUpdate(BaseModel):
  scheduled_date: Optional[datetime] = None
  status: Optional[BookingStatus] = None
  notes: Optional[str] = None


class EnrollmentCreate(BaseModel):
  student_id: str
  course_id: str
  status: EnrollmentStatus = EnrollmentStatus.ACTIVE
  progress: int = Field(0, ge=0, le=100, description="Percent complete")


class EnrollmentUpdate(BaseModel):
  status: Optional[EnrollmentStatus] = None
  progress: Optional[int] = Field(None, ge=0, le=100)


# =============================================================================
# Compliance
# =============================================================================

class ConsentFormCreate(BaseModel):
  client_id: str
  treatment_id: str
  form_type: FormType
  content: str = Field(..., min_length=1)


class ConsentSignRequest(BaseModel):
  signature_data: Optional[str] = None


class AssessmentCreate(BaseModel):
  course_id: str
  student_id: str
  assessment_type: AssessmentType
  score: Optional[int] = Field(None, ge=0)
  max_score: Optional[int] = Field(None, ge=0)
  passed: bool = False
  feedback: Optional[str] = None
  completed_date: Optional[datetime] = None


class CourseContentCreate(BaseModel):
  course_id: str
  title: str = Field(..., min_length=1)
  content: Optional[str] = None
  content_type: ContentType
  file_path: Optional[str] = None
  order_index: int = Field(0, ge=0)


# =============================================================================
# Payments
# =============================================================================

class PaymentIntentRequest(BaseModel):
  """A card payment for a booking or an enrollment."""

  amount: Decimal = Field(..., gt=0, description="Major currency units, e.g. pounds")
  currency: str = Field("gbp", min_length=3, max_length=3)
  client_id: Optional[str] = None
  student_id: Optional[str] = None
  booking_id: Optional[str] = None
  enrollment_id: Optional[str] = None

  @property
  def metadata(self) -> dict:
    return {
      "client_id": self.client_id or "",
      "student_id": self.student_id or "",
      "booking_id": self.booking_id or "",
      "enrollment_id": self.enrollment_id or "",
    }
