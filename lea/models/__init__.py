"""
Data models for Lea.
"""

from lea.models.user import (
  UserRole,
  UserProfile,
  STAFF_ROLES,
  SignUpRequest,
  LoginRequest,
  ResetPasswordRequest,
)
from lea.models.records import (
  ConsentStatus,
  TargetAudience,
  BookingStatus,
  EnrollmentStatus,
  FormType,
  PaymentStatus,
  ContentType,
  AssessmentType,
  ClientCreate,
  ClientUpdate,
  StudentCreate,
  StudentUpdate,
  TreatmentCreate,
  TreatmentUpdate,
  CourseCreate,
  CourseUpdate,
  BookingCreate,
  BookingUpdate,
  EnrollmentCreate,
  EnrollmentUpdate,
  ConsentFormCreate,
  ConsentSignRequest,
  AssessmentCreate,
  CourseContentCreate,
  PaymentIntentRequest,
)

__all__ = [
  "UserRole",
  "UserProfile",
  "STAFF_ROLES",
  "SignUpRequest",
  "LoginRequest",
  "ResetPasswordRequest",
  "ConsentStatus",
  "TargetAudience",
  "BookingStatus",
  "EnrollmentStatus",
  "FormType",
  "PaymentStatus",
  "ContentType",
  "AssessmentType",
  "ClientCreate",
  "ClientUpdate",
  "StudentCreate",
  "StudentUpdate",
  "TreatmentCreate",
  "TreatmentUpdate",
  "CourseCreate",
  "CourseUpdate",
  "BookingCreate",
  "BookingUpdate",
  "EnrollmentCreate",
  "EnrollmentUpdate",
  "ConsentFormCreate",
  "ConsentSignRequest",
  "AssessmentCreate",
  "CourseContentCreate",
  "PaymentIntentRequest",
]
