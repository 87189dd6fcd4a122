"""
Database module for Lea.

Provides Supabase client and repository classes for data access.
"""

from lea.db.client import (
  get_client,
  get_admin_client,
  get_data_client,
  new_client,
  is_configured,
  reset_clients,
  SupabaseClient,
)
from lea.db.repositories import (
  ProfileRepository,
  ClientRepository,
  StudentRepository,
  TreatmentRepository,
  CourseRepository,
  BookingRepository,
  EnrollmentRepository,
  ConsentFormRepository,
  PaymentRepository,
  CourseContentRepository,
  AssessmentRepository,
)

__all__ = [
  "get_client",
  "get_admin_client",
  "get_data_client",
  "new_client",
  "is_configured",
  "reset_clients",
  "SupabaseClient",
  "ProfileRepository",
  "ClientRepository",
  "StudentRepository",
  "TreatmentRepository",
  "CourseRepository",
  "BookingRepository",
  "EnrollmentRepository",
  "ConsentFormRepository",
  "PaymentRepository",
  "CourseContentRepository",
  "AssessmentRepository",
]
