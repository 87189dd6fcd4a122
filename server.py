"""
Lea Web Server

FastAPI-based API for the Lea clinic and training platform.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from postgrest.exceptions import APIError
from pydantic import BaseModel

from lea import __version__
from lea.auth import (
    AuthenticatedUser,
    get_admin_user,
    get_current_user,
    get_staff_user,
    load_profile,
    security,
)
from lea.admin import (
    DEMO_ADMIN,
    RESET_CONFIRMATION,
    SetupError,
    bootstrap_admin,
    create_demo_accounts,
    create_demo_admin,
    delete_all_users,
    environment_report,
    login_credentials,
)
from lea.db.client import (
    get_admin_client,
    get_config,
    get_data_client,
    new_client,
    is_configured as db_configured,
)
from lea.db.repositories import (
    AssessmentRepository,
    BookingRepository,
    ClientRepository,
    ConsentFormRepository,
    CourseContentRepository,
    CourseRepository,
    EnrollmentRepository,
    PaymentRepository,
    ProfileRepository,
    StudentRepository,
    TreatmentRepository,
)
from lea.models import (
    AssessmentCreate,
    BookingCreate,
    BookingUpdate,
    ClientCreate,
    ClientUpdate,
    ConsentFormCreate,
    ConsentSignRequest,
    ConsentStatus,
    CourseContentCreate,
    CourseCreate,
    CourseUpdate,
    EnrollmentCreate,
    EnrollmentStatus,
    EnrollmentUpdate,
    LoginRequest,
    PaymentIntentRequest,
    PaymentStatus,
    ResetPasswordRequest,
    SignUpRequest,
    StudentCreate,
    StudentUpdate,
    TargetAudience,
    TreatmentCreate,
    TreatmentUpdate,
    UserProfile,
)
from lea.payments import (
    PaymentClient,
    PaymentError,
    get_payment_client,
    is_configured as payments_configured,
)
from lea.reports import dashboard_stats, treatment_summary


logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("lea.server")


def _cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


# Create FastAPI app
app = FastAPI(
    title="Lea",
    description="Lea - Clinic and Training Management API",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Invalid or missing body fields are a plain 400."""
    errors = [
        {
            "field": ".".join(str(p) for p in e["loc"] if p != "body"),
            "message": e["msg"],
        }
        for e in exc.errors()
    ]
    fields = ", ".join(sorted({e["field"] for e in errors if e["field"]}))
    return JSONResponse(
        status_code=400,
        content={
            "detail": f"Missing or invalid fields: {fields}" if fields else "Invalid request",
            "errors": errors,
        },
    )


def _status_for_api_error(exc: APIError) -> int:
    code = str(getattr(exc, "code", "") or "")
    # SQLSTATE class 22 is bad data, 23 a constraint violation
    if code.startswith(("22", "23")):
        return 400
    if code == "42501":
        return 403
    return 502


@app.exception_handler(APIError)
async def handle_database_error(request: Request, exc: APIError):
    """Errors from the Supabase table API."""
    status_code = _status_for_api_error(exc)
    logger.error("Database error on %s %s: %s (code %s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message or "Database request failed", "code": exc.code},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# =============================================================================
# HELPERS
# =============================================================================

def _require_db():
    if not db_configured():
        raise HTTPException(status_code=503, detail="Database not configured")


def _repo(repo_class):
    """Build a repository on the request-handler client."""
    _require_db()
    return repo_class(client=get_data_client())


def _owned(repo_class, row_id: str, user: AuthenticatedUser, label: str) -> dict:
    row = _repo(repo_class).get_by_id(row_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    if row.get("user_id") != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied")
    return row


def _owned_client(client_id: str, user: AuthenticatedUser) -> dict:
    return _owned(ClientRepository, client_id, user, "Client")


def _owned_student(student_id: str, user: AuthenticatedUser) -> dict:
    return _owned(StudentRepository, student_id, user, "Student")


def _ids(rows: list[dict]) -> list[str]:
    return [r["id"] for r in rows]


def require_payments() -> PaymentClient:
    """Dependency for routes that talk to Stripe."""
    try:
        return get_payment_client()
    except ValueError as e:
        logger.warning("Payments unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Payment processing not configured")


def require_admin_client():
    """The service-role client, for auth admin operations."""
    try:
        return get_admin_client()
    except ValueError as e:
        logger.error("Admin client unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Supabase service role not configured")


# Routes
@app.get("/", response_class=HTMLResponse)
async def root():
    return HTMLResponse(
        content="<h1>Lea API</h1><p>Clinic and training management. See /docs for the API reference.</p>"
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database_configured": db_configured(),
        "payments_configured": payments_configured(),
    }


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

def _user_payload(profile: UserProfile) -> dict:
    return {
        "id": profile.id,
        "email": profile.email,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "role": profile.role.value,
    }


def _session_payload(session) -> Optional[dict]:
    if not session:
        return None
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": getattr(session, "expires_at", None),
    }


@app.post("/api/auth/signup")
async def signup(request: SignUpRequest):
    """
    Create a new user account.

    When email confirmation is enabled no session is returned until the user
    confirms.
    """
    _require_db()

    metadata = {
        "first_name": request.first_name,
        "last_name": request.last_name,
        "role": request.role.value,
    }
    try:
        auth_response = new_client().sign_up(request.email, request.password, metadata)
    except Exception as e:
        logger.info("Signup rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    if not auth_response.user:
        raise HTTPException(status_code=400, detail="Signup failed")

    user = auth_response.user
    try:
        _repo(ProfileRepository).upsert(
            user.id,
            request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            role=request.role.value,
        )
    except APIError as e:
        logger.warning("Profile row for new user %s not stored: %s", user.id, e.message)

    profile = UserProfile.from_auth_user(user, {"role": request.role.value})
    return {
        "success": True,
        "user": _user_payload(profile),
        "session": _session_payload(auth_response.session),
    }


@app.post("/api/auth/login")
async def login(request: LoginRequest):
    """
    Log in an existing user.

    Returns the session tokens and the user's profile.
    """
    _require_db()

    try:
        auth_response = new_client().sign_in(request.email, request.password)
    except Exception as e:
        logger.info("Login failed: %s", e)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not auth_response.user or not auth_response.session:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    profile = UserProfile.from_auth_user(auth_response.user, load_profile(str(auth_response.user.id)))
    return {
        "success": True,
        "user": _user_payload(profile),
        "session": _session_payload(auth_response.session),
    }


@app.post("/api/auth/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    user: AuthenticatedUser = Depends(get_current_user)
):
    """Log out the current user, revoking their refresh tokens."""
    if get_config().has_service_key:
        try:
            get_admin_client().revoke_session(credentials.credentials)
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"status": "logged_out"}


@app.get("/api/auth/user")
@app.get("/api/auth/me")
async def get_me(user: AuthenticatedUser = Depends(get_current_user)):
    """Get the current user's profile."""
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role,
    }


@app.post("/api/auth/reset-password")
async def reset_password(request: ResetPasswordRequest):
    _require_db()
    try:
        new_client().reset_password(request.email)
    except Exception as e:
        logger.warning("Password reset failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "sent"}


# =============================================================================
# CLIENT ENDPOINTS
# =============================================================================

@app.post("/api/clients", status_code=201)
async def create_client(
    request: ClientCreate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    """Register a client under the current practitioner."""
    client = _repo(ClientRepository).create(request, user_id=user.id)
    if not client:
        raise HTTPException(status_code=500, detail="Failed to create client")
    return {"client": client}


@app.get("/api/clients")
async def list_clients(user: AuthenticatedUser = Depends(get_current_user)):
    return {"clients": _repo(ClientRepository).get_by_owner(user.id)}


@app.get("/api/clients/{client_id}")
async def get_client_record(client_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    return {"client": _owned_client(client_id, user)}


@app.patch("/api/clients/{client_id}")
async def update_client(
    client_id: str,
    request: ClientUpdate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    _owned_client(client_id, user)
    return {"client": _repo(ClientRepository).update(client_id, request)}


# =============================================================================
# STUDENT ENDPOINTS
# =============================================================================

@app.post("/api/students", status_code=201)
async def create_student(
    request: StudentCreate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    student = _repo(StudentRepository).create(request, user_id=user.id)
    if not student:
        raise HTTPException(status_code=500, detail="Failed to create student")
    return {"student": student}


@app.get("/api/students")
async def list_students(user: AuthenticatedUser = Depends(get_current_user)):
    return {"students": _repo(StudentRepository).get_by_owner(user.id)}


@app.get("/api/students/{student_id}")
async def get_student(student_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    return {"student": _owned_student(student_id, user)}


@app.patch("/api/students/{student_id}")
async def update_student(
    student_id: str,
    request: StudentUpdate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    _owned_student(student_id, user)
    return {"student": _repo(StudentRepository).update(student_id, request)}


# =============================================================================
# CATALOGUE ENDPOINTS
# =============================================================================

@app.get("/api/treatments")
async def list_treatments(
    category: Optional[str] = Query(None, description="Only treatments in this category"),
    target_audience: Optional[TargetAudience] = Query(None, description="client or practitioner"),
):
    """
    List active treatments.

    Public. Categories and stats describe the whole catalogue, the
    treatment list honours the filters.
    """
    repo = _repo(TreatmentRepository)
    all_treatments = repo.get_active()
    if category or target_audience:
        filtered = repo.get_active(
            category=category,
            target_audience=target_audience.value if target_audience else None,
        )
    else:
        filtered = all_treatments
    return treatment_summary(all_treatments, filtered)


@app.post("/api/treatments", status_code=201)
async def create_treatment(
    request: TreatmentCreate,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    treatment = _repo(TreatmentRepository).create(request)
    if not treatment:
        raise HTTPException(status_code=500, detail="Failed to create treatment")
    logger.info("Treatment %s created by %s", treatment.get("id"), user.id)
    return {"treatment": treatment}


@app.put("/api/treatments/{treatment_id}")
async def update_treatment(
    treatment_id: str,
    request: TreatmentUpdate,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    treatment = _repo(TreatmentRepository).update(treatment_id, request)
    if not treatment:
        raise HTTPException(status_code=404, detail="Treatment not found")
    return {"treatment": treatment}


@app.delete("/api/treatments/{treatment_id}")
async def delete_treatment(
    treatment_id: str,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    treatment = _repo(TreatmentRepository).delete(treatment_id)
    if not treatment:
        raise HTTPException(status_code=404, detail="Treatment not found")
    return {"message": "Treatment deleted successfully", "treatment": treatment}


@app.get("/api/courses")
async def list_courses():
    """List active courses. Public."""
    return {"courses": _repo(CourseRepository).get_active()}


@app.post("/api/courses", status_code=201)
async def create_course(
    request: CourseCreate,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    course = _repo(CourseRepository).create(request)
    if not course:
        raise HTTPException(status_code=500, detail="Failed to create course")
    return {"course": course}


@app.patch("/api/courses/{course_id}")
async def update_course(
    course_id: str,
    request: CourseUpdate,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    course = _repo(CourseRepository).update(course_id, request)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return {"course": course}


# =============================================================================
# BOOKING ENDPOINTS
# =============================================================================

@app.post("/api/bookings", status_code=201)
async def create_booking(
    request: BookingCreate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    """Book a treatment for one of the current practitioner's clients."""
    _owned_client(request.client_id, user)
    if not _repo(TreatmentRepository).get_by_id(request.treatment_id):
        raise HTTPException(status_code=404, detail="Treatment not found")

    booking = _repo(BookingRepository).create(request)
    if not booking:
        raise HTTPException(status_code=500, detail="Failed to create booking")
    return {"booking": booking}


@app.get("/api/bookings")
async def list_bookings(user: AuthenticatedUser = Depends(get_current_user)):
    clients = _repo(ClientRepository).get_by_owner(user.id)
    return {"bookings": _repo(BookingRepository).get_by_clients(_ids(clients))}


@app.patch("/api/bookings/{booking_id}")
async def update_booking(
    booking_id: str,
    request: BookingUpdate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    repo = _repo(BookingRepository)
    booking = repo.get_by_id(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    _owned_client(booking["client_id"], user)
    return {"booking": repo.update(booking_id, request)}


# =============================================================================
# ENROLLMENT ENDPOINTS
# =============================================================================

@app.post("/api/enrollments", status_code=201)
async def create_enrollment(
    request: EnrollmentCreate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    """Enroll one of the current practitioner's students on a course."""
    _owned_student(request.student_id, user)
    course = _repo(CourseRepository).get_by_id(request.course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    repo = _repo(EnrollmentRepository)
    if course.get("max_students"):
        active = [
            e for e in repo.get_by_course(request.course_id)
            if e.get("status") == EnrollmentStatus.ACTIVE.value
        ]
        if len(active) >= course["max_students"]:
            raise HTTPException(status_code=409, detail="Course is full")

    enrollment = repo.create(request)
    if not enrollment:
        raise HTTPException(status_code=500, detail="Failed to create enrollment")
    return {"enrollment": enrollment}


@app.get("/api/enrollments")
async def list_enrollments(user: AuthenticatedUser = Depends(get_current_user)):
    students = _repo(StudentRepository).get_by_owner(user.id)
    return {"enrollments": _repo(EnrollmentRepository).get_by_students(_ids(students))}


@app.patch("/api/enrollments/{enrollment_id}")
async def update_enrollment(
    enrollment_id: str,
    request: EnrollmentUpdate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    repo = _repo(EnrollmentRepository)
    enrollment = repo.get_by_id(enrollment_id)
    if not enrollment:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    _owned_student(enrollment["student_id"], user)
    return {"enrollment": repo.update(enrollment_id, request)}


# =============================================================================
# CONSENT ENDPOINTS
# =============================================================================

@app.post("/api/consent-forms", status_code=201)
async def create_consent_form(
    request: ConsentFormCreate,
    user: AuthenticatedUser = Depends(get_current_user)
):
    _owned_client(request.client_id, user)
    form = _repo(ConsentFormRepository).create(request)
    if not form:
        raise HTTPException(status_code=500, detail="Failed to create consent form")
    return {"consent_form": form}


@app.get("/api/consent-forms/{client_id}")
async def list_consent_forms(client_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    _owned_client(client_id, user)
    return {"consent_forms": _repo(ConsentFormRepository).get_by_client(client_id)}


@app.put("/api/consent-forms/{form_id}/sign")
async def sign_consent_form(
    form_id: str,
    request: ConsentSignRequest,
    user: AuthenticatedUser = Depends(get_current_user)
):
    """Sign a consent form; the client's consent status follows."""
    repo = _repo(ConsentFormRepository)
    form = repo.get_by_id(form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Consent form not found")
    _owned_client(form["client_id"], user)

    signed = repo.sign(form_id, request.signature_data)
    _repo(ClientRepository).set_consent_status(form["client_id"], ConsentStatus.SIGNED.value)
    return {"consent_form": signed}


# =============================================================================
# PAYMENT ENDPOINTS
# =============================================================================

def _check_payment_access(payment: dict, user: AuthenticatedUser) -> None:
    if payment.get("client_id"):
        _owned_client(payment["client_id"], user)
    elif payment.get("student_id"):
        _owned_student(payment["student_id"], user)
    elif not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied")


@app.post("/api/create-payment-intent")
async def create_payment_intent(
    request: PaymentIntentRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    payments: PaymentClient = Depends(require_payments),
):
    """
    Start a card payment.

    Creates the Stripe PaymentIntent and records a pending payment; the
    browser completes it with the returned client secret.
    """
    if request.client_id:
        _owned_client(request.client_id, user)
    if request.student_id:
        _owned_student(request.student_id, user)

    try:
        intent = payments.create_intent(request.amount, request.currency, request.metadata)
    except PaymentError as e:
        logger.error("Stripe payment intent failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Error creating payment intent: {e}")

    payment = _repo(PaymentRepository).create(
        request.model_dump(mode="json", exclude={"currency"}, exclude_none=True),
        stripe_payment_intent_id=intent.id,
        status=PaymentStatus.PENDING.value,
    )
    return {
        "client_secret": intent.client_secret,
        "payment_id": payment["id"] if payment else None,
    }


@app.post("/api/payments/{payment_id}/verify-age")
async def verify_payment_age(payment_id: str, user: AuthenticatedUser = Depends(get_staff_user)):
    repo = _repo(PaymentRepository)
    payment = repo.get_by_id(payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    _check_payment_access(payment, user)
    return {"payment": repo.verify_age(payment_id)}


@app.get("/api/payments")
async def list_payments(user: AuthenticatedUser = Depends(get_current_user)):
    """Payments for the current practitioner's clients and students."""
    repo = _repo(PaymentRepository)
    clients = _repo(ClientRepository).get_by_owner(user.id)
    students = _repo(StudentRepository).get_by_owner(user.id)

    payments = repo.get_by_clients(_ids(clients))
    seen = set(_ids(payments))
    payments += [p for p in repo.get_by_students(_ids(students)) if p["id"] not in seen]
    return {"payments": payments}


# =============================================================================
# TRAINING ENDPOINTS
# =============================================================================

@app.post("/api/course-content", status_code=201)
async def create_course_content(
    request: CourseContentCreate,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    if not _repo(CourseRepository).get_by_id(request.course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    content = _repo(CourseContentRepository).create(request)
    if not content:
        raise HTTPException(status_code=500, detail="Failed to create course content")
    return {"content": content}


def _actively_enrolled(user: AuthenticatedUser, course_id: str) -> bool:
    """Whether one of the caller's student rows has an active enrollment on the course."""
    if not user.email:
        return False
    student_ids = {s["id"] for s in _repo(StudentRepository).get_by_email(user.email)}
    return any(
        e.get("student_id") in student_ids and e.get("status") == EnrollmentStatus.ACTIVE.value
        for e in _repo(EnrollmentRepository).get_by_course(course_id)
    )


@app.get("/api/course-content/{course_id}")
async def list_course_content(course_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    """
    Course modules in teaching order.

    Staff see every course; students only courses they are actively enrolled on.
    """
    if not user.is_staff and not _actively_enrolled(user, course_id):
        raise HTTPException(status_code=403, detail="Access denied")
    return {"content": _repo(CourseContentRepository).get_by_course(course_id)}


@app.post("/api/assessments", status_code=201)
async def create_assessment(
    request: AssessmentCreate,
    user: AuthenticatedUser = Depends(get_staff_user)
):
    _owned_student(request.student_id, user)
    assessment = _repo(AssessmentRepository).create(request)
    if not assessment:
        raise HTTPException(status_code=500, detail="Failed to create assessment")
    return {"assessment": assessment}


@app.get("/api/assessments/{student_id}")
async def list_assessments(student_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    _owned_student(student_id, user)
    return {"assessments": _repo(AssessmentRepository).get_by_student(student_id)}


# =============================================================================
# DASHBOARD
# =============================================================================

@app.get("/api/dashboard/stats")
async def get_dashboard_stats(user: AuthenticatedUser = Depends(get_current_user)):
    """Headline numbers for the practitioner dashboard."""
    clients = _repo(ClientRepository).get_by_owner(user.id)
    students = _repo(StudentRepository).get_by_owner(user.id)
    client_ids, student_ids = _ids(clients), _ids(students)

    payment_repo = _repo(PaymentRepository)
    payments = payment_repo.get_by_clients(client_ids) + payment_repo.get_by_students(student_ids)

    return dashboard_stats(
        bookings=_repo(BookingRepository).get_by_clients(client_ids),
        payments={p["id"]: p for p in payments}.values(),
        student_count=len(students),
        consent_forms=_repo(ConsentFormRepository).get_by_clients(client_ids),
        today=datetime.now(timezone.utc).date(),
    )


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

class AdminSetupRequest(BaseModel):
    """First-run admin details; presence is checked by the setup itself."""
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ResetUsersRequest(BaseModel):
    confirm: Optional[str] = None


@app.post("/api/admin/setup", status_code=201)
async def admin_setup(request: AdminSetupRequest):
    """
    Create the first admin user.

    Unauthenticated, and refused as soon as any user exists.
    """
    if not all([request.email, request.password, request.first_name, request.last_name]):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: email, password, first_name, last_name",
        )

    client = require_admin_client()
    try:
        user = bootstrap_admin(client, request.email, request.password, request.first_name, request.last_name)
    except SetupError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"success": True, "message": "Admin user created successfully", "user": user}


@app.post("/api/admin/demo-accounts")
async def seed_demo_accounts(user: AuthenticatedUser = Depends(get_admin_user)):
    """Create the demo client and practitioner; failures are reported, not raised."""
    report = create_demo_accounts(require_admin_client())
    return {
        "success": True,
        "message": f"Created {len(report.accounts)} demo accounts",
        "accounts": report.accounts,
        "errors": report.errors or None,
        "login_credentials": login_credentials(),
    }


@app.post("/api/admin/demo-admin")
async def seed_demo_admin(user: AuthenticatedUser = Depends(get_admin_user)):
    report = create_demo_admin(require_admin_client())
    if report.accounts:
        message = "Demo admin account created successfully"
    else:
        message = report.errors[0]["error"] if report.errors else "Demo admin account not created"
    return {
        "success": bool(report.accounts),
        "message": message,
        "accounts": report.accounts,
        "errors": report.errors or None,
        "login_credentials": login_credentials((DEMO_ADMIN,)),
    }


@app.post("/api/admin/reset-users")
async def reset_users(request: ResetUsersRequest, user: AuthenticatedUser = Depends(get_admin_user)):
    """Delete every auth user. Requires an explicit confirmation string."""
    if request.confirm != RESET_CONFIRMATION:
        raise HTTPException(
            status_code=400,
            detail={
                "message": f'Safety check required. Send {{"confirm": "{RESET_CONFIRMATION}"}} to proceed.',
                "warning": "This will permanently delete ALL users from the database!",
            },
        )

    client = require_admin_client()
    try:
        report = delete_all_users(client)
    except Exception as e:
        logger.error("Listing users failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to list users: {e}")

    logger.warning("User reset by %s: %d/%d deleted", user.id, report.deleted_count, report.total_users)
    if report.total_users == 0:
        message = "No users to delete"
    else:
        message = f"Deleted {report.deleted_count} out of {report.total_users} users"
    return {
        "success": True,
        "message": message,
        "deleted_count": report.deleted_count,
        "total_users": report.total_users,
        "errors": report.errors or None,
    }


@app.get("/api/admin/debug")
async def debug_environment(user: AuthenticatedUser = Depends(get_admin_user)):
    """Which configuration variables are set. Never their values."""
    return environment_report()


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
