"""
Summary figures for the practitioner dashboard and treatment catalogue.

Works on rows as returned by the repositories.
"""

import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from lea.models.records import BookingStatus, PaymentStatus, TargetAudience

NON_REVENUE_STATUSES = {PaymentStatus.FAILED.value, PaymentStatus.REFUNDED.value}

_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value) -> Optional[datetime]:
  """
  Parse a Supabase timestamp (ISO 8601, possibly with a trailing Z).

  PostgREST trims trailing zeros from fractional seconds, so the fraction is
  padded to microseconds before parsing.
  """
  if value is None or isinstance(value, datetime):
    return value
  if isinstance(value, date):
    return datetime(value.year, value.month, value.day)
  text = str(value)
  if text.endswith("Z"):
    text = text[:-1] + "+00:00"
  text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
  return datetime.fromisoformat(text)


def utc_date(value: datetime) -> date:
  """Calendar date in UTC; naive values are taken as UTC already."""
  if value.tzinfo is not None:
    value = value.astimezone(timezone.utc)
  return value.date()


def to_decimal(value) -> Decimal:
  if value is None or value == "":
    return Decimal("0")
  return Decimal(str(value))


def format_gbp(amount: Decimal) -> str:
  return f"£{amount.quantize(Decimal('0.01'))}"


def todays_appointments(bookings: Iterable[dict], today: date) -> int:
  """Bookings scheduled for `today`, ignoring cancelled ones."""
  count = 0
  for booking in bookings:
    if booking.get("status") == BookingStatus.CANCELLED.value:
      continue
    scheduled = parse_timestamp(booking.get("scheduled_date"))
    if scheduled and utc_date(scheduled) == today:
      count += 1
  return count


def monthly_revenue(payments: Iterable[dict], today: date) -> Decimal:
  """Sum of this calendar month's payments that were not failed or refunded."""
  total = Decimal("0")
  for payment in payments:
    if payment.get("status") in NON_REVENUE_STATUSES:
      continue
    created = parse_timestamp(payment.get("created_at"))
    created = utc_date(created) if created else None
    if created and created.year == today.year and created.month == today.month:
      total += to_decimal(payment.get("amount"))
  return total


def compliance_score(consent_forms: Iterable[dict]) -> int:
  """Percentage of consent forms that are signed; 100 when there are none."""
  forms = list(consent_forms)
  if not forms:
    return 100
  signed = sum(1 for f in forms if f.get("signed"))
  return round(signed * 100 / len(forms))


def dashboard_stats(
  bookings: Iterable[dict],
  payments: Iterable[dict],
  student_count: int,
  consent_forms: Iterable[dict],
  today: date,
) -> dict:
  return {
    "today_appointments": todays_appointments(bookings, today),
    "monthly_revenue": format_gbp(monthly_revenue(payments, today)),
    "active_students": student_count,
    "compliance_score": f"{compliance_score(consent_forms)}%",
  }


def treatment_summary(all_treatments: list[dict], filtered: list[dict]) -> dict:
  """
  Build the treatment listing payload.

  `filtered` is what the caller asked for; categories and stats always
  describe the whole active catalogue.
  """
  durations = [t["duration"] for t in all_treatments if t.get("duration") is not None]
  return {
    "treatments": filtered,
    "total": len(filtered),
    "categories": sorted({t["category"] for t in all_treatments if t.get("category")}),
    "stats": {
      "total_value": str(sum((to_decimal(t.get("price")) for t in all_treatments), Decimal("0"))),
      "average_duration": round(sum(durations) / len(durations)) if durations else 0,
      "client_services": sum(
        1 for t in all_treatments if t.get("target_audience") == TargetAudience.CLIENT.value
      ),
      "training_courses": sum(
        1 for t in all_treatments if t.get("target_audience") == TargetAudience.PRACTITIONER.value
      ),
    },
  }
