# Status rules - canonical procedure/patient status derivation and date helpers
from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

DAYS_TO_CONTACT = 30
DAYS_OVERDUE_LIMIT = 180  # ~6 months
CHURN_MONTHS = 6

ONE_DAY = timedelta(days=1)
# Expiries past the datetime range are clamped here
LATEST_DAY = datetime(9999, 12, 31, tzinfo=timezone.utc)

DateLike = Union[str, date, datetime]


class ProcedureStatus(str, Enum):
    ACTIVE = "active"
    NEAR_EXPIRY = "near-expiry"
    OVERDUE = "overdue"
    NO_DURATION = "no-duration"
    RENEWED = "renewed"


class PatientStatus(str, Enum):
    ACTIVE = "Active"
    CONTACT = "Contact"
    OVERDUE = "Overdue"
    VERIFY = "Verify"
    NEW = "New"
    INACTIVE = "Inactive"
    UNKNOWN = ""


@dataclass(frozen=True)
class StatusResult:
    """Procedure classification. daysValue is remaining or overdue days depending on status."""
    status: ProcedureStatus
    daysValue: Optional[int]


# =============================================================================
# Dates
# =============================================================================

def to_utc_datetime(value: DateLike) -> datetime:
    """Coerce an ISO string, date or datetime to an aware UTC datetime. Naive values are UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_utc_day(value: DateLike) -> datetime:
    """Truncate to UTC midnight (returns a new value)."""
    return to_utc_datetime(value).replace(hour=0, minute=0, second=0, microsecond=0)


def add_months_utc(value: DateLike, months: int) -> datetime:
    """
    Add whole calendar months in UTC.

    Day overflow rolls forward into the following month, the same way
    JavaScript's setUTCMonth resolves it: 2024-01-31 + 1 month is 2024-03-02.
    """
    dt = to_utc_datetime(value)
    total = dt.month - 1 + int(months)
    first = dt.replace(year=dt.year + total // 12, month=total % 12 + 1, day=1)
    return first + timedelta(days=dt.day - 1)


def diff_days_utc(a: DateLike, b: DateLike) -> int:
    """Signed whole days between UTC days: positive when a is after b."""
    return (normalize_utc_day(a) - normalize_utc_day(b)) // ONE_DAY


# =============================================================================
# Procedure status
# =============================================================================

def calc_procedure_status(
    performed_date: Optional[DateLike],
    effect_duration_months: Optional[float],
    today: Optional[DateLike] = None,
) -> StatusResult:
    """Classify one procedure against its expiry date."""
    if (
        not performed_date
        or not effect_duration_months
        or not math.isfinite(effect_duration_months)
        or effect_duration_months <= 0
    ):
        return StatusResult(ProcedureStatus.NO_DURATION, None)

    reference = normalize_utc_day(today if today is not None else utc_now())
    try:
        expiry = add_months_utc(normalize_utc_day(performed_date), int(effect_duration_months))
    except (ValueError, OverflowError):
        expiry = LATEST_DAY
    diff = (expiry - reference) // ONE_DAY

    if diff < 0:
        return StatusResult(ProcedureStatus.OVERDUE, abs(diff))
    if diff <= DAYS_TO_CONTACT:
        return StatusResult(ProcedureStatus.NEAR_EXPIRY, diff)
    return StatusResult(ProcedureStatus.ACTIVE, diff)


def _field(record, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _renewal_sort_key(record) -> Tuple[int, datetime]:
    performed = _field(record, "performedDate")
    if not performed:
        return (0, datetime.min.replace(tzinfo=timezone.utc))
    return (1, normalize_utc_day(performed))


def mark_renewals(procedures: Sequence) -> List[bool]:
    """
    Flag every record superseded by a later same-name record.

    Groups by normalized procedureName; within a group only the chronologically
    last record survives. Undated records sort first, ties keep input order and
    nameless records are never grouped.
    """
    groups: Dict[str, List[int]] = {}
    for idx, record in enumerate(procedures):
        key = normalize_text(_field(record, "procedureName"))
        if key:
            groups.setdefault(key, []).append(idx)

    renewed = [False] * len(procedures)
    for indexes in groups.values():
        if len(indexes) < 2:
            continue
        ordered = sorted(indexes, key=lambda i: _renewal_sort_key(procedures[i]))
        for idx in ordered[:-1]:
            renewed[idx] = True
    return renewed


def compute_procedure_statuses(
    procedures: Sequence,
    today: Optional[DateLike] = None,
) -> List[StatusResult]:
    """Renewal-aware statuses for a patient's full history, aligned with input order."""
    reference = today if today is not None else utc_now()
    results: List[StatusResult] = []
    for record, is_renewed in zip(procedures, mark_renewals(procedures)):
        if is_renewed:
            results.append(StatusResult(ProcedureStatus.RENEWED, None))
        else:
            results.append(calc_procedure_status(
                _field(record, "performedDate"),
                _field(record, "effectDurationMonths"),
                reference,
            ))
    return results


# =============================================================================
# Patient status
# =============================================================================

@dataclass(frozen=True)
class StatusFlags:
    hasOverdue: bool = False
    hasNearExpiry: bool = False
    hasActive: bool = False
    hasNoDuration: bool = False


# Severity order: first matching predicate wins.
PATIENT_STATUS_RULES: List[Tuple[Callable[[StatusFlags], bool], PatientStatus]] = [
    (lambda f: f.hasOverdue and not f.hasNearExpiry and not f.hasActive, PatientStatus.OVERDUE),
    (lambda f: f.hasNearExpiry, PatientStatus.CONTACT),
    (lambda f: f.hasActive, PatientStatus.ACTIVE),
    (lambda f: f.hasNoDuration, PatientStatus.VERIFY),
]

NEW_PATIENT_WINDOW = timedelta(hours=24)


def collect_status_flags(results: Iterable[StatusResult]) -> StatusFlags:
    """Which non-renewed outcomes occur at least once."""
    seen = {r.status for r in results}
    return StatusFlags(
        hasOverdue=ProcedureStatus.OVERDUE in seen,
        hasNearExpiry=ProcedureStatus.NEAR_EXPIRY in seen,
        hasActive=ProcedureStatus.ACTIVE in seen,
        hasNoDuration=ProcedureStatus.NO_DURATION in seen,
    )


def resolve_patient_status(flags: StatusFlags) -> PatientStatus:
    for predicate, result in PATIENT_STATUS_RULES:
        if predicate(flags):
            return result
    return PatientStatus.UNKNOWN


def derive_patient_status(
    procedures: Optional[Sequence],
    created_at: Optional[DateLike],
    bank_status: Optional[str] = None,
    today: Optional[DateLike] = None,
) -> PatientStatus:
    """Single exclusive status for a patient, by severity priority."""
    if bank_status == PatientStatus.INACTIVE.value:
        return PatientStatus.INACTIVE

    reference = to_utc_datetime(today) if today is not None else utc_now()
    procs = list(procedures or [])
    if not procs:
        if created_at and reference - to_utc_datetime(created_at) < NEW_PATIENT_WINDOW:
            return PatientStatus.NEW
        return PatientStatus.UNKNOWN

    return resolve_patient_status(collect_status_flags(compute_procedure_statuses(procs, reference)))


# =============================================================================
# Names and appointments
# =============================================================================

def _is_diacritic(ch: str) -> bool:
    # Combining marks plus spacing accents (^, `, ´, ¨) and modifier letters (ˆ, ˜)
    return bool(unicodedata.combining(ch)) or unicodedata.category(ch) in ("Sk", "Lm")


def normalize_text(value: Optional[str]) -> str:
    """NFD-decompose, strip diacritics, lowercase, trim. Join key against the catalog."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not _is_diacritic(ch))
    return stripped.lower().strip()


def latest_by_procedure_name(procedures: Iterable) -> Dict[str, datetime]:
    """Latest performed UTC day per normalized procedure name."""
    latest: Dict[str, datetime] = {}
    for record in procedures:
        performed = _field(record, "performedDate")
        name = _field(record, "procedureName")
        if not performed or not name:
            continue
        key = normalize_text(name)
        day = normalize_utc_day(performed)
        prev = latest.get(key)
        if prev is None or day > prev:
            latest[key] = day
    return latest


def has_future_appointment_like(
    appointments: Optional[Iterable],
    procedure_name: Optional[str],
    today: Optional[DateLike] = None,
) -> bool:
    """True if an appointment from today on carries a label matching the procedure name."""
    proc_norm = normalize_text(procedure_name)
    if not appointments or not proc_norm:
        return False
    reference = normalize_utc_day(today if today is not None else utc_now())
    for appt in appointments:
        appt_date = _field(appt, "date")
        label = _field(appt, "label")
        if not appt_date or not label:
            continue
        if normalize_utc_day(appt_date) < reference:
            continue
        label_norm = normalize_text(label)
        if label_norm and (proc_norm in label_norm or label_norm in proc_norm):
            return True
    return False
