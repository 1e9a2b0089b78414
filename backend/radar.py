# Dashboard radar - status KPIs, renewal opportunities, overdue renewals, portfolio, churn
# Built only on the status engine; inactive patients are left out of outreach lists
from __future__ import annotations

from collections import Counter
from typing import Dict, List, Tuple

from duration_cache import DurationMap
from logic import get_patient_procedures, get_patient_status
from models import Patient, ProcedureRecord, appointments_for_patient, catalog, patients, procedures_for_patient
from status_rules import (
    CHURN_MONTHS,
    DAYS_OVERDUE_LIMIT,
    DateLike,
    PatientStatus,
    ProcedureStatus,
    StatusResult,
    compute_procedure_statuses,
    diff_days_utc,
    has_future_appointment_like,
    latest_by_procedure_name,
    normalize_text,
    normalize_utc_day,
)

CHURN_DAYS = CHURN_MONTHS * 30
STATUS_KEYS = {
    PatientStatus.ACTIVE: "Active",
    PatientStatus.CONTACT: "Contact",
    PatientStatus.OVERDUE: "Overdue",
    PatientStatus.VERIFY: "Verify",
    PatientStatus.NEW: "New",
    PatientStatus.INACTIVE: "Inactive",
    PatientStatus.UNKNOWN: "Unclassified",
}


def _is_inactive(patient: Patient) -> bool:
    return patient.bankStatus == PatientStatus.INACTIVE.value


def _latest_statuses(
    patient: Patient,
    duration_map: DurationMap,
    today: DateLike,
) -> List[Tuple[ProcedureRecord, StatusResult]]:
    """Most recent record per procedure name with its status (renewed records dropped)."""
    procs = get_patient_procedures(patient.patientId, duration_map)
    return [
        (proc, result)
        for proc, result in zip(procs, compute_procedure_statuses(procs, today))
        if result.status != ProcedureStatus.RENEWED and proc.performedDate and proc.procedureName
    ]


def patient_status_counts(duration_map: DurationMap, today: DateLike) -> Dict[str, int]:
    """KPI cards: how many patients fall in each exclusive status"""
    counts = {key: 0 for key in STATUS_KEYS.values()}
    for patient in patients.values():
        counts[STATUS_KEYS[get_patient_status(patient, duration_map, today)]] += 1
    return counts


def hot_opportunities(duration_map: DurationMap, today: DateLike) -> List[Dict]:
    """Near-expiry treatments to offer a renewal for, soonest first."""
    items: List[Dict] = []
    for patient in patients.values():
        if _is_inactive(patient):
            continue
        upcoming = appointments_for_patient(patient.patientId)
        for proc, result in _latest_statuses(patient, duration_map, today):
            if result.status != ProcedureStatus.NEAR_EXPIRY:
                continue
            items.append({
                "id": f"{patient.patientId}-{proc.procedureId}",
                "patientId": patient.patientId,
                "patient": patient.name,
                "procedure": proc.procedureName,
                "daysToExpiry": result.daysValue,
                "scheduled": has_future_appointment_like(upcoming, proc.procedureName, today),
            })
    items.sort(key=lambda item: item["daysToExpiry"])
    return items


def overdue_renewals(duration_map: DurationMap, today: DateLike) -> List[Dict]:
    """Expired treatments still within DAYS_OVERDUE_LIMIT, most overdue first."""
    items: List[Dict] = []
    for patient in patients.values():
        if _is_inactive(patient):
            continue
        for proc, result in _latest_statuses(patient, duration_map, today):
            if result.status != ProcedureStatus.OVERDUE or result.daysValue > DAYS_OVERDUE_LIMIT:
                continue
            items.append({
                "id": f"{patient.patientId}-{proc.procedureId}",
                "patientId": patient.patientId,
                "patient": patient.name,
                "procedure": proc.procedureName,
                "daysOverdue": result.daysValue,
            })
    items.sort(key=lambda item: item["daysOverdue"], reverse=True)
    return items


def active_portfolio(duration_map: DurationMap, today: DateLike) -> List[Dict]:
    """
    Active (non-renewed) treatments per category. Counts every patient, like the clinic's books.
    Uncategorized records take their catalog entry's category, then their own name.
    """
    catalog_categories = {normalize_text(c.name): c.category for c in catalog if c.category}
    counter: Counter = Counter()
    for patient in patients.values():
        for proc, result in _latest_statuses(patient, duration_map, today):
            if result.status == ProcedureStatus.ACTIVE:
                category = proc.category or catalog_categories.get(normalize_text(proc.procedureName))
                counter[category or proc.procedureName or "Other"] += 1
    return [{"name": name, "count": count} for name, count in counter.most_common()]


def churn_alerts(today: DateLike) -> List[Dict]:
    """Patients whose last procedure is CHURN_DAYS or more in the past, longest absence first."""
    reference = normalize_utc_day(today)
    items: List[Dict] = []
    for patient in patients.values():
        if _is_inactive(patient):
            continue
        latest = latest_by_procedure_name(procedures_for_patient(patient.patientId))
        if not latest:
            continue
        last_visit = max(latest.values())
        days_since = diff_days_utc(reference, last_visit)
        if days_since >= CHURN_DAYS:
            items.append({
                "patientId": patient.patientId,
                "patient": patient.name,
                "lastVisit": last_visit.date().isoformat(),
                "monthsWithoutVisit": days_since // 30,
            })
    items.sort(key=lambda item: item["monthsWithoutVisit"], reverse=True)
    return items


def get_radar(duration_map: DurationMap, today: DateLike) -> Dict:
    """Everything the dashboard radar shows, computed against the same reference day."""
    return {
        "statusCounts": patient_status_counts(duration_map, today),
        "opportunities": hot_opportunities(duration_map, today),
        "overdueRenewals": overdue_renewals(duration_map, today),
        "activePortfolio": active_portfolio(duration_map, today),
        "churn": churn_alerts(today),
    }
