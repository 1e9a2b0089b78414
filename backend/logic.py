# Patient queries - joins store records with catalog durations and runs the status engine
from __future__ import annotations

from typing import Dict, List, Optional

from duration_cache import DurationMap, apply_durations
from models import (
    CatalogEntry,
    Patient,
    ProcedureRecord,
    appointments_for_patient,
    catalog,
    patients,
    procedures_for_patient,
)
from status_rules import (
    DateLike,
    PatientStatus,
    compute_procedure_statuses,
    derive_patient_status,
    has_future_appointment_like,
    normalize_utc_day,
)


async def fetch_catalog_rows() -> List[CatalogEntry]:
    """Duration catalog fetcher handed to the DurationCache."""
    return list(catalog)


def get_patient(patient_id: str) -> Optional[Patient]:
    """Get patient by ID"""
    return patients.get(patient_id)


def get_patient_procedures(patient_id: str, duration_map: DurationMap) -> List[ProcedureRecord]:
    """Patient's full procedure history with effect durations joined from the catalog."""
    return apply_durations(procedures_for_patient(patient_id), duration_map)


def get_patient_status(patient: Patient, duration_map: DurationMap, today: DateLike) -> PatientStatus:
    return derive_patient_status(
        procedures=get_patient_procedures(patient.patientId, duration_map),
        created_at=patient.createdAt,
        bank_status=patient.bankStatus,
        today=today,
    )


def describe_procedures(procs: List[ProcedureRecord], today: DateLike) -> List[Dict]:
    """
    Renewal-aware status rows for a patient's history, newest first.
    Each row carries whether a matching future appointment is already booked.
    """
    if not procs:
        return []
    upcoming = appointments_for_patient(procs[0].patientId)
    rows = []
    for proc, result in zip(procs, compute_procedure_statuses(procs, today)):
        rows.append({
            "procedureId": proc.procedureId,
            "procedureName": proc.procedureName,
            "performedDate": proc.performedDate,
            "effectDurationMonths": proc.effectDurationMonths,
            "status": result.status.value,
            "daysValue": result.daysValue,
            "scheduled": has_future_appointment_like(upcoming, proc.procedureName, today),
        })
    rows.sort(key=lambda r: r["performedDate"] or "", reverse=True)
    return rows


def list_patients_with_status(duration_map: DurationMap, today: DateLike) -> List[Dict]:
    """All patients with their derived status"""
    return [
        {
            "patientId": patient.patientId,
            "name": patient.name,
            "bankStatus": patient.bankStatus,
            "createdAt": patient.createdAt,
            "status": get_patient_status(patient, duration_map, today).value,
        }
        for patient in patients.values()
    ]


def get_patient_detail(patient_id: str, duration_map: DurationMap, today: DateLike) -> Optional[Dict]:
    """Patient with derived status and every procedure's status. None if unknown."""
    patient = get_patient(patient_id)
    if not patient:
        return None
    procs = get_patient_procedures(patient_id, duration_map)
    return {
        "patientId": patient.patientId,
        "name": patient.name,
        "bankStatus": patient.bankStatus,
        "createdAt": patient.createdAt,
        "birthDate": patient.birthDate,
        "phone": patient.phone,
        "status": derive_patient_status(procs, patient.createdAt, patient.bankStatus, today).value,
        "procedures": describe_procedures(procs, today),
    }


def birthdays_of_month(today: DateLike) -> List[Dict]:
    """Patients born in today's calendar month (UTC), earliest day first. Inactive patients included."""
    month = normalize_utc_day(today).month
    items = []
    for patient in patients.values():
        if not patient.birthDate:
            continue
        _, birth_month, birth_day = patient.birthDate.split("T")[0].split("-")
        if int(birth_month) != month:
            continue
        items.append({
            "patientId": patient.patientId,
            "name": patient.name,
            "day": int(birth_day),
            "phone": patient.phone,
        })
    items.sort(key=lambda item: item["day"])
    return items
