# In-memory data models - record provider for the status engine
from typing import Dict, List, Optional
from dataclasses import dataclass

# In-memory storage
patients: Dict[str, 'Patient'] = {}
procedures: List['ProcedureRecord'] = []
catalog: List['CatalogEntry'] = []
appointments: List['Appointment'] = []

@dataclass
class Patient:
    """Registered patient"""
    patientId: str
    name: str
    createdAt: str  # ISO timestamp
    bankStatus: Optional[str] = None  # "Active" | "Inactive" | None (manual override)
    birthDate: Optional[str] = None  # YYYY-MM-DD
    phone: Optional[str] = None

@dataclass
class ProcedureRecord:
    """One realized procedure. Matched to the catalog by normalized name, not by id."""
    procedureId: str
    patientId: str
    procedureName: str
    performedDate: Optional[str]  # YYYY-MM-DD
    effectDurationMonths: Optional[float] = None  # Filled from the catalog at query time
    chargedValue: float = 0.0
    productCost: float = 0.0
    supplyCost: float = 0.0
    roomCost: float = 0.0
    category: Optional[str] = None

    def total_cost(self) -> float:
        return (self.productCost or 0) + (self.supplyCost or 0) + (self.roomCost or 0)

@dataclass
class CatalogEntry:
    """Price table entry with the configured treatment-effect duration"""
    name: str
    category: str
    price: float
    effectDurationMonths: Optional[float] = None

@dataclass
class Appointment:
    """Scheduled appointment. label is free text, e.g. "Botox retouch"."""
    appointmentId: str
    patientId: str
    date: str  # YYYY-MM-DD
    label: str = ""

def procedures_for_patient(patient_id: str) -> List[ProcedureRecord]:
    return [p for p in procedures if p.patientId == patient_id]

def appointments_for_patient(patient_id: str) -> List[Appointment]:
    return [a for a in appointments if a.patientId == patient_id]
