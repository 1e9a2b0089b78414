# Backend main entry point - clinic status radar API
import logging
import os
from dotenv import load_dotenv
load_dotenv()  # Load .env so DEMO_MODE / REFERENCE_DATE work for local reviewers
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from duration_cache import DEFAULT_TTL_SECONDS, DurationCache, DurationMap
from finance import monthly_financials
from logic import birthdays_of_month, fetch_catalog_rows, get_patient_detail, list_patients_with_status
from radar import get_radar
from seed import seed_data
from status_rules import calc_procedure_status, to_utc_datetime, utc_now

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize seed data
seed_data()

app = FastAPI(title="Clinic Status Radar API")
app.state.duration_cache = DurationCache(
    ttl_seconds=float(os.environ.get("DURATION_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
)


def _is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"

# Configure CORS - allow local dev and deployed frontend
_allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
_frontend_url = os.environ.get("FRONTEND_URL", "")
if _frontend_url:
    _allowed_origins.append(_frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _parse_date(value: str, field_name: str) -> datetime:
    try:
        return to_utc_datetime(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field_name} must be an ISO date (YYYY-MM-DD)")


def _reference_today(today: Optional[str] = None) -> datetime:
    """?today= query param, else REFERENCE_DATE env, else wall clock."""
    if today:
        return _parse_date(today, "today")
    pinned = os.environ.get("REFERENCE_DATE", "")
    if pinned:
        return _parse_date(pinned, "REFERENCE_DATE")
    return utc_now()


async def _duration_map() -> DurationMap:
    return await app.state.duration_cache.get_map(fetch_catalog_rows)

# Request/Response models
class PatientSummaryResponse(BaseModel):
    patientId: str
    name: str
    bankStatus: Optional[str] = None
    createdAt: str
    status: str

class ProcedureStatusRow(BaseModel):
    procedureId: str
    procedureName: str
    performedDate: Optional[str] = None
    effectDurationMonths: Optional[float] = None
    status: str
    daysValue: Optional[int] = None
    scheduled: bool = False

class PatientDetailResponse(PatientSummaryResponse):
    birthDate: Optional[str] = None
    phone: Optional[str] = None
    procedures: List[ProcedureStatusRow]

class ProcedureStatusRequest(BaseModel):
    performedDate: Optional[str] = None  # YYYY-MM-DD
    effectDurationMonths: Optional[float] = Field(default=None, description="Months of effect; <= 0 means no duration")
    today: Optional[str] = None  # YYYY-MM-DD, defaults to the reference day

class ProcedureStatusResponse(BaseModel):
    status: str
    daysValue: Optional[int] = None

@app.get("/")
def read_root():
    return {"message": "Clinic Status Radar API"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/patients", response_model=List[PatientSummaryResponse])
async def get_all_patients(today: Optional[str] = None):
    """Get all patients with their derived status"""
    reference = _reference_today(today)
    return list_patients_with_status(await _duration_map(), reference)


@app.get("/patients/{patient_id}", response_model=PatientDetailResponse)
async def get_patient_endpoint(patient_id: str, today: Optional[str] = None):
    """Get one patient with renewal-aware status for every procedure"""
    reference = _reference_today(today)
    detail = get_patient_detail(patient_id, await _duration_map(), reference)
    if not detail:
        raise HTTPException(status_code=404, detail="Patient not found")
    return detail


@app.post("/status/procedure", response_model=ProcedureStatusResponse)
def procedure_status(request: ProcedureStatusRequest):
    """Classify an ad-hoc procedure (date + duration) without touching stored records."""
    performed = _parse_date(request.performedDate, "performedDate") if request.performedDate else None
    result = calc_procedure_status(performed, request.effectDurationMonths, _reference_today(request.today))
    return ProcedureStatusResponse(status=result.status.value, daysValue=result.daysValue)


@app.get("/dashboard/radar")
async def get_dashboard_radar(today: Optional[str] = None) -> Dict:
    """KPI counts, renewal opportunities, overdue renewals, active portfolio and churn."""
    reference = _reference_today(today)
    return get_radar(await _duration_map(), reference)


@app.get("/dashboard/financials")
def get_dashboard_financials(today: Optional[str] = None) -> Dict:
    """Revenue / profit for the reference month against the previous six months."""
    return monthly_financials(_reference_today(today))


@app.get("/dashboard/birthdays")
def get_dashboard_birthdays(today: Optional[str] = None) -> List[Dict]:
    """Patients with a birthday in the reference month."""
    return birthdays_of_month(_reference_today(today))


@app.post("/catalog/refresh")
async def refresh_catalog():
    """Drop cached catalog durations and reload them."""
    app.state.duration_cache.invalidate()
    duration_map = await _duration_map()
    logger.info("Catalog durations reloaded on request")
    return {"status": "ok", "entries": len(duration_map)}


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": _is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """
    Reset prototype to baseline. Only available when DEMO_MODE=true.
    Restores seed data and drops the cached catalog durations.
    """
    if not _is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data()
    app.state.duration_cache.invalidate()
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
