"""
Records exchanged with the record store.

Each model mirrors one collection; rows coming back from the store are
validated into these before any capture or timeline code looks at them.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Severity = Literal["low", "medium", "high"]


class User(BaseModel):
    """Collection: users"""
    id: str
    email: str
    full_name: str = ""
    created_at: str
    onboarding_completed: bool = False


class DoseEntry(BaseModel):
    """A single logged administration of a medication.
    Collection: dose_logs
    """
    id: str
    user_id: str
    medication_name: str
    dose_amount: float
    dose_unit: str
    dose_date: str = Field(..., description="Calendar date in YYYY-MM-DD")
    dose_time: str = Field(..., description="Local time of day in HH:MM")
    notes: Optional[str] = None
    created_at: str


class SymptomEntry(BaseModel):
    """A set of side-effect symptoms with a severity and a timestamp.
    Collection: symptom_logs
    """
    id: str
    user_id: str
    dose_log_id: Optional[str] = None
    symptoms: List[str]
    severity: Severity
    notes: Optional[str] = None
    logged_at: str = Field(..., description="Local timestamp, YYYY-MM-DDTHH:MM:SS")
    created_at: str


class ProgressReport(BaseModel):
    """Collection: progress_reports"""
    id: str
    user_id: str
    report_date: str
    weight: Optional[float] = None
    blood_pressure: Optional[str] = None
    glucose_level: Optional[float] = None
    notes: Optional[str] = None
    created_at: str
