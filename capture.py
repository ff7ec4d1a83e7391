"""Dose, symptom and progress-report capture.

Shared by the HTML routers and the JSON API so both apply the same
validation. Validation failures come back as ``Err(kind="validation")``
before the record store is touched; store failures are passed through.
"""
import logging
import math
from typing import Optional

from config import RECENT_PAGE_SIZE, SEVERITIES, _now_local
from results import Result, validation_error
from schemas import DoseEntry, ProgressReport, SymptomEntry
from store import RecordStore, as_models
from timeline import parse_timestamp

logger = logging.getLogger(__name__)

DOSE_ORDER = [("dose_date", "desc"), ("dose_time", "desc")]
SYMPTOM_ORDER = [("logged_at", "desc")]
REPORT_ORDER = [("report_date", "desc"), ("created_at", "desc")]


def _parse_finite(raw) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _optional_text(raw) -> Optional[str]:
    text = str(raw or "").strip()
    return text or None


# ---------------------------------------------------------------------------
# Doses
# ---------------------------------------------------------------------------

def submit_dose(store: RecordStore, user_id: str, fields: dict) -> Result:
    amount = _parse_finite(fields.get("dose_amount", ""))
    if amount is None:
        return validation_error("Dose amount must be a number")
    record = {
        "user_id": user_id,
        "medication_name": str(fields.get("medication_name") or ""),
        "dose_amount": amount,
        "dose_unit": str(fields.get("dose_unit") or ""),
        "dose_date": str(fields.get("dose_date") or ""),
        "dose_time": str(fields.get("dose_time") or ""),
        "notes": _optional_text(fields.get("notes")),
    }
    return as_models(store.create("dose_logs", record), DoseEntry)


def delete_dose(store: RecordStore, user_id: str, dose_id: str) -> Result:
    return store.delete("dose_logs", dose_id, user_id=user_id)


def list_recent_doses(store: RecordStore, user_id: str, limit: int = RECENT_PAGE_SIZE) -> Result:
    return as_models(store.list("dose_logs", user_id, DOSE_ORDER, limit), DoseEntry)


# ---------------------------------------------------------------------------
# Symptoms
# ---------------------------------------------------------------------------

def _symptom_labels(raw) -> list:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    elif not isinstance(raw, (list, tuple)):
        return []
    labels = [str(s).strip() for s in raw]
    # A checkbox toggled twice is still one selection.
    return list(dict.fromkeys(s for s in labels if s))


def submit_symptoms(store: RecordStore, user_id: str, fields: dict) -> Result:
    symptoms = _symptom_labels(fields.get("symptoms"))
    if not symptoms:
        return validation_error("Select at least one symptom")
    severity = str(fields.get("severity", "")).strip().lower()
    if severity not in SEVERITIES:
        return validation_error("Severity must be low, medium or high")
    raw_logged_at = str(fields.get("logged_at") or "").strip()
    if raw_logged_at:
        try:
            logged_at = parse_timestamp(raw_logged_at).isoformat(timespec="seconds")
        except ValueError:
            return validation_error("Invalid logged-at timestamp")
    else:
        logged_at = _now_local().isoformat(timespec="seconds")
    record = {
        "user_id": user_id,
        "dose_log_id": _optional_text(fields.get("dose_log_id")),
        "symptoms": symptoms,
        "severity": severity,
        "notes": _optional_text(fields.get("notes")),
        "logged_at": logged_at,
    }
    return as_models(store.create("symptom_logs", record), SymptomEntry)


def delete_symptom(store: RecordStore, user_id: str, symptom_id: str) -> Result:
    return store.delete("symptom_logs", symptom_id, user_id=user_id)


def list_recent_symptoms(store: RecordStore, user_id: str, limit: int = RECENT_PAGE_SIZE) -> Result:
    return as_models(store.list("symptom_logs", user_id, SYMPTOM_ORDER, limit), SymptomEntry)


# ---------------------------------------------------------------------------
# Progress reports
# ---------------------------------------------------------------------------

def submit_progress_report(store: RecordStore, user_id: str, fields: dict) -> Result:
    report_date = str(fields.get("report_date") or "").strip()
    if not report_date:
        return validation_error("Report date is required")
    record = {
        "user_id": user_id,
        "report_date": report_date,
        "blood_pressure": _optional_text(fields.get("blood_pressure")),
        "notes": _optional_text(fields.get("notes")),
    }
    for key, label in (("weight", "Weight"), ("glucose_level", "Glucose level")):
        raw = fields.get(key)
        if raw is None or str(raw).strip() == "":
            record[key] = None
            continue
        value = _parse_finite(raw)
        if value is None:
            return validation_error(f"{label} must be a number")
        record[key] = value
    return as_models(store.create("progress_reports", record), ProgressReport)


def delete_progress_report(store: RecordStore, user_id: str, report_id: str) -> Result:
    return store.delete("progress_reports", report_id, user_id=user_id)


def list_recent_reports(store: RecordStore, user_id: str, limit: int = RECENT_PAGE_SIZE) -> Result:
    return as_models(store.list("progress_reports", user_id, REPORT_ORDER, limit), ProgressReport)


# ---------------------------------------------------------------------------
# Dashboard stats
# ---------------------------------------------------------------------------

def dashboard_stats(store: RecordStore, user_id: str) -> dict:
    """Counts for the dashboard header. A failed lookup leaves its value as None."""
    stats = {
        "total_doses": None,
        "last_dose": None,
        "symptoms_logged": None,
        "reports_created": None,
    }
    for key, collection in (
        ("total_doses", "dose_logs"),
        ("symptoms_logged", "symptom_logs"),
        ("reports_created", "progress_reports"),
    ):
        result = store.count(collection, user_id)
        if result.ok:
            stats[key] = result.value
        else:
            logger.warning("Could not count %s for dashboard: %s", collection, result.message)
    latest = list_recent_doses(store, user_id, limit=1)
    if latest.ok:
        if latest.value:
            stats["last_dose"] = latest.value[0].dose_date
    else:
        logger.warning("Could not load latest dose for dashboard: %s", latest.message)
    return stats
