import unittest

from capture import (
    dashboard_stats,
    delete_dose,
    list_recent_doses,
    submit_dose,
    submit_progress_report,
    submit_symptoms,
)
from results import Err, Ok, STORE_ERROR, VALIDATION_ERROR


class RecordingStore:
    """Stands in for RecordStore; answers creates by echoing the record back."""

    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def _answer(self, value):
        if self.fail_with:
            return Err(self.fail_with, STORE_ERROR)
        return Ok(value)

    def create(self, collection, record):
        self.calls.append(("create", collection, record))
        stored = dict(record, id="rec-1", created_at="2024-05-02T10:00:00+00:00")
        return self._answer(stored)

    def list(self, collection, user_id, order_by=(), limit=None):
        self.calls.append(("list", collection, user_id, list(order_by), limit))
        return self._answer([])

    def delete(self, collection, record_id, user_id=None):
        self.calls.append(("delete", collection, record_id, user_id))
        return self._answer(None)

    def count(self, collection, user_id):
        self.calls.append(("count", collection, user_id))
        return self._answer(0)


DOSE_FIELDS = {
    "medication_name": "Ozempic",
    "dose_amount": "0.5",
    "dose_unit": "mg",
    "dose_date": "2024-05-02",
    "dose_time": "08:00",
    "notes": "",
}


class DoseCaptureTests(unittest.TestCase):
    def test_submit_dose_creates_record(self):
        store = RecordingStore()
        result = submit_dose(store, "u1", DOSE_FIELDS)
        self.assertTrue(result.ok)
        self.assertEqual(result.value.dose_amount, 0.5)
        self.assertIsNone(result.value.notes)
        op, collection, record = store.calls[0]
        self.assertEqual((op, collection), ("create", "dose_logs"))
        self.assertEqual(record["user_id"], "u1")

    def test_non_finite_or_text_amounts_are_rejected_locally(self):
        for amount in ("nan", "inf", "-inf", "half", "", True):
            with self.subTest(amount=amount):
                store = RecordingStore()
                result = submit_dose(store, "u1", dict(DOSE_FIELDS, dose_amount=amount))
                self.assertFalse(result.ok)
                self.assertEqual(result.kind, VALIDATION_ERROR)
                self.assertEqual(store.calls, [])

    def test_null_text_fields_are_stored_empty(self):
        store = RecordingStore()
        result = submit_dose(store, "u1", dict(
            DOSE_FIELDS, medication_name=None, dose_unit=None, dose_time=None,
        ))
        self.assertTrue(result.ok)
        record = store.calls[0][2]
        self.assertEqual(record["medication_name"], "")
        self.assertEqual(record["dose_unit"], "")
        self.assertEqual(record["dose_time"], "")
        self.assertEqual(record["dose_date"], "2024-05-02")

    def test_store_failure_passes_through(self):
        result = submit_dose(RecordingStore(fail_with="disk I/O error"), "u1", DOSE_FIELDS)
        self.assertEqual(result, Err("disk I/O error", STORE_ERROR))

    def test_list_and_delete_are_scoped_to_user(self):
        store = RecordingStore()
        list_recent_doses(store, "u1", limit=5)
        delete_dose(store, "u1", "rec-9")
        self.assertEqual(
            store.calls,
            [
                ("list", "dose_logs", "u1", [("dose_date", "desc"), ("dose_time", "desc")], 5),
                ("delete", "dose_logs", "rec-9", "u1"),
            ],
        )


class SymptomCaptureTests(unittest.TestCase):
    def test_empty_selection_makes_no_store_call(self):
        for symptoms in ([], None, ["  "], "", 5, {"Nausea": True}):
            with self.subTest(symptoms=symptoms):
                store = RecordingStore()
                result = submit_symptoms(store, "u1", {"symptoms": symptoms, "severity": "low"})
                self.assertFalse(result.ok)
                self.assertEqual(result.kind, VALIDATION_ERROR)
                self.assertEqual(result.message, "Select at least one symptom")
                self.assertEqual(store.calls, [])

    def test_invalid_severity_is_rejected(self):
        store = RecordingStore()
        result = submit_symptoms(store, "u1", {"symptoms": ["Nausea"], "severity": "extreme"})
        self.assertEqual(result.kind, VALIDATION_ERROR)
        self.assertEqual(store.calls, [])

    def test_submit_dedupes_and_keeps_explicit_timestamp(self):
        store = RecordingStore()
        result = submit_symptoms(store, "u1", {
            "symptoms": ["Nausea", "Fatigue", "Nausea"],
            "severity": "Medium",
            "logged_at": "2024-05-02T20:15",
        })
        self.assertTrue(result.ok)
        self.assertEqual(result.value.symptoms, ["Nausea", "Fatigue"])
        self.assertEqual(result.value.severity, "medium")
        self.assertEqual(result.value.logged_at, "2024-05-02T20:15:00")

    def test_malformed_timestamp_is_rejected(self):
        store = RecordingStore()
        result = submit_symptoms(store, "u1", {
            "symptoms": ["Nausea"], "severity": "low", "logged_at": "tomorrow",
        })
        self.assertEqual(result.kind, VALIDATION_ERROR)
        self.assertEqual(store.calls, [])


class ProgressReportCaptureTests(unittest.TestCase):
    def test_measurements_are_optional(self):
        store = RecordingStore()
        result = submit_progress_report(store, "u1", {"report_date": "2024-05-02", "weight": ""})
        self.assertTrue(result.ok)
        self.assertIsNone(result.value.weight)
        self.assertIsNone(result.value.glucose_level)

    def test_report_date_required_and_numbers_checked(self):
        store = RecordingStore()
        self.assertEqual(submit_progress_report(store, "u1", {}).kind, VALIDATION_ERROR)
        bad = submit_progress_report(store, "u1", {"report_date": "2024-05-02", "glucose_level": "nan"})
        self.assertEqual(bad.kind, VALIDATION_ERROR)
        self.assertEqual(store.calls, [])


class DashboardStatsTests(unittest.TestCase):
    def test_failed_lookups_leave_none(self):
        stats = dashboard_stats(RecordingStore(fail_with="locked"), "u1")
        self.assertEqual(
            stats,
            {"total_doses": None, "last_dose": None, "symptoms_logged": None, "reports_created": None},
        )

    def test_counts_from_store(self):
        stats = dashboard_stats(RecordingStore(), "u1")
        self.assertEqual(stats["total_doses"], 0)
        self.assertIsNone(stats["last_dose"])


if __name__ == "__main__":
    unittest.main()
