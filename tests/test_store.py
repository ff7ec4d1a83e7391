import tempfile
import unittest

import db
from results import STORE_ERROR
from store import RecordStore


class RecordStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self._old_db_path = db.DB_PATH
        db.DB_PATH = f"{self.tmp.name}/store.db"
        db.init_db()
        self.store = RecordStore()

    def tearDown(self):
        db.DB_PATH = self._old_db_path
        self.tmp.cleanup()

    def _dose(self, user_id, date, time, amount=0.25):
        result = self.store.create("dose_logs", {
            "user_id": user_id,
            "medication_name": "Ozempic",
            "dose_amount": amount,
            "dose_unit": "mg",
            "dose_date": date,
            "dose_time": time,
        })
        self.assertTrue(result.ok, getattr(result, "message", ""))
        return result.value

    def test_create_assigns_id_and_created_at(self):
        dose = self._dose("u1", "2024-05-02", "08:00")
        self.assertTrue(dose["id"])
        self.assertTrue(dose["created_at"])
        self.assertIsNone(dose["notes"])

    def test_list_orders_limits_and_scopes_by_user(self):
        self._dose("u1", "2024-05-01", "08:00")
        self._dose("u1", "2024-05-03", "07:00")
        self._dose("u1", "2024-05-03", "19:00")
        self._dose("u2", "2024-06-01", "08:00")

        result = self.store.list(
            "dose_logs", "u1", [("dose_date", "desc"), ("dose_time", "desc")], limit=2
        )
        self.assertTrue(result.ok)
        self.assertEqual(
            [(d["dose_date"], d["dose_time"]) for d in result.value],
            [("2024-05-03", "19:00"), ("2024-05-03", "07:00")],
        )
        self.assertTrue(all(d["user_id"] == "u1" for d in result.value))

    def test_symptom_labels_round_trip_as_list(self):
        created = self.store.create("symptom_logs", {
            "user_id": "u1",
            "symptoms": ["Nausea", "Headache"],
            "severity": "high",
            "logged_at": "2024-05-02T20:15:00",
        })
        self.assertTrue(created.ok)
        fetched = self.store.get("symptom_logs", created.value["id"])
        self.assertEqual(fetched.value["symptoms"], ["Nausea", "Headache"])

    def test_delete_is_scoped_and_idempotent(self):
        dose = self._dose("u1", "2024-05-02", "08:00")
        self.assertTrue(self.store.delete("dose_logs", dose["id"], user_id="u2").ok)
        self.assertEqual(self.store.count("dose_logs", "u1").value, 1)
        self.assertTrue(self.store.delete("dose_logs", dose["id"], user_id="u1").ok)
        self.assertTrue(self.store.delete("dose_logs", dose["id"], user_id="u1").ok)
        self.assertEqual(self.store.count("dose_logs", "u1").value, 0)
        self.assertIsNone(self.store.get("dose_logs", dose["id"]).value)

    def test_update(self):
        dose = self._dose("u1", "2024-05-02", "08:00")
        self.assertTrue(self.store.update("dose_logs", dose["id"], {"notes": "after lunch"}).ok)
        self.assertEqual(self.store.get("dose_logs", dose["id"]).value["notes"], "after lunch")

        missing = self.store.update("dose_logs", "nope", {"notes": "x"})
        self.assertFalse(missing.ok)
        self.assertEqual(missing.kind, STORE_ERROR)
        self.assertFalse(self.store.update("dose_logs", dose["id"], {"id": "other"}).ok)

    def test_unknown_collection_or_field_is_an_error(self):
        self.assertEqual(self.store.list("medications", "u1").kind, STORE_ERROR)
        self.assertFalse(self.store.list("dose_logs", "u1", [("colour", "asc")]).ok)
        self.assertFalse(self.store.list("dose_logs", "u1", [("dose_date", "sideways")]).ok)
        self.assertFalse(self.store.create("dose_logs", {"user_id": "u1", "bogus": 1}).ok)

    def test_backend_failure_becomes_err(self):
        # severity CHECK constraint
        result = self.store.create("symptom_logs", {
            "user_id": "u1",
            "symptoms": ["Nausea"],
            "severity": "extreme",
            "logged_at": "2024-05-02T20:15:00",
        })
        self.assertFalse(result.ok)
        self.assertEqual(result.kind, STORE_ERROR)
        self.assertIn("CHECK", result.message)


if __name__ == "__main__":
    unittest.main()
