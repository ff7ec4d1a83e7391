import unittest

from schemas import DoseEntry, SymptomEntry
from timeline import DOSE, MISSING_TIME, SYMPTOM, merge_timeline, parse_timestamp, sort_key


def _dose(id, date, time, **kw):
    return DoseEntry(
        id=id,
        user_id="u1",
        medication_name=kw.get("medication_name", "Ozempic"),
        dose_amount=kw.get("dose_amount", 0.25),
        dose_unit="mg",
        dose_date=date,
        dose_time=time,
        created_at="2024-01-01T00:00:00+00:00",
    )


def _symptom(id, logged_at, severity="low"):
    return SymptomEntry(
        id=id,
        user_id="u1",
        symptoms=["Nausea"],
        severity=severity,
        logged_at=logged_at,
        created_at="2024-01-01T00:00:00+00:00",
    )


class MergeTimelineTests(unittest.TestCase):
    def test_symptom_in_evening_precedes_morning_dose(self):
        events = merge_timeline(
            [_dose("d1", "2024-05-02", "08:00")],
            [_symptom("s1", "2024-05-02T20:15:00")],
        )
        self.assertEqual([(e.kind, e.id) for e in events], [(SYMPTOM, "s1"), (DOSE, "d1")])
        self.assertEqual((events[0].date, events[0].time), ("2024-05-02", "20:15"))
        self.assertEqual((events[1].date, events[1].time), ("2024-05-02", "08:00"))

    def test_empty_inputs_give_empty_timeline(self):
        self.assertEqual(merge_timeline([], []), [])

    def test_output_is_permutation_in_descending_order(self):
        doses = [
            _dose("d3", "2024-05-04", "09:00"),
            _dose("d2", "2024-05-02", "07:30"),
            _dose("d1", "2024-04-28", "21:00"),
        ]
        symptoms = [
            _symptom("s3", "2024-05-03T12:00:00"),
            _symptom("s2", "2024-05-02T07:45:00"),
            _symptom("s1", "2024-04-01T06:00:00Z"),
        ]
        events = merge_timeline(doses, symptoms)

        self.assertEqual(len(events), len(doses) + len(symptoms))
        self.assertEqual(
            sorted(e.id for e in events),
            sorted([d.id for d in doses] + [s.id for s in symptoms]),
        )
        for earlier, later in zip(events, events[1:]):
            self.assertGreaterEqual(sort_key(earlier), sort_key(later))
        self.assertEqual([e.id for e in events], ["d3", "s3", "s2", "d2", "d1", "s1"])

    def test_doses_alone_keep_store_order(self):
        doses = [
            _dose("d2", "2024-05-02", "08:00"),
            _dose("d1", "2024-05-01", "08:00"),
        ]
        events = merge_timeline(doses, [])
        self.assertEqual([e.id for e in events], ["d2", "d1"])
        self.assertIs(events[0].entry, doses[0])

    def test_dose_without_time_sorts_as_midnight(self):
        events = merge_timeline(
            [_dose("d1", "2024-05-02", "")],
            [_symptom("s1", "2024-05-02T00:30:00"), _symptom("s0", "2024-05-01T23:59:00")],
        )
        self.assertEqual([e.id for e in events], ["s1", "d1", "s0"])
        dose_event = events[1]
        self.assertIsNone(dose_event.time)
        self.assertEqual(sort_key(dose_event), ("2024-05-02", MISSING_TIME))

    def test_symptom_time_keeps_its_own_offset(self):
        events = merge_timeline([], [_symptom("s1", "2024-05-02T23:10:00+02:00")])
        self.assertEqual((events[0].date, events[0].time), ("2024-05-02", "23:10"))


class ParseTimestampTests(unittest.TestCase):
    def test_accepts_trailing_z(self):
        parsed = parse_timestamp("2024-05-02T20:15:00Z")
        self.assertEqual(parsed.hour, 20)
        self.assertIsNotNone(parsed.tzinfo)

    def test_rejects_garbage(self):
        with self.assertRaises(ValueError):
            parse_timestamp("yesterday")


if __name__ == "__main__":
    unittest.main()
