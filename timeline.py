"""Merging dose and symptom entries into one display timeline.

Both inputs arrive most-recent-first from the record store. Each entry is
normalized to a ``TimelineEvent`` and the combined list is ordered by
``(date, time)`` descending. An event without a time compares as ``00:00`` of
its date but keeps ``time=None``. Events sharing date and time have no
guaranteed relative order.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from schemas import DoseEntry, SymptomEntry

DOSE = "dose"
SYMPTOM = "symptom"
MISSING_TIME = "00:00"


@dataclass(frozen=True)
class TimelineEvent:
    id: str
    kind: str
    date: str
    time: Optional[str]
    entry: Union[DoseEntry, SymptomEntry]


def parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def dose_event(dose: DoseEntry) -> TimelineEvent:
    return TimelineEvent(
        id=dose.id, kind=DOSE, date=dose.dose_date, time=dose.dose_time or None, entry=dose
    )


def symptom_event(symptom: SymptomEntry) -> TimelineEvent:
    # Truncate in the timestamp's own representation; no timezone conversion.
    logged = parse_timestamp(symptom.logged_at)
    return TimelineEvent(
        id=symptom.id,
        kind=SYMPTOM,
        date=logged.date().isoformat(),
        time=logged.strftime("%H:%M"),
        entry=symptom,
    )


def sort_key(event: TimelineEvent) -> Tuple[str, str]:
    return (event.date, event.time or MISSING_TIME)


def merge_timeline(
    doses: Iterable[DoseEntry], symptoms: Iterable[SymptomEntry]
) -> List[TimelineEvent]:
    events = [dose_event(d) for d in doses] + [symptom_event(s) for s in symptoms]
    events.sort(key=sort_key, reverse=True)
    return events
