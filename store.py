import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Tuple

from pydantic import ValidationError

from db import get_db
from results import Err, Ok, Result, STORE_ERROR

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "users": (
        "id", "email", "full_name", "password_hash", "created_at", "onboarding_completed",
    ),
    "dose_logs": (
        "id", "user_id", "medication_name", "dose_amount", "dose_unit",
        "dose_date", "dose_time", "notes", "created_at",
    ),
    "symptom_logs": (
        "id", "user_id", "dose_log_id", "symptoms", "severity", "notes", "logged_at", "created_at",
    ),
    "progress_reports": (
        "id", "user_id", "report_date", "weight", "blood_pressure", "glucose_level",
        "notes", "created_at",
    ),
}
_JSON_FIELDS = {"symptoms"}
_BOOL_FIELDS = {"onboarding_completed"}
_DIRECTIONS = {"asc": "ASC", "desc": "DESC"}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _encode(record: dict) -> dict:
    row = {}
    for key, value in record.items():
        if key in _JSON_FIELDS:
            value = json.dumps(list(value))
        elif key in _BOOL_FIELDS:
            value = 1 if value else 0
        row[key] = value
    return row


def _decode(row: sqlite3.Row) -> dict:
    record = dict(row)
    for key in _JSON_FIELDS & record.keys():
        record[key] = json.loads(record[key] or "[]")
    for key in _BOOL_FIELDS & record.keys():
        record[key] = bool(record[key])
    return record


def _unknown_fields(collection: str, names: Iterable[str]) -> Optional[str]:
    columns = COLLECTIONS.get(collection)
    if columns is None:
        return f"Unknown collection: {collection}"
    bad = [n for n in names if n not in columns]
    if bad:
        return f"Unknown field(s) for {collection}: {', '.join(sorted(bad))}"
    return None


class RecordStore:
    """Create/read/update/delete over the record collections, scoped by user id.

    Every method answers with ``Ok`` or ``Err``; backend failures are logged
    here and surface to callers only as the error message.
    """

    def _guarded(self, action: str, fn: Callable[[], Any]) -> Result:
        try:
            return Ok(fn())
        except sqlite3.Error as exc:
            logger.exception("Record store %s failed", action)
            return Err(str(exc) or "Record store request failed", STORE_ERROR)

    def create(self, collection: str, record: dict) -> Result:
        row = dict(record)
        row.setdefault("id", uuid.uuid4().hex)
        row.setdefault("created_at", _utc_now_iso())
        problem = _unknown_fields(collection, row)
        if problem:
            return Err(problem, STORE_ERROR)
        row = _encode(row)
        cols = ", ".join(row)
        marks = ", ".join("?" for _ in row)

        def _insert():
            with get_db() as conn:
                conn.execute(
                    f"INSERT INTO {collection} ({cols}) VALUES ({marks})", tuple(row.values())
                )
                conn.commit()
                stored = conn.execute(
                    f"SELECT * FROM {collection} WHERE id = ?", (row["id"],)
                ).fetchone()
            return _decode(stored)

        return self._guarded(f"create on {collection}", _insert)

    def list(
        self,
        collection: str,
        user_id: str,
        order_by: Iterable[Tuple[str, str]] = (),
        limit: Optional[int] = None,
    ) -> Result:
        order_by = list(order_by)
        problem = _unknown_fields(collection, ["user_id"] + [f for f, _ in order_by])
        if problem:
            return Err(problem, STORE_ERROR)
        clauses = []
        for field, direction in order_by:
            sql_dir = _DIRECTIONS.get(direction.lower())
            if sql_dir is None:
                return Err(f"Invalid sort direction: {direction}", STORE_ERROR)
            clauses.append(f"{field} {sql_dir}")
        sql = f"SELECT * FROM {collection} WHERE user_id = ?"
        params: list = [user_id]
        if clauses:
            sql += " ORDER BY " + ", ".join(clauses)
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        def _select():
            with get_db() as conn:
                rows = conn.execute(sql, params).fetchall()
            return [_decode(r) for r in rows]

        return self._guarded(f"list on {collection}", _select)

    def get(self, collection: str, record_id: str) -> Result:
        problem = _unknown_fields(collection, ["id"])
        if problem:
            return Err(problem, STORE_ERROR)

        def _select():
            with get_db() as conn:
                row = conn.execute(
                    f"SELECT * FROM {collection} WHERE id = ?", (record_id,)
                ).fetchone()
            return _decode(row) if row else None

        return self._guarded(f"get on {collection}", _select)

    def count(self, collection: str, user_id: str) -> Result:
        problem = _unknown_fields(collection, ["user_id"])
        if problem:
            return Err(problem, STORE_ERROR)

        def _count():
            with get_db() as conn:
                return conn.execute(
                    f"SELECT COUNT(*) FROM {collection} WHERE user_id = ?", (user_id,)
                ).fetchone()[0]

        return self._guarded(f"count on {collection}", _count)

    def delete(self, collection: str, record_id: str, user_id: Optional[str] = None) -> Result:
        """Delete by id. Deleting a record that does not exist is not an error."""
        problem = _unknown_fields(collection, ["id"] + (["user_id"] if user_id is not None else []))
        if problem:
            return Err(problem, STORE_ERROR)
        sql = f"DELETE FROM {collection} WHERE id = ?"
        params = [record_id]
        if user_id is not None:
            sql += " AND user_id = ?"
            params.append(user_id)

        def _delete():
            with get_db() as conn:
                conn.execute(sql, params)
                conn.commit()

        return self._guarded(f"delete on {collection}", _delete)

    def update(self, collection: str, record_id: str, changes: dict) -> Result:
        if not changes:
            return Ok(None)
        if "id" in changes:
            return Err("Record id cannot be changed", STORE_ERROR)
        problem = _unknown_fields(collection, changes)
        if problem:
            return Err(problem, STORE_ERROR)
        row = _encode(changes)
        assignments = ", ".join(f"{k} = ?" for k in row)

        def _update():
            with get_db() as conn:
                cur = conn.execute(
                    f"UPDATE {collection} SET {assignments} WHERE id = ?",
                    tuple(row.values()) + (record_id,),
                )
                conn.commit()
            return cur.rowcount

        result = self._guarded(f"update on {collection}", _update)
        if not result.ok:
            return result
        if result.value == 0:
            return Err(f"No {collection} record with id {record_id}", STORE_ERROR)
        return Ok(None)


def get_store() -> RecordStore:
    """FastAPI dependency; overridden in tests."""
    return RecordStore()


def as_models(result: Result, model) -> Result:
    """Validate the record(s) of an ``Ok`` result into ``model`` instances."""
    if not result.ok or result.value is None:
        return result
    try:
        if isinstance(result.value, list):
            return Ok([model.model_validate(r) for r in result.value])
        return Ok(model.model_validate(result.value))
    except ValidationError:
        logger.exception("Malformed %s record from store", model.__name__)
        return Err(f"Malformed {model.__name__} record", STORE_ERROR)
