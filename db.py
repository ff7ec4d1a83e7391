import sqlite3
from contextlib import contextmanager

from config import DB_PATH


def init_db():
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id                   TEXT    PRIMARY KEY,
                email                TEXT    NOT NULL UNIQUE,
                full_name            TEXT    NOT NULL DEFAULT '',
                password_hash        TEXT    NOT NULL DEFAULT '',
                created_at           TEXT    NOT NULL,
                onboarding_completed INTEGER NOT NULL DEFAULT 0
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS dose_logs (
                id              TEXT PRIMARY KEY,
                user_id         TEXT NOT NULL REFERENCES users(id),
                medication_name TEXT NOT NULL,
                dose_amount     REAL NOT NULL,
                dose_unit       TEXT NOT NULL,
                dose_date       TEXT NOT NULL,
                dose_time       TEXT NOT NULL,
                notes           TEXT,
                created_at      TEXT NOT NULL
            )
        """)
        # symptoms holds a JSON array of labels
        conn.execute("""
            CREATE TABLE IF NOT EXISTS symptom_logs (
                id          TEXT PRIMARY KEY,
                user_id     TEXT NOT NULL REFERENCES users(id),
                dose_log_id TEXT,
                symptoms    TEXT NOT NULL,
                severity    TEXT NOT NULL CHECK (severity IN ('low', 'medium', 'high')),
                notes       TEXT,
                logged_at   TEXT NOT NULL,
                created_at  TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS progress_reports (
                id             TEXT PRIMARY KEY,
                user_id        TEXT NOT NULL REFERENCES users(id),
                report_date    TEXT NOT NULL,
                weight         REAL,
                blood_pressure TEXT,
                glucose_level  REAL,
                notes          TEXT,
                created_at     TEXT NOT NULL
            )
        """)
        # Password reset tokens
        conn.execute("""
            CREATE TABLE IF NOT EXISTS password_reset_tokens (
                token      TEXT    PRIMARY KEY,
                user_id    TEXT    NOT NULL,
                expires_at INTEGER NOT NULL
            )
        """)
        # Indexes for common query patterns (all filtered by user_id)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_dose_logs_user_date"
            " ON dose_logs(user_id, dose_date, dose_time)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_symptom_logs_user_logged"
            " ON symptom_logs(user_id, logged_at)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_progress_reports_user_date"
            " ON progress_reports(user_id, report_date)"
        )
        conn.commit()


@contextmanager
def get_db():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
