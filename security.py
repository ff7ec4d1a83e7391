import hashlib
import hmac
import logging
import os
import secrets
import smtplib
import sqlite3
import threading
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from email.mime.text import MIMEText
from time import time
from typing import Optional

import requests
from fastapi import Request

from config import (
    CSRF_COOKIE_NAME,
    MIN_PASSWORD_LEN,
    RESET_TOKEN_TTL_SECONDS,
    SECRET_KEY,
    SESSION_COOKIE_NAME,
    SESSION_TTL_SECONDS,
)
from db import get_db
from results import Err, Ok, Result, STORE_ERROR, validation_error
from schemas import User

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# In-memory rate limiting (per-IP, resets on server restart)
# ---------------------------------------------------------------------------
_rate_lock = threading.Lock()
_login_buckets: dict[str, list[float]] = defaultdict(list)
_reset_buckets: dict[str, list[float]] = defaultdict(list)

_LOGIN_WINDOW = 300   # 5 minutes
_LOGIN_MAX = 10       # attempts per window per IP
_RESET_WINDOW = 900   # 15 minutes
_RESET_MAX = 5        # attempts per window per IP


def _check_rate_limit(bucket: dict, ip: str, window: int, max_attempts: int) -> bool:
    """Return True if the request should be allowed, False if rate limited."""
    now = time()
    with _rate_lock:
        bucket[ip] = [t for t in bucket[ip] if now - t < window]
        if len(bucket[ip]) >= max_attempts:
            return False
        bucket[ip].append(now)
        return True


def _is_login_allowed(ip: str) -> bool:
    return _check_rate_limit(_login_buckets, ip, _LOGIN_WINDOW, _LOGIN_MAX)


def _is_reset_allowed(ip: str) -> bool:
    return _check_rate_limit(_reset_buckets, ip, _RESET_WINDOW, _RESET_MAX)


def _request_origin_host(request: Request) -> str:
    header = request.headers.get("origin") or request.headers.get("referer") or ""
    if "://" not in header:
        return ""
    return header.split("://", 1)[1].split("/", 1)[0].lower()


def _is_same_origin(request: Request) -> bool:
    origin_host = _request_origin_host(request)
    if not origin_host:
        return False
    return origin_host == request.url.netloc.lower()


def _ensure_csrf_cookie(request: Request, response):
    if request.cookies.get(CSRF_COOKIE_NAME):
        return response
    response.set_cookie(
        CSRF_COOKIE_NAME,
        secrets.token_urlsafe(32),
        httponly=False,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


def _csrf_header_valid(request: Request) -> bool:
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME, "")
    header_token = request.headers.get("x-csrf-token", "")
    return bool(cookie_token) and hmac.compare_digest(cookie_token, header_token)


def _hash_password(plaintext: str) -> str:
    salt = secrets.token_bytes(32)
    dk = hashlib.pbkdf2_hmac("sha256", plaintext.encode(), salt, 480_000)
    return salt.hex() + ":" + dk.hex()


def _verify_password(plaintext: str, stored: str) -> bool:
    try:
        salt_hex, dk_hex = stored.split(":")
        dk = hashlib.pbkdf2_hmac("sha256", plaintext.encode(), bytes.fromhex(salt_hex), 480_000)
        return hmac.compare_digest(dk, bytes.fromhex(dk_hex))
    except ValueError:
        return False


def _make_session_token(user_id: str, password_hash: str) -> str:
    exp = int(time()) + SESSION_TTL_SECONDS
    nonce = secrets.token_urlsafe(16)
    payload = f"{user_id}:{exp}:{nonce}"
    sig = hmac.new(SECRET_KEY.encode(), f"{payload}:{password_hash}".encode(), "sha256").hexdigest()
    return f"{payload}:{sig}"


def _verify_session_token(token: str, user_id: str, password_hash: str) -> bool:
    try:
        token_user_id, exp_s, nonce, sig = token.split(":", 3)
        if token_user_id != user_id:
            return False
        exp = int(exp_s)
        if exp < int(time()):
            return False
    except ValueError:
        return False
    payload = f"{token_user_id}:{exp}:{nonce}"
    expected = hmac.new(
        SECRET_KEY.encode(),
        f"{payload}:{password_hash}".encode(),
        "sha256",
    ).hexdigest()
    return hmac.compare_digest(sig, expected)


def _set_session_cookie(response, request: Request, user_id: str, password_hash: str):
    response.set_cookie(
        SESSION_COOKIE_NAME,
        _make_session_token(user_id, password_hash),
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
        max_age=SESSION_TTL_SECONDS,
    )
    return response


def _user_row_by(column: str, value: str) -> Optional[sqlite3.Row]:
    with get_db() as conn:
        return conn.execute(f"SELECT * FROM users WHERE {column} = ?", (value,)).fetchone()


def get_current_user(request: Request) -> Optional[User]:
    """Resolve the session cookie to a user, or None when absent, expired or forged."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME, "")
    if not cookie:
        return None
    parts = cookie.split(":", 3)
    if len(parts) < 4:
        return None
    row = _user_row_by("id", parts[0])
    if not row or not row["password_hash"]:
        return None
    if not _verify_session_token(cookie, row["id"], row["password_hash"]):
        return None
    return User.model_validate(dict(row))


def sign_up(email: str, password: str, full_name: str) -> Result:
    email = email.strip().lower()
    full_name = full_name.strip()
    if not full_name:
        return validation_error("Full name is required")
    if not email or "@" not in email:
        return validation_error("A valid email is required")
    if len(password) < MIN_PASSWORD_LEN:
        return validation_error(f"Password must be at least {MIN_PASSWORD_LEN} characters")
    user_id = uuid.uuid4().hex
    created_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat()
    try:
        with get_db() as conn:
            conn.execute(
                "INSERT INTO users (id, email, full_name, password_hash, created_at)"
                " VALUES (?, ?, ?, ?, ?)",
                (user_id, email, full_name, _hash_password(password), created_at),
            )
            conn.commit()
    except sqlite3.IntegrityError:
        return Err("An account with this email already exists", STORE_ERROR)
    except sqlite3.Error as exc:
        logger.exception("User sign-up failed")
        return Err(str(exc), STORE_ERROR)
    return Ok(User.model_validate(dict(_user_row_by("id", user_id))))


def sign_in(email: str, password: str) -> Result:
    try:
        row = _user_row_by("email", email.strip().lower())
    except sqlite3.Error as exc:
        logger.exception("User sign-in lookup failed")
        return Err(str(exc), STORE_ERROR)
    if not row or not row["password_hash"] or not _verify_password(password, row["password_hash"]):
        return Err("Incorrect email or password", STORE_ERROR)
    return Ok(User.model_validate(dict(row)))


def _session_password_hash(user_id: str) -> str:
    row = _user_row_by("id", user_id)
    return row["password_hash"] if row else ""


def reset_password(email: str, base_url: str) -> Result:
    """Issue a reset token and mail the link.

    Succeeds whether or not the address is registered so callers cannot be
    used to probe for accounts.
    """
    email = email.strip().lower()
    if not email:
        return validation_error("Email is required")
    try:
        row = _user_row_by("email", email)
        if row is None:
            return Ok(None)
        token = secrets.token_urlsafe(32)
        expires_at = int(time()) + RESET_TOKEN_TTL_SECONDS
        with get_db() as conn:
            conn.execute("DELETE FROM password_reset_tokens WHERE user_id = ?", (row["id"],))
            conn.execute(
                "INSERT INTO password_reset_tokens (token, user_id, expires_at) VALUES (?, ?, ?)",
                (token, row["id"], expires_at),
            )
            conn.commit()
    except sqlite3.Error as exc:
        logger.exception("Password reset token creation failed")
        return Err(str(exc), STORE_ERROR)
    _send_reset_email(email, f"{base_url.rstrip('/')}/reset-password?token={token}")
    return Ok(None)


def _reset_token_user_id(token: str) -> Optional[str]:
    with get_db() as conn:
        row = conn.execute(
            "SELECT user_id, expires_at FROM password_reset_tokens WHERE token = ?", (token,)
        ).fetchone()
    if not row or row["expires_at"] < int(time()):
        return None
    return row["user_id"]


def complete_password_reset(token: str, new_password: str) -> Result:
    """Swap in a new password for the token's user and burn the token.

    Changing the hash also invalidates every session signed with the old one.
    """
    if len(new_password) < MIN_PASSWORD_LEN:
        return validation_error(f"Password must be at least {MIN_PASSWORD_LEN} characters")
    try:
        user_id = _reset_token_user_id(token)
        if user_id is None:
            return validation_error("Reset link expired or invalid")
        with get_db() as conn:
            conn.execute(
                "UPDATE users SET password_hash = ? WHERE id = ?",
                (_hash_password(new_password), user_id),
            )
            conn.execute("DELETE FROM password_reset_tokens WHERE token = ?", (token,))
            conn.commit()
    except sqlite3.Error as exc:
        logger.exception("Password reset failed")
        return Err(str(exc), STORE_ERROR)
    logger.info("Password reset completed for user %s", user_id)
    return Ok(user_id)


def landing_path(user: User) -> str:
    """Where a signed-in user goes by default."""
    return "/dashboard" if user.onboarding_completed else "/onboarding"


def _send_reset_email(to_email: str, reset_url: str) -> bool:
    """Send a password-reset email via SMTP (preferred), fallback to Mailgun API."""
    subject = "Reset your GLP-Guide password"
    text_body = (
        f"Click the link below to reset your GLP-Guide password (expires in 1 hour):\n\n"
        f"{reset_url}\n\n"
        "If you did not request a password reset, you can ignore this email."
    )

    # SMTP preferred path
    smtp_host = os.environ.get("SMTP_HOST", "")
    smtp_port = int(os.environ.get("SMTP_PORT", "587"))
    smtp_user = os.environ.get("SMTP_USER", "")
    smtp_pass = os.environ.get("SMTP_PASSWORD", "")
    smtp_from = os.environ.get("SMTP_FROM", smtp_user)
    if smtp_host and smtp_user and smtp_pass:
        msg = MIMEText(text_body)
        msg["Subject"] = subject
        msg["From"] = smtp_from
        msg["To"] = to_email
        try:
            with smtplib.SMTP(smtp_host, smtp_port, timeout=20) as s:
                s.starttls()
                s.login(smtp_user, smtp_pass)
                s.sendmail(smtp_from, [to_email], msg.as_string())
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("SMTP password reset email send failed")

    # Mailgun API fallback
    mailgun_api_key = os.environ.get("MAILGUN_API_KEY", "")
    mailgun_domain = os.environ.get("MAILGUN_DOMAIN", "")
    mailgun_from = os.environ.get("MAILGUN_FROM", "")
    if mailgun_api_key and mailgun_domain:
        sender = mailgun_from or f"no-reply@{mailgun_domain}"
        try:
            resp = requests.post(
                f"https://api.mailgun.net/v3/{mailgun_domain}/messages",
                auth=("api", mailgun_api_key),
                data={
                    "from": sender,
                    "to": [to_email],
                    "subject": subject,
                    "text": text_body,
                },
                timeout=15,
            )
            if 200 <= resp.status_code < 300:
                return True
            logger.warning(
                "Mailgun reset email send failed with status %s: %s",
                resp.status_code,
                (resp.text or "")[:200],
            )
        except requests.RequestException:
            logger.exception("Mailgun API password reset email send failed")
    else:
        logger.warning(
            "Password reset email not attempted: missing SMTP and Mailgun configuration"
        )
    return False


def current_user(request: Request) -> User:
    """FastAPI dependency: the user the auth middleware resolved for this request."""
    return request.state.user
