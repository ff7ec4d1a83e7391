import html
from urllib.parse import quote_plus

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from config import MIN_PASSWORD_LEN, SESSION_COOKIE_NAME
from security import (
    _is_login_allowed,
    _is_reset_allowed,
    _reset_token_user_id,
    _session_password_hash,
    _set_session_cookie,
    complete_password_reset,
    get_current_user,
    landing_path,
    reset_password,
    sign_in,
    sign_up,
)
from ui import _banners, _notify_url, _page

router = APIRouter()


def _auth_links(*links) -> str:
    return "".join(
        f'<p style="margin-top:12px; font-size:13px; color:#6b7280;">{text} '
        f'<a href="{href}" style="color:#3b82f6;">{label}</a></p>'
        for text, href, label in links
    )


@router.get("/signup", response_class=HTMLResponse)
def signup_get(request: Request, error: str = ""):
    user = get_current_user(request)
    if user is not None:
        return RedirectResponse(url=landing_path(user), status_code=303)
    body = f"""    <h1>Create your account</h1>
    <p style="color:#555; font-size:14px; margin-bottom:16px;">
      Start tracking your GLP-1 treatment in a few seconds.
    </p>
    {_banners(error)}
    <form method="post" action="/signup">
      <div class="form-group">
        <label for="full_name">Full name</label>
        <input type="text" id="full_name" name="full_name" required autocomplete="name">
      </div>
      <div class="form-group">
        <label for="email">Email</label>
        <input type="email" id="email" name="email" required autocomplete="email"
          placeholder="you@example.com">
      </div>
      <div class="form-group">
        <label for="password">Password</label>
        <input type="password" id="password" name="password"
          placeholder="At least {MIN_PASSWORD_LEN} characters" required autocomplete="new-password">
      </div>
      <button type="submit" class="btn-primary">Create account</button>
    </form>
    {_auth_links(("Already have an account?", "/login", "Log in"))}"""
    return _page("Sign up", body)


@router.post("/signup")
def signup_post(
    request: Request,
    full_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    result = sign_up(email, password, full_name)
    if not result.ok:
        return RedirectResponse(url=_notify_url("/signup", error=result.message), status_code=303)
    user = result.value
    resp = RedirectResponse(url="/onboarding", status_code=303)
    _set_session_cookie(resp, request, user.id, _session_password_hash(user.id))
    return resp


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request, error: str = "", success: str = ""):
    user = get_current_user(request)
    if user is not None:
        return RedirectResponse(url=landing_path(user), status_code=303)
    body = f"""    <h1>GLP-Guide</h1>
    <p style="color:#555; font-size:14px; margin-bottom:16px;">Log in to continue.</p>
    {_banners(error, success)}
    <form method="post" action="/login">
      <div class="form-group">
        <label for="email">Email</label>
        <input type="email" id="email" name="email" required autocomplete="email">
      </div>
      <div class="form-group">
        <label for="password">Password</label>
        <input type="password" id="password" name="password" required autocomplete="current-password">
      </div>
      <button type="submit" class="btn-primary">Log in</button>
    </form>
    {_auth_links(("", "/forgot-password", "Forgot your password?"),
                 ("No account yet?", "/signup", "Sign up"))}"""
    return _page("Log in", body)


@router.post("/login")
def login_post(request: Request, email: str = Form(""), password: str = Form("")):
    ip = request.client.host if request.client else "unknown"
    if not _is_login_allowed(ip):
        return RedirectResponse(
            url=_notify_url("/login", error="Too many attempts. Please wait before trying again."),
            status_code=303,
        )
    result = sign_in(email, password)
    if not result.ok:
        return RedirectResponse(url=_notify_url("/login", error=result.message), status_code=303)
    user = result.value
    resp = RedirectResponse(url=landing_path(user), status_code=303)
    _set_session_cookie(resp, request, user.id, _session_password_hash(user.id))
    return resp


@router.post("/logout")
def logout():
    resp = RedirectResponse(url="/login", status_code=303)
    resp.delete_cookie(SESSION_COOKIE_NAME)
    return resp


@router.get("/forgot-password", response_class=HTMLResponse)
def forgot_password_get(sent: int = 0, error: str = ""):
    success = "If that email address is registered, a password reset link has been sent." if sent else ""
    body = f"""    <h1>Forgot password</h1>
    <p style="color:#555; font-size:14px; margin-bottom:16px;">
      Enter the email address of your account and we'll send you a reset link.
    </p>
    {_banners(error, success)}
    <form method="post" action="/forgot-password">
      <div class="form-group">
        <label for="email">Email address</label>
        <input type="email" id="email" name="email" required autocomplete="email"
          placeholder="you@example.com">
      </div>
      <button type="submit" class="btn-primary">Send reset link</button>
    </form>
    {_auth_links(("", "/login", "&larr; Back to login"))}"""
    return _page("Forgot password", body)


@router.post("/forgot-password")
def forgot_password_post(request: Request, email: str = Form("")):
    ip = request.client.host if request.client else "unknown"
    if not _is_reset_allowed(ip):
        return RedirectResponse(url="/forgot-password?sent=1", status_code=303)
    result = reset_password(email, str(request.base_url))
    if not result.ok:
        return RedirectResponse(url=_notify_url("/forgot-password", error=result.message), status_code=303)
    # Same answer for unknown addresses
    return RedirectResponse(url="/forgot-password?sent=1", status_code=303)


@router.get("/reset-password", response_class=HTMLResponse)
def reset_password_get(token: str = "", error: str = ""):
    if not token:
        return RedirectResponse(url=_notify_url("/forgot-password", error="Missing reset token"), status_code=303)
    if _reset_token_user_id(token) is None:
        body = """    <h1>Reset password</h1>
    <div class="alert">This reset link has expired or is invalid. Please
      <a href="/forgot-password" style="color:#b91c1c;">request a new one</a>.
    </div>"""
        return _page("Reset password", body)
    body = f"""    <h1>Reset password</h1>
    {_banners(error)}
    <form method="post" action="/reset-password">
      <input type="hidden" name="token" value="{html.escape(token)}">
      <div class="form-group">
        <label for="new_password">New password</label>
        <input type="password" id="new_password" name="new_password"
          placeholder="At least {MIN_PASSWORD_LEN} characters" required autocomplete="new-password">
      </div>
      <div class="form-group">
        <label for="confirm_password">Confirm new password</label>
        <input type="password" id="confirm_password" name="confirm_password"
          required autocomplete="new-password">
      </div>
      <button type="submit" class="btn-primary">Reset password</button>
    </form>"""
    return _page("Reset password", body)


@router.post("/reset-password")
def reset_password_post(
    token: str = Form(""),
    new_password: str = Form(""),
    confirm_password: str = Form(""),
):
    if not token:
        return RedirectResponse(url=_notify_url("/forgot-password", error="Missing reset token"), status_code=303)
    retry = f"/reset-password?token={quote_plus(token)}"
    if new_password != confirm_password:
        return RedirectResponse(url=retry + "&error=Passwords+do+not+match", status_code=303)
    result = complete_password_reset(token, new_password)
    if not result.ok:
        if _reset_token_user_id(token) is not None:
            return RedirectResponse(url=f"{retry}&error={quote_plus(result.message)}", status_code=303)
        return RedirectResponse(url=_notify_url("/forgot-password", error=result.message), status_code=303)
    return RedirectResponse(
        url=_notify_url("/login", success="Password updated. Please log in."), status_code=303
    )
