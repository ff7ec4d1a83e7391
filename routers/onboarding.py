import html
import logging
from urllib.parse import quote_plus

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from config import ONBOARDING_STEPS
from onboarding import OnboardingFlow
from results import http_status
from schemas import User
from security import current_user
from store import RecordStore, get_store
from ui import _banners, _notify_url, _page

logger = logging.getLogger(__name__)

router = APIRouter()


def _clamp_step(step: int) -> int:
    return max(0, min(step, len(ONBOARDING_STEPS) - 1))


def _form_int(raw: str, default: int = 0) -> int:
    raw = (raw or "").strip()
    return int(raw) if raw else default


def _step_url(step: int, error: str = "") -> str:
    url = f"/onboarding?step={step}"
    return f"{url}&error={quote_plus(error)}" if error else url


def _dot(flow: OnboardingFlow, i: int) -> str:
    active = " active" if i == flow.step_index else ""
    return f"""
          <form method="post" action="/onboarding" style="margin:0;">
            <input type="hidden" name="step" value="{flow.step_index}">
            <input type="hidden" name="action" value="jump">
            <input type="hidden" name="target" value="{i}">
            <button type="submit" class="dot{active}" aria-label="Go to step {i + 1}"></button>
          </form>"""


def _step_view(flow: OnboardingFlow) -> str:
    step = ONBOARDING_STEPS[flow.step_index]
    back = (
        ""
        if flow.is_first
        else '<button type="submit" name="action" value="back" class="btn-secondary">Back</button>'
    )
    next_label = "Get started" if flow.is_last else "Next"
    dots = "".join(_dot(flow, i) for i in range(flow.step_count))
    return f"""
    <div class="card" style="text-align:center; padding:32px 24px;">
      <div class="progress"><div style="width:{flow.progress_percent}%;"></div></div>
      <p class="card-ts" style="margin-top:8px;">Step {flow.step_index + 1} of {flow.step_count}</p>
      <div style="width:64px;height:64px;border-radius:50%;margin:24px auto 16px;
                  background:{step["color"]};"></div>
      <h2 style="margin:0 0 8px;">{html.escape(step["title"])}</h2>
      <p style="color:#555;">{html.escape(step["description"])}</p>
      <form method="post" action="/onboarding" style="margin-top:24px;">
        <input type="hidden" name="step" value="{flow.step_index}">
        <div style="display:flex; gap:12px; justify-content:center;">
          {back}
          <button type="submit" name="action" value="next" class="btn-primary">{next_label}</button>
        </div>
        <button type="submit" name="action" value="skip" class="btn-link" style="margin-top:16px;">Skip</button>
      </form>
      <div class="dots">{dots}
      </div>
    </div>"""


@router.get("/onboarding", response_class=HTMLResponse)
def onboarding_page(step: int = 0, error: str = "", user: User = Depends(current_user)):
    flow = OnboardingFlow(step_index=_clamp_step(step))
    body = f"""    <h1>Welcome, {html.escape(user.full_name or "there")}</h1>
    {_banners(error)}
    {_step_view(flow)}"""
    return _page("Welcome", body, user)


@router.post("/onboarding")
def onboarding_advance(
    step: str = Form("0"),
    action: str = Form("next"),
    target: str = Form("0"),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    try:
        flow = OnboardingFlow(step_index=_clamp_step(_form_int(step)))
    except ValueError:
        return RedirectResponse(url=_step_url(0, "Unknown onboarding step"), status_code=303)
    try:
        jump_target = _form_int(target, flow.step_index)
    except ValueError:
        return RedirectResponse(url=_step_url(flow.step_index, "Unknown onboarding step"), status_code=303)
    try:
        flow.apply(action, jump_target)
    except ValueError as exc:
        return RedirectResponse(url=_step_url(flow.step_index, str(exc)), status_code=303)
    if not flow.completed:
        return RedirectResponse(url=_step_url(flow.step_index), status_code=303)
    result = store.update("users", user.id, {"onboarding_completed": True})
    if not result.ok:
        return RedirectResponse(url=_step_url(flow.step_index, result.message), status_code=303)
    logger.info("User %s completed onboarding", user.id)
    return RedirectResponse(
        url=_notify_url("/dashboard/doses", success="Welcome to GLP-Guide!"), status_code=303
    )


@router.get("/api/onboarding")
def api_onboarding(user: User = Depends(current_user)):
    return JSONResponse({
        "completed": user.onboarding_completed,
        "steps": [{"title": s["title"], "description": s["description"]} for s in ONBOARDING_STEPS],
    })


@router.post("/api/onboarding/complete")
def api_onboarding_complete(user: User = Depends(current_user), store: RecordStore = Depends(get_store)):
    result = store.update("users", user.id, {"onboarding_completed": True})
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True})
