import html
from typing import List

from fastapi import APIRouter, Body, Depends, Form
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from capture import delete_symptom, list_recent_symptoms, submit_symptoms
from config import COMMON_SYMPTOMS, RECENT_PAGE_SIZE, SEVERITIES, SEVERITY_LABELS
from results import http_status
from routers.dashboard import _dashboard_page
from schemas import User
from security import current_user
from store import RecordStore, get_store
from ui import _notify_url, _severity_badge

router = APIRouter()

MAX_API_LIMIT = 100


def _symptom_card(entry) -> str:
    tags = "".join(f'<span class="tag">{html.escape(s)}</span>' for s in entry.symptoms)
    notes_html = (
        f'<p class="card-notes">{html.escape(entry.notes)}</p>' if entry.notes else ""
    )
    logged = html.escape(entry.logged_at.replace("T", " ")[:16])
    return f"""
      <div class="card">
        <div class="card-header">
          {_severity_badge(entry.severity)}
          <div class="card-ts">{logged}</div>
          <form method="post" action="/symptoms/delete" style="margin-left:auto;">
            <input type="hidden" name="id" value="{html.escape(entry.id)}">
            <button type="submit" class="btn-delete">Delete</button>
          </form>
        </div>
        <div style="margin-top:8px;">{tags}</div>
        {notes_html}
      </div>"""


def _symptom_form() -> str:
    checks = "".join(
        f'<label class="check"><input type="checkbox" name="symptoms" value="{html.escape(s)}">'
        f"{html.escape(s)}</label>"
        for s in COMMON_SYMPTOMS
    )
    radios = "".join(
        f'<label class="check"><input type="radio" name="severity" value="{sev}"'
        f'{" checked" if sev == "low" else ""}>{SEVERITY_LABELS[sev]}</label>'
        for sev in SEVERITIES
    )
    return f"""
    <div class="card">
      <h2 style="margin-top:0;">Log symptoms</h2>
      <form method="post" action="/symptoms">
        <div class="form-group">
          <label>Symptoms</label>
          <div style="display:grid;grid-template-columns:1fr 1fr;gap:4px 16px;">{checks}</div>
        </div>
        <div class="form-group">
          <label>Intensity</label>
          <div style="display:flex;gap:16px;">{radios}</div>
        </div>
        <div class="form-group">
          <label for="notes">Notes <span style="color:#aaa;font-weight:400">(optional)</span></label>
          <textarea id="notes" name="notes" rows="3" placeholder="Any additional details..."></textarea>
        </div>
        <button class="btn-primary" type="submit">Save symptoms</button>
      </form>
    </div>"""


@router.get("/dashboard/symptoms", response_class=HTMLResponse)
def symptoms_page(
    error: str = "",
    success: str = "",
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = list_recent_symptoms(store, user.id, RECENT_PAGE_SIZE)
    if not result.ok:
        listing = '<p class="empty">Could not load your symptom logs.</p>'
        error = error or result.message
    elif not result.value:
        listing = '<p class="empty">No symptoms logged yet.</p>'
    else:
        listing = "".join(_symptom_card(s) for s in result.value)
    content = _symptom_form() + "\n    <h2>Recent symptom logs</h2>" + listing
    return _dashboard_page(user, store, "symptoms", "Symptoms", content, error, success)


@router.post("/symptoms")
def symptoms_create(
    symptoms: List[str] = Form([]),
    severity: str = Form("low"),
    notes: str = Form(""),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = submit_symptoms(store, user.id, {
        "symptoms": symptoms,
        "severity": severity,
        "notes": notes,
    })
    if not result.ok:
        return RedirectResponse(url=_notify_url("/dashboard/symptoms", error=result.message), status_code=303)
    return RedirectResponse(url=_notify_url("/dashboard/symptoms", success="Symptoms recorded"), status_code=303)


@router.post("/symptoms/delete")
def symptoms_delete(
    id: str = Form(...),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = delete_symptom(store, user.id, id)
    if not result.ok:
        return RedirectResponse(url=_notify_url("/dashboard/symptoms", error=result.message), status_code=303)
    return RedirectResponse(url=_notify_url("/dashboard/symptoms", success="Entry deleted"), status_code=303)


@router.get("/api/symptoms")
def api_symptoms(
    limit: int = RECENT_PAGE_SIZE,
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = list_recent_symptoms(store, user.id, max(1, min(limit, MAX_API_LIMIT)))
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"symptoms": [s.model_dump() for s in result.value]})


@router.post("/api/symptoms")
def api_symptoms_create(
    payload: dict = Body(...),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = submit_symptoms(store, user.id, payload)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True, "symptom": result.value.model_dump()})


@router.post("/api/symptoms/{symptom_id}/delete")
def api_symptoms_delete(
    symptom_id: str,
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = delete_symptom(store, user.id, symptom_id)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True})
