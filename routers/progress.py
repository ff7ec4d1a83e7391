import html

from fastapi import APIRouter, Body, Depends, Form
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from capture import delete_progress_report, list_recent_reports, submit_progress_report
from config import RECENT_PAGE_SIZE, _today_local
from results import http_status
from routers.dashboard import _dashboard_page
from schemas import User
from security import current_user
from store import RecordStore, get_store
from ui import _notify_url

router = APIRouter()


def _report_card(report) -> str:
    facts = []
    if report.weight is not None:
        facts.append(f"Weight {report.weight:g} kg")
    if report.blood_pressure:
        facts.append(f"BP {html.escape(report.blood_pressure)}")
    if report.glucose_level is not None:
        facts.append(f"Glucose {report.glucose_level:g} mg/dL")
    facts_html = " &middot; ".join(facts) or '<em style="color:#9ca3af;">No measurements</em>'
    notes_html = (
        f'<p class="card-notes">{html.escape(report.notes)}</p>' if report.notes else ""
    )
    return f"""
      <div class="card">
        <div class="card-header">
          <div>
            <div class="card-name">{html.escape(report.report_date)}</div>
            <div class="card-ts">{facts_html}</div>
          </div>
          <form method="post" action="/progress/delete" style="margin-left:auto;">
            <input type="hidden" name="id" value="{html.escape(report.id)}">
            <button type="submit" class="btn-delete">Delete</button>
          </form>
        </div>
        {notes_html}
      </div>"""


def _report_form() -> str:
    return f"""
    <div class="card">
      <h2 style="margin-top:0;">New progress report</h2>
      <form method="post" action="/progress">
        <div class="form-group">
          <label for="report_date">Date</label>
          <input type="date" id="report_date" name="report_date"
                 value="{_today_local().isoformat()}" required>
        </div>
        <div class="form-row">
          <div class="form-group">
            <label for="weight">Weight (kg)</label>
            <input type="number" id="weight" name="weight" step="0.1">
          </div>
          <div class="form-group">
            <label for="blood_pressure">Blood pressure</label>
            <input type="text" id="blood_pressure" name="blood_pressure" placeholder="120/80">
          </div>
          <div class="form-group">
            <label for="glucose_level">Glucose (mg/dL)</label>
            <input type="number" id="glucose_level" name="glucose_level" step="1">
          </div>
        </div>
        <div class="form-group">
          <label for="notes">Notes <span style="color:#aaa;font-weight:400">(optional)</span></label>
          <textarea id="notes" name="notes" rows="3"></textarea>
        </div>
        <button class="btn-primary" type="submit">Save report</button>
      </form>
    </div>"""


@router.get("/dashboard/progress", response_class=HTMLResponse)
def progress_page(
    error: str = "",
    success: str = "",
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = list_recent_reports(store, user.id, RECENT_PAGE_SIZE)
    if not result.ok:
        listing = '<p class="empty">Could not load your progress reports.</p>'
        error = error or result.message
    elif not result.value:
        listing = '<p class="empty">No progress reports yet.</p>'
    else:
        listing = "".join(_report_card(r) for r in result.value)
    content = _report_form() + "\n    <h2>Recent reports</h2>" + listing
    return _dashboard_page(user, store, "progress", "Progress", content, error, success)


@router.post("/progress")
def progress_create(
    report_date: str = Form(""),
    weight: str = Form(""),
    blood_pressure: str = Form(""),
    glucose_level: str = Form(""),
    notes: str = Form(""),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = submit_progress_report(store, user.id, {
        "report_date": report_date,
        "weight": weight,
        "blood_pressure": blood_pressure,
        "glucose_level": glucose_level,
        "notes": notes,
    })
    if not result.ok:
        return RedirectResponse(url=_notify_url("/dashboard/progress", error=result.message), status_code=303)
    return RedirectResponse(url=_notify_url("/dashboard/progress", success="Report saved"), status_code=303)


@router.post("/progress/delete")
def progress_delete(
    id: str = Form(...),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = delete_progress_report(store, user.id, id)
    if not result.ok:
        return RedirectResponse(url=_notify_url("/dashboard/progress", error=result.message), status_code=303)
    return RedirectResponse(url=_notify_url("/dashboard/progress", success="Report deleted"), status_code=303)


@router.get("/api/progress")
def api_progress(user: User = Depends(current_user), store: RecordStore = Depends(get_store)):
    result = list_recent_reports(store, user.id, RECENT_PAGE_SIZE)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"reports": [r.model_dump() for r in result.value]})


@router.post("/api/progress")
def api_progress_create(
    payload: dict = Body(...),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = submit_progress_report(store, user.id, payload)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True, "report": result.value.model_dump()})


@router.post("/api/progress/{report_id}/delete")
def api_progress_delete(
    report_id: str,
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = delete_progress_report(store, user.id, report_id)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True})
