import html

from fastapi import APIRouter, Body, Depends, Form
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from capture import delete_dose, list_recent_doses, submit_dose
from config import DEFAULT_DOSE_UNIT, DEFAULT_MEDICATION, RECENT_PAGE_SIZE, _now_local
from results import http_status
from routers.dashboard import _dashboard_page
from schemas import User
from security import current_user
from store import RecordStore, get_store
from ui import _notify_url

router = APIRouter()

MAX_API_LIMIT = 100


def _dose_card(dose) -> str:
    notes_html = (
        f'<p class="card-notes">{html.escape(dose.notes)}</p>' if dose.notes else ""
    )
    return f"""
      <div class="card">
        <div class="card-header">
          <div>
            <div class="card-name">{html.escape(dose.medication_name)}</div>
            <div class="card-ts">{dose.dose_amount:g} {html.escape(dose.dose_unit)}
              &middot; {html.escape(dose.dose_date)} {html.escape(dose.dose_time)}</div>
          </div>
          <form method="post" action="/doses/delete" style="margin-left:auto;">
            <input type="hidden" name="id" value="{html.escape(dose.id)}">
            <button type="submit" class="btn-delete">Delete</button>
          </form>
        </div>
        {notes_html}
      </div>"""


def _dose_form() -> str:
    now = _now_local()
    return f"""
    <div class="card">
      <h2 style="margin-top:0;">Log a dose</h2>
      <form method="post" action="/doses">
        <div class="form-group">
          <label for="medication_name">Medication</label>
          <input type="text" id="medication_name" name="medication_name"
                 value="{html.escape(DEFAULT_MEDICATION)}" required>
        </div>
        <div class="form-row">
          <div class="form-group">
            <label for="dose_amount">Amount</label>
            <input type="number" id="dose_amount" name="dose_amount" step="0.01" required>
          </div>
          <div class="form-group">
            <label for="dose_unit">Unit</label>
            <input type="text" id="dose_unit" name="dose_unit"
                   value="{html.escape(DEFAULT_DOSE_UNIT)}" required>
          </div>
        </div>
        <div class="form-row">
          <div class="form-group">
            <label for="dose_date">Date</label>
            <input type="date" id="dose_date" name="dose_date"
                   value="{now.date().isoformat()}" required>
          </div>
          <div class="form-group">
            <label for="dose_time">Time</label>
            <input type="time" id="dose_time" name="dose_time"
                   value="{now.strftime('%H:%M')}" required>
          </div>
        </div>
        <div class="form-group">
          <label for="notes">Notes <span style="color:#aaa;font-weight:400">(optional)</span></label>
          <textarea id="notes" name="notes" rows="3"></textarea>
        </div>
        <button class="btn-primary" type="submit">Save dose</button>
      </form>
    </div>"""


@router.get("/dashboard/doses", response_class=HTMLResponse)
def doses_page(
    error: str = "",
    success: str = "",
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = list_recent_doses(store, user.id, RECENT_PAGE_SIZE)
    if not result.ok:
        listing = '<p class="empty">Could not load your doses.</p>'
        error = error or result.message
    elif not result.value:
        listing = '<p class="empty">No doses logged yet.</p>'
    else:
        listing = "".join(_dose_card(d) for d in result.value)
    content = _dose_form() + "\n    <h2>Recent doses</h2>" + listing
    return _dashboard_page(user, store, "doses", "Doses", content, error, success)


@router.post("/doses")
def doses_create(
    medication_name: str = Form(""),
    dose_amount: str = Form(""),
    dose_unit: str = Form(""),
    dose_date: str = Form(""),
    dose_time: str = Form(""),
    notes: str = Form(""),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = submit_dose(store, user.id, {
        "medication_name": medication_name,
        "dose_amount": dose_amount,
        "dose_unit": dose_unit,
        "dose_date": dose_date,
        "dose_time": dose_time,
        "notes": notes,
    })
    if not result.ok:
        return RedirectResponse(url=_notify_url("/dashboard/doses", error=result.message), status_code=303)
    return RedirectResponse(url=_notify_url("/dashboard/doses", success="Dose recorded"), status_code=303)


@router.post("/doses/delete")
def doses_delete(
    id: str = Form(...),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = delete_dose(store, user.id, id)
    if not result.ok:
        return RedirectResponse(url=_notify_url("/dashboard/doses", error=result.message), status_code=303)
    return RedirectResponse(url=_notify_url("/dashboard/doses", success="Dose deleted"), status_code=303)


@router.get("/api/doses")
def api_doses(
    limit: int = RECENT_PAGE_SIZE,
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = list_recent_doses(store, user.id, max(1, min(limit, MAX_API_LIMIT)))
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"doses": [d.model_dump() for d in result.value]})


@router.post("/api/doses")
def api_doses_create(
    payload: dict = Body(...),
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = submit_dose(store, user.id, payload)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True, "dose": result.value.model_dump()})


@router.post("/api/doses/{dose_id}/delete")
def api_doses_delete(
    dose_id: str,
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = delete_dose(store, user.id, dose_id)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"ok": True})
