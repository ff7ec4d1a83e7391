import asyncio
import html
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.concurrency import run_in_threadpool

from capture import list_recent_doses, list_recent_symptoms
from config import TIMELINE_PAGE_SIZE
from results import AGGREGATE_FETCH_ERROR, Err, Ok, Result, http_status
from routers.dashboard import _dashboard_page
from schemas import User
from security import current_user
from store import RecordStore, get_store
from timeline import DOSE, TimelineEvent, merge_timeline
from ui import _severity_badge

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_timeline(store: RecordStore, user_id: str, limit: int = TIMELINE_PAGE_SIZE) -> Result:
    """Fetch recent doses and symptoms concurrently and merge them.

    Both fetches must succeed; if either fails the whole load fails and
    nothing is merged.
    """
    doses, symptoms = await asyncio.gather(
        run_in_threadpool(list_recent_doses, store, user_id, limit),
        run_in_threadpool(list_recent_symptoms, store, user_id, limit),
    )
    for name, result in (("doses", doses), ("symptoms", symptoms)):
        if not result.ok:
            logger.warning("Timeline fetch of %s failed for user %s: %s", name, user_id, result.message)
    if not doses.ok or not symptoms.ok:
        return Err("Could not load your timeline", AGGREGATE_FETCH_ERROR)
    return Ok(merge_timeline(doses.value, symptoms.value))


def _event_row(event: TimelineEvent) -> str:
    when = html.escape(event.date + (f" {event.time}" if event.time else ""))
    entry = event.entry
    if event.kind == DOSE:
        icon, color = "&#128137;", "#047857"
        headline = (
            f"{html.escape(entry.medication_name)} &middot; "
            f"{entry.dose_amount:g} {html.escape(entry.dose_unit)}"
        )
        extra = ""
    else:
        icon, color = "&#129658;", "#c2410c"
        headline = ", ".join(html.escape(s) for s in entry.symptoms)
        extra = _severity_badge(entry.severity)
    notes_html = (
        f'<p class="card-notes">{html.escape(entry.notes)}</p>' if entry.notes else ""
    )
    return f"""
      <div class="card">
        <div class="card-header">
          <span style="color:{color};font-size:18px;">{icon}</span>
          <div>
            <div class="card-name" style="font-size:15px;">{headline}</div>
            <div class="card-ts">{when}</div>
          </div>
          <div style="margin-left:auto;">{extra}</div>
        </div>
        {notes_html}
      </div>"""


def _event_json(event: TimelineEvent) -> dict:
    return {
        "id": event.id,
        "kind": event.kind,
        "date": event.date,
        "time": event.time,
        "entry": event.entry.model_dump(),
    }


@router.get("/dashboard/reports", response_class=HTMLResponse)
async def reports_page(
    error: str = "",
    success: str = "",
    user: User = Depends(current_user),
    store: RecordStore = Depends(get_store),
):
    result = await load_timeline(store, user.id)
    if not result.ok:
        listing = '<p class="empty">Your timeline is unavailable right now.</p>'
        error = error or result.message
    elif not result.value:
        listing = '<p class="empty">Start by logging doses and symptoms</p>'
    else:
        listing = '<div class="timeline">' + "".join(_event_row(e) for e in result.value) + "</div>"
    content = "\n    <h2>Timeline</h2>" + listing
    page = await run_in_threadpool(
        _dashboard_page, user, store, "reports", "Timeline", content, error, success
    )
    return page


@router.get("/api/timeline")
async def api_timeline(user: User = Depends(current_user), store: RecordStore = Depends(get_store)):
    result = await load_timeline(store, user.id)
    if not result.ok:
        return JSONResponse({"ok": False, "error": result.message}, status_code=http_status(result))
    return JSONResponse({"events": [_event_json(e) for e in result.value]})
