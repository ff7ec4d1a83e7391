from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from capture import dashboard_stats
from schemas import User
from security import current_user
from store import RecordStore, get_store
from ui import _banners, _dashboard_tabs, _page, _stats_cards

router = APIRouter()


def _dashboard_page(
    user: User,
    store: RecordStore,
    active: str,
    title: str,
    content: str,
    error: str = "",
    success: str = "",
) -> str:
    """Shared dashboard shell: stats header, sub-navigation, then the section content."""
    stats = dashboard_stats(store, user.id)
    body = f"""    <h1>Your health journey</h1>
    {_banners(error, success)}
    {_stats_cards(stats)}
    {_dashboard_tabs(active)}
    {content}"""
    return _page(title, body, user)


@router.get("/dashboard")
def dashboard_home():
    return RedirectResponse(url="/dashboard/doses", status_code=303)


@router.get("/api/stats")
def api_stats(user: User = Depends(current_user), store: RecordStore = Depends(get_store)):
    return JSONResponse({"stats": dashboard_stats(store, user.id)})
