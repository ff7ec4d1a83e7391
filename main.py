import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from config import PUBLIC_PATHS, TZ_OFFSET_COOKIE_NAME, _set_client_clock
from db import init_db
from routers import auth, dashboard, doses, onboarding, progress, reports, symptoms
from security import (
    _csrf_header_valid,
    _ensure_csrf_cookie,
    _is_same_origin,
    get_current_user,
    landing_path,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

init_db()

app = FastAPI(title="GLP-Guide")


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    path = request.url.path
    if request.method in {"POST", "PUT", "PATCH", "DELETE"}:
        if not _is_same_origin(request):
            if path.startswith("/api/"):
                return JSONResponse({"error": "forbidden"}, status_code=403)
            return RedirectResponse(url="/login?error=Forbidden+request", status_code=303)
        if path.startswith("/api/") and not _csrf_header_valid(request):
            return JSONResponse({"error": "forbidden"}, status_code=403)

    _set_client_clock(request.cookies.get(TZ_OFFSET_COOKIE_NAME, ""))

    if path in PUBLIC_PATHS:
        return _ensure_csrf_cookie(request, await call_next(request))

    user = get_current_user(request)
    if user is None:
        if path.startswith("/api/"):
            return JSONResponse({"error": "unauthorized"}, status_code=401)
        return RedirectResponse(url="/login", status_code=303)
    if path.startswith("/dashboard") and not user.onboarding_completed:
        return RedirectResponse(url="/onboarding", status_code=303)
    request.state.user = user
    return _ensure_csrf_cookie(request, await call_next(request))


@app.get("/")
def root(request: Request):
    user = get_current_user(request)
    if user is None:
        return RedirectResponse(url="/login", status_code=303)
    return RedirectResponse(url=landing_path(user), status_code=303)


app.include_router(auth.router)
app.include_router(onboarding.router)
app.include_router(dashboard.router)
app.include_router(doses.router)
app.include_router(symptoms.router)
app.include_router(progress.router)
app.include_router(reports.router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
