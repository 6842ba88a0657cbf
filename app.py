from __future__ import annotations
import os
import hmac
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

import library
from config import Settings, load_settings
from sessions import SessionStore

SESSION_HEADER = "X-Session-Id"
_BASE = Path(__file__).resolve().parent


def _public_dir() -> Path:
    """
    Directory holding the slideshow UI (index.html, scripts, styles).
    Configure via PUBLIC_DIR env; defaults to ./public next to this file.
    """
    env = os.environ.get("PUBLIC_DIR")
    if env:
        return Path(env).expanduser().resolve()
    return _BASE / "public"


# -----------------------------
# Logging
# -----------------------------
def _log_enabled(cat: str) -> bool:
    base = os.environ.get("LOG_ALL", "1")
    base_on = str(base).lower() not in ("0", "false", "no")
    specific = os.environ.get(f"LOG_{cat.upper()}")
    if specific is not None:
        return str(specific).lower() in ("1", "true", "yes")
    return base_on


def _log(cat: str, msg: str, level: int = logging.INFO) -> None:
    """Emit an application log line for a given category.

    Categories can be silenced with LOG_<CAT>=0, or all at once with
    LOG_ALL=0 (a specific LOG_<CAT>=1 still wins).
    """
    if not _log_enabled(cat):
        return
    logging.log(level, "[%s] %s", cat, msg)


# -----------------------------
# Responses / auth
# -----------------------------
class AuthRequired(Exception):
    pass


def json_error(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    return JSONResponse({**extra, "error": message}, status_code=status_code)


def _auth_required_response() -> JSONResponse:
    return json_error("Authentication required", status_code=401)


def _session_id(request: Request) -> Optional[str]:
    # Starlette headers are case-insensitive
    return request.headers.get(SESSION_HEADER)


def is_authenticated(request: Request) -> bool:
    settings: Settings = request.app.state.settings
    if not settings.password_required:
        return True
    sessions: SessionStore = request.app.state.sessions
    return sessions.is_valid(_session_id(request))


def require_session(request: Request) -> None:
    if not is_authenticated(request):
        raise AuthRequired()


def _password_matches(supplied: Any, expected: str) -> bool:
    if not isinstance(supplied, str):
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def _is_media_path(path: str) -> bool:
    return path == library.MEDIA_PREFIX or path.startswith(library.MEDIA_PREFIX + "/")


# -----------------------------
# API
# -----------------------------
api = APIRouter(prefix="/api")


@api.get("/auth/status")
def auth_status(request: Request):
    settings: Settings = request.app.state.settings
    return {
        "passwordRequired": settings.password_required,
        "authenticated": is_authenticated(request),
    }


@api.post("/auth/login")
def auth_login(request: Request, payload: Dict[str, Any] = Body(default_factory=dict)):
    settings: Settings = request.app.state.settings
    if not settings.password_required:
        return {"success": True, "sessionId": None}
    if _password_matches(payload.get("password"), settings.password or ""):
        token = request.app.state.sessions.issue()
        _log("auth", f"login ok sessions={len(request.app.state.sessions)}")
        return {"success": True, "sessionId": token}
    _log("auth", "login rejected: invalid password", logging.WARNING)
    return json_error("Invalid password", status_code=401, success=False)


@api.get("/settings", dependencies=[Depends(require_session)])
def api_settings(request: Request):
    return request.app.state.settings.client_view()


@api.get("/media", dependencies=[Depends(require_session)])
def api_media(request: Request):
    settings: Settings = request.app.state.settings
    records = library.list_media(settings.photos_path)
    _log("library", f"media list root={settings.photos_path} files={len(records)}")
    return JSONResponse([r.as_json() for r in records])


# -----------------------------
# App factory
# -----------------------------
@asynccontextmanager
async def lifespan(app_obj: FastAPI):  # type: ignore[override]
    settings: Settings = app_obj.state.settings
    photos = Path(settings.photos_path).resolve()
    _log("startup", f"Slideshow server listening on port {settings.effective_port}")
    _log("startup", f"Photos path: {photos}")
    _log("startup", f"Grid: {settings.grid_columns}x{settings.grid_rows}")
    _log("startup", f"Duration: {settings.min_duration}s - {settings.max_duration}s")
    _log("startup", f"Password protection: {'on' if settings.password_required else 'off'}")
    yield


def create_app(settings: Settings, sessions: Optional[SessionStore] = None) -> FastAPI:
    """
    Wire the HTTP layer around an already-validated Settings object.

    Route order matters: /api first, then the gated /photos mount, then the
    public UI mounted at / as the catch-all.
    """
    application = FastAPI(title="Media Slideshow", version="1.0", lifespan=lifespan)
    application.state.settings = settings
    application.state.sessions = sessions if sessions is not None else SessionStore()

    @application.exception_handler(AuthRequired)
    async def _auth_required_handler(request: Request, exc: AuthRequired):
        return _auth_required_response()

    @application.middleware("http")
    async def media_auth_middleware(request: Request, call_next):
        # StaticFiles mounts can't take dependencies, so /photos is gated here
        if _is_media_path(request.url.path) and not is_authenticated(request):
            return _auth_required_response()
        return await call_next(request)

    application.include_router(api)

    photos_dir = Path(settings.photos_path)
    if photos_dir.is_dir():
        application.mount(library.MEDIA_PREFIX, StaticFiles(directory=str(photos_dir)), name="photos")
    else:
        logging.getLogger().warning("[init] photos directory missing, not mounted: %s", photos_dir)

    public = _public_dir()
    if public.is_dir():
        application.mount("/", StaticFiles(directory=str(public), html=True), name="public")
    else:
        logging.getLogger().warning("[init] public UI directory missing, not mounted: %s", public)
    return application


app = create_app(load_settings())


if __name__ == "__main__":  # pragma: no cover
    try:
        import uvicorn  # type: ignore
    except ImportError:
        sys.stderr.write("[app] Missing dependency: uvicorn. Install with: pip install uvicorn\n")
        sys.exit(1)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    host = os.environ.get("HOST", "0.0.0.0")
    try:
        port = int(os.environ.get("PORT") or app.state.settings.effective_port)
    except ValueError:
        port = app.state.settings.effective_port
    uvicorn.run(app, host=host, port=port)
