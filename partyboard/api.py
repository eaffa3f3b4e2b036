"""FastAPI application for PartyBoard."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version as pkg_version
from pathlib import Path
import tomllib

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .dispatch import dispatch
from .scheduler import start_scheduler, stop_scheduler
from .storage import RecordStore, default_store, init_db

# Use uvicorn's error logger so messages get the level prefix in the default log
# format.
logger = logging.getLogger("uvicorn.error")


def _no_cache(response: Response) -> Response:
    """Prevent clients from caching board data so fresh lists are shown."""
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


def _load_app_version() -> str:
    """Return the current package version, falling back to pyproject for dev runs."""
    try:
        return pkg_version("partyboard")
    except PackageNotFoundError:
        pyproject_path = Path(__file__).resolve().parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            data = tomllib.loads(pyproject_path.read_text())
            project = data.get("project") or {}
            return str(project.get("version") or "dev")
    return "dev"


APP_VERSION = _load_app_version()


@asynccontextmanager
async def lifespan(application: FastAPI):
    if application.state.manage_database:
        init_db()
    start_scheduler()
    logger.info("PartyBoard %s ready", APP_VERSION)
    try:
        yield
    finally:
        stop_scheduler()


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def api_action(
    request: Request,
    action: str | None = Query(None),
    store: RecordStore = Depends(get_store),
):
    """Run a board action; every parameter travels in the query string."""
    params = dict(request.query_params)
    params.pop("action", None)
    return _no_cache(JSONResponse(dispatch(store, action, params)))


def api_post():
    return JSONResponse({"success": False, "error": "Use GET requests instead"})


def healthz():
    return {"status": "ok", "version": APP_VERSION}


def create_app(store: RecordStore | None = None) -> FastAPI:
    """Build the app around ``store``.

    Without an explicit store the app owns the configured database: it runs
    migrations on startup and reads through the default store.
    """
    application = FastAPI(title="PartyBoard", version=APP_VERSION, lifespan=lifespan)
    application.state.manage_database = store is None
    application.state.store = store or default_store()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    application.get("/api")(api_action)
    application.post("/api")(api_post)
    application.get("/healthz", include_in_schema=False)(healthz)
    return application


app = create_app()
