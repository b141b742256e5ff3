"""
FastAPI application entry point for the daycare front desk.
Builds the store, services and access guard, registers routes and error handlers.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from daycare_desk import config
from daycare_desk.api import actions, auth, children, events, settings
from daycare_desk.data.database import build_engine
from daycare_desk.data.memory import InMemoryRecordStore
from daycare_desk.data.store import RecordStore, SqlRecordStore
from daycare_desk.domain.broadcaster import Broadcaster
from daycare_desk.domain.clock import Clock
from daycare_desk.domain.notifier import WebhookNotifier
from daycare_desk.domain.seed import seed_settings
from daycare_desk.domain.services import LifecycleService
from daycare_desk.errors import DaycareError
from daycare_desk.security.guard import AccessGuard

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_store() -> RecordStore:
    """Create the record store selected by DAYCARE_STORE (durable SQL by default)."""
    if config.STORE_BACKEND == "memory":
        logger.warning("Using the in-memory store: records are lost on restart and at midnight")
        return InMemoryRecordStore()
    return SqlRecordStore(build_engine(config.DATABASE_URL))


def _error_response(kind: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"kind": kind, "message": message}})


def create_app(
    store: Optional[RecordStore] = None,
    clock: Optional[Clock] = None,
    notifier: Optional[WebhookNotifier] = None,
    broadcaster: Optional[Broadcaster] = None,
) -> FastAPI:
    """
    Assemble the application. Every collaborator can be injected, which is how
    the tests swap in the in-memory store, a fixed clock or a recording notifier.
    """
    store = store or build_store()
    clock = clock or Clock(config.TIMEZONE)
    broadcaster = broadcaster or Broadcaster()
    notifier = notifier or WebhookNotifier(store, config.WEBHOOK_URL, config.WEBHOOK_TIMEOUT)

    app = FastAPI(title="Daycare Front Desk")
    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.guard = AccessGuard(store, config.SECRET_KEY, config.TOKEN_EXPIRE_MINUTES)
    app.state.lifecycle = LifecycleService(
        store,
        clock,
        broadcaster,
        notifier,
        upcoming_window_minutes=config.UPCOMING_PICKUP_MINUTES,
    )

    app.include_router(auth.router)
    app.include_router(children.router)
    app.include_router(actions.router)
    app.include_router(settings.router)
    app.include_router(events.router)

    @app.exception_handler(DaycareError)
    def handle_daycare_error(request: Request, exc: DaycareError) -> JSONResponse:
        return _error_response(exc.kind, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
        return _error_response("validation", message, 400)

    @app.exception_handler(SQLAlchemyError)
    def handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response("dependency", "Storage is unavailable", 503)

    @app.exception_handler(Exception)
    def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response("error", "Internal server error", 500)

    @app.on_event("startup")
    def on_startup() -> None:
        """
        Application startup handler.
        - Creates tables if they don't exist
        - Seeds default settings (webhook URL, message templates)
        - Runs the day rollover check
        """
        store.initialize()
        seed_settings(store)
        app.state.lifecycle.reconcile_day()
        logger.info("Daycare front desk ready (store=%s)", type(store).__name__)

    @app.get("/api/health", tags=["health"])
    def health():
        return {"status": "ok", "observers": broadcaster.observer_count}

    return app


configure_logging()
app = create_app()
