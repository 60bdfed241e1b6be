from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from sqlalchemy import text
from sqlalchemy.exc import OperationalError as SAOperationalError, SQLAlchemyError

from api.router import api_router
from core.bootstrap import ensure_schema
from core.config import settings
from core.database import DatabaseUnavailableError, ENGINE, is_transient_db_connectivity_error
from core.errors import DutyError
from core.logging import setup_logging


logger = logging.getLogger(__name__)


DEV_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]
DEV_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code, "message": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DutyError)
    def _duty_error(_request, exc: DutyError):
        if exc.status_code >= 500:
            logger.error("%s (%d): %s %s", exc.code, exc.status_code, exc, exc.details)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(DatabaseUnavailableError)
    def _db_unavailable(_request, exc: DatabaseUnavailableError):
        logger.warning("Database unavailable (503)", exc_info=exc)
        return _error(503, "DATABASE_UNAVAILABLE", "Database temporarily unavailable. Please retry.")

    @app.exception_handler(SAOperationalError)
    def _db_operational(_request, exc: SAOperationalError):
        if is_transient_db_connectivity_error(exc):
            logger.warning("Transient database error (503)", exc_info=exc)
            return _error(503, "DATABASE_UNAVAILABLE", "Database temporarily unavailable. Please retry.")
        logger.error("Database operation failed", exc_info=exc)
        return _error(500, "DATABASE_ERROR", "Database operation failed.")


def create_app() -> FastAPI:
    setup_logging(environment=settings.environment)
    is_production = settings.environment == "production"
    app = FastAPI(
        title="Invigilation Duty Allocator API",
        version="0.1.0",
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )
    _register_error_handlers(app)

    # Outside production any localhost port may call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin] + ([] if is_production else DEV_ORIGINS),
        allow_origin_regex=None if is_production else DEV_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.auto_create_tables:
        ensure_schema(ENGINE)

    @app.get("/health")
    def health() -> dict:
        try:
            with ENGINE.connect() as conn:
                conn.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError:
            database = "down"
        return {"app": "ok", "database": database}

    app.include_router(api_router, prefix="/api")
    logger.info("Allocator API ready (environment=%s)", settings.environment)
    return app


app = create_app()
