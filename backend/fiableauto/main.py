# backend/fiableauto/main.py
from __future__ import annotations

import logging
import os
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import database
from .errors import MissionError, StoreUnavailableError
from .apps.missions.router import router as missions_router
from .apps.missions.router import uploads_router as mission_uploads_router
from .apps.missions.router_reports import router as mission_reports_router

APP_NAME = "FiableAuto API"
APP_VERSION = "1.0.0"

logger = logging.getLogger("fiableauto")


def _init_logging() -> None:
    root = logging.getLogger("fiableauto")
    if root.handlers:
        return
    root.setLevel(os.getenv("LOG_LEVEL", "info").upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() in {"1", "true", "yes", "on"}


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.init_engines()
    if _env_flag("DB_CREATE_ALL"):
        database.create_all_tables()
        logger.info("Tables created/verified")
    logger.info("%s %s started", APP_NAME, APP_VERSION)
    try:
        yield
    finally:
        database.dispose_engines()
        logger.info("%s stopped", APP_NAME)


_init_logging()

app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(MissionError)
async def mission_error_handler(request: Request, exc: MissionError):
    if isinstance(exc, StoreUnavailableError):
        logger.error("%s %s failed: store unavailable", request.method, request.url.path)
    return _failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()})
    message = "Invalid request payload"
    if fields and any(fields):
        message = f"{message}: {', '.join(f for f in fields if f)}"
    return _failure(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and request.url.path.startswith("/api/"):
        return _failure(404, "API route not found")
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(500, "Internal server error")


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["health"])
def health(db: Session = Depends(database.get_read_db)):
    try:
        database.check_connection(db)
        db_status = "connected"
    except StoreUnavailableError:
        db_status = "unavailable"
    return {
        "success": True,
        "message": f"{APP_NAME} is running",
        "data": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": APP_VERSION,
            "environment": os.getenv("APP_ENV", "development"),
            "database": db_status,
        },
    }


app.include_router(missions_router)
app.include_router(mission_uploads_router)
app.include_router(mission_reports_router)
