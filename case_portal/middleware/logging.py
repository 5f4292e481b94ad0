import logging
import os
import sys
import time
import uuid
from pathlib import Path
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from case_portal.config import settings

# Path prefix -> portal label used in request logs
PORTAL_PREFIXES = [
    ("/api/admin", "admin"),
    ("/api/staff-portal", "staff"),
    ("/api/staff", "staff"),
    ("/api/students", "staff"),
    ("/api/student-interface", "student"),
    ("/api/student", "student"),
    ("/api/timetable", "student"),
    ("/api/parent-dashboard", "parent"),
    ("/api/auth", "auth"),
]

# Requests that are not worth a log line
QUIET_PATHS = ("/api/docs", "/api/openapi.json", "/favicon.ico")

def setup_logging():
    """Configure the root logger and quieten chatty libraries."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        os.makedirs(Path(settings.LOG_FILE).parent, exist_ok=True)
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )

    for name, level in (
        ("uvicorn.access", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
        ("alembic", logging.INFO),
        ("passlib", logging.ERROR),
        ("cloudinary", logging.WARNING),
    ):
        logging.getLogger(name).setLevel(level)

    logger = logging.getLogger("case_portal")
    logger.setLevel(log_level)

    return logger

def portal_for_path(path: str) -> str:
    for prefix, portal in PORTAL_PREFIXES:
        if path.startswith(prefix):
            return portal
    return "public"

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request with its portal, status and duration. An incoming
    X-Request-ID is reused so a request can be traced across services.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("case_portal.request")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PATHS):
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        portal = portal_for_path(path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                f"{request.method} {path} failed [portal: {portal}] "
                f"[error: {str(e)}] [request_id: {request_id}]",
                exc_info=True
            )
            raise

        duration = time.perf_counter() - started
        level = logging.WARNING if duration >= settings.SLOW_REQUEST_SECONDS else logging.INFO
        self.logger.log(
            level,
            f"{request.method} {path} -> {response.status_code} [portal: {portal}] "
            f"[duration: {duration:.3f}s] [request_id: {request_id}]"
        )

        response.headers["X-Request-ID"] = request_id
        return response

def add_logging_middleware(app: FastAPI):
    app.add_middleware(RequestLoggingMiddleware)
