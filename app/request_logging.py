"""Structured (JSON lines) logging and the request logging middleware."""
import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone

from fastapi import Request

from metrics import METRICS_PATH
from settings import Settings

REQUEST_ID_HEADER = "X-Request-Id"

access_logger = logging.getLogger("student_backend.access")

# Attributes every LogRecord has; anything else came in through `extra=`
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Access records (those carrying `request_id`) keep the flat access-log
    shape; other records get level, logger and message plus any extras.
    """

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "service": self.service,
        }
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if "request_id" not in extras:
            payload["level"] = record.levelname
            payload["logger"] = record.name
            payload["message"] = record.getMessage()
        payload.update(extras)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(settings: Settings) -> logging.Logger:
    """Send the `student_backend` logger tree to stdout as JSON lines."""
    logger = logging.getLogger("student_backend")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(settings.service_name))
    logger.addHandler(handler)
    logger.setLevel(settings.log_level.upper())
    logger.propagate = False
    return logger


def _full_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def _log_access(request: Request, request_id: str, status: int, start: float) -> None:
    access_logger.info(
        "request completed",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": _full_path(request),
            "status": status,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )


async def log_requests(request: Request, call_next):
    """HTTP middleware: correlation id, timing and one access line per request.

    Duration runs until response start (headers sent), which for these JSON
    endpoints is effectively completion.
    """
    if request.url.path == METRICS_PATH:
        return await call_next(request)

    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        _log_access(request, request_id, 500, start)
        raise
    response.headers[REQUEST_ID_HEADER] = request_id
    _log_access(request, request_id, response.status_code, start)
    return response
