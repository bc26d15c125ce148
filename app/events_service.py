from __future__ import annotations

import logging
import os
import threading
import uuid
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.routers.health import router as health_router
from config.settings import settings
from notifications.errors import WorkflowCancelled, WorkflowError
from notifications.events import parse_event
from notifications.processor import NotificationsProcessor, build_processor
from ops.metrics import Timer
from ops.structured_logger import setup_logging
from security.operator_auth import OperatorClaims
from utils.request_context import clear_request_id, set_request_id

setup_logging()

log = logging.getLogger("docnotify.events.service")

app = FastAPI(title="Docnotify Events", version="1.0.0")
app.include_router(health_router)

_processor: Optional[NotificationsProcessor] = None


def get_processor() -> NotificationsProcessor:
    global _processor
    if _processor is None:
        _processor = build_processor()
    return _processor


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or ""


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    set_request_id(rid)
    try:
        response = await call_next(request)
    finally:
        clear_request_id()
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    rid = _get_request_id(request)
    log.warning(
        "http_exception",
        extra={
            "extra": {
                "event": "http_exception",
                "status_code": exc.status_code,
                "detail": exc.detail,
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = _get_request_id(request)
    log.warning(
        "validation_error",
        extra={
            "extra": {
                "event": "validation_error",
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    # 503 tells the event producer to redeliver.
    rid = _get_request_id(request)
    return JSONResponse(
        status_code=503,
        content={
            "error": "cancelled" if isinstance(exc, WorkflowCancelled) else "store_unavailable",
            "error_type": type(exc).__name__,
            "request_id": rid,
            "revision": os.getenv("K_REVISION") or "",
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _get_request_id(request)
    log.error(
        "internal_unhandled_exception",
        extra={
            "extra": {
                "event": "internal_unhandled_exception",
                "error_type": type(exc).__name__,
                "message": str(exc),
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal_unhandled_exception", "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.post("/events")
def process_event(
    payload: Dict[str, Any] = Body(...),
    claims: Dict[str, Any] = OperatorClaims,
    processor: NotificationsProcessor = Depends(get_processor),
):
    try:
        event = parse_event(payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False, include_input=False))

    t = Timer()
    cancel = threading.Event()
    deadline = threading.Timer(settings.EVENT_PROCESSING_TIMEOUT_S, cancel.set)
    deadline.daemon = True
    deadline.start()
    try:
        routed = processor.process(event, cancel=cancel)
    finally:
        deadline.cancel()

    log.info(
        "event_processed",
        extra={
            "extra": {
                "event": "event_processed",
                "name": event.name,
                "event_id": event.id,
                "routed": routed,
                "duration_ms": t.ms(),
                "invoker": claims.get("email") or claims.get("sub") or "",
            }
        },
    )
    return {"ok": True, "name": event.name, "routed": routed}
