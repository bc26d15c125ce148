from __future__ import annotations

from contextvars import ContextVar

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_event_id_var: ContextVar[str] = ContextVar("event_id", default="")

def set_request_id(rid: str) -> None:
    _request_id_var.set(rid or "")

def get_request_id() -> str:
    return _request_id_var.get() or ""

def clear_request_id() -> None:
    _request_id_var.set("")

def set_event_id(event_id: str) -> None:
    # Stamped on every log line emitted while one event is being processed.
    _event_id_var.set(event_id or "")

def get_event_id() -> str:
    return _event_id_var.get() or ""

def clear_event_id() -> None:
    _event_id_var.set("")
