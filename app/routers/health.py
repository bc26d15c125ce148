from __future__ import annotations

import os
import time
from typing import Any, Dict

from fastapi import APIRouter
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from config.settings import settings
from models.schema import COL_SYSTEM
from storage.firestore_client import get_firestore_client

router = APIRouter()


def _firestore_probe(timeout_s: float = 0.20) -> Dict[str, Any]:
    """
    Read-only, bounded-time Firestore connectivity probe.
    - No PII
    - No writes
    - Uses a fixed doc path.
    """
    try:
        t0 = time.time()
        db = get_firestore_client()
        db.collection(COL_SYSTEM).document("healthz").get(timeout=timeout_s)
        dt_ms = int((time.time() - t0) * 1000)
        return {"ok": True, "latency_ms": dt_ms}
    except (GoogleAPIError, GoogleAuthError, OSError) as e:
        return {"ok": False, "error_type": type(e).__name__, "message": str(e)}


@router.get("/healthz")
def healthz():
    return {"ok": True, "service": "docnotify-events"}


@router.get("/health")
def health():
    fs = _firestore_probe()
    return {
        "ok": bool(fs.get("ok", False)),
        "service": "docnotify-events",
        "cloudrun_service": os.getenv("K_SERVICE") or "",
        "revision": os.getenv("K_REVISION") or "",
        "environment": settings.ENVIRONMENT,
        "notifications_enabled": bool(settings.NOTIFICATIONS_ENABLED),
        "firestore_ok": bool(fs.get("ok", False)),
        "firestore": fs,
        "time_unix": time.time(),
    }
