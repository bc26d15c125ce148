from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

import httpx

from config.settings import settings

log = logging.getLogger("docnotify.email")


def _dest_hint(v: str, keep: int = 4) -> str:
    v = (v or "").strip()
    if not v:
        return ""
    local, _, domain = v.partition("@")
    if not domain:
        return f"...{v[-keep:]}" if len(v) > keep else v
    return f"{local[:1]}***@{domain}"


class EmailClient:
    """Thin client for an HTTP transactional-mail API (JSON body, bearer token)."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.api_url = api_url or settings.MAIL_API_URL
        self.token = token or settings.MAIL_API_TOKEN
        if not self.api_url or not self.token:
            raise RuntimeError("MAIL_API_URL / MAIL_API_TOKEN not configured")
        self.http = http

    def send_message(self, to: str, subject: str, html: str, text: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        rev = os.getenv("K_REVISION") or ""
        payload = {
            "from": {"email": settings.MAIL_FROM_ADDRESS, "name": settings.MAIL_FROM_NAME},
            "to": [{"email": to}],
            "subject": subject,
            "html": html,
            "text": text,
            "headers": headers or {},
        }

        t0 = time.time()
        try:
            post = self.http.post if self.http is not None else httpx.post
            r = post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=settings.MAIL_TIMEOUT_S,
            )
            ok = 200 <= r.status_code < 300
            try:
                data = r.json() if r.content else {}
            except ValueError:
                data = {"text": (r.text or "")[:500]}
            if not isinstance(data, dict):
                data = {"body": data}
            data.setdefault("ok", ok)
            data["status_code"] = r.status_code

            dt_ms = int((time.time() - t0) * 1000)
            log.info(
                "email_send_result",
                extra={
                    "extra": {
                        "event": "email_send_result",
                        "channel": "email",
                        "dest": _dest_hint(to),
                        "ok": ok,
                        "status_code": r.status_code,
                        "latency_ms": dt_ms,
                        "revision": rev,
                    }
                },
            )
            if not ok:
                log.warning(
                    "email_send_failed",
                    extra={"extra": {"event": "email_send_failed", "status_code": r.status_code, "resp": data, "revision": rev}},
                )
            return data
        except httpx.HTTPError as e:
            dt_ms = int((time.time() - t0) * 1000)
            log.error(
                "email_send_exception",
                extra={
                    "extra": {
                        "event": "email_send_exception",
                        "channel": "email",
                        "dest": _dest_hint(to),
                        "error_type": type(e).__name__,
                        "message": str(e),
                        "latency_ms": dt_ms,
                        "revision": rev,
                    }
                },
                exc_info=True,
            )
            return {"ok": False, "error_type": type(e).__name__, "message": str(e)}
