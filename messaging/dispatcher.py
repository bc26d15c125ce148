from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from messaging.email import EmailClient, _dest_hint

log = logging.getLogger("docnotify.dispatcher")


class MessageDispatcher:
    def __init__(self, email: Optional[EmailClient] = None):
        self.email = email

    def send_email(self, to: str, subject: str, html: str, text: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        rev = os.getenv("K_REVISION") or ""
        t0 = time.time()
        log.info(
            "message_send_attempt",
            extra={"extra": {"event": "message_send_attempt", "channel": "email", "dest": _dest_hint(to), "revision": rev}},
        )
        try:
            if not self.email:
                self.email = EmailClient()
            resp = self.email.send_message(to=to, subject=subject, html=html, text=text, headers=headers)
            dt_ms = int((time.time() - t0) * 1000)
            log.info(
                "message_send_result",
                extra={
                    "extra": {
                        "event": "message_send_result",
                        "channel": "email",
                        "dest": _dest_hint(to),
                        "ok": bool(resp.get("ok", False)),
                        "latency_ms": dt_ms,
                        "revision": rev,
                    }
                },
            )
            return resp
        except Exception as e:
            # Transport failures belong to delivery; they never fail the event.
            dt_ms = int((time.time() - t0) * 1000)
            log.error(
                "message_send_exception",
                extra={
                    "extra": {
                        "event": "message_send_exception",
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
