from __future__ import annotations

import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from google.api_core.exceptions import GoogleAPIError

from config.settings import settings
from messaging.dispatcher import MessageDispatcher
from notifications.entities import CollectionNotificationRequest, DocumentNotificationRequest
from notifications.formatter import format_collection_notification, format_document_notification
from repos.delivery_log_repo import DeliveryLogRepository

log = logging.getLogger("docnotify.dispatch")


class NotificationDispatcher:
    """Formats delivery requests into email and hands them to the message transport."""

    def __init__(
        self,
        dispatcher: Optional[MessageDispatcher] = None,
        delivery: Optional[DeliveryLogRepository] = None,
    ):
        self.dispatcher = dispatcher or MessageDispatcher()
        self.delivery = delivery or DeliveryLogRepository()

    def send_document_notification(self, request: DocumentNotificationRequest) -> Dict[str, Any]:
        msg = format_document_notification(request)
        return self._send(
            kind="document",
            user_id=request.user_id,
            to=request.to,
            msg=msg,
            record={
                "event_label": request.event_label,
                "document_id": request.document.id,
                "collection_id": request.collection.id,
                "team_id": request.team.id,
                "actor_id": request.actor.id if request.actor else None,
            },
        )

    def send_collection_notification(self, request: CollectionNotificationRequest) -> Dict[str, Any]:
        msg = format_collection_notification(request)
        return self._send(
            kind="collection",
            user_id=request.user_id,
            to=request.to,
            msg=msg,
            record={
                "event_label": request.event_label,
                "collection_id": request.collection.id,
                "team_id": request.collection.team_id,
                "actor_id": request.actor.id if request.actor else None,
            },
        )

    def _send(self, kind: str, user_id: str, to: str, msg: Dict[str, str], record: Dict[str, Any]) -> Dict[str, Any]:
        rev = os.getenv("K_REVISION") or ""
        notification_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()

        if not settings.NOTIFICATIONS_ENABLED:
            log.info(
                "notification_send_disabled",
                extra={"extra": {"event": "notification_send_disabled", "kind": kind, "user_id": user_id, **record}},
            )
            return {"ok": False, "skipped": "notifications_disabled"}

        t0 = time.time()
        log.info(
            "notification_send_attempt",
            extra={
                "extra": {
                    "event": "notification_send_attempt",
                    "notification_id": notification_id,
                    "kind": kind,
                    "user_id": user_id,
                    "channel": "email",
                    "revision": rev,
                    **record,
                }
            },
        )

        resp = self.dispatcher.send_email(
            to=to,
            subject=msg["subject"],
            html=msg["html"],
            text=msg["text"],
            headers={"List-Unsubscribe": f"<{msg['unsubscribe_url']}>"},
        )
        dt_ms = int((time.time() - t0) * 1000)
        ok = bool(resp.get("ok"))

        log.info(
            "notification_send_result",
            extra={
                "extra": {
                    "event": "notification_send_result",
                    "notification_id": notification_id,
                    "kind": kind,
                    "user_id": user_id,
                    "channel": "email",
                    "ok": ok,
                    "latency_ms": dt_ms,
                    "revision": rev,
                }
            },
        )

        try:
            self.delivery.record(
                {
                    "notification_id": notification_id,
                    "kind": kind,
                    "user_id": user_id,
                    "channel": "email",
                    "created_at": now,
                    "ok": ok,
                    "resp": resp,
                    **record,
                },
            )
        except GoogleAPIError as e:
            # The email already went out; a missing audit row must not trigger a resend.
            log.error(
                "delivery_log_write_failed",
                extra={"extra": {"event": "delivery_log_write_failed", "notification_id": notification_id, "error_type": type(e).__name__}},
                exc_info=True,
            )
        return resp
