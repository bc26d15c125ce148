from __future__ import annotations

import logging
import threading
from typing import Optional

from config.settings import settings
from notifications.errors import WorkflowError
from notifications.events import Event
from notifications.router import EventRouter
from notifications.stores import FirestoreStores, Stores
from notifications.workflows import CollectionCreatedWorkflow, Dispatcher, DocumentChangeWorkflow
from utils.request_context import clear_event_id, set_event_id

log = logging.getLogger("docnotify.processor")


class NotificationsProcessor:
    """
    Single entry point: route one event and run its workflow.

    Safe to call again with the same event (at-least-once delivery upstream).
    A retry recomputes every decision from current state, so it may notify again.
    """

    def __init__(self, stores: Stores, dispatcher: Dispatcher, workers: Optional[int] = None):
        workers = settings.SUPPRESSION_CHECK_WORKERS if workers is None else workers
        self.router = EventRouter(
            document_change=DocumentChangeWorkflow(stores, dispatcher, workers=workers),
            collection_created=CollectionCreatedWorkflow(stores, dispatcher, workers=workers),
        )

    def process(self, event: Event, cancel: Optional[threading.Event] = None) -> bool:
        """Returns True when the event was routed to a workflow. Raises WorkflowError subclasses."""
        call = self.router.route(event)
        if call is None:
            log.debug("event_ignored", extra={"extra": {"event": "event_ignored", "name": event.name}})
            return False

        set_event_id(event.id)
        try:
            call.workflow.run(call.event, cancel=cancel)
        except WorkflowError as e:
            log.error(
                "event_processing_failed",
                extra={
                    "extra": {
                        "event": "event_processing_failed",
                        "name": event.name,
                        "error_type": type(e).__name__,
                        "message": str(e),
                    }
                },
            )
            raise
        finally:
            clear_event_id()
        return True


def build_processor() -> NotificationsProcessor:
    from notifications.dispatch import NotificationDispatcher

    stores = FirestoreStores(max_subscribers=settings.MAX_SUBSCRIBERS_PER_EVENT)
    return NotificationsProcessor(stores=stores, dispatcher=NotificationDispatcher())
