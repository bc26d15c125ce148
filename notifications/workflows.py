from __future__ import annotations

import contextvars
import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Protocol, Sequence

from models.schema import EVENT_COLLECTIONS_CREATE, EVENT_DOCUMENTS_PUBLISH, EVENT_DOCUMENTS_UPDATE
from notifications.entities import CollectionNotificationRequest, DocumentNotificationRequest, Subscriber
from notifications.errors import WorkflowCancelled
from notifications.events import SOURCE_IMPORT, CollectionCreated, DocumentChanged, DocumentEventKind
from notifications.policy import (
    CollectionContext,
    Decision,
    DocumentContext,
    decide_collection_created,
    decide_document_change,
)
from notifications.stores import Stores
from ops.metrics import DecisionCounters, Timer

log = logging.getLogger("docnotify.workflows")

COLLECTION_CREATED_LABEL = "created"


class Dispatcher(Protocol):
    def send_document_notification(self, request: DocumentNotificationRequest) -> Any: ...

    def send_collection_notification(self, request: CollectionNotificationRequest) -> Any: ...


def _skip(workflow: str, reason: str, **fields: Any) -> None:
    log.info(
        "workflow_skipped",
        extra={"extra": {"event": "workflow_skipped", "workflow": workflow, "reason": reason, **fields}},
    )


def _check_cancel(cancel: Optional[threading.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise WorkflowCancelled(stage)


class _Workflow:
    name = ""

    def __init__(self, stores: Stores, dispatcher: Dispatcher, workers: int = 4):
        self.stores = stores
        self.dispatcher = dispatcher
        self.workers = max(1, int(workers))

    def select(
        self,
        candidates: Sequence[Subscriber],
        decide: Callable[[Subscriber, Any], Decision],
        ctx: Any,
        counters: DecisionCounters,
        cancel: Optional[threading.Event] = None,
    ) -> List[Subscriber]:
        """
        Decide every candidate before anything is sent: if one check fails the
        whole event is retried instead of notifying a partial list.
        Results keep the candidate order.
        """
        counters.candidates = len(candidates)
        decisions: List[Decision] = []
        if self.workers == 1 or len(candidates) <= 1:
            for sub in candidates:
                _check_cancel(cancel, "select")
                decisions.append(decide(sub, ctx))
        else:
            # Workers do not inherit context vars; carry request/event ids into log lines.
            caller_ctx = contextvars.copy_context()
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix=f"{self.name}-check") as pool:
                for start in range(0, len(candidates), self.workers):
                    _check_cancel(cancel, "select")
                    batch = candidates[start:start + self.workers]
                    decisions.extend(pool.map(lambda s: caller_ctx.copy().run(decide, s, ctx), batch))

        selected: List[Subscriber] = []
        for sub, decision in zip(candidates, decisions):
            if decision.notify:
                selected.append(sub)
                continue
            counters.record_suppressed(decision.reason or "unknown")
            log.debug(
                "notification_suppressed",
                extra={
                    "extra": {
                        "event": "notification_suppressed",
                        "workflow": self.name,
                        "user_id": sub.user_id,
                        "reason": decision.reason,
                    }
                },
            )
        return selected

    def _log_result(self, counters: DecisionCounters, timer: Timer, **fields: Any) -> None:
        log.info(
            "workflow_metrics",
            extra={
                "extra": {
                    "event": "workflow_metrics",
                    "workflow": self.name,
                    "duration_ms": timer.ms(),
                    **counters.as_dict(),
                    **fields,
                }
            },
        )


class DocumentChangeWorkflow(_Workflow):
    name = "document_change"

    def run(self, event: DocumentChanged, cancel: Optional[threading.Event] = None) -> List[DocumentNotificationRequest]:
        timer = Timer()

        # never send notifications when batch importing documents
        if event.source == SOURCE_IMPORT:
            _skip(self.name, "import", document_id=event.document_id)
            return []

        document = self.stores.get_document(event.document_id)
        if document is None:
            _skip(self.name, "document_not_found", document_id=event.document_id)
            return []

        collection = self.stores.get_collection(document.collection_id) if document.collection_id else None
        if collection is None:
            _skip(self.name, "collection_not_found", document_id=document.id, collection_id=document.collection_id)
            return []

        team = self.stores.get_team(document.team_id) if document.team_id else None
        if team is None:
            _skip(self.name, "team_not_found", document_id=document.id, team_id=document.team_id)
            return []

        actor = self.stores.get_user(document.last_modified_by_id) if document.last_modified_by_id else None
        document = dataclasses.replace(document, collection=collection, updated_by=actor)

        kind = event.kind
        setting_event = EVENT_DOCUMENTS_PUBLISH if kind is DocumentEventKind.PUBLISHED else EVENT_DOCUMENTS_UPDATE
        candidates = self.stores.list_subscriptions(document.team_id, setting_event, document.last_modified_by_id)

        counters = DecisionCounters()
        ctx = DocumentContext(document=document, kind=kind, stores=self.stores)
        selected = self.select(candidates, decide_document_change, ctx, counters, cancel)

        requests: List[DocumentNotificationRequest] = []
        for sub in selected:
            _check_cancel(cancel, "dispatch")
            req = DocumentNotificationRequest(
                to=sub.email,
                event_label=kind.value,
                document=document,
                collection=collection,
                team=team,
                actor=actor,
                unsubscribe_token=sub.unsubscribe_token,
                user_id=sub.user_id,
            )
            self.dispatcher.send_document_notification(req)
            requests.append(req)
            counters.notified += 1

        self._log_result(counters, timer, document_id=document.id, event_label=kind.value)
        return requests


class CollectionCreatedWorkflow(_Workflow):
    name = "collection_created"

    def run(
        self, event: CollectionCreated, cancel: Optional[threading.Event] = None
    ) -> List[CollectionNotificationRequest]:
        timer = Timer()

        collection = self.stores.get_collection(event.collection_id)
        if collection is None:
            _skip(self.name, "collection_not_found", collection_id=event.collection_id)
            return []

        creator = self.stores.get_user(collection.created_by_id) if collection.created_by_id else None
        if creator is None:
            _skip(self.name, "creator_not_found", collection_id=collection.id)
            return []
        collection = dataclasses.replace(collection, creator=creator)

        if not collection.permission:
            _skip(self.name, "collection_private", collection_id=collection.id)
            return []

        if not collection.team_id:
            _skip(self.name, "team_not_found", collection_id=collection.id)
            return []

        candidates = self.stores.list_subscriptions(collection.team_id, EVENT_COLLECTIONS_CREATE, collection.created_by_id)

        counters = DecisionCounters()
        selected = self.select(candidates, decide_collection_created, CollectionContext(collection), counters, cancel)

        requests: List[CollectionNotificationRequest] = []
        for sub in selected:
            _check_cancel(cancel, "dispatch")
            req = CollectionNotificationRequest(
                to=sub.email,
                event_label=COLLECTION_CREATED_LABEL,
                collection=collection,
                actor=creator,
                unsubscribe_token=sub.unsubscribe_token,
                user_id=sub.user_id,
            )
            self.dispatcher.send_collection_notification(req)
            requests.append(req)
            counters.notified += 1

        self._log_result(counters, timer, collection_id=collection.id)
        return requests
