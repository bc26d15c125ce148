from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from notifications.events import CollectionCreated, DocumentChanged, Event, UnhandledEvent
from notifications.workflows import CollectionCreatedWorkflow, DocumentChangeWorkflow


@dataclass(frozen=True)
class WorkflowCall:
    workflow: Union[DocumentChangeWorkflow, CollectionCreatedWorkflow]
    event: Union[DocumentChanged, CollectionCreated]


class EventRouter:
    def __init__(self, document_change: DocumentChangeWorkflow, collection_created: CollectionCreatedWorkflow):
        self.document_change = document_change
        self.collection_created = collection_created

    def route(self, event: Event) -> Optional[WorkflowCall]:
        """Pick the workflow for an event. None means the event needs no notifications."""
        if isinstance(event, DocumentChanged):
            return WorkflowCall(self.document_change, event)
        if isinstance(event, CollectionCreated):
            return WorkflowCall(self.collection_created, event)
        if isinstance(event, UnhandledEvent):
            return None
        raise TypeError(f"unroutable event type: {type(event).__name__}")
