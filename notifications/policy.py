"""Suppression rules for candidate subscribers.

A rule returns True when the candidate must NOT be notified. Rules are evaluated
in order and the first match wins, so cheap in-memory checks sit ahead of rules
that read from the stores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from notifications.entities import Collection, Document, Subscriber
from notifications.events import DocumentEventKind
from notifications.stores import Stores

log = logging.getLogger("docnotify.policy")

REASON_SUSPENDED = "suspended"
REASON_NOT_COLLABORATOR = "not_collaborator"
REASON_NO_COLLECTION_ACCESS = "no_collection_access"
REASON_VIEWED_SINCE_UPDATE = "viewed_since_update"


@dataclass(frozen=True)
class Decision:
    notify: bool
    reason: Optional[str] = None


NOTIFY = Decision(notify=True)


@dataclass(frozen=True)
class DocumentContext:
    document: Document
    kind: DocumentEventKind
    stores: Stores


@dataclass(frozen=True)
class CollectionContext:
    collection: Collection


@dataclass(frozen=True)
class Rule:
    reason: str
    suppresses: Callable[[Subscriber, object], bool]


def is_suspended(subscriber: Subscriber, ctx: object) -> bool:
    return subscriber.is_suspended


def is_not_collaborator(subscriber: Subscriber, ctx: DocumentContext) -> bool:
    # Publishing reaches every team subscriber; updates only reach past editors.
    if ctx.kind is not DocumentEventKind.UPDATED:
        return False
    return subscriber.user_id not in ctx.document.collaborator_ids


def lacks_collection_access(subscriber: Subscriber, ctx: DocumentContext) -> bool:
    accessible = ctx.stores.get_accessible_collection_ids(subscriber.user_id)
    return ctx.document.collection_id not in accessible


def viewed_since_update(subscriber: Subscriber, ctx: DocumentContext) -> bool:
    view = ctx.stores.find_recent_view(subscriber.user_id, ctx.document.id, after=ctx.document.updated_at)
    if view is None:
        return False
    log.info(
        "notification_suppressed_viewed",
        extra={
            "extra": {
                "event": "notification_suppressed_viewed",
                "user_id": subscriber.user_id,
                "document_id": ctx.document.id,
                "viewed_at": view.viewed_at.isoformat(),
            }
        },
    )
    return True


DOCUMENT_CHANGE_RULES: Sequence[Rule] = (
    Rule(REASON_SUSPENDED, is_suspended),
    Rule(REASON_NOT_COLLABORATOR, is_not_collaborator),
    Rule(REASON_NO_COLLECTION_ACCESS, lacks_collection_access),
    Rule(REASON_VIEWED_SINCE_UPDATE, viewed_since_update),
)

COLLECTION_CREATED_RULES: Sequence[Rule] = (
    Rule(REASON_SUSPENDED, is_suspended),
)


def evaluate(rules: Sequence[Rule], subscriber: Subscriber, ctx: object) -> Decision:
    for rule in rules:
        if rule.suppresses(subscriber, ctx):
            return Decision(notify=False, reason=rule.reason)
    return NOTIFY


def decide_document_change(subscriber: Subscriber, ctx: DocumentContext) -> Decision:
    return evaluate(DOCUMENT_CHANGE_RULES, subscriber, ctx)


def decide_collection_created(subscriber: Subscriber, ctx: CollectionContext) -> Decision:
    return evaluate(COLLECTION_CREATED_RULES, subscriber, ctx)
