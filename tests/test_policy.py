from datetime import datetime, timedelta, timezone

from notifications.entities import Collection, Subscriber
from notifications.events import DocumentEventKind
from notifications.policy import (
    REASON_NO_COLLECTION_ACCESS,
    REASON_NOT_COLLABORATOR,
    REASON_SUSPENDED,
    REASON_VIEWED_SINCE_UPDATE,
    CollectionContext,
    DocumentContext,
    decide_collection_created,
    decide_document_change,
)

UPDATED_AT = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def _sub(user_id, suspended=False, event="documents.update"):
    return Subscriber(
        id=f"ns-{user_id}",
        user_id=user_id,
        team_id="T",
        event=event,
        unsubscribe_token="tok",
        email=f"{user_id}@example.com",
        is_suspended=suspended,
    )


def _ctx(stores, kind=DocumentEventKind.UPDATED):
    return DocumentContext(document=stores.documents["D"], kind=kind, stores=stores)


def test_active_collaborator_with_access_is_notified(stores):
    stores.access["U1"] = {"C"}
    decision = decide_document_change(_sub("U1"), _ctx(stores))
    assert decision.notify
    assert decision.reason is None


def test_suspended_short_circuits_before_store_reads(stores):
    decision = decide_document_change(_sub("U1", suspended=True), _ctx(stores))
    assert not decision.notify
    assert decision.reason == REASON_SUSPENDED
    assert stores.calls == []


def test_update_requires_collaborator(stores):
    stores.access["U7"] = {"C"}
    decision = decide_document_change(_sub("U7"), _ctx(stores))
    assert decision.reason == REASON_NOT_COLLABORATOR
    assert "get_accessible_collection_ids" not in stores.calls


def test_publish_bypasses_collaborator_rule(stores):
    stores.access["U7"] = {"C"}
    decision = decide_document_change(_sub("U7"), _ctx(stores, DocumentEventKind.PUBLISHED))
    assert decision.notify


def test_past_collaborator_without_current_access_is_suppressed(stores):
    stores.access["U1"] = {"OTHER"}
    decision = decide_document_change(_sub("U1"), _ctx(stores))
    assert decision.reason == REASON_NO_COLLECTION_ACCESS
    assert "find_recent_view" not in stores.calls


def test_view_after_update_suppresses(stores):
    stores.access["U1"] = {"C"}
    stores.viewed("U1", "D", UPDATED_AT + timedelta(minutes=5))
    decision = decide_document_change(_sub("U1"), _ctx(stores))
    assert decision.reason == REASON_VIEWED_SINCE_UPDATE


def test_view_at_exact_update_time_does_not_suppress(stores):
    stores.access["U1"] = {"C"}
    stores.viewed("U1", "D", UPDATED_AT)
    stores.viewed("U1", "D", UPDATED_AT - timedelta(days=1))
    assert decide_document_change(_sub("U1"), _ctx(stores)).notify


def test_view_rule_applies_to_published_too(stores):
    stores.access["U7"] = {"C"}
    stores.viewed("U7", "D", UPDATED_AT + timedelta(seconds=1))
    decision = decide_document_change(_sub("U7"), _ctx(stores, DocumentEventKind.PUBLISHED))
    assert decision.reason == REASON_VIEWED_SINCE_UPDATE


def test_collection_created_only_checks_suspension():
    ctx = CollectionContext(Collection(id="K", team_id="T", created_by_id="U5", permission="read"))
    assert decide_collection_created(_sub("U6", event="collections.create"), ctx).notify
    suspended = decide_collection_created(_sub("U6", suspended=True, event="collections.create"), ctx)
    assert suspended.reason == REASON_SUSPENDED
