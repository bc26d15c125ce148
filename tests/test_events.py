import pytest
from pydantic import ValidationError

from notifications.events import (
    CollectionCreated,
    DocumentChanged,
    DocumentEventKind,
    UnhandledEvent,
    parse_event,
)


def test_parse_document_publish():
    ev = parse_event({"name": "documents.publish", "documentId": "D", "teamId": "T", "actorId": "U3"})
    assert isinstance(ev, DocumentChanged)
    assert ev.document_id == "D"
    assert ev.kind is DocumentEventKind.PUBLISHED
    assert ev.source is None


def test_parse_debounced_update_is_updated_kind():
    ev = parse_event({"name": "documents.update.debounced", "document_id": "D"})
    assert ev.kind is DocumentEventKind.UPDATED


def test_source_read_from_data_or_top_level():
    nested = parse_event({"name": "documents.publish", "documentId": "D", "data": {"source": "import"}})
    flat = parse_event({"name": "documents.publish", "documentId": "D", "source": "import"})
    assert nested.source == "import"
    assert flat.source == "import"


def test_null_data_is_accepted():
    ev = parse_event({"name": "documents.update.debounced", "documentId": "D", "data": None})
    assert isinstance(ev, DocumentChanged)
    assert ev.data == {}
    assert ev.source is None

    flat = parse_event({"name": "documents.publish", "documentId": "D", "data": None, "source": "import"})
    assert flat.source == "import"


def test_parse_collection_create():
    ev = parse_event({"name": "collections.create", "collectionId": "K"})
    assert isinstance(ev, CollectionCreated)
    assert ev.collection_id == "K"


def test_unknown_name_is_unhandled_not_error():
    ev = parse_event({"name": "documents.delete", "documentId": "D"})
    assert isinstance(ev, UnhandledEvent)
    assert ev.name == "documents.delete"


def test_handled_event_missing_subject_is_rejected():
    with pytest.raises(ValidationError):
        parse_event({"name": "documents.publish"})
