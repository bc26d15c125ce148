from notifications.events import parse_event
from notifications.router import EventRouter
from notifications.workflows import CollectionCreatedWorkflow, DocumentChangeWorkflow


def _router(stores, dispatcher):
    return EventRouter(
        document_change=DocumentChangeWorkflow(stores, dispatcher, workers=1),
        collection_created=CollectionCreatedWorkflow(stores, dispatcher, workers=1),
    )


def test_document_events_route_to_document_change(stores, dispatcher):
    router = _router(stores, dispatcher)
    for name in ("documents.publish", "documents.update.debounced"):
        call = router.route(parse_event({"name": name, "documentId": "D"}))
        assert call.workflow is router.document_change
        assert call.event.document_id == "D"


def test_collection_create_routes_to_collection_created(stores, dispatcher):
    router = _router(stores, dispatcher)
    call = router.route(parse_event({"name": "collections.create", "collectionId": "C"}))
    assert call.workflow is router.collection_created


def test_other_events_are_noop(stores, dispatcher):
    router = _router(stores, dispatcher)
    assert router.route(parse_event({"name": "documents.update", "documentId": "D"})) is None
    assert router.route(parse_event({"name": "users.signin"})) is None
    assert stores.calls == []
