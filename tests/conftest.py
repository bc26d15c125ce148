from datetime import datetime, timedelta, timezone

import pytest

from notifications.entities import Collection, Document, Subscriber, Team, User, ViewRecord
from notifications.errors import StoreError

T1 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(hours=1)
T3 = T2 + timedelta(hours=1)


class FakeStores:
    def __init__(self):
        self.documents = {}
        self.collections = {}
        self.teams = {}
        self.users = {}
        self.subscriptions = []
        self.access = {}
        self.views = []
        self.calls = []
        self.fail_on = set()

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreError(name, "unavailable")

    def get_document(self, document_id):
        self._call("get_document")
        return self.documents.get(document_id)

    def get_collection(self, collection_id):
        self._call("get_collection")
        return self.collections.get(collection_id)

    def get_team(self, team_id):
        self._call("get_team")
        return self.teams.get(team_id)

    def get_user(self, user_id):
        self._call("get_user")
        return self.users.get(user_id)

    def list_subscriptions(self, team_id, event, exclude_user_id):
        self._call("list_subscriptions")
        return [
            s for s in self.subscriptions
            if s.team_id == team_id and s.event == event and s.user_id != exclude_user_id
        ]

    def get_accessible_collection_ids(self, user_id):
        self._call("get_accessible_collection_ids")
        return set(self.access.get(user_id, set()))

    def find_recent_view(self, user_id, document_id, after):
        self._call("find_recent_view")
        for v in self.views:
            if v.user_id == user_id and v.document_id == document_id and v.viewed_at > after:
                return v
        return None

    # helpers

    def add_user(self, user_id, suspended=False):
        user = User(id=user_id, email=f"{user_id}@example.com", name=user_id.upper(), is_suspended=suspended)
        self.users[user_id] = user
        return user

    def subscribe(self, user_id, event, team_id="T"):
        user = self.users.get(user_id) or self.add_user(user_id)
        sub = Subscriber(
            id=f"ns-{user_id}-{event}",
            user_id=user_id,
            team_id=team_id,
            event=event,
            unsubscribe_token=f"tok-{user_id}",
            email=user.email,
            name=user.name,
            is_suspended=user.is_suspended,
        )
        self.subscriptions.append(sub)
        return sub

    def viewed(self, user_id, document_id, at):
        self.views.append(ViewRecord(user_id=user_id, document_id=document_id, viewed_at=at))


class RecordingDispatcher:
    def __init__(self):
        self.documents = []
        self.collections = []

    def send_document_notification(self, request):
        self.documents.append(request)
        return {"ok": True}

    def send_collection_notification(self, request):
        self.collections.append(request)
        return {"ok": True}


@pytest.fixture
def stores():
    s = FakeStores()
    s.teams["T"] = Team(id="T", name="Acme", url="https://acme.docs.example")
    s.collections["C"] = Collection(id="C", team_id="T", created_by_id="U9", name="Engineering", url="/collection/eng", permission="read_write")
    s.documents["D"] = Document(
        id="D",
        team_id="T",
        collection_id="C",
        last_modified_by_id="U3",
        updated_at=T2,
        title="Roadmap",
        url="/doc/roadmap-D",
        collaborator_ids=frozenset({"U1", "U2"}),
    )
    s.add_user("U3")
    return s


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()
