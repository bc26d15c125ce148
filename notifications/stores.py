from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, TypeVar

from google.api_core.exceptions import GoogleAPIError

from notifications.entities import Collection, Document, Subscriber, Team, User, ViewRecord
from notifications.errors import StoreError
from repos.collection_repo import CollectionRepository
from repos.document_repo import DocumentRepository
from repos.notification_setting_repo import NotificationSettingRepository
from repos.team_repo import TeamRepository
from repos.user_repo import UserRepository
from repos.view_repo import ViewRepository

log = logging.getLogger("docnotify.stores")

T = TypeVar("T")


class Stores(Protocol):
    """Read-only view of the document app's state. Missing entities come back as None."""

    def get_document(self, document_id: str) -> Optional[Document]: ...

    def get_collection(self, collection_id: str) -> Optional[Collection]: ...

    def get_team(self, team_id: str) -> Optional[Team]: ...

    def get_user(self, user_id: str) -> Optional[User]: ...

    def list_subscriptions(self, team_id: str, event: str, exclude_user_id: str) -> List[Subscriber]: ...

    def get_accessible_collection_ids(self, user_id: str) -> Set[str]: ...

    def find_recent_view(self, user_id: str, document_id: str, after: datetime) -> Optional[ViewRecord]: ...


def _as_datetime(v: Any, operation: str) -> datetime:
    if isinstance(v, datetime):
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    if isinstance(v, str) and v:
        try:
            dt = datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError as e:
            raise StoreError(operation, f"invalid timestamp: {v!r}") from e
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    raise StoreError(operation, f"invalid timestamp: {v!r}")


def _store_call(operation: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    def deco(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return fn(*args, **kwargs)
            except GoogleAPIError as e:
                log.error(
                    "store_error",
                    extra={
                        "extra": {
                            "event": "store_error",
                            "operation": operation,
                            "error_type": type(e).__name__,
                            "message": str(e),
                        }
                    },
                )
                raise StoreError(operation, str(e)) from e

        return wrapper

    return deco


def _user_from_dict(d: Dict[str, Any]) -> User:
    return User(
        id=d["user_id"],
        email=d.get("email") or "",
        name=d.get("name") or "",
        is_suspended=bool(d.get("suspended_at")) or bool(d.get("is_suspended")),
    )


class FirestoreStores:
    def __init__(
        self,
        documents: Optional[DocumentRepository] = None,
        collections: Optional[CollectionRepository] = None,
        teams: Optional[TeamRepository] = None,
        users: Optional[UserRepository] = None,
        settings_repo: Optional[NotificationSettingRepository] = None,
        views: Optional[ViewRepository] = None,
        max_subscribers: int = 5000,
    ):
        self.documents = documents or DocumentRepository()
        self.collections = collections or CollectionRepository()
        self.teams = teams or TeamRepository()
        self.users = users or UserRepository()
        self.settings_repo = settings_repo or NotificationSettingRepository()
        self.views = views or ViewRepository()
        self.max_subscribers = max_subscribers

    @_store_call("get_document")
    def get_document(self, document_id: str) -> Optional[Document]:
        if not document_id:
            return None
        d = self.documents.get(document_id)
        if d is None:
            return None
        return Document(
            id=document_id,
            team_id=d.get("team_id") or "",
            collection_id=d.get("collection_id") or "",
            last_modified_by_id=d.get("last_modified_by_id") or "",
            updated_at=_as_datetime(d.get("updated_at"), "get_document"),
            title=d.get("title") or "",
            url=d.get("url") or "",
            collaborator_ids=frozenset(d.get("collaborator_ids") or []),
        )

    @_store_call("get_collection")
    def get_collection(self, collection_id: str) -> Optional[Collection]:
        if not collection_id:
            return None
        d = self.collections.get(collection_id)
        if d is None:
            return None
        return Collection(
            id=collection_id,
            team_id=d.get("team_id") or "",
            created_by_id=d.get("created_by_id") or "",
            name=d.get("name") or "",
            url=d.get("url") or "",
            permission=d.get("permission") or None,
        )

    @_store_call("get_team")
    def get_team(self, team_id: str) -> Optional[Team]:
        if not team_id:
            return None
        d = self.teams.get(team_id)
        if d is None:
            return None
        return Team(id=team_id, name=d.get("name") or "", url=d.get("url") or "")

    @_store_call("get_user")
    def get_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        d = self.users.get(user_id)
        return _user_from_dict(d) if d is not None else None

    @_store_call("list_subscriptions")
    def list_subscriptions(self, team_id: str, event: str, exclude_user_id: str) -> List[Subscriber]:
        rows: List[Dict[str, Any]] = []
        capped = False
        for r in self.settings_repo.list_for_team_event(team_id, event):
            if not r.get("user_id") or r.get("user_id") == exclude_user_id:
                continue
            if len(rows) >= self.max_subscribers:
                capped = True
                break
            rows.append(r)
        if capped:
            log.error(
                "subscriber_cap_reached",
                extra={
                    "extra": {
                        "event": "subscriber_cap_reached",
                        "team_id": team_id,
                        "setting_event": event,
                        "max_subscribers": self.max_subscribers,
                    }
                },
            )
        users = self.users.get_many(r["user_id"] for r in rows)

        out: List[Subscriber] = []
        for r in rows:
            u = users.get(r["user_id"])
            if u is None:
                # Inner join: a setting without a user record is not a subscriber.
                continue
            user = _user_from_dict(u)
            out.append(
                Subscriber(
                    id=r["setting_id"],
                    user_id=user.id,
                    team_id=team_id,
                    event=event,
                    unsubscribe_token=r.get("unsubscribe_token") or "",
                    email=user.email,
                    name=user.name,
                    is_suspended=user.is_suspended,
                )
            )
        return out

    @_store_call("get_accessible_collection_ids")
    def get_accessible_collection_ids(self, user_id: str) -> Set[str]:
        u = self.users.get(user_id)
        if u is None or not u.get("team_id"):
            return set()
        return self.collections.accessible_ids(user_id, u["team_id"])

    @_store_call("find_recent_view")
    def find_recent_view(self, user_id: str, document_id: str, after: datetime) -> Optional[ViewRecord]:
        d = self.views.find_after(user_id, document_id, after)
        if d is None:
            return None
        viewed_at = _as_datetime(d.get("updated_at"), "find_recent_view")
        return ViewRecord(user_id=user_id, document_id=document_id, viewed_at=viewed_at)
