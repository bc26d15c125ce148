from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str = ""
    is_suspended: bool = False


@dataclass(frozen=True)
class Team:
    id: str
    name: str = ""
    url: str = ""


@dataclass(frozen=True)
class Collection:
    id: str
    team_id: str
    created_by_id: str
    name: str = ""
    url: str = ""
    # None means the collection is private (not shareable, nothing to notify).
    permission: Optional[str] = None
    creator: Optional[User] = None


@dataclass(frozen=True)
class Document:
    id: str
    team_id: str
    collection_id: str
    last_modified_by_id: str
    updated_at: datetime
    title: str = ""
    url: str = ""
    collaborator_ids: FrozenSet[str] = field(default_factory=frozenset)
    # Relations below are filled in by the workflow, never by the store.
    collection: Optional[Collection] = None
    updated_by: Optional[User] = None


@dataclass(frozen=True)
class Subscriber:
    """A notification setting joined with its owner's current user record."""

    id: str
    user_id: str
    team_id: str
    event: str
    unsubscribe_token: str
    email: str
    name: str = ""
    is_suspended: bool = False


@dataclass(frozen=True)
class ViewRecord:
    user_id: str
    document_id: str
    viewed_at: datetime


@dataclass(frozen=True)
class DocumentNotificationRequest:
    to: str
    event_label: str
    document: Document
    collection: Collection
    team: Team
    actor: Optional[User]
    unsubscribe_token: str
    user_id: str = ""


@dataclass(frozen=True)
class CollectionNotificationRequest:
    to: str
    event_label: str
    collection: Collection
    actor: Optional[User]
    unsubscribe_token: str
    user_id: str = ""
