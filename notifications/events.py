"""Inbound change events.

Events are a closed union discriminated by ``name``. Names this service does not
handle parse into ``UnhandledEvent`` instead of failing, so the router can no-op
them explicitly.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

DOCUMENTS_PUBLISH = "documents.publish"
DOCUMENTS_UPDATE_DEBOUNCED = "documents.update.debounced"
COLLECTIONS_CREATE = "collections.create"

SOURCE_IMPORT = "import"


class DocumentEventKind(str, Enum):
    PUBLISHED = "published"
    UPDATED = "updated"


class _EventBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(default="")
    team_id: Optional[str] = Field(default=None, alias="teamId")
    actor_id: Optional[str] = Field(default=None, alias="actorId")


class DocumentChanged(_EventBase):
    name: Literal["documents.publish", "documents.update.debounced"]
    document_id: str = Field(alias="documentId")
    data: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_source(cls, values: Any) -> Any:
        # Producers put the source tag either top-level or under data; data may be null.
        if not isinstance(values, dict):
            return values
        if values.get("data") is None:
            values = {**values, "data": {}}
        if "source" in values:
            values = dict(values)
            data = dict(values.get("data") or {})
            data.setdefault("source", values.pop("source"))
            values["data"] = data
        return values

    @property
    def source(self) -> Optional[str]:
        return self.data.get("source")

    @property
    def kind(self) -> DocumentEventKind:
        if self.name == DOCUMENTS_PUBLISH:
            return DocumentEventKind.PUBLISHED
        return DocumentEventKind.UPDATED


class CollectionCreated(_EventBase):
    name: Literal["collections.create"]
    collection_id: str = Field(alias="collectionId")


class UnhandledEvent(_EventBase):
    name: str


HandledEvent = Annotated[Union[DocumentChanged, CollectionCreated], Field(discriminator="name")]
Event = Union[DocumentChanged, CollectionCreated, UnhandledEvent]

_HANDLED_NAMES = frozenset({DOCUMENTS_PUBLISH, DOCUMENTS_UPDATE_DEBOUNCED, COLLECTIONS_CREATE})
_handled_adapter: TypeAdapter = TypeAdapter(HandledEvent)


def parse_event(payload: Dict[str, Any]) -> Event:
    """Parse a raw event dict. Raises pydantic.ValidationError on a malformed handled event."""
    if payload.get("name") in _HANDLED_NAMES:
        return _handled_adapter.validate_python(payload)
    return UnhandledEvent.model_validate(payload)
