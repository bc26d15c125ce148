from __future__ import annotations

from typing import Any, Dict, Iterator, Optional
from google.cloud.firestore import Client
from google.cloud.firestore_v1.base_query import FieldFilter
from storage.firestore_client import get_firestore_client
from models.schema import COL_NOTIFICATION_SETTINGS


class NotificationSettingRepository:
    def __init__(self, db: Optional[Client] = None, page_size: int = 500):
        self.db = db or get_firestore_client()
        self.page_size = page_size

    def list_for_team_event(self, team_id: str, event: str) -> Iterator[Dict[str, Any]]:
        """Yields every setting for (team, event) in document-id order, one page at a time."""
        base = (
            self.db.collection(COL_NOTIFICATION_SETTINGS)
            .where(filter=FieldFilter("team_id", "==", team_id))
            .where(filter=FieldFilter("event", "==", event))
            .order_by("__name__")
            .limit(self.page_size)
        )
        last = None
        while True:
            q = base.start_after(last) if last is not None else base
            snaps = list(q.stream())
            for snap in snaps:
                d = snap.to_dict() or {}
                d["setting_id"] = snap.id
                yield d
            if len(snaps) < self.page_size:
                return
            last = snaps[-1]
