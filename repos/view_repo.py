from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from google.cloud.firestore import Client
from google.cloud.firestore_v1.base_query import FieldFilter
from storage.firestore_client import get_firestore_client
from models.schema import COL_VIEWS


class ViewRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def find_after(self, user_id: str, document_id: str, after: datetime) -> Optional[Dict[str, Any]]:
        q = (
            self.db.collection(COL_VIEWS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("document_id", "==", document_id))
            .where(filter=FieldFilter("updated_at", ">", after))
            .limit(1)
        )
        for snap in q.stream():
            d = snap.to_dict() or {}
            d["view_id"] = snap.id
            return d
        return None
