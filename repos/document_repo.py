from __future__ import annotations

from typing import Any, Dict, Optional
from google.cloud.firestore import Client
from storage.firestore_client import get_firestore_client
from models.schema import COL_DOCUMENTS


class DocumentRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def get(self, document_id: str) -> Optional[Dict[str, Any]]:
        snap = self.db.collection(COL_DOCUMENTS).document(document_id).get()
        if not snap.exists:
            return None
        d = snap.to_dict() or {}
        # Soft-deleted documents are treated as gone.
        if d.get("deleted_at"):
            return None
        d["document_id"] = document_id
        return d
