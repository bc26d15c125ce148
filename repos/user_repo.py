from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
from google.cloud.firestore import Client
from storage.firestore_client import get_firestore_client
from models.schema import COL_USERS


class UserRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        snap = self.db.collection(COL_USERS).document(user_id).get()
        if not snap.exists:
            return None
        d = snap.to_dict() or {}
        d["user_id"] = user_id
        return d

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        refs = [self.db.collection(COL_USERS).document(uid) for uid in dict.fromkeys(user_ids)]
        if not refs:
            return {}
        out: Dict[str, Dict[str, Any]] = {}
        for snap in self.db.get_all(refs):
            if not snap.exists:
                continue
            d = snap.to_dict() or {}
            d["user_id"] = snap.id
            out[snap.id] = d
        return out
