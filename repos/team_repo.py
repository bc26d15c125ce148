from __future__ import annotations

from typing import Any, Dict, Optional
from google.cloud.firestore import Client
from storage.firestore_client import get_firestore_client
from models.schema import COL_TEAMS


class TeamRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def get(self, team_id: str) -> Optional[Dict[str, Any]]:
        snap = self.db.collection(COL_TEAMS).document(team_id).get()
        if not snap.exists:
            return None
        d = snap.to_dict() or {}
        d["team_id"] = team_id
        return d
