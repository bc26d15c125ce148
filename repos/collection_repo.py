from __future__ import annotations

from typing import Any, Dict, Optional, Set
from google.cloud.firestore import Client
from google.cloud.firestore_v1.base_query import FieldFilter
from storage.firestore_client import get_firestore_client
from models.schema import COL_COLLECTIONS, COL_COLLECTION_GROUPS, COL_COLLECTION_USERS, COL_GROUP_USERS


class CollectionRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def get(self, collection_id: str) -> Optional[Dict[str, Any]]:
        snap = self.db.collection(COL_COLLECTIONS).document(collection_id).get()
        if not snap.exists:
            return None
        d = snap.to_dict() or {}
        if d.get("deleted_at"):
            return None
        d["collection_id"] = collection_id
        return d

    def _ids_where(self, col: str, field: str, value: str, id_field: str) -> Set[str]:
        q = self.db.collection(col).where(filter=FieldFilter(field, "==", value))
        out: Set[str] = set()
        for snap in q.stream():
            v = (snap.to_dict() or {}).get(id_field)
            if v:
                out.add(v)
        return out

    def accessible_ids(self, user_id: str, team_id: str) -> Set[str]:
        """
        Collections the user can currently read:
        - team collections with a permission set (shared with the whole team)
        - collections granted to the user directly
        - collections granted to any group the user belongs to
        Soft-deleted collections are excluded.
        """
        candidates: Set[str] = set()

        team_q = self.db.collection(COL_COLLECTIONS).where(filter=FieldFilter("team_id", "==", team_id))
        deleted: Set[str] = set()
        for snap in team_q.stream():
            d = snap.to_dict() or {}
            if d.get("deleted_at"):
                deleted.add(snap.id)
                continue
            if d.get("permission"):
                candidates.add(snap.id)

        candidates |= self._ids_where(COL_COLLECTION_USERS, "user_id", user_id, "collection_id")

        group_ids = self._ids_where(COL_GROUP_USERS, "user_id", user_id, "group_id")
        for group_id in sorted(group_ids):
            candidates |= self._ids_where(COL_COLLECTION_GROUPS, "group_id", group_id, "collection_id")

        return self._existing(candidates - deleted)

    def _existing(self, collection_ids: Set[str]) -> Set[str]:
        # Membership grants can outlive their collection; keep only live ones.
        if not collection_ids:
            return set()
        refs = [self.db.collection(COL_COLLECTIONS).document(cid) for cid in sorted(collection_ids)]
        out: Set[str] = set()
        for snap in self.db.get_all(refs):
            if snap.exists and not (snap.to_dict() or {}).get("deleted_at"):
                out.add(snap.id)
        return out
