from __future__ import annotations

import uuid
from typing import Any, Dict, Optional
from google.cloud import firestore
from google.cloud.firestore import Client
from storage.firestore_client import get_firestore_client
from models.schema import COL_DELIVERY_LOGS


class DeliveryLogRepository:
    def __init__(self, db: Optional[Client] = None):
        self.db = db or get_firestore_client()

    def record(self, data: Dict[str, Any], log_id: Optional[str] = None) -> str:
        log_id = log_id or str(uuid.uuid4())
        self.db.collection(COL_DELIVERY_LOGS).document(log_id).set(
            {**data, "log_id": log_id, "logged_at": firestore.SERVER_TIMESTAMP}, merge=False
        )
        return log_id
