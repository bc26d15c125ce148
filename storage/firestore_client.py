from __future__ import annotations

from typing import Any, Dict

from google.cloud import firestore
from config.settings import settings


def get_firestore_client() -> firestore.Client:
    # If FIRESTORE_PROJECT_ID is empty, the library will use ADC default project.
    kwargs: Dict[str, Any] = {}
    if settings.FIRESTORE_PROJECT_ID:
        kwargs["project"] = settings.FIRESTORE_PROJECT_ID
    if settings.FIRESTORE_DATABASE:
        kwargs["database"] = settings.FIRESTORE_DATABASE
    return firestore.Client(**kwargs)
