from __future__ import annotations

from html import escape
from typing import Dict, Optional
from urllib.parse import urlencode

from config.settings import settings
from notifications.entities import CollectionNotificationRequest, DocumentNotificationRequest, User

UNSUBSCRIBE_PATH = "/api/notificationSettings.unsubscribe"


def unsubscribe_url(token: str, base_url: Optional[str] = None) -> str:
    base = (base_url if base_url is not None else settings.APP_BASE_URL).rstrip("/")
    return f"{base}{UNSUBSCRIBE_PATH}?{urlencode({'token': token})}"


def _actor_name(actor: Optional[User]) -> str:
    if actor is None:
        return "Someone"
    return actor.name or actor.email or "Someone"


def _join_url(base: str, path: str) -> str:
    if not path:
        return base
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _footer(token: str) -> Dict[str, str]:
    url = unsubscribe_url(token)
    return {
        "html": f'<p style="color:#9e9e9e">You are receiving this because of your notification settings. '
        f'<a href="{escape(url)}">Unsubscribe</a></p>',
        "text": f"Unsubscribe: {url}",
        "url": url,
    }


def format_document_notification(req: DocumentNotificationRequest) -> Dict[str, str]:
    doc = req.document
    title = doc.title or "Untitled"
    actor = _actor_name(req.actor)
    link = _join_url(req.team.url, doc.url)
    footer = _footer(req.unsubscribe_token)

    subject = f"“{title}” {req.event_label}"
    text = (
        f"{actor} {req.event_label} the document \"{title}\", in the {req.collection.name} collection.\n\n"
        f"Open document: {link}\n\n"
        f"{footer['text']}"
    )
    html = (
        f"<h1>“{escape(title)}” {escape(req.event_label)}</h1>"
        f"<p>{escape(actor)} {escape(req.event_label)} the document “{escape(title)}”, "
        f"in the {escape(req.collection.name)} collection.</p>"
        f'<p><a href="{escape(link)}">Open document</a></p>'
        f"{footer['html']}"
    )
    return {"subject": subject, "text": text, "html": html, "unsubscribe_url": footer["url"]}


def format_collection_notification(req: CollectionNotificationRequest) -> Dict[str, str]:
    coll = req.collection
    name = coll.name or "Untitled"
    actor = _actor_name(req.actor)
    footer = _footer(req.unsubscribe_token)
    link = _join_url(settings.APP_BASE_URL, coll.url) if coll.url else ""

    subject = f"“{name}” {req.event_label}"
    text = f"{actor} {req.event_label} the collection \"{name}\".\n\n"
    html = (
        f"<h1>“{escape(name)}” {escape(req.event_label)}</h1>"
        f"<p>{escape(actor)} {escape(req.event_label)} the collection “{escape(name)}”.</p>"
    )
    if link:
        text += f"Open collection: {link}\n\n"
        html += f'<p><a href="{escape(link)}">Open collection</a></p>'
    text += footer["text"]
    html += footer["html"]
    return {"subject": subject, "text": text, "html": html, "unsubscribe_url": footer["url"]}
