from __future__ import annotations

import logging
from typing import Any, Callable, Dict, FrozenSet, Optional

from fastapi import Depends, HTTPException, Request
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from config.settings import settings

log = logging.getLogger("docnotify.operator_auth")

TokenVerifier = Callable[[str, str], Dict[str, Any]]


def _allow_list(v: str) -> FrozenSet[str]:
    return frozenset(x.strip() for x in (v or "").split(",") if x.strip())


def _google_verify(token: str, audience: str) -> Dict[str, Any]:
    return id_token.verify_oauth2_token(token, google_requests.Request(), audience=audience)


def _reject(status_code: int, reason: str, **fields: Any) -> HTTPException:
    log.warning(
        "event_producer_rejected",
        extra={"extra": {"event": "event_producer_rejected", "reason": reason, "status_code": status_code, **fields}},
    )
    return HTTPException(status_code=status_code, detail=reason)


class EventProducerVerifier:
    """
    Authenticates callers of POST /events (Pub/Sub push subscriptions, Cloud Tasks).
    They present a Google-signed OIDC ID token minted for OPERATOR_AUTH_AUDIENCE.
    Without an audience the service refuses every call. The subject and email
    allow-lists are optional; a listed email only counts once Google has verified it.
    """

    def __init__(
        self,
        audience: str,
        allowed_subs: FrozenSet[str] = frozenset(),
        allowed_emails: FrozenSet[str] = frozenset(),
        verify_token: Optional[TokenVerifier] = None,
    ):
        self.audience = audience
        self.allowed_subs = allowed_subs
        self.allowed_emails = allowed_emails
        self.verify_token = verify_token or _google_verify

    @classmethod
    def from_settings(cls, verify_token: Optional[TokenVerifier] = None) -> "EventProducerVerifier":
        return cls(
            audience=settings.OPERATOR_AUTH_AUDIENCE,
            allowed_subs=_allow_list(settings.OPERATOR_INVOKER_SUBS),
            allowed_emails=_allow_list(settings.OPERATOR_INVOKER_EMAILS),
            verify_token=verify_token,
        )

    def verify(self, authorization: str) -> Dict[str, Any]:
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _reject(401, "missing_bearer_token")

        if not self.audience:
            raise _reject(500, "operator_auth_audience_not_configured")

        try:
            claims = self.verify_token(token.strip(), self.audience)
        except (ValueError, GoogleAuthError) as e:
            raise _reject(401, "invalid_operator_token", error=str(e))

        sub = claims.get("sub") or ""
        email = claims.get("email") or ""
        if self.allowed_subs and sub not in self.allowed_subs:
            raise _reject(403, "operator_sub_not_allowed", sub=sub)
        if self.allowed_emails:
            if email not in self.allowed_emails:
                raise _reject(403, "operator_email_not_allowed", invoker=email)
            if claims.get("email_verified") is False:
                raise _reject(403, "operator_email_not_verified", invoker=email)
        return claims


def require_operator_auth(request: Request) -> Dict[str, Any]:
    return EventProducerVerifier.from_settings().verify(request.headers.get("authorization", ""))


OperatorClaims = Depends(require_operator_auth)
