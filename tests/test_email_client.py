import json

import httpx

from messaging.dispatcher import MessageDispatcher
from messaging.email import EmailClient, _dest_hint


def test_dest_hint_masks_local_part():
    assert _dest_hint("alice@example.com") == "a***@example.com"
    assert _dest_hint("") == ""


def test_send_message_posts_json_with_bearer():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(202, json={"id": "m-1"})

    client = EmailClient(api_url="https://mail.example/send", token="secret", http=httpx.Client(transport=httpx.MockTransport(handler)))
    resp = client.send_message(to="u1@example.com", subject="Hi", html="<p>Hi</p>", text="Hi")

    assert resp["ok"] is True
    assert resp["id"] == "m-1"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["to"] == [{"email": "u1@example.com"}]
    assert seen["body"]["subject"] == "Hi"


def test_send_message_reports_http_failure():
    client = EmailClient(
        api_url="https://mail.example/send",
        token="secret",
        http=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500, text="boom"))),
    )
    resp = client.send_message(to="u1@example.com", subject="Hi", html="", text="")
    assert resp["ok"] is False
    assert resp["status_code"] == 500


def test_dispatcher_converts_transport_errors():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = EmailClient(api_url="https://mail.example/send", token="secret", http=httpx.Client(transport=httpx.MockTransport(handler)))
    resp = MessageDispatcher(email=client).send_email(to="u1@example.com", subject="Hi", html="", text="")
    assert resp["ok"] is False
    assert resp["error_type"] == "ConnectError"
