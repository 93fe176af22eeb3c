from datetime import datetime

import aiohttp
import pytest

from transcript_relay.errors import NotificationError
from transcript_relay.notification import slack_client
from transcript_relay.notification.slack_client import SlackClient

WEBHOOK = "https://hooks.slack.com/services/T000/B000/XXXX"


class FakeResponse:
    def __init__(self, status, body=""):
        self.status = status
        self.body = body

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def __call__(self, **kwargs):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def post(self, url, json=None):
        self.posts.append((url, json))
        if self.error:
            raise self.error
        return self.response


def test_message_with_translation():
    message = SlackClient.build_transcript_message("Hello.", "こんにちは。", posted_at=datetime(2026, 1, 2, 3, 4, 5))

    assert message["text"] == "Hello."
    assert [b["type"] for b in message["blocks"]] == ["section", "section", "context"]
    assert message["blocks"][0]["text"]["text"] == "*Original:*\nHello."
    assert message["blocks"][1]["text"]["text"] == "*Translated:*\nこんにちは。"
    assert message["blocks"][2]["elements"][0]["text"] == "_2026/01/02 03:04:05_"


def test_message_without_translation():
    message = SlackClient.build_transcript_message("今日は。")

    assert [b["type"] for b in message["blocks"]] == ["section", "context"]


@pytest.mark.asyncio
async def test_post_transcript_sends_json(monkeypatch):
    session = FakeSession(FakeResponse(200, "ok"))
    monkeypatch.setattr(slack_client.aiohttp, "ClientSession", session)

    await SlackClient(WEBHOOK).post_transcript("Hello.", "こんにちは。")

    url, payload = session.posts[0]
    assert url == WEBHOOK
    assert payload["text"] == "Hello."


@pytest.mark.asyncio
async def test_non_success_status_raises(monkeypatch):
    monkeypatch.setattr(slack_client.aiohttp, "ClientSession", FakeSession(FakeResponse(404, "no_service")))

    with pytest.raises(NotificationError, match="404 - no_service"):
        await SlackClient(WEBHOOK).post_message("Hello.")


@pytest.mark.asyncio
async def test_transport_error_raises(monkeypatch):
    session = FakeSession(error=aiohttp.ClientConnectionError("refused"))
    monkeypatch.setattr(slack_client.aiohttp, "ClientSession", session)

    with pytest.raises(NotificationError, match="refused"):
        await SlackClient(WEBHOOK).post_message("Hello.")


@pytest.mark.asyncio
async def test_missing_webhook_raises():
    with pytest.raises(NotificationError):
        await SlackClient("").post_transcript("Hello.")
