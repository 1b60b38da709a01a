try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httpx
import pytest
from slack_sdk.errors import SlackApiError

from arnold.clients.automation import AutomationDeliveryError, AutomationWebhookClient
from arnold.clients.google_analytics import GoogleAnalyticsAdminClient
from arnold.clients.slack import SlackMessenger


def test_account_summaries_are_flattened_with_account_labels() -> None:
    summaries = [
        {
            "account": "accounts/1",
            "displayName": "Acme",
            "propertySummaries": [
                {"property": "properties/111", "displayName": "Marketing site"},
                {"property": "properties/222"},
            ],
        },
        {"account": "accounts/2", "propertySummaries": [{"displayName": "orphan"}]},
        {"account": "accounts/3"},
    ]

    properties = GoogleAnalyticsAdminClient.flatten_account_summaries(summaries)

    assert [(p.id, p.display_name, p.account_name) for p in properties] == [
        ("properties/111", "Marketing site", "Acme"),
        ("properties/222", "properties/222", "Acme"),
    ]


@pytest.mark.anyio
async def test_webhook_delivery_posts_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = AutomationWebhookClient(
        "https://n8n.example.com/webhook/arnold", transport=httpx.MockTransport(handler)
    )
    await client.deliver({"user_id": "U1", "message": "hi"})

    assert client.configured
    assert seen[0].method == "POST"
    assert json.loads(seen[0].content) == {"user_id": "U1", "message": "hi"}


@pytest.mark.anyio
async def test_webhook_rejection_raises_delivery_error() -> None:
    client = AutomationWebhookClient(
        "https://n8n.example.com/webhook/arnold",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    with pytest.raises(AutomationDeliveryError):
        await client.deliver({"user_id": "U1"})


@pytest.mark.anyio
async def test_unconfigured_webhook_raises() -> None:
    client = AutomationWebhookClient(None)
    assert not client.configured
    with pytest.raises(AutomationDeliveryError):
        await client.deliver({})


class FakeWebClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict] = []

    async def chat_postMessage(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return {"ok": True}


@pytest.mark.anyio
async def test_messenger_posts_blocks() -> None:
    web_client = FakeWebClient()
    messenger = SlackMessenger(None, client=web_client)

    delivered = await messenger.post_message(channel="U1", text="hi", blocks=[{"type": "divider"}])

    assert delivered is True
    assert web_client.calls == [
        {"channel": "U1", "text": "hi", "blocks": [{"type": "divider"}]}
    ]


@pytest.mark.anyio
async def test_messenger_swallows_slack_errors() -> None:
    error = SlackApiError("failed", {"ok": False, "error": "channel_not_found"})
    messenger = SlackMessenger(None, client=FakeWebClient(error))

    assert await messenger.post_message(channel="U1", text="hi") is False


@pytest.mark.anyio
async def test_messenger_without_token_drops_messages() -> None:
    assert await SlackMessenger(None).post_message(channel="U1", text="hi") is False
