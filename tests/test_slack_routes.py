try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import (
        InMemoryCredentialStore,
        RecordingAutomationClient,
        RecordingMessenger,
        StubAnalyticsClient,
        StubOAuthClient,
        menu_option_values,
        sample_properties,
    )
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import (  # type: ignore
        InMemoryCredentialStore,
        RecordingAutomationClient,
        RecordingMessenger,
        StubAnalyticsClient,
        StubOAuthClient,
        menu_option_values,
        sample_properties,
    )

import copy
import json
import time
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
import pytest
from slack_sdk.signature import SignatureVerifier

from arnold.clients.google_auth import OAuthStateEncoder
from arnold.main import app
from arnold.services import (
    AccountLinkingService,
    EventRelayService,
    LinkStatusService,
    PropertySelectionService,
)

pytestmark = pytest.mark.anyio("asyncio")


class Environment:
    def __init__(self, settings) -> None:
        self.settings = settings
        self.oauth = StubOAuthClient()
        self.store = InMemoryCredentialStore()
        self.analytics = StubAnalyticsClient()
        self.messenger = RecordingMessenger()
        self.automation = RecordingAutomationClient()
        self.encoder = OAuthStateEncoder(secret_key="test-secret")

    def linking(self) -> AccountLinkingService:
        return AccountLinkingService(
            oauth_client=self.oauth,
            state_encoder=self.encoder,
            credential_store=self.store,
            analytics_client=self.analytics,
            messenger=self.messenger,
            state_ttl_seconds=900,
            command_prefix="/arnold",
        )

    def selection(self) -> PropertySelectionService:
        return PropertySelectionService(
            credential_store=self.store,
            messenger=self.messenger,
            bot_name="Arnold",
            command_prefix="/arnold",
        )

    def status(self) -> LinkStatusService:
        return LinkStatusService(credential_store=self.store, command_prefix="/arnold")

    def relay(self) -> EventRelayService:
        return EventRelayService(automation_client=self.automation, bot_name="Arnold")


@pytest.fixture()
def env():
    from arnold import dependencies
    from arnold.core.config import get_settings

    settings = copy.deepcopy(get_settings())
    settings.slack.signing_secret = None
    environment = Environment(settings)

    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_app_settings: lambda: settings,
            dependencies.get_account_linking_service: environment.linking,
            dependencies.get_property_selection_service: environment.selection,
            dependencies.get_link_status_service: environment.status,
            dependencies.get_event_relay_service: environment.relay,
        }
    )

    yield environment

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(env):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


async def _command(client: httpx.AsyncClient, name: str, user_id: str, text: str = ""):
    response = await client.post(
        f"/slack/commands/{name}",
        data={"user_id": user_id, "user_name": "ada", "text": text},
    )
    assert response.status_code == 200
    return response.json()


def _state_from_connect_reply(reply: dict) -> str:
    button = reply["blocks"][1]["elements"][0]
    return parse_qs(urlparse(button["url"]).query)["state"][0]


async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy", "service": "arnold-slack-backend"}


async def test_connect_returns_ephemeral_button_with_signed_state(env, client):
    reply = await _command(client, "connect", "U123")

    assert reply["response_type"] == "ephemeral"
    button = reply["blocks"][1]["elements"][0]
    assert button["type"] == "button"
    assert button["url"].startswith("https://oauth.example.com/auth")
    state = _state_from_connect_reply(reply)
    assert env.encoder.decode(state)["identity"] == "U123"
    assert env.store.writes == []


async def test_connect_requires_user_id(client):
    response = await client.post("/slack/commands/connect", data={"text": ""})
    assert response.status_code == 400


async def test_connect_callback_then_status_reports_unconfigured(env, client):
    state = _state_from_connect_reply(await _command(client, "connect", "U123"))

    page = await client.get(
        "/oauth/google/callback", params={"code": "abc", "state": state}
    )
    status = await _command(client, "status", "U123")

    assert page.status_code == 200
    assert "Successfully Connected" in page.text
    assert env.oauth.codes == ["abc"]
    assert "Google Analytics Connected" in status["text"]
    assert "Not set - use /arnold-property" in status["text"]


async def test_callback_with_two_properties_sends_menu(env, client):
    env.analytics.properties = sample_properties()
    state = _state_from_connect_reply(await _command(client, "connect", "U123"))

    page = await client.get(
        "/oauth/google/callback", params={"code": "abc", "state": state}
    )

    assert "Pick your property" in page.text
    assert len(env.messenger.messages) == 1
    blocks = env.messenger.messages[0]["blocks"]
    assert menu_option_values(blocks) == ["properties/111", "properties/222"]


async def test_callback_with_error_never_writes_store(env, client):
    state = _state_from_connect_reply(await _command(client, "connect", "U123"))

    page = await client.get(
        "/oauth/google/callback",
        params={"code": "abc", "state": state, "error": "<script>x</script>"},
    )

    assert "Connection Failed" in page.text
    assert "<script>x</script>" not in page.text
    assert "&lt;script&gt;" in page.text
    assert env.store.writes == []
    assert env.oauth.codes == []


async def test_callback_with_bare_identity_state_is_rejected(env, client):
    page = await client.get(
        "/oauth/google/callback", params={"code": "abc", "state": "U123"}
    )

    assert "invalid or has expired" in page.text
    assert env.oauth.codes == []
    assert env.store.writes == []


async def test_callback_storage_failure_page(env, client):
    state = _state_from_connect_reply(await _command(client, "connect", "U123"))
    env.store.unavailable = True

    page = await client.get(
        "/oauth/google/callback", params={"code": "abc", "state": state}
    )

    assert "Error Storing Credentials" in page.text
    assert "/arnold-connect" in page.text


async def test_property_command_and_disconnect(env, client):
    state = _state_from_connect_reply(await _command(client, "connect", "U5"))
    await client.get("/oauth/google/callback", params={"code": "abc", "state": state})

    reply = await _command(client, "property", "U5", "properties/42")
    assert "properties/42" in reply["text"]
    status = await _command(client, "status", "U5")
    assert "properties/42" in status["text"]

    disconnected = await _command(client, "disconnect", "U5")
    status_after = await _command(client, "status", "U5")

    assert "disconnected successfully" in disconnected["text"]
    assert "not connected" in status_after["text"]


async def test_interaction_selection_is_acknowledged_then_confirmed_by_dm(env, client):
    state = _state_from_connect_reply(await _command(client, "connect", "U7"))
    await client.get("/oauth/google/callback", params={"code": "abc", "state": state})
    env.messenger.messages.clear()

    payload = {
        "type": "block_actions",
        "user": {"id": "U7"},
        "actions": [
            {
                "action_id": "select_property",
                "selected_option": {
                    "value": "properties/222",
                    "text": {"type": "plain_text", "text": "Docs (Acme)"},
                },
            }
        ],
    }
    response = await client.post(
        "/slack/interactions", data={"payload": json.dumps(payload)}
    )

    assert response.status_code == 200
    assert response.content == b""
    assert (await env.store.get_credential("U7")).property_id == "properties/222"
    assert env.messenger.messages[0]["channel"] == "U7"
    assert "Docs (Acme)" in env.messenger.messages[0]["text"]


async def test_interaction_with_unknown_action_is_acknowledged(env, client):
    payload = {"type": "block_actions", "user": {"id": "U7"}, "actions": [{"action_id": "other"}]}
    response = await client.post(
        "/slack/interactions", data={"payload": json.dumps(payload)}
    )
    assert response.status_code == 200
    assert env.messenger.messages == []


async def test_malformed_interaction_payload_is_rejected(client):
    response = await client.post("/slack/interactions", data={"payload": "{not json"})
    assert response.status_code == 400


async def test_event_url_verification_echoes_challenge(env, client):
    response = await client.post(
        "/slack/events", json={"type": "url_verification", "challenge": "xyz"}
    )
    assert response.json() == {"challenge": "xyz"}
    assert env.automation.payloads == []


async def test_event_callback_is_relayed_after_ack(env, client):
    response = await client.post(
        "/slack/events",
        json={
            "type": "event_callback",
            "event": {
                "type": "app_mention",
                "user": "U1",
                "text": "<@UBOT> sessions by country",
                "channel": "C1",
                "ts": "1.0",
            },
        },
    )

    assert response.status_code == 200
    assert env.automation.payloads[0]["message"] == "sessions by country"


async def test_event_from_bot_is_not_relayed(env, client):
    await client.post(
        "/slack/events",
        json={
            "type": "event_callback",
            "event": {
                "type": "message",
                "user": "U1",
                "bot_id": "B1",
                "text": "Arnold here",
                "channel": "D1",
                "channel_type": "im",
                "ts": "1.0",
            },
        },
    )
    assert env.automation.payloads == []


async def test_signing_secret_rejects_unsigned_requests(env, client):
    env.settings.slack.signing_secret = "signing-secret"

    response = await client.post(
        "/slack/events", json={"type": "url_verification", "challenge": "xyz"}
    )

    assert response.status_code == 401


async def test_signing_secret_accepts_signed_form_requests(env, client):
    env.settings.slack.signing_secret = "signing-secret"
    body = urlencode({"user_id": "U1", "text": ""})
    timestamp = str(int(time.time()))
    signature = SignatureVerifier("signing-secret").generate_signature(
        timestamp=timestamp, body=body
    )

    response = await client.post(
        "/slack/commands/status",
        content=body,
        headers={
            "content-type": "application/x-www-form-urlencoded",
            "x-slack-request-timestamp": timestamp,
            "x-slack-signature": signature,
        },
    )

    assert response.status_code == 200
    assert "not connected" in response.json()["text"]
