"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Every external dependency gets one configured, stateless client per process.
"""

from functools import lru_cache

from arnold.clients import (
    AutomationWebhookClient,
    CredentialStoreClient,
    GoogleAnalyticsAdminClient,
    GoogleOAuthClient,
    OAuthStateEncoder,
    SlackMessenger,
)
from arnold.core.config import get_settings
from arnold.services import (
    AccountLinkingService,
    EventRelayService,
    LinkStatusService,
    PropertySelectionService,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    return OAuthStateEncoder(secret_key=settings.google.client_secret)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(
        settings.google, settings.oauth, timeout=settings.http_timeout_seconds
    )


@lru_cache()
def get_credential_store_client() -> CredentialStoreClient:
    """Provide the credential store client."""
    settings = _settings()
    return CredentialStoreClient(
        settings.credential_store, timeout=settings.http_timeout_seconds
    )


@lru_cache()
def get_analytics_admin_client() -> GoogleAnalyticsAdminClient:
    return GoogleAnalyticsAdminClient()


@lru_cache()
def get_slack_messenger() -> SlackMessenger:
    """Provide the Slack DM sender."""
    return SlackMessenger(_settings().slack.bot_token)


@lru_cache()
def get_automation_client() -> AutomationWebhookClient:
    settings = _settings()
    webhook_url = settings.automation.webhook_url
    return AutomationWebhookClient(
        str(webhook_url) if webhook_url else None,
        timeout=settings.http_timeout_seconds,
    )


def get_account_linking_service() -> AccountLinkingService:
    """Build the OAuth linking workflow from the shared clients."""
    settings = _settings()
    return AccountLinkingService(
        oauth_client=get_google_oauth_client(),
        state_encoder=get_oauth_state_encoder(),
        credential_store=get_credential_store_client(),
        analytics_client=get_analytics_admin_client(),
        messenger=get_slack_messenger(),
        state_ttl_seconds=settings.oauth.state_ttl_seconds,
        command_prefix=settings.slack.command_prefix,
    )


def get_property_selection_service() -> PropertySelectionService:
    settings = _settings()
    return PropertySelectionService(
        credential_store=get_credential_store_client(),
        messenger=get_slack_messenger(),
        bot_name=settings.slack.bot_name,
        command_prefix=settings.slack.command_prefix,
    )


def get_link_status_service() -> LinkStatusService:
    return LinkStatusService(
        credential_store=get_credential_store_client(),
        command_prefix=_settings().slack.command_prefix,
    )


def get_event_relay_service() -> EventRelayService:
    return EventRelayService(
        automation_client=get_automation_client(),
        bot_name=_settings().slack.bot_name,
    )


__all__ = [
    "get_account_linking_service",
    "get_analytics_admin_client",
    "get_automation_client",
    "get_credential_store_client",
    "get_event_relay_service",
    "get_google_oauth_client",
    "get_link_status_service",
    "get_oauth_state_encoder",
    "get_property_selection_service",
    "get_slack_messenger",
]
