"""Expose constructed client wrappers."""

from .automation import AutomationDeliveryError, AutomationWebhookClient
from .credential_store import (
    CredentialNotFoundError,
    CredentialStoreClient,
    CredentialStoreError,
)
from .google_analytics import GoogleAnalyticsAdminClient, PropertyDiscoveryError
from .google_auth import (
    GoogleOAuthClient,
    InvalidOAuthStateError,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
)
from .slack import SlackMessenger

__all__ = [
    "AutomationDeliveryError",
    "AutomationWebhookClient",
    "CredentialNotFoundError",
    "CredentialStoreClient",
    "CredentialStoreError",
    "GoogleAnalyticsAdminClient",
    "GoogleOAuthClient",
    "InvalidOAuthStateError",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "PropertyDiscoveryError",
    "SlackMessenger",
]
