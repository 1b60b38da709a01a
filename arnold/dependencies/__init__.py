"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_account_linking_service,
    get_analytics_admin_client,
    get_automation_client,
    get_credential_store_client,
    get_event_relay_service,
    get_google_oauth_client,
    get_link_status_service,
    get_oauth_state_encoder,
    get_property_selection_service,
    get_slack_messenger,
)
from .config import get_app_settings, get_slack_settings
from .security import verify_slack_signature

__all__ = [
    "get_account_linking_service",
    "get_analytics_admin_client",
    "get_app_settings",
    "get_automation_client",
    "get_credential_store_client",
    "get_event_relay_service",
    "get_google_oauth_client",
    "get_link_status_service",
    "get_oauth_state_encoder",
    "get_property_selection_service",
    "get_slack_messenger",
    "get_slack_settings",
    "verify_slack_signature",
]
