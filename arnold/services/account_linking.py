"""
Linking a Slack identity to a Google Analytics account.

Covers both halves of the OAuth round trip: building the consent URL that
carries a signed correlation token, and completing the callback by redeeming
the code, persisting the credential and offering the user a property.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from arnold.clients.credential_store import CredentialStoreClient, CredentialStoreError
from arnold.clients.google_analytics import (
    GoogleAnalyticsAdminClient,
    PropertyDiscoveryError,
)
from arnold.clients.google_auth import (
    GoogleOAuthClient,
    InvalidOAuthStateError,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
)
from arnold.clients.slack import SlackMessenger
from arnold.models.credential import AnalyticsProperty
from arnold.services import slack_messages

logger = logging.getLogger(__name__)


class LinkOutcomeStatus(str, Enum):
    AUTHORIZATION_DENIED = "authorization_denied"
    INVALID_REQUEST = "invalid_request"
    EXCHANGE_FAILED = "exchange_failed"
    STORAGE_FAILED = "storage_failed"
    PROPERTIES_OFFERED = "properties_offered"
    MANUAL_SETUP_OFFERED = "manual_setup_offered"

    @property
    def linked(self) -> bool:
        return self in (
            LinkOutcomeStatus.PROPERTIES_OFFERED,
            LinkOutcomeStatus.MANUAL_SETUP_OFFERED,
        )


@dataclass
class LinkOutcome:
    """Result of an OAuth callback, rendered by the route as an HTML page."""

    status: LinkOutcomeStatus
    identity: Optional[str] = None
    detail: Optional[str] = None
    properties: List[AnalyticsProperty] = field(default_factory=list)


class AccountLinkingService:
    """Drive the connect → callback → property offer workflow."""

    def __init__(
        self,
        *,
        oauth_client: GoogleOAuthClient,
        state_encoder: OAuthStateEncoder,
        credential_store: CredentialStoreClient,
        analytics_client: GoogleAnalyticsAdminClient,
        messenger: SlackMessenger,
        state_ttl_seconds: int,
        command_prefix: str,
    ) -> None:
        self._oauth = oauth_client
        self._state_encoder = state_encoder
        self._store = credential_store
        self._analytics = analytics_client
        self._messenger = messenger
        self._state_ttl = timedelta(seconds=state_ttl_seconds)
        self._command_prefix = command_prefix

    def build_authorization_url(self, identity: str) -> str:
        """Return the consent URL whose state round-trips ``identity``."""
        state = self._state_encoder.encode(
            {
                "identity": identity,
                "nonce": uuid.uuid4().hex,
                "issued_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        return self._oauth.build_authorization_url(state=state)

    def resolve_identity(self, state: str) -> str:
        """Recover the identity from a returned state, or raise if untrusted."""
        payload = self._state_encoder.decode(state)

        identity = payload.get("identity")
        if not identity or not isinstance(identity, str):
            raise InvalidOAuthStateError("Missing identity in state token.")

        try:
            issued_at = datetime.fromisoformat(payload.get("issued_at") or "")
        except (TypeError, ValueError) as exc:
            raise InvalidOAuthStateError("Invalid issued_at in state token.") from exc
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)

        if datetime.now(timezone.utc) - issued_at > self._state_ttl:
            raise InvalidOAuthStateError("OAuth state token has expired.")
        return identity

    async def complete_link(
        self,
        *,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
    ) -> LinkOutcome:
        if error:
            logger.warning("OAuth provider reported an error: %s", error)
            return LinkOutcome(LinkOutcomeStatus.AUTHORIZATION_DENIED, detail=error)

        if not code or not state:
            return LinkOutcome(
                LinkOutcomeStatus.INVALID_REQUEST,
                detail="The authorization response was incomplete.",
            )

        try:
            identity = self.resolve_identity(state)
        except InvalidOAuthStateError as exc:
            logger.warning("Rejected OAuth callback with untrusted state: %s", exc)
            return LinkOutcome(LinkOutcomeStatus.INVALID_REQUEST, detail=str(exc))

        logger.info("Processing OAuth callback for user %s", identity)

        try:
            grant = await self._oauth.exchange_authorization_code(code)
        except OAuthTokenExchangeError as exc:
            logger.error("Code exchange failed for user %s: %s", identity, exc)
            return LinkOutcome(
                LinkOutcomeStatus.EXCHANGE_FAILED,
                identity=identity,
                detail="Google did not accept the authorization code.",
            )

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=grant.expires_in)
        try:
            await self._store.save_tokens(
                identity=identity,
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                expires_in=grant.expires_in,
                expires_at=expires_at,
            )
        except CredentialStoreError as exc:
            logger.error("Storing tokens failed for user %s: %s", identity, exc)
            return LinkOutcome(
                LinkOutcomeStatus.STORAGE_FAILED, identity=identity, detail=str(exc)
            )

        logger.info("Tokens stored successfully for user %s", identity)
        return await self._offer_properties(identity, grant.access_token)

    async def _offer_properties(self, identity: str, access_token: str) -> LinkOutcome:
        note: Optional[str] = None
        try:
            properties = await self._analytics.list_properties(access_token=access_token)
        except PropertyDiscoveryError as exc:
            logger.warning("Property discovery failed for user %s: %s", identity, exc)
            properties = []
            note = "Automatic property discovery is unavailable right now."

        if properties:
            await self._messenger.post_message(
                channel=identity,
                text="Google Analytics connected! Choose the property to analyze.",
                blocks=slack_messages.property_menu_blocks(properties),
            )
            return LinkOutcome(
                LinkOutcomeStatus.PROPERTIES_OFFERED,
                identity=identity,
                properties=properties,
            )

        if note is None:
            note = "No Google Analytics 4 properties were found for this account."
        await self._messenger.post_message(
            channel=identity,
            text=slack_messages.manual_setup_text(self._command_prefix, note),
        )
        return LinkOutcome(
            LinkOutcomeStatus.MANUAL_SETUP_OFFERED, identity=identity, detail=note
        )


__all__ = ["AccountLinkingService", "LinkOutcome", "LinkOutcomeStatus"]
