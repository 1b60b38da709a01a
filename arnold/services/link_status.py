"""Reporting and tearing down a user's Google Analytics link."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from arnold.clients.credential_store import (
    CredentialNotFoundError,
    CredentialStoreClient,
    CredentialStoreError,
)
from arnold.models.credential import Credential
from arnold.services import slack_messages

logger = logging.getLogger(__name__)


class LinkState(str, Enum):
    NOT_CONNECTED = "not_connected"
    EXPIRED = "expired"
    PROPERTY_NOT_CONFIGURED = "property_not_configured"
    CONNECTED = "connected"


@dataclass
class LinkStatusReport:
    connected: bool
    expired: bool = False
    property_id: Optional[str] = None

    @property
    def state(self) -> LinkState:
        if not self.connected:
            return LinkState.NOT_CONNECTED
        if self.expired:
            return LinkState.EXPIRED
        if not self.property_id:
            return LinkState.PROPERTY_NOT_CONFIGURED
        return LinkState.CONNECTED


def _is_expired(credential: Credential, now: datetime) -> bool:
    if credential.expires_at is not None:
        expires_at = credential.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now
    return bool(credential.is_expired)


class LinkStatusService:
    """Answer the ``status`` and ``disconnect`` slash commands."""

    def __init__(self, *, credential_store: CredentialStoreClient, command_prefix: str) -> None:
        self._store = credential_store
        self._command_prefix = command_prefix

    async def get_status(self, identity: str) -> LinkStatusReport:
        """Derive the link state; an unreachable store reads as not connected."""
        try:
            credential = await self._store.get_credential(identity)
        except CredentialNotFoundError:
            return LinkStatusReport(connected=False)
        except CredentialStoreError as exc:
            logger.warning("Status lookup failed for user %s: %s", identity, exc)
            return LinkStatusReport(connected=False)

        return LinkStatusReport(
            connected=True,
            expired=_is_expired(credential, datetime.now(timezone.utc)),
            property_id=credential.property_id,
        )

    async def disconnect(self, identity: str) -> None:
        """Delete the credential. Already-absent credentials are not an error."""
        try:
            await self._store.delete_credential(identity)
        except CredentialNotFoundError:
            logger.info("Disconnect for user %s: no credential stored", identity)
            return
        logger.info("Disconnected Google Analytics for user %s", identity)

    def render_status(self, report: LinkStatusReport) -> dict:
        if not report.connected:
            return slack_messages.ephemeral(
                slack_messages.not_linked_text(self._command_prefix)
            )

        token_line = (
            "⚠️ Token expired - please reconnect" if report.expired else "✅ Active"
        )
        property_line = report.property_id or (
            f"⚠️ Not set - use {self._command_prefix}-property"
        )
        text = (
            "✅ *Google Analytics Connected*\n\n"
            f"• Status: {token_line}\n"
            f"• Property: {property_line}"
        )
        return slack_messages.ephemeral(
            text, [{"type": "section", "text": {"type": "mrkdwn", "text": text}}]
        )

    async def handle_status_command(self, identity: str) -> dict:
        return self.render_status(await self.get_status(identity))

    async def handle_disconnect_command(self, identity: str) -> dict:
        try:
            await self.disconnect(identity)
        except CredentialStoreError as exc:
            logger.error("Disconnect failed for user %s: %s", identity, exc)
            return slack_messages.ephemeral("❌ Error disconnecting. Please try again.")
        return slack_messages.ephemeral("✅ Google Analytics disconnected successfully.")


__all__ = ["LinkState", "LinkStatusReport", "LinkStatusService"]
