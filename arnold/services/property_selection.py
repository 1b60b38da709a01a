"""Binding a GA4 property to an already linked credential."""

from __future__ import annotations

import logging
import re
from typing import Optional

from arnold.clients.credential_store import (
    CredentialNotFoundError,
    CredentialStoreClient,
    CredentialStoreError,
)
from arnold.clients.slack import SlackMessenger
from arnold.models.credential import AnalyticsProperty
from arnold.services import slack_messages

logger = logging.getLogger(__name__)

PROPERTY_PREFIX = "properties/"
_PROPERTY_PATTERN = re.compile(r"^(?:properties/)?(\d+)$")


class InvalidPropertyIdError(ValueError):
    """Raised when a property designation is neither ``123`` nor ``properties/123``."""


def normalize_property_id(value: str) -> str:
    """Return the canonical ``properties/<id>`` resource name."""
    match = _PROPERTY_PATTERN.match((value or "").strip())
    if not match:
        raise InvalidPropertyIdError(f"Not a GA4 property id: {value!r}")
    return f"{PROPERTY_PREFIX}{match.group(1)}"


class PropertySelectionService:
    """Persist property selections from slash commands and menu choices."""

    def __init__(
        self,
        *,
        credential_store: CredentialStoreClient,
        messenger: SlackMessenger,
        bot_name: str,
        command_prefix: str,
    ) -> None:
        self._store = credential_store
        self._messenger = messenger
        self._bot_name = bot_name
        self._command_prefix = command_prefix

    async def set_property(self, identity: str, value: str) -> str:
        """Normalize and store ``value``; returns the stored resource name.

        Raises ``InvalidPropertyIdError``, ``CredentialNotFoundError`` when the
        identity was never linked, or ``CredentialStoreError``.
        """
        property_id = normalize_property_id(value)
        await self._store.set_property(identity, property_id)
        logger.info("Property %s selected for user %s", property_id, identity)
        return property_id

    async def handle_command(self, identity: str, text: str) -> dict:
        """Synchronous reply for the ``property`` slash command."""
        argument = (text or "").strip()
        if not argument:
            return await self._offer_known_properties(identity)

        try:
            property_id = await self.set_property(identity, argument)
        except InvalidPropertyIdError:
            return slack_messages.ephemeral(
                slack_messages.property_usage_text(self._command_prefix)
            )
        except CredentialNotFoundError:
            return slack_messages.ephemeral(
                slack_messages.not_linked_text(self._command_prefix)
            )
        except CredentialStoreError as exc:
            logger.error("Setting property failed for user %s: %s", identity, exc)
            return slack_messages.ephemeral("❌ Error setting property. Please try again.")

        return slack_messages.ephemeral(
            slack_messages.property_confirmation(property_id, self._bot_name)
        )

    async def handle_menu_selection(
        self, identity: str, value: str, label: Optional[str] = None
    ) -> None:
        """Apply an interactive choice and confirm it in the user's DM."""
        try:
            property_id = await self.set_property(identity, value)
        except InvalidPropertyIdError:
            text = slack_messages.property_usage_text(self._command_prefix)
        except CredentialNotFoundError:
            text = slack_messages.not_linked_text(self._command_prefix)
        except CredentialStoreError as exc:
            logger.error("Setting property failed for user %s: %s", identity, exc)
            text = "❌ Error setting property. Please try again."
        else:
            text = slack_messages.property_confirmation(
                property_id, self._bot_name, label=label
            )

        await self._messenger.post_message(channel=identity, text=text)

    async def _offer_known_properties(self, identity: str) -> dict:
        usage = slack_messages.property_usage_text(self._command_prefix)
        try:
            properties: list[AnalyticsProperty] = await self._store.list_properties(
                identity
            )
        except CredentialStoreError as exc:
            logger.info("No stored properties for user %s: %s", identity, exc)
            return slack_messages.ephemeral(usage)

        if not properties:
            return slack_messages.ephemeral(usage)
        return slack_messages.ephemeral(
            "Choose the property to analyze.",
            slack_messages.property_menu_blocks(
                properties, heading="Choose the property to analyze:"
            ),
        )


__all__ = [
    "InvalidPropertyIdError",
    "PROPERTY_PREFIX",
    "PropertySelectionService",
    "normalize_property_id",
]
