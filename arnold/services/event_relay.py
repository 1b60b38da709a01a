"""
Relay of Slack events to the automation engine.

Slack has already been acknowledged by the time these run, so nothing here is
allowed to raise back into the request: delivery problems are only logged.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from arnold.clients.automation import AutomationDeliveryError, AutomationWebhookClient
from arnold.schemas.slack import SlackEvent

logger = logging.getLogger(__name__)

_MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+(?:\|[^>]*)?>")
_WHITESPACE_PATTERN = re.compile(r"\s+")

# Message subtypes that never carry a new question from a user.
_IGNORED_SUBTYPES = frozenset(
    {"message_changed", "message_deleted", "channel_join", "channel_leave"}
)


def strip_mentions(text: str) -> str:
    """Drop ``<@U123>`` mention tokens and collapse whitespace."""
    return _WHITESPACE_PATTERN.sub(" ", _MENTION_PATTERN.sub("", text)).strip()


class EventRelayService:
    """Filter Slack events and forward the interesting ones to the webhook."""

    def __init__(self, *, automation_client: AutomationWebhookClient, bot_name: str) -> None:
        self._automation = automation_client
        self._bot_name = bot_name.lower()

    def should_forward(self, event: SlackEvent) -> bool:
        # Bot authors include this app's own DMs echoed back by Slack.
        if event.bot_id or event.subtype == "bot_message":
            return False
        if not event.user:
            return False
        if event.type == "app_mention":
            return True
        if event.type != "message" or event.subtype in _IGNORED_SUBTYPES:
            return False
        if event.channel_type == "im":
            return True
        return self._bot_name in (event.text or "").lower()

    def build_payload(self, event: SlackEvent) -> Dict[str, Any]:
        original = event.text or ""
        return {
            "user_id": event.user,
            "message": strip_mentions(original),
            "original_message": original,
            "channel": event.channel,
            "timestamp": event.ts,
            "event_type": event.type,
        }

    async def relay(self, event: Optional[SlackEvent]) -> bool:
        """Forward ``event`` if it qualifies; returns whether it was delivered."""
        if event is None or not self.should_forward(event):
            return False

        if not self._automation.configured:
            logger.warning("N8N_WEBHOOK_URL not configured; dropping %s event", event.type)
            return False

        logger.info("User %s addressed the bot in %s", event.user, event.channel)
        try:
            await self._automation.deliver(self.build_payload(event))
        except AutomationDeliveryError as exc:
            logger.error("Error triggering automation webhook: %s", exc)
            return False
        return True


__all__ = ["EventRelayService", "strip_mentions"]
