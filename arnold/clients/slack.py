"""Outbound Slack messaging."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

logger = logging.getLogger(__name__)


class SlackMessenger:
    """Deliver Block Kit messages to a channel or a user's DM.

    Delivery is fire-and-forget: failures are logged and reported as ``False``
    so the caller's own outcome never depends on Slack being reachable.
    """

    def __init__(self, bot_token: Optional[str], *, client: Optional[AsyncWebClient] = None) -> None:
        if client is None and bot_token:
            client = AsyncWebClient(token=bot_token)
        self._client = client

    async def post_message(
        self,
        *,
        channel: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> bool:
        if self._client is None:
            logger.warning("SLACK_BOT_TOKEN not configured; dropping message to %s", channel)
            return False

        try:
            await self._client.chat_postMessage(channel=channel, text=text, blocks=blocks)
        except SlackApiError as exc:
            logger.error(
                "Slack API error sending message to %s: %s",
                channel,
                exc.response.get("error"),
            )
            return False
        except Exception:
            logger.exception("Unexpected error sending Slack message to %s", channel)
            return False

        logger.info("Message delivered to %s", channel)
        return True


__all__ = ["SlackMessenger"]
