"""Webhook client for the downstream automation engine (n8n)."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


class AutomationDeliveryError(Exception):
    """Raised when the automation webhook cannot be reached or rejects a payload."""


class AutomationWebhookClient:
    """POST forwarded chat events to the automation engine's webhook."""

    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._webhook_url)

    async def deliver(self, payload: Dict[str, Any]) -> None:
        if not self._webhook_url:
            raise AutomationDeliveryError("N8N_WEBHOOK_URL is not configured.")

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self._webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AutomationDeliveryError(str(exc)) from exc


__all__ = ["AutomationDeliveryError", "AutomationWebhookClient"]
