"""
HTTP client for the external credential store.

The store is the system of record for each Slack user's Google tokens and
selected property. Nothing is cached here; every call is a round trip.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from arnold.core.config import CredentialStoreSettings
from arnold.models.credential import AnalyticsProperty, Credential


class CredentialStoreError(Exception):
    """Raised when the store is unreachable or rejects a request."""


class CredentialNotFoundError(CredentialStoreError):
    """Raised when the store holds no credential for the identity."""


class CredentialStoreClient:
    """CRUD operations against the credential store's REST API."""

    def __init__(
        self,
        settings: CredentialStoreSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = str(settings.base_url).rstrip("/")
        self._headers = {"X-API-Key": settings.api_key}
        self._timeout = timeout
        self._transport = transport

    async def save_tokens(
        self,
        *,
        identity: str,
        access_token: str,
        refresh_token: str,
        expires_in: int,
        expires_at: datetime,
    ) -> None:
        """Create or replace the credential for ``identity`` with no property set."""
        payload = {
            "slackUserId": identity,
            "accessToken": access_token,
            "refreshToken": refresh_token,
            "expiresIn": expires_in,
            "expiresAt": expires_at.isoformat(),
            "propertyId": None,
        }
        await self._request("POST", "/users/tokens", json=payload)

    async def get_credential(self, identity: str) -> Credential:
        """Fetch the stored credential, raising ``CredentialNotFoundError`` if absent."""
        data = await self._request("GET", f"/users/{self._quote(identity)}/tokens")
        try:
            return Credential(
                owner_identity=identity,
                access_token=data.get("accessToken"),
                refresh_token=data.get("refreshToken"),
                expires_at=data.get("expiresAt"),
                is_expired=data.get("isExpired"),
                property_id=data.get("propertyId"),
            )
        except ValidationError as exc:
            raise CredentialStoreError(f"Malformed credential record for {identity}") from exc

    async def set_property(self, identity: str, property_id: str) -> None:
        """Patch the selected property onto an existing credential."""
        await self._request(
            "PATCH",
            f"/users/{self._quote(identity)}/property",
            json={"propertyId": property_id},
        )

    async def delete_credential(self, identity: str) -> None:
        await self._request("DELETE", f"/users/{self._quote(identity)}/tokens")

    async def list_properties(self, identity: str) -> list[AnalyticsProperty]:
        """Return the properties the store has discovered for the identity."""
        data = await self._request("GET", f"/users/{self._quote(identity)}/properties")
        try:
            return [
                AnalyticsProperty(
                    id=item["id"],
                    display_name=item.get("displayName") or item["id"],
                    account_name=item.get("accountName") or "",
                )
                for item in data.get("properties") or []
                if item.get("id")
            ]
        except (AttributeError, TypeError, ValidationError) as exc:
            raise CredentialStoreError(f"Malformed property list for {identity}") from exc

    @staticmethod
    def _quote(identity: str) -> str:
        return quote(identity, safe="")

    async def _request(
        self, method: str, path: str, *, json: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise CredentialStoreError(f"Credential store unreachable: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise CredentialNotFoundError(f"{method} {path} returned 404")
        if response.is_error:
            raise CredentialStoreError(
                f"{method} {path} failed with {response.status_code}: {response.text[:200]}"
            )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise CredentialStoreError(f"{method} {path} returned non-JSON body") from exc
        if not isinstance(data, dict):
            raise CredentialStoreError(f"{method} {path} returned unexpected payload")
        if data.get("success") is False:
            raise CredentialStoreError(
                data.get("error") or f"{method} {path} reported failure"
            )
        return data


__all__ = ["CredentialNotFoundError", "CredentialStoreClient", "CredentialStoreError"]
