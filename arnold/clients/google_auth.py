"""
Google OAuth utilities.

These helpers build the consent URL handed to Slack users and redeem the
authorization code Google sends back to the callback endpoint.
"""

from __future__ import annotations

import base64
import hmac
import json
from hashlib import sha256
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from arnold.core.config import GoogleSettings, OAuthSettings
from arnold.models.credential import TokenGrant

_SIGNATURE_LENGTH = 32


class InvalidOAuthStateError(ValueError):
    """Raised when a returned state value cannot be trusted."""


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint refuses or mangles a code exchange."""


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except ValueError as exc:
            raise InvalidOAuthStateError("OAuth state is not valid base64.") from exc

        signature, serialized = decoded[:_SIGNATURE_LENGTH], decoded[_SIGNATURE_LENGTH:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidOAuthStateError("Invalid OAuth state signature.")

        try:
            payload = json.loads(serialized)
        except ValueError as exc:
            raise InvalidOAuthStateError("OAuth state payload is not JSON.") from exc
        if not isinstance(payload, dict):
            raise InvalidOAuthStateError("OAuth state payload must be an object.")
        return payload


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange authorization codes."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._timeout = timeout
        self._transport = transport

    def build_authorization_url(self, state: str) -> str:
        """Construct the Google OAuth consent URL.

        ``access_type=offline`` asks for a refresh token and ``prompt=consent``
        makes Google issue a fresh one even when the user has linked before.
        """
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": str(self._google.redirect_uri),
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        query = urlencode(params)
        return f"{self.AUTH_BASE_URL}?{query}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """
        Exchange an authorization code for tokens.

        Codes are single use, so this is attempted exactly once; transport
        failures are reported as ``OAuthTokenExchangeError`` like any refusal.
        """
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": str(self._google.redirect_uri),
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise OAuthTokenExchangeError(response.text)

        try:
            token_payload = response.json()
            access_token = token_payload.get("access_token")
            refresh_token = token_payload.get("refresh_token")
            expires_in = int(token_payload.get("expires_in") or 3600)
        except (AttributeError, TypeError, ValueError) as exc:
            raise OAuthTokenExchangeError("Malformed token payload returned from Google.") from exc

        if not access_token or not refresh_token:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Google.")

        return TokenGrant(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
        )


__all__ = [
    "GoogleOAuthClient",
    "InvalidOAuthStateError",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
]
