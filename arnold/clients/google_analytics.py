"""Google Analytics Admin API wrapper used to discover a user's GA4 properties."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from arnold.models.credential import AnalyticsProperty


class PropertyDiscoveryError(Exception):
    """Raised when the Analytics Admin API cannot list properties."""


class GoogleAnalyticsAdminClient:
    """List the GA4 properties reachable with a freshly issued access token."""

    _PAGE_SIZE = 200

    async def list_properties(self, *, access_token: str) -> List[AnalyticsProperty]:
        """Return every property across the user's account summaries."""
        credentials = Credentials(token=access_token)

        def _execute_list() -> List[Dict[str, Any]]:
            service = build(
                "analyticsadmin", "v1beta", credentials=credentials, cache_discovery=False
            )
            summaries: List[Dict[str, Any]] = []
            request = service.accountSummaries().list(pageSize=self._PAGE_SIZE)
            while request is not None:
                response = request.execute()
                summaries.extend(response.get("accountSummaries", []))
                request = service.accountSummaries().list_next(request, response)
            return summaries

        try:
            summaries = await asyncio.to_thread(_execute_list)
        except Exception as exc:
            raise PropertyDiscoveryError(str(exc)) from exc

        return self.flatten_account_summaries(summaries)

    @staticmethod
    def flatten_account_summaries(
        summaries: List[Dict[str, Any]]
    ) -> List[AnalyticsProperty]:
        properties: List[AnalyticsProperty] = []
        for summary in summaries:
            account_name = summary.get("displayName") or summary.get("account") or ""
            for prop in summary.get("propertySummaries", []):
                resource = prop.get("property")
                if not resource:
                    continue
                properties.append(
                    AnalyticsProperty(
                        id=resource,
                        display_name=prop.get("displayName") or resource,
                        account_name=account_name,
                    )
                )
        return properties


__all__ = ["GoogleAnalyticsAdminClient", "PropertyDiscoveryError"]
