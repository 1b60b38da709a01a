"""Inbound Slack request authentication."""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import Depends, HTTPException, Request
from slack_sdk.signature import SignatureVerifier

from arnold.core.config import SlackSettings
from arnold.dependencies.config import get_slack_settings

logger = logging.getLogger(__name__)


async def verify_slack_signature(
    request: Request,
    slack_settings: SlackSettings = Depends(get_slack_settings),
) -> None:
    """Reject unsigned Slack requests when a signing secret is configured."""
    if not slack_settings.signing_secret:
        return

    body = await request.body()
    verifier = SignatureVerifier(slack_settings.signing_secret)
    if not verifier.is_valid_request(body, dict(request.headers)):
        logger.warning("Rejected Slack request with invalid signature on %s", request.url.path)
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED, detail="Invalid Slack signature."
        )


__all__ = ["verify_slack_signature"]
