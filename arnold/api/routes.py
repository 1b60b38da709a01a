"""
FastAPI routes for the Slack bridge.

Slash commands, interactive actions and events arrive from Slack; the OAuth
callback arrives from the user's browser after Google consent.
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from arnold.api.pages import render_outcome_page
from arnold.core.config import SlackSettings
from arnold.dependencies import (
    get_account_linking_service,
    get_event_relay_service,
    get_link_status_service,
    get_property_selection_service,
    get_slack_settings,
    verify_slack_signature,
)
from arnold.schemas import SlackEventEnvelope, SlackInteractionPayload
from arnold.services import (
    AccountLinkingService,
    EventRelayService,
    LinkStatusService,
    PropertySelectionService,
)
from arnold.services import slack_messages

router = APIRouter()
slack_router = APIRouter(prefix="/slack", dependencies=[Depends(verify_slack_signature)])
logger = logging.getLogger(__name__)

OAUTH_CALLBACK_PATH = "/oauth/google/callback"


async def _slack_form(request: Request) -> dict[str, str]:
    form = await request.form()
    return {key: str(value) for key, value in form.items()}


def _require_field(form: dict[str, str], name: str) -> str:
    value = form.get(name, "").strip()
    if not value:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail=f"Missing '{name}' field."
        )
    return value


SlackForm = Annotated[dict[str, str], Depends(_slack_form)]


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "healthy", "service": "arnold-slack-backend"}


@slack_router.post("/commands/connect", status_code=HTTPStatus.OK)
async def connect_command(
    form: SlackForm,
    linking: Annotated[AccountLinkingService, Depends(get_account_linking_service)],
    slack_settings: Annotated[SlackSettings, Depends(get_slack_settings)],
) -> dict:
    """Reply with a button that opens the Google consent screen."""
    user_id = _require_field(form, "user_id")
    logger.info(
        "User %s (%s) requested to connect Google Analytics",
        form.get("user_name", ""),
        user_id,
    )
    authorization_url = linking.build_authorization_url(user_id)
    return slack_messages.connect_prompt(authorization_url, slack_settings.bot_name)


@slack_router.post("/commands/status", status_code=HTTPStatus.OK)
async def status_command(
    form: SlackForm,
    status_service: Annotated[LinkStatusService, Depends(get_link_status_service)],
) -> dict:
    return await status_service.handle_status_command(_require_field(form, "user_id"))


@slack_router.post("/commands/disconnect", status_code=HTTPStatus.OK)
async def disconnect_command(
    form: SlackForm,
    status_service: Annotated[LinkStatusService, Depends(get_link_status_service)],
) -> dict:
    return await status_service.handle_disconnect_command(
        _require_field(form, "user_id")
    )


@slack_router.post("/commands/property", status_code=HTTPStatus.OK)
async def property_command(
    form: SlackForm,
    selection: Annotated[PropertySelectionService, Depends(get_property_selection_service)],
) -> dict:
    """Set the GA4 property from ``/arnold-property <id>``."""
    return await selection.handle_command(
        _require_field(form, "user_id"), form.get("text", "")
    )


@slack_router.post("/interactions", status_code=HTTPStatus.OK)
async def slack_interactions(
    form: SlackForm,
    background_tasks: BackgroundTasks,
    selection: Annotated[PropertySelectionService, Depends(get_property_selection_service)],
) -> Response:
    """Acknowledge block actions immediately and apply them afterwards."""
    raw_payload = _require_field(form, "payload")
    try:
        payload = SlackInteractionPayload.model_validate(json.loads(raw_payload))
    except (ValueError, ValidationError) as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Malformed interaction payload."
        ) from exc

    if payload.type == "block_actions" and payload.actions:
        action = payload.actions[0]
        if (
            action.action_id == slack_messages.SELECT_PROPERTY_ACTION_ID
            and action.selected_option is not None
        ):
            background_tasks.add_task(
                selection.handle_menu_selection,
                payload.user.id,
                action.selected_option.value,
                action.selected_option.text.text or None,
            )
        else:
            logger.debug("Ignoring Slack action %s", action.action_id)

    return Response(status_code=HTTPStatus.OK)


@slack_router.post("/events", status_code=HTTPStatus.OK)
async def slack_events(
    envelope: SlackEventEnvelope,
    background_tasks: BackgroundTasks,
    relay: Annotated[EventRelayService, Depends(get_event_relay_service)],
) -> Any:
    """Answer the URL handshake, otherwise acknowledge and relay out of band."""
    if envelope.type == "url_verification":
        return {"challenge": envelope.challenge}

    if envelope.type == "event_callback" and envelope.event is not None:
        background_tasks.add_task(relay.relay, envelope.event)

    return Response(status_code=HTTPStatus.OK)


@router.get(OAUTH_CALLBACK_PATH, response_class=HTMLResponse)
async def google_oauth_callback(
    linking: Annotated[AccountLinkingService, Depends(get_account_linking_service)],
    slack_settings: Annotated[SlackSettings, Depends(get_slack_settings)],
    code: str | None = Query(default=None, description="Authorization code from Google."),
    state: str | None = Query(default=None, description="Signed correlation token."),
    error: str | None = Query(default=None, description="Error reported by Google."),
) -> HTMLResponse:
    """Complete the OAuth exchange and show the user where to go next."""
    outcome = await linking.complete_link(code=code, state=state, error=error)
    page = render_outcome_page(
        outcome,
        bot_name=slack_settings.bot_name,
        command_prefix=slack_settings.command_prefix,
    )
    return HTMLResponse(content=page, status_code=HTTPStatus.OK)


router.include_router(slack_router)

__all__ = ["OAUTH_CALLBACK_PATH", "router", "slack_router"]
