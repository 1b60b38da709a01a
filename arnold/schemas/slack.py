"""Pydantic models for inbound Slack payloads."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SlackEvent(BaseModel):
    """Inner event of an ``event_callback`` envelope."""

    model_config = ConfigDict(extra="allow")

    type: str
    user: Optional[str] = None
    text: Optional[str] = None
    channel: Optional[str] = None
    ts: Optional[str] = None
    subtype: Optional[str] = None
    bot_id: Optional[str] = None
    channel_type: Optional[str] = None


class SlackEventEnvelope(BaseModel):
    """Body of a POST to the Events API request URL."""

    model_config = ConfigDict(extra="allow")

    type: str
    challenge: Optional[str] = None
    token: Optional[str] = None
    team_id: Optional[str] = None
    event_id: Optional[str] = None
    event: Optional[SlackEvent] = None


class SlackUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    username: Optional[str] = None


class SlackOptionText(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "plain_text"
    text: str = ""


class SlackSelectedOption(BaseModel):
    model_config = ConfigDict(extra="allow")

    value: str
    text: SlackOptionText = Field(default_factory=SlackOptionText)


class SlackBlockAction(BaseModel):
    model_config = ConfigDict(extra="allow")

    action_id: str
    selected_option: Optional[SlackSelectedOption] = None
    value: Optional[str] = None


class SlackInteractionPayload(BaseModel):
    """The JSON document carried in the ``payload`` form field of interactions."""

    model_config = ConfigDict(extra="allow")

    type: str
    user: SlackUser
    actions: list[SlackBlockAction] = Field(default_factory=list)
    channel: Optional[dict[str, Any]] = None


__all__ = [
    "SlackBlockAction",
    "SlackEvent",
    "SlackEventEnvelope",
    "SlackInteractionPayload",
    "SlackOptionText",
    "SlackSelectedOption",
    "SlackUser",
]
