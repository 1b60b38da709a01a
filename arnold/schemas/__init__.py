"""Public schema exports."""

from .slack import (
    SlackBlockAction,
    SlackEvent,
    SlackEventEnvelope,
    SlackInteractionPayload,
    SlackOptionText,
    SlackSelectedOption,
    SlackUser,
)

__all__ = [
    "SlackBlockAction",
    "SlackEvent",
    "SlackEventEnvelope",
    "SlackInteractionPayload",
    "SlackOptionText",
    "SlackSelectedOption",
    "SlackUser",
]
