"""Slack Block Kit payloads for the linking workflow."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from arnold.models.credential import AnalyticsProperty

SELECT_PROPERTY_ACTION_ID = "select_property"

# Slack limits for static_select menus.
_MAX_OPTIONS = 100
_MAX_OPTION_TEXT = 75


def ephemeral(text: str, blocks: List[Dict[str, Any]] | None = None) -> Dict[str, Any]:
    """Wrap a slash-command reply so only the invoking user sees it."""
    message: Dict[str, Any] = {"response_type": "ephemeral", "text": text}
    if blocks:
        message["blocks"] = blocks
    return message


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _truncate(text: str, limit: int = _MAX_OPTION_TEXT) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def connect_prompt(authorization_url: str, bot_name: str) -> Dict[str, Any]:
    intro = (
        f"👋 *Connect your Google Analytics account to get started with {bot_name}!*\n\n"
        f"{bot_name} will be able to:\n"
        "• Read your Google Analytics data\n"
        "• Show you insights and reports\n"
        "• Answer questions about your website traffic"
    )
    blocks = [
        _section(intro),
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {
                        "type": "plain_text",
                        "text": "🔗 Connect Google Analytics",
                        "emoji": True,
                    },
                    "url": authorization_url,
                    "style": "primary",
                }
            ],
        },
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": "🔒 Your credentials are stored securely",
                }
            ],
        },
    ]
    return ephemeral(
        f"Connect your Google Analytics account: <{authorization_url}|authorize {bot_name}>",
        blocks,
    )


def property_options(properties: Iterable[AnalyticsProperty]) -> List[Dict[str, Any]]:
    options: List[Dict[str, Any]] = []
    for prop in list(properties)[:_MAX_OPTIONS]:
        label = prop.display_name
        if prop.account_name:
            label = f"{prop.display_name} ({prop.account_name})"
        options.append(
            {
                "text": {"type": "plain_text", "text": _truncate(label)},
                "value": prop.id,
            }
        )
    return options


def property_menu_blocks(
    properties: Iterable[AnalyticsProperty],
    heading: str = "✅ *Google Analytics connected!* Choose the property to analyze:",
) -> List[Dict[str, Any]]:
    """Static-select menu that feeds the interactive property selection."""
    return [
        _section(heading),
        {
            "type": "actions",
            "elements": [
                {
                    "type": "static_select",
                    "action_id": SELECT_PROPERTY_ACTION_ID,
                    "placeholder": {"type": "plain_text", "text": "Select a property"},
                    "options": property_options(properties),
                }
            ],
        },
    ]


def manual_setup_text(command_prefix: str, note: str | None = None) -> str:
    text = (
        "✅ *Google Analytics connected!*\n\n"
        "I couldn't list your properties automatically. Set one manually with "
        f"`{command_prefix}-property 123456789` (find the ID under Admin → "
        "Property Settings in Google Analytics)."
    )
    if note:
        text += f"\n\n_{note}_"
    return text


def property_confirmation(
    property_id: str, bot_name: str, label: str | None = None
) -> str:
    shown = f"{label} (`{property_id}`)" if label else f"`{property_id}`"
    return (
        f"✅ Property set to: {shown}\n\n"
        f"You're all set! Ask {bot_name} a question like:\n"
        "• \"Show me active users by country this month\"\n"
        "• \"What's my traffic from last week?\"\n"
        "• \"Top 10 pages by views\""
    )


def not_linked_text(command_prefix: str) -> str:
    return (
        "❌ Google Analytics not connected. "
        f"Use `{command_prefix}-connect` to get started."
    )


def property_usage_text(command_prefix: str) -> str:
    return (
        f"Usage: `{command_prefix}-property properties/123456789` "
        f"or `{command_prefix}-property 123456789`"
    )


__all__ = [
    "SELECT_PROPERTY_ACTION_ID",
    "connect_prompt",
    "ephemeral",
    "manual_setup_text",
    "not_linked_text",
    "property_confirmation",
    "property_menu_blocks",
    "property_options",
    "property_usage_text",
]
