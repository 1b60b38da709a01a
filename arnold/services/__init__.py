"""Service layer exports."""

from .account_linking import AccountLinkingService, LinkOutcome, LinkOutcomeStatus
from .event_relay import EventRelayService
from .link_status import LinkState, LinkStatusReport, LinkStatusService
from .property_selection import (
    InvalidPropertyIdError,
    PropertySelectionService,
    normalize_property_id,
)

__all__ = [
    "AccountLinkingService",
    "EventRelayService",
    "InvalidPropertyIdError",
    "LinkOutcome",
    "LinkOutcomeStatus",
    "LinkState",
    "LinkStatusReport",
    "LinkStatusService",
    "PropertySelectionService",
    "normalize_property_id",
]
