"""Pydantic models for trigger reference data, inbound events and activations."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import Field as PydanticField


class TriggerType(str, Enum):
    """How a workflow gets started."""

    EVENT = "event"
    SCHEDULE = "schedule"
    MANUAL = "manual"
    WEBHOOK = "webhook"


class TriggerEventDefinition(BaseModel):
    """A catalog entry describing one platform event."""

    value: str
    label: str
    category: str
    payload_paths: list[str] = PydanticField(default=[], alias="payloadPaths")
    has_item_filters: bool = PydanticField(default=False, alias="hasItemFilters")
    has_attribute_filter: bool = PydanticField(default=False, alias="hasAttributeFilter")
    has_board_filters: bool = PydanticField(default=False, alias="hasBoardFilters")

    model_config = {"populate_by_name": True}


class InboundEvent(BaseModel):
    """An event raised by the platform, as seen by trigger matching."""

    event_key: str = PydanticField(alias="eventKey")
    payload: dict[str, Any] = {}
    occurred_at: datetime | None = PydanticField(default=None, alias="occurredAt")

    model_config = {"populate_by_name": True}


class MatchOutcome(str, Enum):
    """Why a trigger did or did not accept an event."""

    MATCHED = "matched"
    UNKNOWN_EVENT = "unknown_event"
    EVENT_MISMATCH = "event_mismatch"
    ITEM_FILTER = "item_filter"
    ATTRIBUTE_FILTER = "attribute_filter"
    BOARD_FILTER = "board_filter"
    FILTER_EXPRESSION = "filter_expression"


class TriggerMatchResult(BaseModel):
    """Result of matching one trigger config against one event."""

    matched: bool
    outcome: MatchOutcome
    detail: str | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Activation(BaseModel):
    """A signal that a workflow should start, with its trigger context."""

    workflow_id: str = PydanticField(alias="workflowId")
    trigger_type: TriggerType = PydanticField(alias="triggerType")
    trigger: dict[str, Any] = {}
    activated_at: datetime = PydanticField(default_factory=_utc_now, alias="activatedAt")

    model_config = {"populate_by_name": True}


class DispatchResult(BaseModel):
    """Workflows activated by one inbound event."""

    event_key: str = PydanticField(alias="eventKey")
    activations: list[Activation] = []
    evaluated: int = 0

    model_config = {"populate_by_name": True}
