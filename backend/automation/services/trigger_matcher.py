"""Trigger matching: decides whether an inbound event activates a workflow.

Filters combine conjunctively. Every non-empty filter must hold; an empty
filter is a wildcard, so a trigger with no filters matches every
occurrence of its event. Events missing from the catalog never match.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

from automation.models.node_config import TriggerNodeConfig
from automation.models.trigger import (
    Activation,
    InboundEvent,
    MatchOutcome,
    TriggerMatchResult,
    TriggerType,
)
from automation.services.condition_evaluator import evaluate_condition
from automation.services.template_resolver import RuntimeContext
from automation.services.trigger_catalog import TriggerCatalog, trigger_catalog

logger = logging.getLogger(__name__)

# Filter wire name -> accepted payload field spellings
_ITEM_FIELDS: dict[str, tuple[str, ...]] = {
    "itemCategoryKey": ("categoryKey", "categoryId"),
    "itemFamilyKey": ("familyKey", "familyId"),
    "itemTypeKey": ("itemTypeKey", "itemTypeId", "typeKey"),
}
_BOARD_FIELDS: dict[str, tuple[str, ...]] = {
    "boardId": ("boardId",),
    "columnId": ("columnId",),
}


def _first_present(source: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if source.get(key) is not None:
            return source[key]
    return None


def _matches(expected: str, actual: Any) -> bool:
    return actual is not None and str(actual) == expected


def _change_entries(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Collect attribute changes from ``changes`` or a single ``attribute``."""
    entries: list[dict[str, Any]] = []
    changes = payload.get("changes")
    if isinstance(changes, list):
        entries.extend(c for c in changes if isinstance(c, dict))
    elif isinstance(changes, dict):
        # {attributeKey: {newValue, previousValue}} shape
        for key, change in changes.items():
            if isinstance(change, dict):
                entries.append({"attributeKey": key, **change})
    attribute = payload.get("attribute")
    if isinstance(attribute, dict):
        entries.append(attribute)
    return entries


class TriggerMatcher:
    """Matches trigger configurations against inbound events.

    Example:
        matcher = TriggerMatcher()
        result = matcher.match(trigger.config, event)
        if result.matched:
            start_workflow(...)
    """

    def __init__(self, catalog: TriggerCatalog | None = None) -> None:
        self.catalog = catalog or trigger_catalog

    def match(self, config: TriggerNodeConfig, event: InboundEvent) -> TriggerMatchResult:
        """Decide whether ``event`` activates a trigger with ``config``.

        Args:
            config: The trigger node's configuration
            event: The inbound event key and payload

        Returns:
            TriggerMatchResult naming the first filter that rejected the
            event, or MATCHED
        """
        if self.catalog.lookup(config.event_key) is None:
            return TriggerMatchResult(
                matched=False,
                outcome=MatchOutcome.UNKNOWN_EVENT,
                detail=f"Event '{config.event_key}' is not in the trigger catalog",
            )

        if config.event_key != event.event_key:
            return TriggerMatchResult(matched=False, outcome=MatchOutcome.EVENT_MISMATCH)

        payload = event.payload or {}

        failed = self._check_item_filters(config, payload)
        if failed:
            return TriggerMatchResult(
                matched=False, outcome=MatchOutcome.ITEM_FILTER, detail=failed
            )

        failed = self._check_attribute_filters(config, payload)
        if failed:
            return TriggerMatchResult(
                matched=False, outcome=MatchOutcome.ATTRIBUTE_FILTER, detail=failed
            )

        failed = self._check_board_filters(config, payload)
        if failed:
            return TriggerMatchResult(
                matched=False, outcome=MatchOutcome.BOARD_FILTER, detail=failed
            )

        if config.filter_expression and config.filter_expression.strip():
            result = evaluate_condition(
                config.filter_expression, RuntimeContext(trigger=payload)
            )
            if not result.matched:
                return TriggerMatchResult(
                    matched=False,
                    outcome=MatchOutcome.FILTER_EXPRESSION,
                    detail=config.filter_expression,
                )

        return TriggerMatchResult(matched=True, outcome=MatchOutcome.MATCHED)

    def _check_item_filters(
        self, config: TriggerNodeConfig, payload: dict[str, Any]
    ) -> str | None:
        """Return the first failing item filter, or ``None``."""
        filters = config.item_filters()
        if not filters:
            return None
        item = payload.get("item")
        item = item if isinstance(item, dict) else {}
        for name, expected in filters.items():
            if not _matches(expected, _first_present(item, _ITEM_FIELDS[name])):
                return name
        return None

    def _check_attribute_filters(
        self, config: TriggerNodeConfig, payload: dict[str, Any]
    ) -> str | None:
        """Return ``attribute`` if no change satisfies every attribute filter."""
        filters = config.attribute_filters()
        if not filters:
            return None

        for change in _change_entries(payload):
            key = _first_present(change, ("attributeKey", "key", "code"))
            if "attributeKey" in filters and not _matches(filters["attributeKey"], key):
                continue
            if "attributeNewValue" in filters and not _matches(
                filters["attributeNewValue"], _first_present(change, ("newValue", "value"))
            ):
                continue
            if "attributePreviousValue" in filters and not _matches(
                filters["attributePreviousValue"],
                _first_present(change, ("previousValue", "oldValue")),
            ):
                continue
            return None
        return "attribute"

    def _check_board_filters(
        self, config: TriggerNodeConfig, payload: dict[str, Any]
    ) -> str | None:
        """Return the first failing board filter, or ``None``."""
        filters = config.board_filters()
        if not filters:
            return None
        task = payload.get("task")
        task = task if isinstance(task, dict) else {}
        for name, expected in filters.items():
            actual = _first_present(task, _BOARD_FIELDS[name])
            if actual is None:
                actual = payload.get(name)
            if not _matches(expected, actual):
                return name
        return None


# ==================== Activation sources ====================


def verify_webhook_secret(expected: str | None, presented: str | None) -> bool:
    """Check a presented webhook secret. No configured secret accepts all."""
    if not expected:
        return True
    if presented is None:
        return False
    return hmac.compare_digest(expected.encode(), presented.encode())


def webhook_activation(
    workflow_id: str,
    config: TriggerNodeConfig,
    payload: dict[str, Any] | None,
    presented_secret: str | None,
) -> Activation | None:
    """Activate a webhook trigger, or ``None`` when the secret is wrong."""
    if not verify_webhook_secret(config.webhook_secret, presented_secret):
        logger.warning(f"Rejected webhook call for workflow {workflow_id}: bad secret")
        return None
    return Activation(
        workflow_id=workflow_id, trigger_type=TriggerType.WEBHOOK, trigger=payload or {}
    )


def manual_activation(workflow_id: str, payload: dict[str, Any] | None = None) -> Activation:
    """Activate a workflow by hand with optional trigger data."""
    return Activation(
        workflow_id=workflow_id, trigger_type=TriggerType.MANUAL, trigger=payload or {}
    )


def event_activation(workflow_id: str, event: InboundEvent) -> Activation:
    """Activation for a matched event; the trigger context is the payload."""
    return Activation(
        workflow_id=workflow_id, trigger_type=TriggerType.EVENT, trigger=event.payload
    )
