"""Catalog of platform events a workflow trigger can listen to."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from automation.models.trigger import TriggerEventDefinition

_ITEM_PATHS = [
    "itemId",
    "item.id",
    "item.name",
    "item.categoryId",
    "item.familyId",
    "item.itemTypeId",
    "userId",
]

BUILTIN_EVENTS: list[TriggerEventDefinition] = [
    TriggerEventDefinition(
        value="user.login",
        label="User Login",
        category="user",
        payload_paths=["userId", "user.email", "user.name", "ipAddress"],
    ),
    TriggerEventDefinition(
        value="user.created",
        label="User Created",
        category="user",
        payload_paths=["userId", "user.email", "user.name"],
    ),
    TriggerEventDefinition(
        value="user.updated",
        label="User Updated",
        category="user",
        payload_paths=["userId", "user.email", "user.name", "changes"],
    ),
    TriggerEventDefinition(
        value="user.role.changed",
        label="User Role Changed",
        category="user",
        payload_paths=["userId", "previousRoleId", "roleId"],
    ),
    TriggerEventDefinition(
        value="item.created",
        label="Item Created",
        category="item",
        payload_paths=_ITEM_PATHS,
        has_item_filters=True,
    ),
    TriggerEventDefinition(
        value="item.updated",
        label="Item Updated",
        category="item",
        payload_paths=[*_ITEM_PATHS, "changes"],
        has_item_filters=True,
    ),
    TriggerEventDefinition(
        value="item.deleted",
        label="Item Deleted",
        category="item",
        payload_paths=_ITEM_PATHS,
        has_item_filters=True,
    ),
    TriggerEventDefinition(
        value="item.attributes.updated",
        label="Item Attributes Updated",
        category="item",
        payload_paths=[
            *_ITEM_PATHS,
            "changes",
            "changes.0.attributeKey",
            "changes.0.newValue",
            "changes.0.previousValue",
        ],
        has_item_filters=True,
        has_attribute_filter=True,
    ),
    TriggerEventDefinition(
        value="attribute.created",
        label="Attribute Created",
        category="attribute",
        payload_paths=["attributeId", "attribute.key", "attribute.name", "attribute.type"],
    ),
    TriggerEventDefinition(
        value="attribute.updated",
        label="Attribute Updated",
        category="attribute",
        payload_paths=["attributeId", "attribute.key", "attribute.name", "changes"],
    ),
    TriggerEventDefinition(
        value="attribute.deleted",
        label="Attribute Deleted",
        category="attribute",
        payload_paths=["attributeId", "attribute.key"],
    ),
    TriggerEventDefinition(
        value="board.task.created",
        label="Board Task Created",
        category="board",
        payload_paths=["taskId", "task.title", "task.boardId", "task.columnId"],
        has_board_filters=True,
    ),
    TriggerEventDefinition(
        value="board.task.moved",
        label="Board Task Moved",
        category="board",
        payload_paths=[
            "taskId",
            "task.title",
            "task.boardId",
            "task.columnId",
            "previousColumnId",
        ],
        has_board_filters=True,
    ),
]


class TriggerCatalog(Protocol):
    """Source of the event definitions triggers may reference."""

    def lookup(self, key: str) -> TriggerEventDefinition | None:
        """Return the definition for ``key``, or ``None`` if unknown."""
        ...

    def list_events(self) -> list[TriggerEventDefinition]:
        """Return every known event definition."""
        ...

    def categories(self) -> dict[str, list[TriggerEventDefinition]]:
        """Return the events grouped by category."""
        ...


class StaticTriggerCatalog:
    """An in-memory catalog, bundled by default and extensible at runtime."""

    def __init__(self, events: Iterable[TriggerEventDefinition] | None = None) -> None:
        self._events: dict[str, TriggerEventDefinition] = {}
        for event in BUILTIN_EVENTS if events is None else events:
            self.register(event)

    def register(self, event: TriggerEventDefinition) -> None:
        """Add or replace an event definition."""
        self._events[event.value] = event

    def lookup(self, key: str) -> TriggerEventDefinition | None:
        return self._events.get(key)

    def list_events(self) -> list[TriggerEventDefinition]:
        return list(self._events.values())

    def categories(self) -> dict[str, list[TriggerEventDefinition]]:
        """Group the events by category, preserving catalog order."""
        grouped: dict[str, list[TriggerEventDefinition]] = {}
        for event in self._events.values():
            grouped.setdefault(event.category, []).append(event)
        return grouped


# Module-level singleton
trigger_catalog = StaticTriggerCatalog()
