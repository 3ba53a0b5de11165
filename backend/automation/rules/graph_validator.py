"""Structural validation of workflow graphs.

Checks the invariants an execution engine depends on: edges point at
existing nodes through handles their source actually exposes, there is
exactly one trigger, every step is reachable from it, and trigger and
action configs reference things that exist.
"""

from __future__ import annotations

from collections import Counter, deque
from typing import TYPE_CHECKING

from automation.models.handles import accepts_handle, accepts_incoming
from automation.models.node import WorkflowNode
from automation.models.node_config import ActionConfig, SwitchConfig, TriggerNodeConfig
from automation.models.node_type import NodeType
from automation.models.trigger import TriggerType
from automation.models.violation import GraphViolation, Severity, ViolationCode
from automation.services.action_catalog import ActionCatalog, action_catalog
from automation.services.schedule import is_valid_cron
from automation.services.trigger_catalog import trigger_catalog

if TYPE_CHECKING:
    from automation.models.edge import WorkflowEdge
    from automation.services.trigger_catalog import TriggerCatalog


class GraphValidator:
    """Validates a workflow's nodes and edges.

    Example:
        validator = GraphValidator()
        violations = validator.validate(nodes, edges, TriggerType.EVENT)
        if has_errors(violations):
            # Refuse activation
            ...
    """

    def __init__(
        self,
        catalog: TriggerCatalog | None = None,
        actions: ActionCatalog | None = None,
    ):
        """Initialize the validator.

        Args:
            catalog: Trigger event catalog used to check event keys
            actions: Action catalog used to check action types
        """
        self._catalog = catalog or trigger_catalog
        self._actions = actions or action_catalog

    def validate(
        self,
        nodes: list[WorkflowNode],
        edges: list[WorkflowEdge],
        trigger_type: TriggerType | None = None,
    ) -> list[GraphViolation]:
        """Run every check and return the violations found.

        Args:
            nodes: The workflow's nodes
            edges: The workflow's edges
            trigger_type: The workflow-level trigger type; trigger config
                checks are skipped when omitted

        Returns:
            Violations in check order; empty when the graph is sound
        """
        violations: list[GraphViolation] = []
        violations.extend(self._check_duplicate_ids(nodes, edges))

        by_id = {node.id: node for node in nodes}
        violations.extend(self._check_edges(by_id, edges))
        violations.extend(self._check_switch_cases(nodes))

        triggers = [node for node in nodes if node.type == NodeType.TRIGGER]
        violations.extend(self._check_trigger_count(triggers))
        if triggers:
            violations.extend(self._check_reachability(nodes, edges, triggers, by_id))
            if trigger_type is not None:
                violations.extend(self._check_trigger_config(triggers[0], trigger_type))

        violations.extend(self._check_actions(nodes))
        return violations

    def _check_duplicate_ids(
        self, nodes: list[WorkflowNode], edges: list[WorkflowEdge]
    ) -> list[GraphViolation]:
        violations = []
        for node_id, count in Counter(n.id for n in nodes).items():
            if count > 1:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.DUPLICATE_NODE_ID,
                        message=f"Node id '{node_id}' is used by {count} nodes",
                        node_id=node_id,
                    )
                )
        for edge_id, count in Counter(e.id for e in edges).items():
            if count > 1:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.DUPLICATE_EDGE_ID,
                        message=f"Edge id '{edge_id}' is used by {count} edges",
                        edge_id=edge_id,
                    )
                )
        return violations

    def _check_edges(
        self, by_id: dict[str, WorkflowNode], edges: list[WorkflowEdge]
    ) -> list[GraphViolation]:
        """Check endpoints and handles of every edge."""
        violations = []
        for edge in edges:
            source = by_id.get(edge.source)
            target = by_id.get(edge.target)

            if source is None:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.DANGLING_SOURCE,
                        message=f"Edge source '{edge.source}' does not exist",
                        edge_id=edge.id,
                    )
                )
            elif not accepts_handle(source, edge.source_handle):
                handle = edge.source_handle or "(none)"
                violations.append(
                    GraphViolation(
                        code=ViolationCode.INVALID_HANDLE,
                        message=(
                            f"Node '{source.display_label}' has no output handle '{handle}'"
                        ),
                        node_id=source.id,
                        edge_id=edge.id,
                    )
                )

            if target is None:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.DANGLING_TARGET,
                        message=f"Edge target '{edge.target}' does not exist",
                        edge_id=edge.id,
                    )
                )
            elif not accepts_incoming(target):
                violations.append(
                    GraphViolation(
                        code=ViolationCode.INVALID_TARGET,
                        message=f"A {target.type.value} node cannot receive edges",
                        node_id=target.id,
                        edge_id=edge.id,
                    )
                )

            if edge.source == edge.target:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.SELF_LOOP,
                        message="Edge connects a node to itself",
                        node_id=edge.source,
                        edge_id=edge.id,
                    )
                )
        return violations

    def _check_switch_cases(self, nodes: list[WorkflowNode]) -> list[GraphViolation]:
        """Case handle ids must be unique per switch, default included."""
        violations = []
        for node in nodes:
            if not isinstance(node.config, SwitchConfig):
                continue
            handles = [*node.config.case_handles(), node.config.switch_default_handle]
            for handle, count in Counter(handles).items():
                if count > 1:
                    violations.append(
                        GraphViolation(
                            code=ViolationCode.DUPLICATE_CASE_HANDLE,
                            message=f"Handle '{handle}' is used {count} times",
                            node_id=node.id,
                        )
                    )
        return violations

    def _check_trigger_count(self, triggers: list[WorkflowNode]) -> list[GraphViolation]:
        if not triggers:
            return [
                GraphViolation(
                    code=ViolationCode.MISSING_TRIGGER,
                    message="Workflow has no trigger node",
                )
            ]
        return [
            GraphViolation(
                code=ViolationCode.MULTIPLE_TRIGGERS,
                message=f"Workflow has {len(triggers)} trigger nodes; only one is allowed",
                node_id=extra.id,
            )
            for extra in triggers[1:]
        ]

    def _check_reachability(
        self,
        nodes: list[WorkflowNode],
        edges: list[WorkflowEdge],
        triggers: list[WorkflowNode],
        by_id: dict[str, WorkflowNode],
    ) -> list[GraphViolation]:
        """Every executable node must be reachable from a trigger."""
        adjacency: dict[str, list[str]] = {}
        for edge in edges:
            if edge.source in by_id and edge.target in by_id:
                adjacency.setdefault(edge.source, []).append(edge.target)

        reached = {t.id for t in triggers}
        queue = deque(reached)
        while queue:
            for target in adjacency.get(queue.popleft(), []):
                if target not in reached:
                    reached.add(target)
                    queue.append(target)

        return [
            GraphViolation(
                code=ViolationCode.UNREACHABLE_NODE,
                message=f"Node '{node.display_label}' is not reachable from the trigger",
                severity=Severity.WARNING,
                node_id=node.id,
            )
            for node in nodes
            if node.type != NodeType.NOTE and node.id not in reached
        ]

    def _check_trigger_config(
        self, trigger: WorkflowNode, trigger_type: TriggerType
    ) -> list[GraphViolation]:
        config = trigger.config
        if not isinstance(config, TriggerNodeConfig):
            return []

        if trigger_type == TriggerType.SCHEDULE:
            if not is_valid_cron(config.cron_expression):
                return [
                    GraphViolation(
                        code=ViolationCode.INVALID_CRON,
                        message=(
                            f"'{config.cron_expression or ''}' is not a five-field cron expression"
                        ),
                        node_id=trigger.id,
                    )
                ]
            return []

        if trigger_type != TriggerType.EVENT:
            return []

        if not config.event_key:
            return [
                GraphViolation(
                    code=ViolationCode.MISSING_EVENT_KEY,
                    message="Event trigger has no event selected",
                    node_id=trigger.id,
                )
            ]

        definition = self._catalog.lookup(config.event_key)
        if definition is None:
            return [
                GraphViolation(
                    code=ViolationCode.UNKNOWN_EVENT_KEY,
                    message=f"Event '{config.event_key}' is not in the trigger catalog",
                    node_id=trigger.id,
                )
            ]

        violations = []
        capabilities = [
            (definition.has_item_filters, config.item_filters(), "item"),
            (definition.has_attribute_filter, config.attribute_filters(), "attribute"),
            (definition.has_board_filters, config.board_filters(), "board"),
        ]
        for supported, filters, kind in capabilities:
            if filters and not supported:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.UNSUPPORTED_FILTER,
                        message=(
                            f"Event '{config.event_key}' does not support {kind} filters "
                            f"({', '.join(filters)})"
                        ),
                        severity=Severity.WARNING,
                        node_id=trigger.id,
                    )
                )
        return violations

    def _check_actions(self, nodes: list[WorkflowNode]) -> list[GraphViolation]:
        violations = []
        for node in nodes:
            if not isinstance(node.config, ActionConfig):
                continue
            action_type = node.config.action_type
            if not action_type:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.MISSING_ACTION_TYPE,
                        message=f"Action '{node.display_label}' has no action selected",
                        node_id=node.id,
                    )
                )
            elif self._actions.lookup(action_type) is None:
                violations.append(
                    GraphViolation(
                        code=ViolationCode.UNKNOWN_ACTION_TYPE,
                        message=f"Unknown action type '{action_type}'",
                        severity=Severity.WARNING,
                        node_id=node.id,
                    )
                )
        return violations


def validate_graph(
    nodes: list[WorkflowNode],
    edges: list[WorkflowEdge],
    trigger_type: TriggerType | None = None,
    catalog: TriggerCatalog | None = None,
    actions: ActionCatalog | None = None,
) -> list[GraphViolation]:
    """Validate ``nodes`` and ``edges`` with a one-off GraphValidator."""
    return GraphValidator(catalog, actions).validate(nodes, edges, trigger_type)


def has_errors(violations: list[GraphViolation]) -> bool:
    """Whether any violation is error severity."""
    return any(v.severity == Severity.ERROR for v in violations)
