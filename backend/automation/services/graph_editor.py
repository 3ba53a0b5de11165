"""WorkflowGraphEditor - the edit operations a builder performs on a graph.

Every operation mutates the graph in place, is synchronous, and treats a
missing target as a no-op rather than an error, so repeated UI actions are
idempotent. Operations that can be refused (a second trigger, a bad
handle) report it through their return value.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from pydantic import BaseModel

from automation.models.edge import WorkflowEdge
from automation.models.handles import accepts_handle, accepts_incoming, output_handles
from automation.models.node import Position, WorkflowNode
from automation.models.node_config import (
    CONFIG_MODELS,
    ConfigDiagnostic,
    SwitchCase,
    SwitchConfig,
    TriggerNodeConfig,
    default_config,
    next_case_handle,
    parse_node_config,
)
from automation.models.node_type import DEFAULT_LABELS, NodeType
from automation.models.trigger import TriggerType
from automation.models.workflow import WorkflowGraph

logger = logging.getLogger(__name__)

# Marks an omitted argument where ``None`` is a meaningful value
_UNSET: Any = object()


def _generate_id(prefix: str) -> str:
    """Generate an id such as ``action_1a2b3c4d``."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def to_wire_keys(model: type[BaseModel], changes: dict[str, Any]) -> dict[str, Any]:
    """Rewrite snake_case keys in ``changes`` to the model's wire names."""
    aliases = {
        name: info.alias or name for name, info in model.model_fields.items()
    }
    return {aliases.get(key, key): value for key, value in changes.items()}


class WorkflowGraphEditor:
    """Applies builder edits to a workflow graph.

    Example:
        editor = WorkflowGraphEditor(definition)
        switch = editor.add_node(NodeType.SWITCH)
        case = editor.add_case(switch.id)
        editor.connect(switch.id, action.id, case.handle_id)
    """

    def __init__(self, graph: WorkflowGraph) -> None:
        self.graph = graph

    # ==================== Nodes ====================

    def add_node(
        self,
        node_type: NodeType | str,
        position: Position | None = None,
        label: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> WorkflowNode | None:
        """Place a node with default config and a fresh id. No edges are added.

        Returns:
            The new node, or ``None`` when it would be a second trigger
        """
        node_type = NodeType(node_type)
        if node_type == NodeType.TRIGGER and self.graph.trigger_node() is not None:
            logger.debug("Refusing to add a second trigger node")
            return None

        node_config = (
            parse_node_config(node_type, config).config
            if config is not None
            else default_config(node_type)
        )
        node = WorkflowNode(
            id=self._unique_id(node_type.value, {n.id for n in self.graph.nodes}),
            type=node_type,
            label=DEFAULT_LABELS[node_type] if label is None else label,
            position=position or Position(x=250, y=len(self.graph.nodes) * 120 + 50),
            config=node_config,
        )
        self.graph.nodes.append(node)
        if node_type == NodeType.TRIGGER:
            self.graph.sync_trigger_config()
        return node

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every edge that starts or ends at it."""
        node = self.graph.node(node_id)
        if node is None:
            return False
        was_trigger = node.type == NodeType.TRIGGER
        self.graph.nodes = [n for n in self.graph.nodes if n.id != node_id]
        self.graph.edges = [
            e for e in self.graph.edges if e.source != node_id and e.target != node_id
        ]
        if was_trigger:
            self.graph.sync_trigger_config()
        return True

    def relabel(self, node_id: str, label: str) -> bool:
        node = self.graph.node(node_id)
        if node is None:
            return False
        node.label = label
        return True

    def move_node(self, node_id: str, position: Position) -> bool:
        node = self.graph.node(node_id)
        if node is None:
            return False
        node.position = position
        return True

    def update_config(
        self, node_id: str, changes: dict[str, Any]
    ) -> list[ConfigDiagnostic] | None:
        """Merge ``changes`` into a node's config and re-validate it.

        Selecting a different event on the trigger clears its filters before
        the rest of ``changes`` apply. Edges left on handles the node no
        longer exposes are removed.

        Returns:
            Diagnostics for substituted values, or ``None`` if the node
            does not exist
        """
        node = self.graph.node(node_id)
        if node is None:
            return None

        changes = to_wire_keys(CONFIG_MODELS[node.type], changes)
        current = node.config
        if isinstance(current, TriggerNodeConfig) and "eventKey" in changes:
            current = current.with_event_key(changes["eventKey"] or "")

        merged = {**current.model_dump(by_alias=True), **changes}
        result = parse_node_config(node.type, merged)
        node.config = result.config
        for diagnostic in result.diagnostics:
            diagnostic.node_id = node.id

        self._prune_orphaned_edges(node)
        if node.type == NodeType.TRIGGER:
            self.graph.sync_trigger_config()
        return result.diagnostics

    def set_trigger_type(self, trigger_type: TriggerType | str) -> None:
        """Change the workflow-level trigger type and refresh the mirror."""
        self.graph.trigger_type = TriggerType(trigger_type)
        self.graph.sync_trigger_config()

    # ==================== Switch cases ====================

    def add_case(self, node_id: str) -> SwitchCase | None:
        """Append a case to a switch node.

        The handle id is ``case_<n>`` with ``n`` starting at the current
        case count and bumped past any id already taken, so existing
        handles are never renumbered.
        """
        switch = self._switch_config(node_id)
        if switch is None:
            return None

        taken = {*switch.case_handles(), switch.switch_default_handle}
        case = SwitchCase(
            label=f"Case {len(switch.switch_cases) + 1}",
            handle_id=next_case_handle(taken, len(switch.switch_cases)),
            value="",
        )
        switch.switch_cases.append(case)
        return case

    def remove_case(self, node_id: str, index: int) -> SwitchCase | None:
        """Remove the case at ``index`` together with edges on its handle."""
        switch = self._switch_config(node_id)
        if switch is None or not 0 <= index < len(switch.switch_cases):
            return None

        removed = switch.switch_cases.pop(index)
        self.graph.edges = [
            e
            for e in self.graph.edges
            if not (e.source == node_id and e.source_handle == removed.handle_id)
        ]
        return removed

    def update_case(
        self,
        node_id: str,
        index: int,
        label: str | None = None,
        value: str | None = None,
    ) -> SwitchCase | None:
        """Change a case's label or value. The handle id never changes."""
        switch = self._switch_config(node_id)
        if switch is None or not 0 <= index < len(switch.switch_cases):
            return None
        case = switch.switch_cases[index]
        if label is not None:
            case.label = label
        if value is not None:
            case.value = value
        return case

    # ==================== Edges ====================

    def connect(
        self,
        source: str,
        target: str,
        source_handle: str | None = None,
        label: str | None = None,
    ) -> WorkflowEdge | None:
        """Add an edge, or return ``None`` if it would be invalid or a duplicate."""
        if not self._edge_allowed(source, target, source_handle):
            return None
        for edge in self.graph.edges:
            if (edge.source, edge.target, edge.source_handle) == (source, target, source_handle):
                return None

        edge = WorkflowEdge(
            id=self._unique_id("edge", {e.id for e in self.graph.edges}),
            source=source,
            target=target,
            source_handle=source_handle,
            label=label,
        )
        self.graph.edges.append(edge)
        return edge

    def disconnect(self, edge_id: str) -> bool:
        if self.graph.edge(edge_id) is None:
            return False
        self.graph.edges = [e for e in self.graph.edges if e.id != edge_id]
        return True

    def rewire(
        self,
        edge_id: str,
        source: str | None = _UNSET,
        target: str | None = _UNSET,
        source_handle: str | None = _UNSET,
    ) -> bool:
        """Move an edge's endpoints. Omitted arguments keep their value.

        The edge is left untouched and ``False`` returned when the new
        endpoints do not exist or the handle is not exposed by the source.
        """
        edge = self.graph.edge(edge_id)
        if edge is None:
            return False

        new_source = edge.source if source is _UNSET or source is None else source
        new_target = edge.target if target is _UNSET or target is None else target
        new_handle = edge.source_handle if source_handle is _UNSET else source_handle

        if not self._edge_allowed(new_source, new_target, new_handle):
            return False

        edge.source, edge.target, edge.source_handle = new_source, new_target, new_handle
        return True

    # ==================== Helpers ====================

    def _edge_allowed(self, source: str, target: str, handle: str | None) -> bool:
        source_node = self.graph.node(source)
        target_node = self.graph.node(target)
        if source_node is None or target_node is None or source == target:
            return False
        return accepts_handle(source_node, handle) and accepts_incoming(target_node)

    def _switch_config(self, node_id: str) -> SwitchConfig | None:
        node = self.graph.node(node_id)
        if node is None or not isinstance(node.config, SwitchConfig):
            return None
        return node.config

    def _prune_orphaned_edges(self, node: WorkflowNode) -> None:
        """Drop edges leaving ``node`` through handles it no longer has."""
        if node.type not in (NodeType.SWITCH, NodeType.NOTE):
            return
        handles = set(output_handles(node))
        kept = [
            e
            for e in self.graph.edges
            if e.source != node.id or e.source_handle in handles
        ]
        if len(kept) != len(self.graph.edges):
            logger.debug(f"Removed {len(self.graph.edges) - len(kept)} orphaned edge(s)")
        self.graph.edges = kept

    @staticmethod
    def _unique_id(prefix: str, taken: set[str]) -> str:
        new_id = _generate_id(prefix)
        while new_id in taken:
            new_id = _generate_id(prefix)
        return new_id
