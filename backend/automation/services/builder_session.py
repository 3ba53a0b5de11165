"""Builder session state: which node is selected and any unsaved config edit.

States move ``idle -> node_selected -> editing_config`` and back through
``save`` or ``discard``. A call that is not legal in the current state
does nothing and reports ``False``/``None``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from automation.models.node_config import (
    CONFIG_MODELS,
    ConfigDiagnostic,
    NodeConfig,
    TriggerNodeConfig,
    parse_node_config,
)
from automation.services.graph_editor import WorkflowGraphEditor, to_wire_keys


class BuilderState(str, Enum):
    """Where the builder session currently is."""

    IDLE = "idle"
    NODE_SELECTED = "node_selected"
    EDITING_CONFIG = "editing_config"


class BuilderSession:
    """Tracks selection and a draft config on top of a graph editor."""

    def __init__(self, editor: WorkflowGraphEditor) -> None:
        self.editor = editor
        self.state = BuilderState.IDLE
        self.selected_node_id: str | None = None
        self._draft: NodeConfig | None = None
        self.draft_diagnostics: list[ConfigDiagnostic] = []

    @property
    def draft(self) -> NodeConfig | None:
        """The config being edited, or ``None`` outside editing."""
        return self._draft

    @property
    def dirty(self) -> bool:
        node = self._selected_node()
        return self._draft is not None and node is not None and self._draft != node.config

    def select(self, node_id: str) -> bool:
        """Select a node. Not allowed while a config edit is open."""
        if self.state == BuilderState.EDITING_CONFIG:
            return False
        if self.editor.graph.node(node_id) is None:
            return False
        self.selected_node_id = node_id
        self.state = BuilderState.NODE_SELECTED
        return True

    def clear_selection(self) -> bool:
        if self.state != BuilderState.NODE_SELECTED:
            return False
        self.selected_node_id = None
        self.state = BuilderState.IDLE
        return True

    def begin_edit(self) -> bool:
        """Open the selected node's config for editing."""
        node = self._selected_node()
        if self.state != BuilderState.NODE_SELECTED or node is None:
            return False
        self._draft = node.config.model_copy(deep=True)
        self.draft_diagnostics = []
        self.state = BuilderState.EDITING_CONFIG
        return True

    def edit(self, changes: dict[str, Any]) -> list[ConfigDiagnostic] | None:
        """Apply ``changes`` to the draft without touching the graph."""
        node = self._selected_node()
        if self.state != BuilderState.EDITING_CONFIG or node is None or self._draft is None:
            return None

        changes = to_wire_keys(CONFIG_MODELS[node.type], changes)
        draft = self._draft
        if isinstance(draft, TriggerNodeConfig) and "eventKey" in changes:
            draft = draft.with_event_key(changes["eventKey"] or "")

        result = parse_node_config(node.type, {**draft.model_dump(by_alias=True), **changes})
        self._draft = result.config
        self.draft_diagnostics.extend(result.diagnostics)
        return result.diagnostics

    def save(self) -> list[ConfigDiagnostic] | None:
        """Write the draft to the node and go back to ``node_selected``."""
        if self.state != BuilderState.EDITING_CONFIG or self._draft is None:
            return None
        diagnostics = self.editor.update_config(
            self.selected_node_id or "", self._draft.model_dump(by_alias=True)
        )
        self._close_edit()
        return diagnostics

    def discard(self) -> bool:
        """Drop the draft and go back to ``node_selected``."""
        if self.state != BuilderState.EDITING_CONFIG:
            return False
        self._close_edit()
        return True

    def _close_edit(self) -> None:
        self._draft = None
        self.draft_diagnostics = []
        self.state = (
            BuilderState.NODE_SELECTED if self._selected_node() is not None else BuilderState.IDLE
        )
        if self.state == BuilderState.IDLE:
            self.selected_node_id = None

    def _selected_node(self):
        if self.selected_node_id is None:
            return None
        return self.editor.graph.node(self.selected_node_id)
