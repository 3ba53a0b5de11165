"""Pydantic models for workflow nodes."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from automation.models.node_config import (
    ActionConfig,
    ConditionConfig,
    DelayConfig,
    LoopConfig,
    NoteConfig,
    ScriptConfig,
    SwitchConfig,
    TriggerNodeConfig,
    parse_node_config,
)
from automation.models.node_type import NodeType


class Position(BaseModel):
    """Canvas coordinates of a node. Layout only, no effect on execution."""

    x: float = 0.0
    y: float = 0.0


class WorkflowNode(BaseModel):
    """A step in the workflow graph.

    ``config`` is always the model that belongs to ``type``; a raw mapping
    is validated (and out-of-range numbers clamped) on the way in.
    """

    id: str
    type: NodeType
    label: str = ""
    position: Position = Field(default_factory=Position)
    config: (
        TriggerNodeConfig
        | ConditionConfig
        | ActionConfig
        | DelayConfig
        | ScriptConfig
        | SwitchConfig
        | LoopConfig
        | NoteConfig
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def typed_config(cls, data: Any) -> Any:
        """Replace the raw config with the model for the node's type."""
        if not isinstance(data, dict) or "type" not in data:
            return data
        try:
            node_type = NodeType(data["type"])
        except ValueError:
            # Let field validation report the bad type
            return data
        data = dict(data)
        data["config"] = parse_node_config(node_type, data.get("config")).config
        if data.get("label") is None:
            data["label"] = ""
        return data

    @property
    def display_label(self) -> str:
        """The label, or the id when the label is blank."""
        return self.label.strip() or self.id


class NodeCreate(BaseModel):
    """Request model for placing a node."""

    type: NodeType
    label: str | None = None
    position: Position | None = None
    config: dict[str, Any] | None = None


class NodeUpdate(BaseModel):
    """Request model for editing a node. Only given fields change."""

    label: str | None = None
    position: Position | None = None
    config: dict[str, Any] | None = None
