"""Pydantic models for workflow documents."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, model_validator
from pydantic import Field as PydanticField

from automation.models.edge import WorkflowEdge
from automation.models.node import WorkflowNode
from automation.models.node_config import (
    ConfigDiagnostic,
    TriggerNodeConfig,
    parse_node_config,
)
from automation.models.node_type import NodeType
from automation.models.trigger import TriggerType


class WorkflowStatus(str, Enum):
    """Lifecycle of a workflow document."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


def mirror_trigger_config(trigger_type: TriggerType, config: TriggerNodeConfig) -> dict[str, Any]:
    """Project the trigger node's config onto the fields ``trigger_type`` uses.

    The result is stored on the workflow so the backend can index
    workflows by trigger without reading the graph.
    """
    if trigger_type == TriggerType.EVENT:
        mirrored: dict[str, Any] = {"eventKey": config.event_key}
        mirrored.update(config.item_filters())
        mirrored.update(config.attribute_filters())
        mirrored.update(config.board_filters())
        if config.filter_expression:
            mirrored["filterExpression"] = config.filter_expression
        return mirrored
    if trigger_type == TriggerType.SCHEDULE:
        return {"cronExpression": config.cron_expression or ""}
    if trigger_type == TriggerType.WEBHOOK:
        return {"webhookSecret": config.webhook_secret} if config.webhook_secret else {}
    return {}


class WorkflowGraph(BaseModel):
    """Nodes and edges plus the workflow-level trigger fields."""

    trigger_type: TriggerType = PydanticField(default=TriggerType.MANUAL, alias="triggerType")
    trigger_config: dict[str, Any] = PydanticField(default_factory=dict, alias="triggerConfig")
    nodes: list[WorkflowNode] = []
    edges: list[WorkflowEdge] = []

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def seed_and_mirror_trigger_config(self) -> "WorkflowGraph":
        """Seed an empty trigger node from ``triggerConfig``, then re-mirror."""
        trigger = self.trigger_node()
        if trigger is None:
            return self
        if trigger.config == TriggerNodeConfig() and self.trigger_config:
            trigger.config = parse_node_config(NodeType.TRIGGER, self.trigger_config).config
        self.sync_trigger_config()
        return self

    def sync_trigger_config(self) -> None:
        """Recompute ``trigger_config`` from the trigger node."""
        trigger = self.trigger_node()
        if trigger is None:
            self.trigger_config = {}
        elif isinstance(trigger.config, TriggerNodeConfig):
            self.trigger_config = mirror_trigger_config(self.trigger_type, trigger.config)

    def trigger_node(self) -> WorkflowNode | None:
        """The first trigger node, if any."""
        return next((n for n in self.nodes if n.type == NodeType.TRIGGER), None)

    def node(self, node_id: str) -> WorkflowNode | None:
        """Look up a node by id."""
        return next((n for n in self.nodes if n.id == node_id), None)

    def edge(self, edge_id: str) -> WorkflowEdge | None:
        """Look up an edge by id."""
        return next((e for e in self.edges if e.id == edge_id), None)

    def outgoing(self, node_id: str) -> list[WorkflowEdge]:
        """Edges leaving ``node_id``."""
        return [e for e in self.edges if e.source == node_id]


class WorkflowDefinition(WorkflowGraph):
    """A stored workflow: metadata plus its graph."""

    id: str
    name: str
    description: str = ""
    status: WorkflowStatus = WorkflowStatus.DRAFT
    version: int = 1
    created_at: str = PydanticField(default="", alias="createdAt")
    updated_at: str = PydanticField(default="", alias="updatedAt")


class WorkflowCreate(WorkflowGraph):
    """Request model for creating a workflow."""

    name: str
    description: str = ""


class WorkflowUpdate(BaseModel):
    """Request model for updating a workflow (partial updates)."""

    name: str | None = None
    description: str | None = None
    trigger_type: TriggerType | None = PydanticField(default=None, alias="triggerType")
    trigger_config: dict[str, Any] | None = PydanticField(default=None, alias="triggerConfig")
    nodes: list[WorkflowNode] | None = None
    edges: list[WorkflowEdge] | None = None

    model_config = {"populate_by_name": True}


class WorkflowSummary(BaseModel):
    """Summary of a workflow for listing."""

    id: str
    name: str
    description: str
    status: WorkflowStatus
    trigger_type: TriggerType = PydanticField(alias="triggerType")
    event_key: str | None = PydanticField(default=None, alias="eventKey")
    version: int
    node_count: int = PydanticField(alias="nodeCount")
    edge_count: int = PydanticField(alias="edgeCount")
    created_at: str = PydanticField(alias="createdAt")
    updated_at: str = PydanticField(alias="updatedAt")

    model_config = {"populate_by_name": True}


class WorkflowListResponse(BaseModel):
    """A page of workflow summaries."""

    items: list[WorkflowSummary]
    total: int


def collect_config_diagnostics(raw_nodes: list[Any]) -> list[ConfigDiagnostic]:
    """Report every config value that gets substituted when ``raw_nodes`` load.

    Stored documents may predate the current bounds; loading re-clamps
    them and this lists what changed, tagged with the node id.
    """
    diagnostics: list[ConfigDiagnostic] = []
    for raw in raw_nodes:
        if not isinstance(raw, dict):
            continue
        try:
            node_type = NodeType(raw.get("type"))
        except ValueError:
            continue
        for diagnostic in parse_node_config(node_type, raw.get("config")).diagnostics:
            diagnostic.node_id = raw.get("id")
            diagnostics.append(diagnostic)
    return diagnostics
