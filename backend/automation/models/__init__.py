"""Pydantic models for the workflow automation service."""

from automation.models.action import ActionCategory, ActionDefinition
from automation.models.edge import EdgeCreate, EdgeRewire, WorkflowEdge
from automation.models.handles import (
    ConditionHandle,
    LoopHandle,
    accepts_handle,
    accepts_incoming,
    output_handles,
)
from automation.models.node import NodeCreate, NodeUpdate, Position, WorkflowNode
from automation.models.node_config import (
    ActionConfig,
    ConditionConfig,
    ConfigDiagnostic,
    ConfigParseResult,
    DelayConfig,
    LoopConfig,
    NodeConfig,
    NoteColor,
    NoteConfig,
    ScriptConfig,
    SwitchCase,
    SwitchConfig,
    TriggerNodeConfig,
    default_config,
    parse_node_config,
)
from automation.models.node_type import DEFAULT_LABELS, NodeType
from automation.models.trigger import (
    Activation,
    DispatchResult,
    InboundEvent,
    MatchOutcome,
    TriggerEventDefinition,
    TriggerMatchResult,
    TriggerType,
)
from automation.models.violation import (
    GraphViolation,
    Severity,
    ValidationReport,
    ViolationCode,
)
from automation.models.workflow import (
    WorkflowCreate,
    WorkflowDefinition,
    WorkflowGraph,
    WorkflowListResponse,
    WorkflowStatus,
    WorkflowSummary,
    WorkflowUpdate,
)

__all__ = [
    # Workflow documents
    "WorkflowDefinition",
    "WorkflowGraph",
    "WorkflowCreate",
    "WorkflowUpdate",
    "WorkflowSummary",
    "WorkflowListResponse",
    "WorkflowStatus",
    # Nodes and edges
    "NodeType",
    "DEFAULT_LABELS",
    "WorkflowNode",
    "NodeCreate",
    "NodeUpdate",
    "Position",
    "WorkflowEdge",
    "EdgeCreate",
    "EdgeRewire",
    "ConditionHandle",
    "LoopHandle",
    "output_handles",
    "accepts_handle",
    "accepts_incoming",
    # Node configuration
    "NodeConfig",
    "TriggerNodeConfig",
    "ConditionConfig",
    "ActionConfig",
    "DelayConfig",
    "ScriptConfig",
    "SwitchCase",
    "SwitchConfig",
    "LoopConfig",
    "NoteColor",
    "NoteConfig",
    "ConfigDiagnostic",
    "ConfigParseResult",
    "default_config",
    "parse_node_config",
    # Triggers
    "TriggerType",
    "TriggerEventDefinition",
    "InboundEvent",
    "MatchOutcome",
    "TriggerMatchResult",
    "Activation",
    "DispatchResult",
    # Actions
    "ActionCategory",
    "ActionDefinition",
    # Validation
    "GraphViolation",
    "Severity",
    "ValidationReport",
    "ViolationCode",
]
