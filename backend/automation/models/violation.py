"""Pydantic models for graph validation results."""

from enum import Enum

from pydantic import BaseModel
from pydantic import Field as PydanticField

from automation.models.node_config import ConfigDiagnostic


class Severity(str, Enum):
    """How serious a violation is. Errors block activation."""

    ERROR = "error"
    WARNING = "warning"


class ViolationCode(str, Enum):
    """Kinds of structural problem the validator reports."""

    DUPLICATE_NODE_ID = "duplicate_node_id"
    DUPLICATE_EDGE_ID = "duplicate_edge_id"
    DANGLING_SOURCE = "dangling_source"
    DANGLING_TARGET = "dangling_target"
    INVALID_HANDLE = "invalid_handle"
    INVALID_TARGET = "invalid_target"
    SELF_LOOP = "self_loop"
    DUPLICATE_CASE_HANDLE = "duplicate_case_handle"
    MISSING_TRIGGER = "missing_trigger"
    MULTIPLE_TRIGGERS = "multiple_triggers"
    UNREACHABLE_NODE = "unreachable_node"
    MISSING_EVENT_KEY = "missing_event_key"
    UNKNOWN_EVENT_KEY = "unknown_event_key"
    UNSUPPORTED_FILTER = "unsupported_filter"
    INVALID_CRON = "invalid_cron"
    MISSING_ACTION_TYPE = "missing_action_type"
    UNKNOWN_ACTION_TYPE = "unknown_action_type"


class GraphViolation(BaseModel):
    """One problem found in a workflow graph."""

    code: ViolationCode
    message: str
    severity: Severity = Severity.ERROR
    node_id: str | None = PydanticField(default=None, alias="nodeId")
    edge_id: str | None = PydanticField(default=None, alias="edgeId")

    model_config = {"populate_by_name": True}


class ValidationReport(BaseModel):
    """Violations plus config substitutions for one workflow."""

    valid: bool
    violations: list[GraphViolation] = []
    diagnostics: list[ConfigDiagnostic] = []

    model_config = {"populate_by_name": True}
