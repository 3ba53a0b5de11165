"""Output handles exposed by each node type.

Edges leaving a node name the output they use through ``sourceHandle``.
Single-output nodes use no handle at all; branching nodes expose a fixed
or config-derived set.
"""

from enum import Enum

from automation.models.node import WorkflowNode
from automation.models.node_config import SwitchConfig
from automation.models.node_type import NodeType


class ConditionHandle(str, Enum):
    """Outputs of a condition node."""

    TRUE = "true"
    FALSE = "false"


class LoopHandle(str, Enum):
    """Outputs of a loop node."""

    BODY = "body"
    DONE = "done"


# Node types with a single unnamed output
SINGLE_OUTPUT_TYPES = frozenset(
    {NodeType.TRIGGER, NodeType.ACTION, NodeType.DELAY, NodeType.SCRIPT}
)

# Sentinel for the unnamed output of single-output nodes
UNNAMED_HANDLE: None = None


def output_handles(node: WorkflowNode) -> list[str | None]:
    """Return the handles ``node`` currently exposes.

    Single-output nodes expose ``[None]``, notes expose nothing, and a
    switch exposes its case handles followed by its default handle.
    """
    if node.type in SINGLE_OUTPUT_TYPES:
        return [UNNAMED_HANDLE]
    if node.type == NodeType.CONDITION:
        return [h.value for h in ConditionHandle]
    if node.type == NodeType.LOOP:
        return [h.value for h in LoopHandle]
    if node.type == NodeType.SWITCH and isinstance(node.config, SwitchConfig):
        return [*node.config.case_handles(), node.config.switch_default_handle]
    return []


def accepts_handle(node: WorkflowNode, handle: str | None) -> bool:
    """Whether an edge leaving ``node`` may use ``handle``."""
    if node.type in SINGLE_OUTPUT_TYPES:
        # Older documents sometimes carry an empty string for the only output
        return not handle
    return handle in output_handles(node)


def accepts_incoming(node: WorkflowNode) -> bool:
    """Whether edges may point at ``node``."""
    return node.type not in (NodeType.TRIGGER, NodeType.NOTE)
