"""The closed set of workflow node types."""

from enum import Enum


class NodeType(str, Enum):
    """Kinds of step a workflow node can represent."""

    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"
    DELAY = "delay"
    SCRIPT = "script"
    SWITCH = "switch"
    LOOP = "loop"
    NOTE = "note"


# Label given to a freshly placed node
DEFAULT_LABELS: dict[NodeType, str] = {
    NodeType.TRIGGER: "Trigger",
    NodeType.CONDITION: "Condition",
    NodeType.ACTION: "New Action",
    NodeType.DELAY: "Delay",
    NodeType.SCRIPT: "Script",
    NodeType.SWITCH: "Switch",
    NodeType.LOOP: "Loop",
    NodeType.NOTE: "Note",
}
