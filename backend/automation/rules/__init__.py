"""Graph validation rules for workflow documents."""

from automation.rules.graph_validator import GraphValidator, has_errors, validate_graph

__all__ = ["GraphValidator", "has_errors", "validate_graph"]
