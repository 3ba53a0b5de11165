"""Step routing for branching nodes.

Given a node and the runtime context at that step, decide which output
handle the run continues on: ``true``/``false`` for conditions, a case
handle or the default for switches, ``body`` per item then ``done`` for
loops. Nothing here executes actions.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from automation.models.edge import WorkflowEdge
from automation.models.handles import ConditionHandle, LoopHandle
from automation.models.node_config import ConditionConfig, LoopConfig, SwitchConfig
from automation.models.workflow import WorkflowGraph
from automation.services.condition_evaluator import evaluate_condition
from automation.services.template_resolver import (
    RuntimeContext,
    resolve_template,
    resolve_value,
)


@dataclass
class RouteDecision:
    """The handle a branching node continues on."""

    handle: str
    unresolved: list[str] = field(default_factory=list)


@dataclass
class LoopPlan:
    """Items a loop will iterate over."""

    items: list[Any]
    truncated: bool = False
    unresolved: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)


def route_condition(config: ConditionConfig, context: RuntimeContext) -> RouteDecision:
    """Follow ``true`` when the condition holds, otherwise ``false``."""
    result = evaluate_condition(config.condition_expression, context)
    handle = ConditionHandle.TRUE if result.matched else ConditionHandle.FALSE
    return RouteDecision(handle=handle.value, unresolved=result.unresolved)


def route_switch(config: SwitchConfig, context: RuntimeContext) -> RouteDecision:
    """Follow the first case whose value equals the resolved expression.

    With no matching case (or no cases at all) the default handle is used.
    """
    resolved = resolve_template(config.switch_expression, context)
    subject = resolved.text.strip()
    for case in config.switch_cases:
        if resolve_template(case.value, context).text.strip() == subject:
            return RouteDecision(handle=case.handle_id, unresolved=resolved.unresolved)
    return RouteDecision(
        handle=config.switch_default_handle, unresolved=resolved.unresolved
    )


def _split_scalars(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def expand_loop(config: LoopConfig, context: RuntimeContext) -> LoopPlan:
    """Resolve the loop expression into the items to iterate.

    The expression may resolve to a list, to JSON array text, or to
    comma-separated scalars. At most ``loopMaxIterations`` items are kept.
    """
    value, unresolved = resolve_value(config.loop_expression, context)
    diagnostics: list[str] = []

    if isinstance(value, (list, tuple)):
        items = list(value)
    elif value is None:
        items = []
    elif isinstance(value, str):
        text = value.strip()
        items = []
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                diagnostics.append("Loop expression looks like JSON but does not parse")
                items = _split_scalars(text.strip("[]"))
            else:
                if isinstance(parsed, list):
                    items = parsed
                else:
                    diagnostics.append("Loop expression JSON is not an array")
        elif text:
            items = _split_scalars(text)
    else:
        # A lone scalar or mapping iterates once
        items = [value]

    limit = config.loop_max_iterations
    truncated = len(items) > limit
    if truncated:
        diagnostics.append(f"Loop truncated to {limit} of {len(items)} items")
        items = items[:limit]
    return LoopPlan(
        items=items, truncated=truncated, unresolved=unresolved, diagnostics=diagnostics
    )


def loop_variables(config: LoopConfig, item: Any, index: int) -> dict[str, Any]:
    """Variables exposed under ``vars`` for one loop iteration."""
    return {config.loop_item_variable: item, config.loop_index_variable: index}


def loop_handle(plan: LoopPlan, index: int) -> str:
    """``body`` while items remain at ``index``, then ``done``."""
    return LoopHandle.BODY.value if index < len(plan.items) else LoopHandle.DONE.value


def next_edges(graph: WorkflowGraph, node_id: str, handle: str | None = None) -> list[WorkflowEdge]:
    """Edges leaving ``node_id`` through ``handle``.

    ``None`` selects the unnamed output of single-output nodes.
    """
    return [
        edge
        for edge in graph.outgoing(node_id)
        if (edge.source_handle or None) == (handle or None)
    ]


def next_targets(graph: WorkflowGraph, node_id: str, handle: str | None = None) -> list[str]:
    """Ids of the nodes the run continues to after ``node_id`` leaves via ``handle``."""
    return [edge.target for edge in next_edges(graph, node_id, handle)]
