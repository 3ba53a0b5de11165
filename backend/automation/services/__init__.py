"""Services for the workflow automation service."""

from automation.services.action_catalog import ActionCatalog, action_catalog
from automation.services.builder_session import BuilderSession, BuilderState
from automation.services.condition_evaluator import (
    ConditionEvaluator,
    ConditionResult,
    evaluate_condition,
)
from automation.services.graph_editor import WorkflowGraphEditor
from automation.services.step_router import (
    LoopPlan,
    RouteDecision,
    expand_loop,
    next_targets,
    route_condition,
    route_switch,
)
from automation.services.template_resolver import (
    RuntimeContext,
    TemplateResult,
    resolve_template,
    resolve_value,
)
from automation.services.trigger_catalog import (
    StaticTriggerCatalog,
    TriggerCatalog,
    trigger_catalog,
)
from automation.services.trigger_matcher import TriggerMatcher

__all__ = [
    "ActionCatalog",
    "action_catalog",
    "BuilderSession",
    "BuilderState",
    "ConditionEvaluator",
    "ConditionResult",
    "evaluate_condition",
    "WorkflowGraphEditor",
    "LoopPlan",
    "RouteDecision",
    "expand_loop",
    "next_targets",
    "route_condition",
    "route_switch",
    "RuntimeContext",
    "TemplateResult",
    "resolve_template",
    "resolve_value",
    "StaticTriggerCatalog",
    "TriggerCatalog",
    "trigger_catalog",
    "TriggerMatcher",
]
