"""Expression preview API routes.

Lets a builder try a template or condition against sample data before
saving it on a node.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from automation.services import RuntimeContext, evaluate_condition, resolve_template
from automation.services.template_resolver import find_placeholders


class ResolveRequest(BaseModel):
    """A template and the context to resolve it against."""

    template: str = ""
    context: dict[str, Any] = {}


class ResolveResponse(BaseModel):
    text: str
    placeholders: list[str] = []
    unresolved: list[str] = []


class EvaluateRequest(BaseModel):
    """A condition expression and the context to evaluate it against."""

    expression: str = ""
    context: dict[str, Any] = {}


class EvaluateResponse(BaseModel):
    matched: bool
    unresolved: list[str] = []


router = APIRouter()


@router.post("/expressions/resolve")
async def resolve_expression(request: ResolveRequest) -> ResolveResponse:
    """Render ``{{ path }}`` placeholders against sample context."""
    result = resolve_template(request.template, RuntimeContext.from_mapping(request.context))
    return ResolveResponse(
        text=result.text,
        placeholders=find_placeholders(request.template),
        unresolved=result.unresolved,
    )


@router.post("/expressions/evaluate")
async def evaluate_expression(request: EvaluateRequest) -> EvaluateResponse:
    """Evaluate a condition expression against sample context."""
    result = evaluate_condition(request.expression, RuntimeContext.from_mapping(request.context))
    return EvaluateResponse(matched=result.matched, unresolved=result.unresolved)
