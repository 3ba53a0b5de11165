"""Template resolution for ``{{ path }}`` placeholders.

Strings stored on nodes (condition, switch and loop expressions, action
parameters) may embed placeholders that are resolved against a runtime
context at execution time. The context exposes four namespaces:

- ``trigger``: the payload of the event, webhook call or manual run
- ``steps``: outputs of earlier steps, keyed by node id
- ``vars``: workflow variables, including loop item/index variables
- ``output``: the output of the previous step

Resolution is best effort and never raises. Paths that do not resolve
render as the empty string and are reported back to the caller.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

NAMESPACES = ("trigger", "steps", "vars", "output")

# Lazy body so "{{a}} {{b}}" yields two placeholders; no braces inside
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")

_MISSING = object()


@dataclass
class TemplateResult:
    """Rendered text plus the placeholder paths that did not resolve."""

    text: str
    unresolved: list[str] = field(default_factory=list)

    @property
    def fully_resolved(self) -> bool:
        return not self.unresolved


@dataclass
class RuntimeContext:
    """The namespaces a template is resolved against."""

    trigger: dict[str, Any] = field(default_factory=dict)
    steps: dict[str, Any] = field(default_factory=dict)
    vars: dict[str, Any] = field(default_factory=dict)
    output: Any = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> RuntimeContext:
        """Build a context from a plain ``{"trigger": ..., ...}`` mapping."""
        data = data or {}
        return cls(
            trigger=data.get("trigger") or {},
            steps=data.get("steps") or {},
            vars=data.get("vars") or {},
            output=data.get("output"),
        )

    def as_mapping(self) -> dict[str, Any]:
        return {
            "trigger": self.trigger,
            "steps": self.steps,
            "vars": self.vars,
            "output": self.output,
        }

    def with_vars(self, **extra: Any) -> RuntimeContext:
        """Return a copy with extra workflow variables layered on top."""
        return RuntimeContext(
            trigger=self.trigger,
            steps=self.steps,
            vars={**self.vars, **extra},
            output=self.output,
        )


def lookup_path(context: RuntimeContext, path: str) -> Any:
    """Walk a dotted path through the context.

    Returns the private ``_MISSING`` sentinel when any segment does not
    resolve, so that ``None`` values stored in the context stay
    distinguishable from absent ones.
    """
    segments = path.split(".")
    if not segments or segments[0] not in NAMESPACES or any(s == "" for s in segments):
        return _MISSING

    current: Any = context.as_mapping()[segments[0]]
    for segment in segments[1:]:
        if isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            # Only plain non-negative indexes address list items
            if not segment.isdecimal() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        else:
            return _MISSING
    return current


def stringify(value: Any) -> str:
    """Render a resolved value the way it appears inside text."""
    if value is None or value is _MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def resolve_template(template: str | None, context: RuntimeContext) -> TemplateResult:
    """Replace every placeholder in ``template`` with its resolved value.

    Malformed delimiters are left as literal text. A template without
    placeholders comes back unchanged.

    Args:
        template: Text that may contain ``{{ path }}`` placeholders
        context: Pre-fetched runtime context

    Returns:
        TemplateResult with the rendered text and unresolved paths
    """
    if not template:
        return TemplateResult(text=template or "")

    unresolved: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        path = match.group(1)
        value = lookup_path(context, path)
        if value is _MISSING:
            unresolved.append(path)
            return ""
        return stringify(value)

    text = PLACEHOLDER_PATTERN.sub(_replace, template)
    return TemplateResult(text=text, unresolved=unresolved)


def resolve_value(template: str | None, context: RuntimeContext) -> tuple[Any, list[str]]:
    """Resolve ``template`` keeping the raw value for a lone placeholder.

    ``"{{trigger.items}}"`` yields the list itself rather than its JSON
    text; any other template is rendered to a string.

    Returns:
        The value (``None`` when a lone placeholder does not resolve) and
        the unresolved paths
    """
    if template:
        match = PLACEHOLDER_PATTERN.fullmatch(template.strip())
        if match:
            path = match.group(1)
            value = lookup_path(context, path)
            if value is _MISSING:
                return None, [path]
            return value, []

    result = resolve_template(template, context)
    return result.text, result.unresolved


def find_placeholders(template: str | None) -> list[str]:
    """List the placeholder paths used in ``template``, in order."""
    if not template:
        return []
    return [m.group(1) for m in PLACEHOLDER_PATTERN.finditer(template)]
