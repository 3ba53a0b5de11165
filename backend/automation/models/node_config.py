"""Per-type node configuration models.

Every node type owns one configuration model. Fields are optional with
typed defaults, and malformed numeric input never raises: it falls back to
the documented default or is clamped into range. ``parse_node_config``
returns the validated model together with diagnostics describing every
value that had to be substituted, so callers can surface them.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator, model_validator
from pydantic import Field as PydanticField

from automation.models.node_type import NodeType


@dataclass(frozen=True)
class IntBounds:
    """Default and inclusive range for a numeric config field."""

    default: int
    minimum: int
    maximum: int


DELAY_MS_BOUNDS = IntBounds(default=0, minimum=0, maximum=300_000)
SCRIPT_TIMEOUT_BOUNDS = IntBounds(default=5000, minimum=100, maximum=30_000)
LOOP_MAX_ITERATIONS_BOUNDS = IntBounds(default=100, minimum=1, maximum=1000)

# Common delay values offered by the builder
DELAY_PRESETS_MS = (1000, 5000, 10_000, 30_000, 60_000)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> int | None:
    """Parse an integer the way a form field does.

    Accepts ints, finite floats (truncated) and strings with a leading
    integer (``"42ms"`` -> 42). Anything else, booleans included, yields
    ``None``.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


def coerce_bounded_int(value: Any, bounds: IntBounds) -> tuple[int, str | None]:
    """Coerce a raw value into ``bounds``.

    Returns:
        The resulting integer and a diagnostic message, or ``None`` when the
        value was used as given. Absent and empty values map to the default
        silently.
    """
    if value is None or value == "":
        return bounds.default, None

    parsed = parse_leading_int(value)
    if parsed is None:
        return bounds.default, f"{value!r} is not a number; using default {bounds.default}"

    clamped = min(max(parsed, bounds.minimum), bounds.maximum)
    if clamped != parsed:
        return clamped, (
            f"{parsed} is outside [{bounds.minimum}, {bounds.maximum}]; clamped to {clamped}"
        )
    return clamped, None


class NoteColor(str, Enum):
    """Background colours available for note nodes."""

    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"
    PINK = "pink"


_NOTE_COLORS = tuple(NoteColor)


# ==================== Config Models ====================


class TriggerNodeConfig(BaseModel):
    """Configuration of the trigger node.

    The trigger type itself lives on the workflow; this model holds the
    fields for every trigger type and the workflow mirrors only the ones
    relevant to its current type.
    """

    event_key: str = PydanticField(default="", alias="eventKey")
    # Item filters
    item_category_key: str | None = PydanticField(default=None, alias="itemCategoryKey")
    item_family_key: str | None = PydanticField(default=None, alias="itemFamilyKey")
    item_type_key: str | None = PydanticField(default=None, alias="itemTypeKey")
    # Attribute filters
    attribute_key: str | None = PydanticField(default=None, alias="attributeKey")
    attribute_new_value: str | None = PydanticField(default=None, alias="attributeNewValue")
    attribute_previous_value: str | None = PydanticField(
        default=None, alias="attributePreviousValue"
    )
    # Board filters
    board_id: str | None = PydanticField(default=None, alias="boardId")
    column_id: str | None = PydanticField(default=None, alias="columnId")
    filter_expression: str | None = PydanticField(default=None, alias="filterExpression")
    # Schedule / webhook
    cron_expression: str | None = PydanticField(default=None, alias="cronExpression")
    webhook_secret: str | None = PydanticField(default=None, alias="webhookSecret")

    model_config = {"populate_by_name": True}

    def with_event_key(self, event_key: str) -> TriggerNodeConfig:
        """Return a copy pointing at ``event_key``.

        Selecting a different event clears every filter, because payload
        shapes differ per event and stale filters would never match.
        """
        if event_key == self.event_key:
            return self.model_copy()
        return self.model_copy(
            update={
                "event_key": event_key,
                **{name: None for name in EVENT_FILTER_FIELDS},
            }
        )

    def item_filters(self) -> dict[str, str]:
        """Non-empty item filters keyed by their wire name."""
        return _non_empty(
            {
                "itemCategoryKey": self.item_category_key,
                "itemFamilyKey": self.item_family_key,
                "itemTypeKey": self.item_type_key,
            }
        )

    def attribute_filters(self) -> dict[str, str]:
        """Non-empty attribute filters keyed by their wire name."""
        return _non_empty(
            {
                "attributeKey": self.attribute_key,
                "attributeNewValue": self.attribute_new_value,
                "attributePreviousValue": self.attribute_previous_value,
            }
        )

    def board_filters(self) -> dict[str, str]:
        """Non-empty board filters keyed by their wire name."""
        return _non_empty({"boardId": self.board_id, "columnId": self.column_id})


# Snake-case names of every field reset when the event key changes
EVENT_FILTER_FIELDS = (
    "item_category_key",
    "item_family_key",
    "item_type_key",
    "attribute_key",
    "attribute_new_value",
    "attribute_previous_value",
    "board_id",
    "column_id",
    "filter_expression",
)


class ConditionConfig(BaseModel):
    """Configuration of a condition node. An empty expression never matches."""

    condition_expression: str = PydanticField(default="", alias="conditionExpression")

    model_config = {"populate_by_name": True}


class ActionConfig(BaseModel):
    """Configuration of an action node.

    Only ``actionType`` is interpreted here; every other key belongs to the
    action itself and is preserved untouched.
    """

    action_type: str = PydanticField(default="", alias="actionType")
    action_config: dict[str, Any] = PydanticField(default_factory=dict, alias="actionConfig")

    model_config = {"populate_by_name": True, "extra": "allow"}


class DelayConfig(BaseModel):
    """Configuration of a delay node."""

    delay_ms: int = PydanticField(default=DELAY_MS_BOUNDS.default, alias="delayMs")

    model_config = {"populate_by_name": True}

    @field_validator("delay_ms", mode="before")
    @classmethod
    def bound_delay(cls, v: Any) -> int:
        return coerce_bounded_int(v, DELAY_MS_BOUNDS)[0]


class ScriptConfig(BaseModel):
    """Configuration of a script node."""

    script_code: str = PydanticField(default="", alias="scriptCode")
    script_timeout: int = PydanticField(
        default=SCRIPT_TIMEOUT_BOUNDS.default, alias="scriptTimeout"
    )

    model_config = {"populate_by_name": True}

    @field_validator("script_timeout", mode="before")
    @classmethod
    def bound_timeout(cls, v: Any) -> int:
        return coerce_bounded_int(v, SCRIPT_TIMEOUT_BOUNDS)[0]


class SwitchCase(BaseModel):
    """One branch of a switch node."""

    label: str = ""
    # Empty until the owning switch assigns one
    handle_id: str = PydanticField(default="", alias="handleId")
    value: str = ""

    model_config = {"populate_by_name": True}

    @field_validator("label", "handle_id", "value", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


DEFAULT_SWITCH_HANDLE = "default"


def next_case_handle(taken: set[str], start: int) -> str:
    """First ``case_<n>`` id not in ``taken``, counting up from ``start``."""
    index = start
    while f"case_{index}" in taken:
        index += 1
    return f"case_{index}"


class SwitchConfig(BaseModel):
    """Configuration of a switch node. No cases means always default."""

    switch_expression: str = PydanticField(default="", alias="switchExpression")
    switch_cases: list[SwitchCase] = PydanticField(default_factory=list, alias="switchCases")
    switch_default_handle: str = PydanticField(
        default=DEFAULT_SWITCH_HANDLE, alias="switchDefaultHandle"
    )

    model_config = {"populate_by_name": True}

    @field_validator("switch_cases", mode="before")
    @classmethod
    def case_entries(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return []
        return [c for c in v if isinstance(c, (dict, SwitchCase))]

    @field_validator("switch_default_handle", mode="before")
    @classmethod
    def default_handle(cls, v: Any) -> str:
        return v or DEFAULT_SWITCH_HANDLE

    @model_validator(mode="after")
    def assign_missing_handles(self) -> SwitchConfig:
        """Give cases stored without a handle id a fresh ``case_<n>`` id."""
        taken = {*self.case_handles(), self.switch_default_handle}
        for case in self.switch_cases:
            if not case.handle_id:
                case.handle_id = next_case_handle(taken, len(self.switch_cases))
                taken.add(case.handle_id)
        return self

    def case_handles(self) -> list[str]:
        """Handle ids of the cases, in order."""
        return [case.handle_id for case in self.switch_cases]


class LoopConfig(BaseModel):
    """Configuration of a loop node."""

    loop_expression: str = PydanticField(default="", alias="loopExpression")
    loop_item_variable: str = PydanticField(default="item", alias="loopItemVariable")
    loop_index_variable: str = PydanticField(default="index", alias="loopIndexVariable")
    loop_max_iterations: int = PydanticField(
        default=LOOP_MAX_ITERATIONS_BOUNDS.default, alias="loopMaxIterations"
    )

    model_config = {"populate_by_name": True}

    @field_validator("loop_max_iterations", mode="before")
    @classmethod
    def bound_iterations(cls, v: Any) -> int:
        return coerce_bounded_int(v, LOOP_MAX_ITERATIONS_BOUNDS)[0]

    @field_validator("loop_item_variable", mode="before")
    @classmethod
    def default_item_variable(cls, v: Any) -> str:
        return v or "item"

    @field_validator("loop_index_variable", mode="before")
    @classmethod
    def default_index_variable(cls, v: Any) -> str:
        return v or "index"


class NoteConfig(BaseModel):
    """Configuration of a note node. Notes never take part in execution."""

    note_content: str = PydanticField(default="", alias="noteContent")
    note_color: NoteColor = PydanticField(default=NoteColor.YELLOW, alias="noteColor")

    model_config = {"populate_by_name": True}

    @field_validator("note_color", mode="before")
    @classmethod
    def known_color(cls, v: Any) -> Any:
        if isinstance(v, NoteColor):
            return v
        try:
            return NoteColor(v)
        except ValueError:
            return NoteColor.YELLOW


NodeConfig = (
    TriggerNodeConfig
    | ConditionConfig
    | ActionConfig
    | DelayConfig
    | ScriptConfig
    | SwitchConfig
    | LoopConfig
    | NoteConfig
)

CONFIG_MODELS: dict[NodeType, type[BaseModel]] = {
    NodeType.TRIGGER: TriggerNodeConfig,
    NodeType.CONDITION: ConditionConfig,
    NodeType.ACTION: ActionConfig,
    NodeType.DELAY: DelayConfig,
    NodeType.SCRIPT: ScriptConfig,
    NodeType.SWITCH: SwitchConfig,
    NodeType.LOOP: LoopConfig,
    NodeType.NOTE: NoteConfig,
}

# Wire name -> bounds, per node type
_BOUNDED_FIELDS: dict[NodeType, dict[str, tuple[str, IntBounds]]] = {
    NodeType.DELAY: {"delayMs": ("delay_ms", DELAY_MS_BOUNDS)},
    NodeType.SCRIPT: {"scriptTimeout": ("script_timeout", SCRIPT_TIMEOUT_BOUNDS)},
    NodeType.LOOP: {
        "loopMaxIterations": ("loop_max_iterations", LOOP_MAX_ITERATIONS_BOUNDS)
    },
}


# ==================== Parsing ====================


class ConfigDiagnostic(BaseModel):
    """A value that was substituted while validating a node config."""

    field: str
    message: str
    original: Any = None
    node_id: str | None = PydanticField(default=None, alias="nodeId")

    model_config = {"populate_by_name": True}


@dataclass
class ConfigParseResult:
    """A validated config and what changed on the way in."""

    config: NodeConfig
    diagnostics: list[ConfigDiagnostic]


def default_config(node_type: NodeType) -> NodeConfig:
    """Build the default config for a freshly placed node."""
    return CONFIG_MODELS[NodeType(node_type)]()  # type: ignore[return-value]


def parse_node_config(node_type: NodeType | str, raw: Any) -> ConfigParseResult:
    """Validate a raw config mapping for ``node_type``.

    Numeric fields are parsed leniently and clamped, unknown note colours
    fall back to yellow, and each substitution is reported as a diagnostic.

    Args:
        node_type: The owning node's type
        raw: The stored config, a model instance, or ``None``

    Returns:
        ConfigParseResult with the typed config and any diagnostics
    """
    node_type = NodeType(node_type)
    model = CONFIG_MODELS[node_type]

    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, dict):
        raw = {}
    # A null declared field means "use default"; opaque action keys are kept
    declared = _declared_keys(model)
    raw = {k: v for k, v in raw.items() if v is not None or k not in declared}

    diagnostics: list[ConfigDiagnostic] = []
    for alias, (name, bounds) in _BOUNDED_FIELDS.get(node_type, {}).items():
        key = alias if alias in raw else name
        if key not in raw:
            continue
        _, message = coerce_bounded_int(raw[key], bounds)
        if message:
            diagnostics.append(
                ConfigDiagnostic(field=alias, message=message, original=raw[key])
            )

    if node_type == NodeType.NOTE:
        color = raw.get("noteColor", raw.get("note_color"))
        if color not in (None, "") and color not in _NOTE_COLORS:
            diagnostics.append(
                ConfigDiagnostic(
                    field="noteColor",
                    message=f"unknown colour {color!r}; using yellow",
                    original=color,
                )
            )

    config = model.model_validate(raw)

    if isinstance(config, SwitchConfig):
        raw_cases = raw.get("switchCases", raw.get("switch_cases"))
        entries = [c for c in raw_cases or [] if isinstance(c, (dict, SwitchCase))]
        for index, entry in enumerate(entries):
            handle = (
                entry.handle_id
                if isinstance(entry, SwitchCase)
                else entry.get("handleId", entry.get("handle_id"))
            )
            if not handle:
                assigned = config.switch_cases[index].handle_id
                diagnostics.append(
                    ConfigDiagnostic(
                        field="switchCases",
                        message=f"case {index} had no handle id; assigned {assigned}",
                    )
                )

    return ConfigParseResult(config=config, diagnostics=diagnostics)  # type: ignore[arg-type]


def _declared_keys(model: type[BaseModel]) -> set[str]:
    """Field names and aliases of ``model``."""
    keys = set(model.model_fields)
    keys.update(f.alias for f in model.model_fields.values() if f.alias)
    return keys


def _non_empty(values: dict[str, str | None]) -> dict[str, str]:
    return {key: value for key, value in values.items() if value}
