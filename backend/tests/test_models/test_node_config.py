"""Tests for per-type node configuration models."""

import math

import pytest

from automation.models import (
    ActionConfig,
    DelayConfig,
    LoopConfig,
    NodeType,
    NoteColor,
    NoteConfig,
    ScriptConfig,
    SwitchConfig,
    TriggerNodeConfig,
    WorkflowNode,
    default_config,
    parse_node_config,
)
from automation.models.node_config import (
    DELAY_MS_BOUNDS,
    LOOP_MAX_ITERATIONS_BOUNDS,
    coerce_bounded_int,
    parse_leading_int,
)


class TestParseLeadingInt:
    """Tests for form-style integer parsing."""

    def test_int(self):
        assert parse_leading_int(42) == 42

    def test_leading_digits(self):
        assert parse_leading_int("42ms") == 42

    def test_signed_with_whitespace(self):
        assert parse_leading_int("  -5x") == -5

    def test_float_truncates(self):
        assert parse_leading_int(3.9) == 3

    def test_non_numeric(self):
        assert parse_leading_int("abc") is None

    def test_bool_is_not_a_number(self):
        assert parse_leading_int(True) is None

    def test_nan(self):
        assert parse_leading_int(math.nan) is None

    def test_none(self):
        assert parse_leading_int(None) is None


class TestCoerceBoundedInt:
    """Tests for default and clamp behaviour."""

    def test_absent_uses_default_silently(self):
        assert coerce_bounded_int(None, DELAY_MS_BOUNDS) == (0, None)
        assert coerce_bounded_int("", DELAY_MS_BOUNDS) == (0, None)

    def test_garbage_uses_default_with_message(self):
        value, message = coerce_bounded_int("soon", DELAY_MS_BOUNDS)
        assert value == 0
        assert message is not None

    def test_clamps_high(self):
        value, message = coerce_bounded_int(999_999, DELAY_MS_BOUNDS)
        assert value == 300_000
        assert "clamped" in message

    def test_clamps_low(self):
        assert coerce_bounded_int(0, LOOP_MAX_ITERATIONS_BOUNDS)[0] == 1

    def test_in_range(self):
        assert coerce_bounded_int("250", LOOP_MAX_ITERATIONS_BOUNDS) == (250, None)


class TestParseNodeConfig:
    """Tests for parse_node_config."""

    def test_delay_garbage_reports_diagnostic(self):
        result = parse_node_config(NodeType.DELAY, {"delayMs": "abc"})

        assert isinstance(result.config, DelayConfig)
        assert result.config.delay_ms == 0
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].field == "delayMs"
        assert result.diagnostics[0].original == "abc"

    def test_script_timeout_clamped(self):
        result = parse_node_config("script", {"scriptTimeout": 50})

        assert isinstance(result.config, ScriptConfig)
        assert result.config.script_timeout == 100
        assert result.diagnostics[0].field == "scriptTimeout"

    def test_loop_iterations_clamped(self):
        result = parse_node_config(NodeType.LOOP, {"loopMaxIterations": 5000})
        assert result.config.loop_max_iterations == 1000

    def test_snake_case_keys_accepted(self):
        result = parse_node_config(NodeType.DELAY, {"delay_ms": 1000})

        assert result.config.delay_ms == 1000
        assert result.diagnostics == []

    def test_unknown_note_color_falls_back(self):
        result = parse_node_config(NodeType.NOTE, {"noteColor": "purple"})

        assert isinstance(result.config, NoteConfig)
        assert result.config.note_color == NoteColor.YELLOW
        assert result.diagnostics[0].field == "noteColor"

    def test_known_note_color(self):
        result = parse_node_config(NodeType.NOTE, {"noteColor": "blue"})

        assert result.config.note_color == NoteColor.BLUE
        assert result.diagnostics == []

    def test_action_keeps_unknown_keys(self):
        result = parse_node_config(
            NodeType.ACTION, {"actionType": "log", "retryPolicy": {"attempts": 3}}
        )

        assert isinstance(result.config, ActionConfig)
        dumped = result.config.model_dump(by_alias=True)
        assert dumped["actionType"] == "log"
        assert dumped["retryPolicy"] == {"attempts": 3}

    def test_non_mapping_gives_defaults(self):
        result = parse_node_config(NodeType.SWITCH, "not a dict")

        assert isinstance(result.config, SwitchConfig)
        assert result.config.switch_cases == []
        assert result.config.switch_default_handle == "default"

    def test_switch_case_value_stringified(self):
        result = parse_node_config(
            NodeType.SWITCH,
            {"switchCases": [{"label": "One", "handleId": "case_0", "value": 1}]},
        )
        assert result.config.switch_cases[0].value == "1"

    def test_null_string_fields_use_defaults(self):
        condition = parse_node_config(NodeType.CONDITION, {"conditionExpression": None})
        note = parse_node_config(NodeType.NOTE, {"noteContent": None, "noteColor": None})
        script = parse_node_config(NodeType.SCRIPT, {"scriptCode": None})

        assert condition.config.condition_expression == ""
        assert note.config.note_content == ""
        assert note.config.note_color == NoteColor.YELLOW
        assert script.config.script_code == ""
        assert condition.diagnostics == note.diagnostics == script.diagnostics == []

    def test_null_trigger_event_key(self):
        result = parse_node_config(NodeType.TRIGGER, {"eventKey": None, "boardId": None})

        assert result.config.event_key == ""
        assert result.config.board_id is None

    def test_null_switch_fields(self):
        result = parse_node_config(
            NodeType.SWITCH,
            {"switchExpression": None, "switchCases": None, "switchDefaultHandle": None},
        )

        assert result.config.switch_expression == ""
        assert result.config.switch_cases == []
        assert result.config.switch_default_handle == "default"

    def test_null_loop_variable(self):
        result = parse_node_config(NodeType.LOOP, {"loopItemVariable": None})
        assert result.config.loop_item_variable == "item"

    def test_action_keeps_null_opaque_keys(self):
        result = parse_node_config(NodeType.ACTION, {"actionType": "log", "channel": None})
        assert result.config.model_dump(by_alias=True)["channel"] is None

    def test_switch_case_without_handle_gets_one(self):
        result = parse_node_config(
            NodeType.SWITCH,
            {
                "switchCases": [
                    {"label": "A", "value": "a"},
                    {"label": "B", "handleId": "case_2", "value": "b"},
                    {"label": None, "handleId": None, "value": None},
                ]
            },
        )

        handles = result.config.case_handles()
        assert handles[1] == "case_2"
        assert len(set(handles)) == 3
        assert all(h.startswith("case_") for h in handles)
        assert result.config.switch_cases[2].label == ""
        assert [d.field for d in result.diagnostics] == ["switchCases", "switchCases"]

    def test_switch_cases_not_a_list(self):
        result = parse_node_config(NodeType.SWITCH, {"switchCases": "a,b"})
        assert result.config.switch_cases == []


class TestDefaults:
    """Tests for freshly placed node configs."""

    def test_loop_defaults(self):
        config = default_config(NodeType.LOOP)

        assert isinstance(config, LoopConfig)
        assert config.loop_item_variable == "item"
        assert config.loop_index_variable == "index"
        assert config.loop_max_iterations == 100

    def test_script_defaults(self):
        assert default_config(NodeType.SCRIPT).script_timeout == 5000

    def test_note_defaults(self):
        assert default_config(NodeType.NOTE).note_color == NoteColor.YELLOW


class TestTriggerNodeConfig:
    """Tests for trigger config helpers."""

    def test_event_change_resets_filters(self):
        config = TriggerNodeConfig(
            event_key="item.created",
            item_category_key="shoes",
            attribute_key="color",
            board_id="b1",
            filter_expression="{{trigger.x}} == 1",
            cron_expression="0 9 * * *",
        )

        changed = config.with_event_key("item.updated")

        assert changed.event_key == "item.updated"
        assert changed.item_category_key is None
        assert changed.attribute_key is None
        assert changed.board_id is None
        assert changed.filter_expression is None
        # Not an event filter
        assert changed.cron_expression == "0 9 * * *"

    def test_same_event_keeps_filters(self):
        config = TriggerNodeConfig(event_key="item.created", item_category_key="shoes")
        assert config.with_event_key("item.created").item_category_key == "shoes"

    def test_filters_skip_empty_values(self):
        config = TriggerNodeConfig(item_category_key="shoes", item_family_key="")
        assert config.item_filters() == {"itemCategoryKey": "shoes"}


class TestWorkflowNode:
    """Tests for node construction from raw documents."""

    def test_raw_config_becomes_typed(self):
        node = WorkflowNode.model_validate(
            {"id": "delay_1", "type": "delay", "config": {"delayMs": "2500"}}
        )

        assert isinstance(node.config, DelayConfig)
        assert node.config.delay_ms == 2500

    def test_missing_config_uses_defaults(self):
        node = WorkflowNode.model_validate({"id": "loop_1", "type": "loop"})
        assert isinstance(node.config, LoopConfig)

    def test_display_label_falls_back_to_id(self):
        node = WorkflowNode.model_validate({"id": "action_1", "type": "action", "label": "  "})
        assert node.display_label == "action_1"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            WorkflowNode.model_validate({"id": "x", "type": "teleport"})

    def test_dump_uses_wire_names(self):
        node = WorkflowNode.model_validate(
            {"id": "script_1", "type": "script", "config": {"scriptCode": "return 1"}}
        )

        dumped = node.model_dump(by_alias=True)

        assert dumped["config"] == {"scriptCode": "return 1", "scriptTimeout": 5000}
