"""Tests for {{ path }} template resolution."""

from automation.services.template_resolver import (
    RuntimeContext,
    find_placeholders,
    resolve_template,
    resolve_value,
    stringify,
)


def _context() -> RuntimeContext:
    return RuntimeContext(
        trigger={
            "item": {"name": "Boots", "price": 12.0, "tags": ["new", "sale"]},
            "active": True,
            "owner": None,
        },
        steps={"action_1": {"status": 200, "body": {"id": 7}}},
        vars={"item": "widget", "index": 2},
        output={"count": 3},
    )


class TestResolveTemplate:
    """Tests for resolve_template."""

    def test_simple_path(self):
        result = resolve_template("Hello {{trigger.item.name}}", _context())

        assert result.text == "Hello Boots"
        assert result.unresolved == []
        assert result.fully_resolved

    def test_whitespace_inside_braces(self):
        assert resolve_template("{{  vars.item  }}", _context()).text == "widget"

    def test_all_namespaces(self):
        result = resolve_template(
            "{{trigger.item.name}}/{{steps.action_1.status}}/{{vars.index}}/{{output.count}}",
            _context(),
        )
        assert result.text == "Boots/200/2/3"

    def test_list_index(self):
        assert resolve_template("{{trigger.item.tags.1}}", _context()).text == "sale"

    def test_negative_index_unresolved(self):
        result = resolve_template("{{trigger.item.tags.-1}}", _context())

        assert result.text == ""
        assert result.unresolved == ["trigger.item.tags.-1"]

    def test_index_past_end_unresolved(self):
        assert resolve_template("{{trigger.item.tags.2}}", _context()).unresolved == [
            "trigger.item.tags.2"
        ]

    def test_unresolved_renders_empty(self):
        result = resolve_template("[{{trigger.missing.path}}]", _context())

        assert result.text == "[]"
        assert result.unresolved == ["trigger.missing.path"]
        assert not result.fully_resolved

    def test_unknown_namespace_unresolved(self):
        result = resolve_template("{{env.HOME}}", _context())

        assert result.text == ""
        assert result.unresolved == ["env.HOME"]

    def test_no_placeholders_unchanged(self):
        assert resolve_template("plain text", _context()).text == "plain text"

    def test_unmatched_braces_are_literal(self):
        assert resolve_template("open {{ only", _context()).text == "open {{ only"
        assert resolve_template("close }} only", _context()).text == "close }} only"

    def test_empty_template(self):
        assert resolve_template("", _context()).text == ""
        assert resolve_template(None, _context()).text == ""

    def test_value_rendering(self):
        context = _context()

        assert resolve_template("{{trigger.active}}", context).text == "true"
        assert resolve_template("{{trigger.item.price}}", context).text == "12"
        assert resolve_template("{{trigger.owner}}", context).text == ""
        assert resolve_template("{{steps.action_1.body}}", context).text == '{"id":7}'

    def test_none_value_is_resolved(self):
        assert resolve_template("{{trigger.owner}}", _context()).unresolved == []


class TestResolveValue:
    """Tests for resolve_value."""

    def test_lone_placeholder_keeps_raw_value(self):
        value, unresolved = resolve_value("{{trigger.item.tags}}", _context())

        assert value == ["new", "sale"]
        assert unresolved == []

    def test_lone_placeholder_missing(self):
        assert resolve_value("{{trigger.nope}}", _context()) == (None, ["trigger.nope"])

    def test_mixed_text_rendered(self):
        value, _ = resolve_value("n={{vars.index}}", _context())
        assert value == "n=2"


class TestHelpers:
    """Tests for stringify and find_placeholders."""

    def test_stringify_float(self):
        assert stringify(1.5) == "1.5"
        assert stringify(2.0) == "2"

    def test_stringify_false(self):
        assert stringify(False) == "false"

    def test_find_placeholders(self):
        assert find_placeholders("{{ a.b }} and {{c}}") == ["a.b", "c"]

    def test_context_from_mapping(self):
        context = RuntimeContext.from_mapping({"trigger": {"x": 1}})

        assert context.trigger == {"x": 1}
        assert context.steps == {}
        assert context.output is None

    def test_with_vars_layers(self):
        context = _context().with_vars(item="gadget", extra=1)

        assert context.vars == {"item": "gadget", "index": 2, "extra": 1}
