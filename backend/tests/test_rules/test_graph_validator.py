"""Tests for graph validation."""

from automation.models import (
    Severity,
    TriggerEventDefinition,
    TriggerType,
    ViolationCode,
    WorkflowEdge,
    WorkflowNode,
)
from automation.rules import GraphValidator, has_errors, validate_graph
from automation.services.action_catalog import ActionCatalog
from automation.services.trigger_catalog import StaticTriggerCatalog


def _node(node_id: str, node_type: str, config: dict | None = None) -> WorkflowNode:
    return WorkflowNode.model_validate({"id": node_id, "type": node_type, "config": config or {}})


def _edge(edge_id: str, source: str, target: str, handle: str | None = None) -> WorkflowEdge:
    return WorkflowEdge(id=edge_id, source=source, target=target, source_handle=handle)


def _codes(violations) -> list[ViolationCode]:
    return [v.code for v in violations]


class TestSoundGraph:
    """Tests for a graph without problems."""

    def test_branching_graph_is_clean(self, branching_graph):
        violations = validate_graph(
            branching_graph.nodes, branching_graph.edges, TriggerType.EVENT
        )

        assert violations == []
        assert not has_errors(violations)


class TestStructure:
    """Tests for ids, endpoints and handles."""

    def test_duplicate_ids(self):
        nodes = [_node("t", "trigger"), _node("a", "action"), _node("a", "delay")]
        edges = [_edge("e", "t", "a"), _edge("e", "t", "a")]

        codes = _codes(validate_graph(nodes, edges))

        assert ViolationCode.DUPLICATE_NODE_ID in codes
        assert ViolationCode.DUPLICATE_EDGE_ID in codes

    def test_dangling_endpoints(self):
        nodes = [_node("t", "trigger")]
        edges = [_edge("e1", "t", "ghost"), _edge("e2", "ghost", "t")]

        violations = validate_graph(nodes, edges)
        codes = _codes(violations)

        assert ViolationCode.DANGLING_TARGET in codes
        assert ViolationCode.DANGLING_SOURCE in codes
        assert has_errors(violations)

    def test_invalid_handles(self):
        nodes = [
            _node("t", "trigger"),
            _node("c", "condition", {"conditionExpression": "1 == 1"}),
            _node("a", "action", {"actionType": "log"}),
        ]
        edges = [
            _edge("e1", "t", "c", handle="true"),
            _edge("e2", "c", "a", handle="maybe"),
            _edge("e3", "c", "a"),
        ]

        invalid = [v for v in validate_graph(nodes, edges) if v.code == ViolationCode.INVALID_HANDLE]

        assert [v.edge_id for v in invalid] == ["e1", "e2", "e3"]

    def test_edges_into_trigger_and_note(self):
        nodes = [_node("t", "trigger"), _node("a", "action", {"actionType": "log"}), _node("n", "note")]
        edges = [_edge("e1", "t", "a"), _edge("e2", "a", "t"), _edge("e3", "a", "n")]

        invalid = [v for v in validate_graph(nodes, edges) if v.code == ViolationCode.INVALID_TARGET]

        assert {v.node_id for v in invalid} == {"t", "n"}

    def test_edges_out_of_note(self):
        nodes = [_node("t", "trigger"), _node("n", "note"), _node("a", "action", {"actionType": "log"})]
        edges = [_edge("e1", "t", "a"), _edge("e2", "n", "a")]

        assert ViolationCode.INVALID_HANDLE in _codes(validate_graph(nodes, edges))

    def test_self_loop(self):
        nodes = [_node("t", "trigger"), _node("d", "delay")]
        edges = [_edge("e1", "t", "d"), _edge("e2", "d", "d")]

        assert ViolationCode.SELF_LOOP in _codes(validate_graph(nodes, edges))

    def test_duplicate_case_handles(self):
        switch = _node(
            "s",
            "switch",
            {
                "switchCases": [
                    {"label": "A", "handleId": "case_0", "value": "a"},
                    {"label": "B", "handleId": "case_0", "value": "b"},
                    {"label": "C", "handleId": "default", "value": "c"},
                ]
            },
        )
        violations = validate_graph([_node("t", "trigger"), switch], [_edge("e", "t", "s")])

        duplicated = [v for v in violations if v.code == ViolationCode.DUPLICATE_CASE_HANDLE]
        assert len(duplicated) == 2


class TestTriggers:
    """Tests for trigger count and trigger config."""

    def test_missing_trigger(self):
        assert _codes(validate_graph([_node("d", "delay")], [])) == [ViolationCode.MISSING_TRIGGER]

    def test_multiple_triggers(self):
        nodes = [_node("t1", "trigger"), _node("t2", "trigger")]

        violations = [
            v for v in validate_graph(nodes, []) if v.code == ViolationCode.MULTIPLE_TRIGGERS
        ]

        assert [v.node_id for v in violations] == ["t2"]

    def test_missing_event_key(self):
        violations = validate_graph([_node("t", "trigger")], [], TriggerType.EVENT)
        assert _codes(violations) == [ViolationCode.MISSING_EVENT_KEY]

    def test_unknown_event_key(self):
        violations = validate_graph(
            [_node("t", "trigger", {"eventKey": "item.teleported"})], [], TriggerType.EVENT
        )
        assert _codes(violations) == [ViolationCode.UNKNOWN_EVENT_KEY]

    def test_unsupported_filter_is_warning(self):
        trigger = _node("t", "trigger", {"eventKey": "user.login", "itemCategoryKey": "shoes"})

        violations = validate_graph([trigger], [], TriggerType.EVENT)

        assert _codes(violations) == [ViolationCode.UNSUPPORTED_FILTER]
        assert violations[0].severity == Severity.WARNING
        assert not has_errors(violations)

    def test_invalid_cron(self):
        trigger = _node("t", "trigger", {"cronExpression": "daily"})
        violations = validate_graph([trigger], [], TriggerType.SCHEDULE)
        assert _codes(violations) == [ViolationCode.INVALID_CRON]

    def test_valid_cron(self):
        trigger = _node("t", "trigger", {"cronExpression": "0 9 * * 1-5"})
        assert validate_graph([trigger], [], TriggerType.SCHEDULE) == []

    def test_trigger_config_skipped_without_type(self):
        assert validate_graph([_node("t", "trigger")], []) == []

    def test_injected_catalog(self):
        catalog = StaticTriggerCatalog(
            [TriggerEventDefinition(value="order.paid", label="Order Paid", category="order")]
        )
        trigger = _node("t", "trigger", {"eventKey": "order.paid"})

        violations = GraphValidator(catalog).validate([trigger], [], TriggerType.EVENT)

        assert violations == []


class TestReachabilityAndActions:
    """Tests for reachability and action checks."""

    def test_unreachable_is_warning(self):
        nodes = [_node("t", "trigger"), _node("d", "delay"), _node("n", "note")]

        violations = validate_graph(nodes, [])

        assert _codes(violations) == [ViolationCode.UNREACHABLE_NODE]
        assert violations[0].node_id == "d"
        assert violations[0].severity == Severity.WARNING

    def test_missing_action_type_is_error(self):
        nodes = [_node("t", "trigger"), _node("a", "action")]
        violations = validate_graph(nodes, [_edge("e", "t", "a")])

        assert _codes(violations) == [ViolationCode.MISSING_ACTION_TYPE]
        assert has_errors(violations)

    def test_unknown_action_type_is_warning(self):
        nodes = [_node("t", "trigger"), _node("a", "action", {"actionType": "teleport"})]
        violations = validate_graph(nodes, [_edge("e", "t", "a")])

        assert _codes(violations) == [ViolationCode.UNKNOWN_ACTION_TYPE]
        assert not has_errors(violations)

    def test_injected_action_catalog(self):
        nodes = [_node("t", "trigger"), _node("a", "action", {"actionType": "log"})]
        violations = validate_graph(
            nodes, [_edge("e", "t", "a")], actions=ActionCatalog(actions=[])
        )
        assert _codes(violations) == [ViolationCode.UNKNOWN_ACTION_TYPE]
