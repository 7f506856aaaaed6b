"""워크플로우 그래프 변환 테스트.

Workflow editor graph conversion tests.
"""

from app.services.workflow_graph import deserialize, serialize, trigger_label

ACTIONS = [
    {"id": "b", "type": "CREATE_NOTIFICATION", "name": "Notify", "config": {"message": "hi"}, "order": 1},
    {"id": "a", "type": "UPDATE_FIELD", "name": "Update", "config": {"field": "x", "value": 1}, "order": 0},
]
CONDITIONS = [{"field": "record.stage", "operator": "equals", "value": "won", "logic": "AND"}]


class TestDeserialize:
    def test_layout_and_edges(self):
        graph = deserialize("STAGE_CHANGED", CONDITIONS, ACTIONS, object_id="o1", object_name="deals")
        nodes = graph["nodes"]
        assert nodes[0]["id"] == "trigger_0"
        assert nodes[0]["data"]["label"] == "Stage Changed"
        assert nodes[0]["position"] == {"x": 250, "y": 50}

        action_nodes = [n for n in nodes if n["type"] == "action"]
        assert [n["id"] for n in action_nodes] == ["action_a", "action_b"]
        assert [n["position"]["y"] for n in action_nodes] == [200, 350]

        assert graph["edges"] == [
            {"id": "edge_0", "source": "trigger_0", "target": "action_a"},
            {"id": "edge_1", "source": "action_a", "target": "action_b"},
        ]

    def test_default_trigger(self):
        graph = deserialize(None, [], [])
        assert graph["nodes"][0]["data"]["trigger_type"] == "RECORD_CREATED"
        assert graph["edges"] == []


class TestSerialize:
    def test_actions_ordered_by_vertical_position(self):
        nodes = [
            {"id": "trigger_0", "type": "trigger", "data": {"trigger_type": "RECORD_UPDATED"}},
            {"id": "action_low", "type": "action", "position": {"x": 0, "y": 500}, "data": {"action_type": "DELAY"}},
            {"id": "action_high", "type": "action", "position": {"x": 0, "y": 100}, "data": {"action_type": "WEBHOOK"}},
        ]
        result = serialize(nodes)
        assert result["trigger"] == "RECORD_UPDATED"
        assert [a["id"] for a in result["actions"]] == ["high", "low"]
        assert [a["order"] for a in result["actions"]] == [0, 1]

    def test_missing_trigger_defaults(self):
        assert serialize([])["trigger"] == "RECORD_CREATED"

    def test_condition_logic_defaults_to_and(self):
        nodes = [{"id": "c", "type": "condition", "data": {"field": "f", "operator": "equals", "value": 1}}]
        assert serialize(nodes)["conditions"][0]["logic"] == "AND"

    def test_null_data_and_position(self):
        """data/position 값이 null이어도 기본값 사용 (Null node data and y fall back to defaults)."""
        nodes = [
            {"id": "trigger_0", "type": "trigger", "data": None},
            {"id": "action_b", "type": "action", "position": {"x": 0, "y": 300}, "data": {"action_type": "DELAY"}},
            {"id": "action_a", "type": "action", "position": {"x": 0, "y": None}, "data": None},
        ]
        result = serialize(nodes)
        assert result["trigger"] == "RECORD_CREATED"
        assert [a["id"] for a in result["actions"]] == ["a", "b"]
        assert result["actions"][0]["config"] == {}

    def test_round_trip_preserves_actions(self):
        """역직렬화 후 직렬화하면 노드 수와 액션 순서가 유지됩니다."""
        graph = deserialize("RECORD_UPDATED", CONDITIONS, ACTIONS)
        assert len(graph["nodes"]) == 1 + len(CONDITIONS) + len(ACTIONS)

        result = serialize(graph["nodes"])
        assert result["trigger"] == "RECORD_UPDATED"
        assert result["conditions"] == CONDITIONS
        assert [a["id"] for a in result["actions"]] == ["a", "b"]
        assert [a["type"] for a in result["actions"]] == ["UPDATE_FIELD", "CREATE_NOTIFICATION"]


def test_trigger_label():
    assert trigger_label("RECORD_CREATED") == "Record Created"
