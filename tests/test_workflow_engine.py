"""워크플로우 엔진 순수 함수 테스트 - 경로 조회, 조건, 변수 치환.

Workflow engine tests for the pure helpers: path lookup, condition
evaluation and variable resolution.
"""

from datetime import datetime, timezone

import pytest

from app.services.workflow_engine import (
    build_variable_map,
    evaluate_condition,
    evaluate_conditions,
    get_path,
    resolve_string,
    resolve_variables,
)

CONTEXT = {
    "trigger": "RECORD_UPDATED",
    "record": {
        "id": "rec-1",
        "owner_id": "user-1",
        "stage": "qualified",
        "data": {"name": "Acme deal", "value": 1500, "email": "buyer@acme.io"},
    },
    "object": {"id": "obj-1", "name": "deals", "display_name": "Deals"},
    "user": {"id": "user-1", "email": "owner@test.com", "name": "Owner"},
    "changes": {"value": {"old": 1000, "new": 1500}},
}


class TestGetPath:
    def test_nested_lookup(self):
        assert get_path(CONTEXT, "object.name") == "deals"

    def test_record_data_shortcut(self):
        """record.<key>는 record.data[<key>]로 폴백."""
        assert get_path(CONTEXT, "record.value") == 1500
        assert get_path(CONTEXT, "record.data.value") == 1500

    def test_record_attribute_wins_over_data(self):
        assert get_path(CONTEXT, "record.stage") == "qualified"

    def test_missing_path_is_none(self):
        assert get_path(CONTEXT, "record.nothing") is None
        assert get_path(CONTEXT, "object.name.deeper") is None


class TestEvaluateCondition:
    @pytest.mark.parametrize(
        ("value", "operator", "expected", "result"),
        [
            ("a", "equals", "a", True),
            ("a", "not_equals", "a", False),
            ("Hello World", "contains", "world", True),
            ("Hello", "not_contains", "xyz", True),
            ("Hello", "starts_with", "he", True),
            ("Hello", "ends_with", "LO", True),
            (10, "greater_than", "5", True),
            ("3", "less_than", 5, True),
            (5, "greater_or_equal", 5, True),
            (6, "less_or_equal", 5, False),
            (None, "is_empty", None, True),
            ("", "is_not_empty", None, False),
            ("b", "in", ["a", "b"], True),
            ("c", "not_in", ["a", "b"], True),
            ("a", "in", "a", False),
            ("a", "unknown_operator", "a", False),
        ],
    )
    def test_operators(self, value, operator, expected, result):
        assert evaluate_condition(value, operator, expected) is result

    def test_non_numeric_comparison_is_false(self):
        assert evaluate_condition("abc", "greater_than", 1) is False


class TestEvaluateConditions:
    def test_no_conditions_pass(self):
        assert evaluate_conditions([], CONTEXT) is True

    def test_and_chain(self):
        conditions = [
            {"field": "record.value", "operator": "greater_than", "value": 1000},
            {"field": "record.stage", "operator": "equals", "value": "lead"},
        ]
        assert evaluate_conditions(conditions, CONTEXT) is False

    def test_or_chain(self):
        conditions = [
            {"field": "record.stage", "operator": "equals", "value": "lead"},
            {"field": "record.value", "operator": "greater_than", "value": 1000, "logic": "OR"},
        ]
        assert evaluate_conditions(conditions, CONTEXT) is True

    def test_left_to_right_without_precedence(self):
        """(False OR True) AND False -> False."""
        conditions = [
            {"field": "record.stage", "operator": "equals", "value": "lead"},
            {"field": "record.value", "operator": "equals", "value": 1500, "logic": "OR"},
            {"field": "object.name", "operator": "equals", "value": "contacts", "logic": "AND"},
        ]
        assert evaluate_conditions(conditions, CONTEXT) is False


class TestVariables:
    NOW = datetime(2024, 5, 1, 9, 30, 0, tzinfo=timezone.utc)

    def test_variable_map(self):
        variables = build_variable_map(CONTEXT, now=self.NOW)
        assert variables["record.name"] == "Acme deal"
        assert variables["object.display_name"] == "Deals"
        assert variables["user.email"] == "owner@test.com"
        assert variables["trigger.type"] == "RECORD_UPDATED"
        assert variables["changes.value.old"] == 1000
        assert variables["changes.value.new"] == 1500
        assert variables["now.date"] == "2024-05-01"
        assert variables["now.time"] == "09:30:00"

    def test_resolve_string(self):
        variables = build_variable_map(CONTEXT, now=self.NOW)
        text = resolve_string("{{record.name}} moved to {{record.stage}}", CONTEXT, variables)
        assert text == "Acme deal moved to qualified"

    def test_unresolved_variable_kept(self):
        variables = build_variable_map(CONTEXT, now=self.NOW)
        assert resolve_string("Hi {{record.unknown}}", CONTEXT, variables) == "Hi {{record.unknown}}"

    def test_resolve_nested_config(self):
        config = {
            "to": "{{record.email}}",
            "lines": ["Value: {{record.value}}", 42],
            "meta": {"by": "{{user.name}}"},
        }
        resolved = resolve_variables(config, CONTEXT)
        assert resolved == {
            "to": "buyer@acme.io",
            "lines": ["Value: 1500", 42],
            "meta": {"by": "Owner"},
        }
