"""레코드 데이터 검증 테스트 - 필드 정의 기반.

Record data validation tests against field definitions.
"""

import pytest

from app.models.crm import Field
from app.services.validation_service import validation_service
from app.utils.exceptions import ValidationFailedError


def make_field(name: str, field_type: str, *, required: bool = False, config: dict | None = None) -> Field:
    return Field(
        name=name,
        display_name=name.replace("_", " ").title(),
        type=field_type,
        is_required=required,
        config=config or {},
    )


class TestRequired:
    """필수 필드 검사."""

    def test_missing_required_field(self):
        errors = validation_service.collect_errors({}, [make_field("name", "TEXT", required=True)])
        assert errors == ['Field "Name" is required']

    def test_empty_string_counts_as_missing(self):
        errors = validation_service.collect_errors({"name": ""}, [make_field("name", "TEXT", required=True)])
        assert len(errors) == 1

    def test_optional_empty_value_skipped(self):
        assert validation_service.collect_errors({"phone": None}, [make_field("phone", "PHONE")]) == []

    def test_unknown_keys_are_ignored(self):
        assert validation_service.collect_errors({"extra": 1}, [make_field("name", "TEXT")]) == []


class TestTypes:
    """타입별 검사."""

    def test_email(self):
        fields = [make_field("email", "EMAIL")]
        assert validation_service.collect_errors({"email": "a@b.co"}, fields) == []
        assert validation_service.collect_errors({"email": "not-an-email"}, fields) == [
            "Email must be a valid email address"
        ]
        assert validation_service.collect_errors({"email": "a@b.co\n"}, fields) == [
            "Email must be a valid email address"
        ]

    def test_text_max_length(self):
        fields = [make_field("name", "TEXT", config={"max_length": 3})]
        assert validation_service.collect_errors({"name": "abcd"}, fields) == [
            "Name must be at most 3 characters"
        ]

    def test_number_rejects_bool_and_strings(self):
        fields = [make_field("value", "CURRENCY")]
        assert validation_service.collect_errors({"value": True}, fields) == ["Value must be a number"]
        assert validation_service.collect_errors({"value": "10"}, fields) == ["Value must be a number"]
        assert validation_service.collect_errors({"value": 10.5}, fields) == []

    def test_number_bounds(self):
        fields = [make_field("score", "NUMBER", config={"min": 0, "max": 10})]
        assert validation_service.collect_errors({"score": -1}, fields) == ["Score must be at least 0"]
        assert validation_service.collect_errors({"score": 11}, fields) == ["Score must be at most 10"]

    def test_select_options(self):
        fields = [make_field("stage", "SELECT", config={"options": [{"value": "lead"}, {"value": "won"}]})]
        assert validation_service.collect_errors({"stage": "lead"}, fields) == []
        assert validation_service.collect_errors({"stage": "lost"}, fields) == ["Stage must be one of: lead, won"]

    def test_multi_select(self):
        fields = [make_field("tags", "MULTI_SELECT", config={"options": ["a", "b"]})]
        assert validation_service.collect_errors({"tags": ["a"]}, fields) == []
        assert validation_service.collect_errors({"tags": "a"}, fields) == ["Tags must be an array"]
        assert validation_service.collect_errors({"tags": ["c"]}, fields) == ["Tags contains invalid value: c"]

    def test_loose_options_do_not_crash(self):
        """값 없는 선택지와 숫자 선택지 (Options without a value, numeric options)."""
        fields = [make_field("tier", "SELECT", config={"options": [{"label": "Gold"}, {"value": "silver"}, 1, 2]})]
        assert validation_service.collect_errors({"tier": "gold"}, fields) == ["Tier must be one of: silver, 1, 2"]
        assert validation_service.collect_errors({"tier": "1"}, fields) == []

    def test_date(self):
        fields = [make_field("due", "DATE")]
        assert validation_service.collect_errors({"due": "2024-05-01"}, fields) == []
        assert validation_service.collect_errors({"due": "tomorrow"}, fields) == ["Due must be a valid date"]

    def test_boolean(self):
        fields = [make_field("active", "BOOLEAN")]
        assert validation_service.collect_errors({"active": False}, fields) == []
        assert validation_service.collect_errors({"active": "yes"}, fields) == ["Active must be a boolean"]

    def test_rating_range(self):
        fields = [make_field("rating", "RATING")]
        assert validation_service.collect_errors({"rating": 5}, fields) == []
        assert validation_service.collect_errors({"rating": 6}, fields) == ["Rating must be between 1 and 5"]

    def test_url(self):
        fields = [make_field("site", "URL")]
        assert validation_service.collect_errors({"site": "https://example.com"}, fields) == []
        assert validation_service.collect_errors({"site": "example"}, fields) == ["Site must be a valid URL"]

    def test_relation_accepts_id_or_list(self):
        fields = [make_field("company", "RELATION")]
        assert validation_service.collect_errors({"company": "abc"}, fields) == []
        assert validation_service.collect_errors({"company": ["a", "b"]}, fields) == []
        assert validation_service.collect_errors({"company": 5}, fields) == [
            "Company must be a string ID or array of IDs"
        ]


class TestValidateData:
    def test_collects_all_errors(self):
        """모든 오류를 한 번에 수집."""
        fields = [make_field("name", "TEXT", required=True), make_field("email", "EMAIL")]
        with pytest.raises(ValidationFailedError) as exc_info:
            validation_service.validate_data({"email": "bad"}, fields)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail["errors"] == [
            'Field "Name" is required',
            "Email must be a valid email address",
        ]
