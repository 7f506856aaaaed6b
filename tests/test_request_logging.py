"""요청 로깅 헬퍼 테스트.

Request logging helper tests: credential masking and error summaries.
"""

import json

from app.middleware.axiom_logging import error_summary, mask_sensitive


class TestMaskSensitive:
    def test_masks_credentials_recursively(self):
        masked = mask_sensitive({"email": "a@b.c", "password": "pw", "nested": {"api_key": "k", "code": "123456"}})
        assert masked == {"email": "a@b.c", "password": "***", "nested": {"api_key": "***", "code": "***"}}

    def test_code_must_match_whole_key(self):
        assert mask_sensitive({"postal_code": "10115"}) == {"postal_code": "10115"}

    def test_long_lists_and_strings_are_cut(self):
        masked = mask_sensitive({"items": list(range(50)), "note": "x" * 3000})
        assert len(masked["items"]) == 20
        assert masked["note"].endswith("...(truncated)")


class TestErrorSummary:
    def test_detail_string(self):
        assert error_summary(json.dumps({"detail": "Task not found"}).encode()) == "Task not found"

    def test_validation_payload(self):
        body = json.dumps({"detail": "Validation failed", "errors": [{"field": "name", "message": "required"}]})
        assert error_summary(body.encode()) == "Validation failed"

    def test_non_json(self):
        assert error_summary(b"Internal Server Error") == "Internal Server Error"
