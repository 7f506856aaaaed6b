"""레코드 데이터 검증 서비스 - 필드 정의 기반 타입/제약 검사.

Record data validation against an object's field definitions. All errors
are collected and raised together as a single 400 response.
"""

import math
import re
from datetime import datetime
from typing import Any, Iterable
from urllib.parse import urlparse

from app.models.crm import Field
from app.utils.exceptions import ValidationFailedError

EMAIL_PATTERN: re.Pattern[str] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN: re.Pattern[str] = re.compile(r"^[+]?[\d\s\-().]{7,20}$")

TEXT_TYPES: frozenset[str] = frozenset({"TEXT", "LONG_TEXT"})
NUMBER_TYPES: frozenset[str] = frozenset({"NUMBER", "DECIMAL", "CURRENCY", "PERCENT"})
DATE_TYPES: frozenset[str] = frozenset({"DATE", "DATETIME"})
REFERENCE_TYPES: frozenset[str] = frozenset({"RELATION", "USER"})


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _is_number(value: Any) -> bool:
    # bool은 int의 하위 타입이므로 제외 (bool is an int subclass)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _option_values(config: dict[str, Any]) -> list[str] | None:
    options = config.get("options")
    if not isinstance(options, list):
        return None
    values: list[str] = []
    for option in options:
        value = option.get("value") if isinstance(option, dict) else option
        if value is not None:
            values.append(str(value))
    return values


class ValidationService:
    """필드 정의 기반 레코드 데이터 검증기.

    Validates a record's ``data`` map. Keys without a field definition are
    kept untouched; empty values are skipped unless the field is required.
    """

    def validate_data(self, data: dict[str, Any], fields: Iterable[Field]) -> None:
        """데이터를 검증하고 오류가 있으면 ValidationFailedError를 발생시킵니다.

        Args:
            data: 필드 이름 → 값 (Field name → value)
            fields: 오브젝트의 필드 정의 (Field definitions of the object)

        Raises:
            ValidationFailedError: 하나 이상의 필드가 유효하지 않을 때
                                   (One or more values are invalid)
        """
        errors: list[str] = self.collect_errors(data, fields)
        if errors:
            raise ValidationFailedError(errors)

    def collect_errors(self, data: dict[str, Any], fields: Iterable[Field]) -> list[str]:
        """검증 오류 메시지 목록을 반환합니다 (Return all error messages)."""
        errors: list[str] = []
        for field in fields:
            value: Any = data.get(field.name)
            if field.is_required and _is_empty(value):
                errors.append(f'Field "{field.display_name}" is required')
                continue
            if _is_empty(value):
                continue
            error: str | None = self.validate_value(field.type, value, field.config or {}, field.display_name)
            if error:
                errors.append(error)
        return errors

    def validate_value(
        self,
        field_type: str,
        value: Any,
        config: dict[str, Any],
        label: str,
    ) -> str | None:
        """단일 값 검증 - 오류 메시지 또는 None (Validate one value)."""
        if field_type in TEXT_TYPES:
            return self._text(value, config, label)
        if field_type == "EMAIL":
            return self._pattern(value, EMAIL_PATTERN, label, "a valid email address")
        if field_type == "PHONE":
            return self._pattern(value, PHONE_PATTERN, label, "a valid phone number")
        if field_type == "URL":
            return self._url(value, label)
        if field_type in NUMBER_TYPES:
            return self._number(value, config, label)
        if field_type in DATE_TYPES:
            return self._date(value, label)
        if field_type == "BOOLEAN":
            return None if isinstance(value, bool) else f"{label} must be a boolean"
        if field_type == "SELECT":
            return self._select(value, config, label)
        if field_type == "MULTI_SELECT":
            return self._multi_select(value, config, label)
        if field_type == "RATING":
            return self._rating(value, config, label)
        if field_type in REFERENCE_TYPES:
            return self._reference(value, label)
        # FORMULA, FILE - 서버 검증 없음 (No server-side checks)
        return None

    def _text(self, value: Any, config: dict[str, Any], label: str) -> str | None:
        if not isinstance(value, str):
            return f"{label} must be a string"
        min_length = config.get("min_length")
        max_length = config.get("max_length")
        if min_length and len(value) < min_length:
            return f"{label} must be at least {min_length} characters"
        if max_length and len(value) > max_length:
            return f"{label} must be at most {max_length} characters"
        pattern = config.get("pattern")
        if pattern and not re.search(pattern, value):
            return f"{label} has invalid format"
        return None

    def _pattern(self, value: Any, pattern: re.Pattern[str], label: str, description: str) -> str | None:
        if not isinstance(value, str):
            return f"{label} must be a string"
        if not pattern.fullmatch(value):
            return f"{label} must be {description}"
        return None

    def _url(self, value: Any, label: str) -> str | None:
        if not isinstance(value, str):
            return f"{label} must be a string"
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            return f"{label} must be a valid URL"
        return None

    def _number(self, value: Any, config: dict[str, Any], label: str) -> str | None:
        if not _is_number(value):
            return f"{label} must be a number"
        minimum = config.get("min")
        maximum = config.get("max")
        if minimum is not None and value < minimum:
            return f"{label} must be at least {minimum}"
        if maximum is not None and value > maximum:
            return f"{label} must be at most {maximum}"
        return None

    def _date(self, value: Any, label: str) -> str | None:
        if not isinstance(value, str):
            return f"{label} must be a valid date"
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return f"{label} must be a valid date"
        return None

    def _select(self, value: Any, config: dict[str, Any], label: str) -> str | None:
        if not isinstance(value, str):
            return f"{label} must be a string"
        allowed = _option_values(config)
        if allowed is not None and value not in allowed:
            return f"{label} must be one of: {', '.join(allowed)}"
        return None

    def _multi_select(self, value: Any, config: dict[str, Any], label: str) -> str | None:
        if not isinstance(value, list):
            return f"{label} must be an array"
        allowed = _option_values(config)
        if allowed is not None:
            for item in value:
                if not isinstance(item, str) or item not in allowed:
                    return f"{label} contains invalid value: {item}"
        return None

    def _rating(self, value: Any, config: dict[str, Any], label: str) -> str | None:
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            return f"{label} must be an integer"
        max_rating: int = config.get("max_rating") or 5
        if value < 1 or value > max_rating:
            return f"{label} must be between 1 and {max_rating}"
        return None

    def _reference(self, value: Any, label: str) -> str | None:
        if isinstance(value, str):
            return None
        if isinstance(value, list):
            if all(isinstance(item, str) for item in value):
                return None
            return f"{label} contains invalid ID"
        return f"{label} must be a string ID or array of IDs"


# 싱글턴 인스턴스 - Singleton instance
validation_service: ValidationService = ValidationService()
