"""{{변수}} 치환 유틸리티.

Minimal ``{{ key }}`` placeholder rendering shared by email templates
and workflow action configs.
"""

import re
from typing import Any, Callable

PLACEHOLDER_PATTERN: re.Pattern[str] = re.compile(r"\{\{([^}]+)\}\}")


def render(template: str, resolve: Callable[[str], Any]) -> str:
    """템플릿 문자열의 {{key}}를 resolve(key) 결과로 치환합니다.

    Replace each ``{{key}}`` with ``str(resolve(key))``. When ``resolve``
    returns None the placeholder is left untouched.

    Args:
        template: 원본 문자열 (Template string)
        resolve: 키 → 값 함수 (Callable mapping a trimmed key to a value)

    Returns:
        str: 치환된 문자열 (Rendered string)
    """

    def _replace(match: re.Match[str]) -> str:
        value: Any = resolve(match.group(1).strip())
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)
