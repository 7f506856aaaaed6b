"""공통 Pydantic 스키마 및 검증 타입 정의.

Common Pydantic schemas and reusable validated types shared by every
API domain (identifier names, hex colors, enum literals).
"""

import re
from typing import Annotated, Literal

from pydantic import AfterValidator, Field

# 오브젝트/필드 이름 규칙 - lowercase identifier starting with a letter
NAME_PATTERN: re.Pattern[str] = re.compile(r"[a-z][a-z0-9_]*")
NAME_MESSAGE: str = (
    "Name must start with a letter and contain only lowercase letters, numbers, and underscores"
)


def _check_identifier(value: str) -> str:
    if not NAME_PATTERN.fullmatch(value):
        raise ValueError(NAME_MESSAGE)
    return value


# 식별자 이름 타입 (Identifier name: ^[a-z][a-z0-9_]*$, max 50)
Identifier = Annotated[str, Field(min_length=1, max_length=50), AfterValidator(_check_identifier)]
# #RRGGBB 색상 (Hex color)
HexColor = Annotated[str, Field(pattern=r"^#[0-9A-Fa-f]{6}$")]

Priority = Literal["LOW", "MEDIUM", "HIGH", "URGENT"]
