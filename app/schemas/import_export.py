"""가져오기/내보내기 Pydantic 스키마 정의 (Import/export request schemas)."""

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel

Transform = Literal["none", "lowercase", "uppercase", "trim"]


class ColumnMapping(BaseModel):
    """원본 컬럼 → 대상 필드 매핑 (Source column → target field)."""

    source_column: str
    target_field: str
    transform: Transform = "none"


class ImportOptions(BaseModel):
    """가져오기 옵션.

    Attributes:
        skip_duplicates: 고유 필드 값이 이미 있으면 건너뜀 (Skip rows matching an existing unique value)
        update_existing: 일치 레코드를 갱신 (Merge into the matching record instead)
    """

    skip_duplicates: bool = False
    update_existing: bool = False


class ImportRequest(BaseModel):
    object_id: UUID
    rows: list[dict[str, Any]]
    mappings: list[ColumnMapping]
    options: ImportOptions = ImportOptions()


class ExportRequest(BaseModel):
    format: Literal["csv", "xlsx"] = "csv"
    fields: list[str] | None = None
    record_ids: list[UUID] | None = None
