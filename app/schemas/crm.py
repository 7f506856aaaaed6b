"""CRM 메타데이터 Pydantic 요청 스키마 정의.

Request schemas for objects, fields, records, relations, activities,
pipelines and saved views.
"""

from typing import Annotated, Any, Literal, get_args
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import HexColor, Identifier

ObjectType = Literal["SYSTEM", "CUSTOM"]

FieldType = Literal[
    "TEXT", "LONG_TEXT", "EMAIL", "PHONE", "URL",
    "NUMBER", "DECIMAL", "CURRENCY", "PERCENT",
    "DATE", "DATETIME", "BOOLEAN",
    "SELECT", "MULTI_SELECT", "RATING",
    "RELATION", "USER", "FORMULA", "FILE",
]
FIELD_TYPES: tuple[str, ...] = get_args(FieldType)

ActivityType = Literal[
    "NOTE", "CALL", "EMAIL", "MEETING", "TASK",
    "STAGE_CHANGED", "FIELD_UPDATED", "FILE_UPLOADED", "COMMENT",
]

ViewType = Literal["TABLE", "BOARD", "LIST", "CALENDAR"]

DisplayName = Annotated[str, Field(min_length=1, max_length=100)]
Icon = Annotated[str, Field(max_length=10)]


# === 오브젝트 (Object) 스키마 ===

class ObjectCreate(BaseModel):
    """오브젝트 생성 요청 스키마.

    Attributes:
        name: 소문자 식별자 (Lowercase identifier, unique per organization)
        display_name: 표시 이름 (Display label, max 100)
        type: SYSTEM | CUSTOM (기본 CUSTOM)
        icon: 아이콘 (Max 10 chars)
        color: #RRGGBB 색상
        settings: 오브젝트 설정 (Free-form settings)
    """

    name: Identifier
    display_name: DisplayName
    type: ObjectType = "CUSTOM"
    icon: Icon | None = None
    color: HexColor | None = None
    settings: dict[str, Any] = {}


class ObjectUpdate(BaseModel):
    """오브젝트 수정 요청 스키마 (부분 업데이트).

    SYSTEM objects accept only display_name, icon, color, settings and position.
    """

    display_name: DisplayName | None = None
    icon: Icon | None = None
    color: HexColor | None = None
    settings: dict[str, Any] | None = None
    position: Annotated[int | None, Field(ge=0)] = None
    is_archived: bool | None = None


class ReorderRequest(BaseModel):
    """순서 재정렬 요청 (position = index in ordered_ids)."""

    ordered_ids: list[UUID]


# === 필드 (Field) 스키마 ===

class FieldCreate(BaseModel):
    """필드 생성 요청 스키마.

    ``config`` carries type-specific settings: ``options`` for selects,
    ``related_object_id`` for relations, ``formula`` for formulas and
    limits such as ``min``/``max``/``max_length``/``pattern``/``max_rating``.
    """

    object_id: UUID
    name: Identifier
    display_name: DisplayName
    type: FieldType
    config: dict[str, Any] = {}
    is_required: bool = False
    is_unique: bool = False
    default_value: Any = None


class FieldUpdate(BaseModel):
    display_name: DisplayName | None = None
    config: dict[str, Any] | None = None
    is_required: bool | None = None
    is_unique: bool | None = None
    default_value: Any = None
    position: Annotated[int | None, Field(ge=0)] = None


# === 레코드 (Record) 스키마 ===

class RecordCreate(BaseModel):
    """레코드 생성 요청 스키마.

    Attributes:
        object_id: 대상 오브젝트 (Must exist and not be archived)
        data: 필드 이름 → 값 (Field name → value)
        stage: 파이프라인 단계 (Pipeline stage id)
        owner_id: 담당자, 기본 요청자 (Owner, defaults to the caller)
    """

    object_id: UUID
    data: dict[str, Any] = {}
    stage: Annotated[str | None, Field(max_length=100)] = None
    owner_id: UUID | None = None


class RecordUpdate(BaseModel):
    """레코드 수정 요청 - data는 기존 값과 병합 (``data`` is merged)."""

    data: dict[str, Any] | None = None
    stage: Annotated[str | None, Field(max_length=100)] = None
    owner_id: UUID | None = None
    is_archived: bool | None = None


class BulkUpdateRequest(BaseModel):
    ids: Annotated[list[UUID], Field(min_length=1)]
    data: dict[str, Any]


class BulkDeleteRequest(BaseModel):
    ids: Annotated[list[UUID], Field(min_length=1)]
    hard: bool = False


# === 관계 (Relation) 스키마 ===

class RelationCreate(BaseModel):
    """레코드 관계 생성 요청 (Typed edge between two records)."""

    from_record_id: UUID
    to_record_id: UUID
    relation_type: Annotated[str, Field(min_length=1, max_length=50)]
    metadata: dict[str, Any] = {}


# === 활동 (Activity) 스키마 ===

class ActivityCreate(BaseModel):
    record_id: UUID | None = None
    type: ActivityType
    title: Annotated[str, Field(min_length=1, max_length=500)]
    description: str | None = None
    metadata: dict[str, Any] = {}


# === 파이프라인 (Pipeline) 스키마 ===

class PipelineStage(BaseModel):
    """파이프라인 단계 (One stage of a pipeline)."""

    id: Annotated[str, Field(min_length=1, max_length=100)]
    name: Annotated[str, Field(min_length=1, max_length=100)]
    color: HexColor | None = None
    position: int = 0
    probability: Annotated[int | None, Field(ge=0, le=100)] = None


class PipelineCreate(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=100)]
    object_id: UUID
    stages: list[PipelineStage] = []
    is_default: bool = False


class PipelineUpdate(BaseModel):
    name: Annotated[str | None, Field(min_length=1, max_length=100)] = None
    stages: list[PipelineStage] | None = None
    is_default: bool | None = None
    is_archived: bool | None = None


# === 뷰 (View) 스키마 ===

class ViewCreate(BaseModel):
    """저장 뷰 생성 요청 (Saved view)."""

    object_id: UUID
    name: Annotated[str, Field(min_length=1, max_length=100)]
    type: ViewType = "TABLE"
    config: dict[str, Any] = {}
    is_default: bool = False
    is_shared: bool = False


class ViewUpdate(BaseModel):
    name: Annotated[str | None, Field(min_length=1, max_length=100)] = None
    type: ViewType | None = None
    config: dict[str, Any] | None = None
    is_default: bool | None = None
    is_shared: bool | None = None
    position: Annotated[int | None, Field(ge=0)] = None
