"""프로젝트/업무/시간 기록 Pydantic 요청 스키마 정의.

Request schemas for projects, project members, tasks, checklist items,
task dependencies and time entries.
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import HexColor, Priority

ProjectStatus = Literal["PLANNING", "ACTIVE", "ON_HOLD", "COMPLETED", "CANCELLED"]
TaskStatus = Literal["TODO", "IN_PROGRESS", "IN_REVIEW", "BLOCKED", "DONE", "CANCELLED"]
MemberRole = Literal["ADMIN", "MEMBER", "VIEWER"]
DependencyType = Literal["BLOCKS", "BLOCKED_BY", "RELATED"]


# === 프로젝트 (Project) 스키마 ===

class ProjectCreate(BaseModel):
    """프로젝트 생성 요청 스키마.

    The creator becomes owner and an OWNER member.

    Attributes:
        name: 프로젝트 이름 (Project name)
        status: 상태 (기본 PLANNING)
        priority: 우선순위 (기본 MEDIUM)
        record_id: 연결 CRM 레코드 (Linked record, e.g. a deal)
        team_ids: 팀 사용자 목록 (Team user ids)
        time_estimate: 예상 시간 분 (Estimated minutes)
    """

    name: Annotated[str, Field(min_length=1, max_length=200)]
    description: str | None = None
    status: ProjectStatus = "PLANNING"
    priority: Priority = "MEDIUM"
    start_date: datetime | None = None
    end_date: datetime | None = None
    record_id: UUID | None = None
    team_ids: list[UUID] = []
    budget: Annotated[float | None, Field(ge=0)] = None
    time_estimate: Annotated[int | None, Field(ge=0)] = None
    color: HexColor | None = None
    emoji: Annotated[str | None, Field(max_length=10)] = None


class ProjectUpdate(BaseModel):
    name: Annotated[str | None, Field(min_length=1, max_length=200)] = None
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    record_id: UUID | None = None
    team_ids: list[UUID] | None = None
    budget: Annotated[float | None, Field(ge=0)] = None
    time_estimate: Annotated[int | None, Field(ge=0)] = None
    color: HexColor | None = None
    emoji: Annotated[str | None, Field(max_length=10)] = None
    is_archived: bool | None = None


class MemberAdd(BaseModel):
    """프로젝트 멤버 추가/역할 변경 (Upsert membership)."""

    user_id: UUID
    role: MemberRole = "MEMBER"


# === 업무 (Task) 스키마 ===

class TaskCreate(BaseModel):
    """업무 생성 요청 스키마.

    Attributes:
        title: 업무 제목 (Task title)
        status: 상태 (기본 TODO)
        priority: 우선순위 (기본 MEDIUM)
        project_id: 소속 프로젝트 (Optional project)
        record_id: 연결 CRM 레코드 (Optional linked record)
        parent_id: 상위 업무 (Parent task for subtasks)
        assignee_id: 담당자 (Assignee, notified when not the creator)
    """

    title: Annotated[str, Field(min_length=1, max_length=500)]
    description: str | None = None
    status: TaskStatus = "TODO"
    priority: Priority = "MEDIUM"
    project_id: UUID | None = None
    record_id: UUID | None = None
    parent_id: UUID | None = None
    assignee_id: UUID | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    time_estimate: Annotated[int | None, Field(ge=0)] = None
    tags: list[str] = []


class TaskUpdate(BaseModel):
    """업무 수정 요청 (담당자는 status, time_spent만 변경 가능)."""

    title: Annotated[str | None, Field(min_length=1, max_length=500)] = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    project_id: UUID | None = None
    record_id: UUID | None = None
    parent_id: UUID | None = None
    assignee_id: UUID | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    time_estimate: Annotated[int | None, Field(ge=0)] = None
    time_spent: Annotated[int | None, Field(ge=0)] = None
    tags: list[str] | None = None
    is_archived: bool | None = None


class TaskMove(BaseModel):
    """칸반 이동 요청 (Move to a column at a position)."""

    status: TaskStatus
    position: Annotated[int, Field(ge=0)]


class ChecklistItemCreate(BaseModel):
    title: Annotated[str, Field(min_length=1, max_length=500)]


class DependencyCreate(BaseModel):
    depends_on_id: UUID
    type: DependencyType = "BLOCKS"


# === 시간 기록 (Time entry) 스키마 ===

class TimeEntryCreate(BaseModel):
    """시간 기록 생성 요청 (Manual entry; duration in minutes)."""

    description: str | None = None
    task_id: UUID | None = None
    project_id: UUID | None = None
    record_id: UUID | None = None
    start_time: datetime
    end_time: datetime | None = None
    duration: Annotated[int | None, Field(ge=0)] = None
    is_billable: bool = False
    hourly_rate: Annotated[float | None, Field(ge=0)] = None


class TimeEntryUpdate(BaseModel):
    description: str | None = None
    task_id: UUID | None = None
    project_id: UUID | None = None
    record_id: UUID | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: Annotated[int | None, Field(ge=0)] = None
    is_billable: bool | None = None
    hourly_rate: Annotated[float | None, Field(ge=0)] = None


class TimerStart(BaseModel):
    """타이머 시작 요청 (Starts a timer; any running one is stopped first)."""

    description: str | None = None
    task_id: UUID | None = None
    project_id: UUID | None = None
    record_id: UUID | None = None
    is_billable: bool = False
    hourly_rate: Annotated[float | None, Field(ge=0)] = None
