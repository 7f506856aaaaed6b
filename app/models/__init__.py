"""SQLAlchemy ORM 모델 패키지 - 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package - Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    organization: 조직 (Organization / tenant)
    user: 역할 및 사용자 (Role and User)
    token: 이메일 인증 코드 (Email verification codes)
    crm: 오브젝트, 필드, 레코드, 관계 (Objects, fields, records, relations)
    activity: 활동 타임라인 (Activity timeline)
    pipeline: 파이프라인 및 뷰 (Pipelines and saved views)
    workflow: 워크플로우 및 실행 이력 (Workflows and executions)
    notification: 알림 (User notifications)
    comment: 코멘트 (Comments)
    project: 프로젝트 및 멤버 (Projects and members)
    task: 업무, 체크리스트, 의존 관계 (Tasks, checklist items, dependencies)
    time_entry: 시간 기록 (Time entries)
    email: 이메일 템플릿 및 로그 (Email templates and logs)
    file: 업로드 파일 (Uploaded files)
    lead_score: 리드 점수 (Lead scores)
"""

from app.models.organization import Organization
from app.models.user import Role, User
from app.models.token import VerificationCode
from app.models.crm import CrmObject, Field, Record, Relation
from app.models.activity import Activity
from app.models.pipeline import Pipeline, View
from app.models.workflow import Workflow, WorkflowExecution
from app.models.notification import Notification
from app.models.comment import Comment
from app.models.project import Project, ProjectMember
from app.models.task import Task, ChecklistItem, TaskDependency
from app.models.time_entry import TimeEntry
from app.models.email import EmailTemplate, EmailLog
from app.models.file import File
from app.models.lead_score import LeadScore

__all__ = [
    "Organization",
    "Role", "User",
    "VerificationCode",
    "CrmObject", "Field", "Record", "Relation",
    "Activity",
    "Pipeline", "View",
    "Workflow", "WorkflowExecution",
    "Notification",
    "Comment",
    "Project", "ProjectMember",
    "Task", "ChecklistItem", "TaskDependency",
    "TimeEntry",
    "EmailTemplate", "EmailLog",
    "File",
    "LeadScore",
]
