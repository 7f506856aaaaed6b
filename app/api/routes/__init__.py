"""API 라우터 패키지 - 모든 CRM 엔드포인트 통합.

API Router package - Aggregates every endpoint under a single router
that the application mounts at ``/api``.

Included routers (Identity):
    - auth: 회원가입, 로그인, 이메일 코드 (Registration, login, email codes)
    - users: 사용자 및 프로필 (Users and profile)

Included routers (Data model):
    - objects, fields, records, relations: 오브젝트/필드/레코드/관계

Included routers (Sales):
    - activities, pipelines, views, workflows: 활동, 파이프라인, 뷰, 자동화
    - lead_scoring: 리드 점수 (Lead scores)

Included routers (Work):
    - projects, tasks, time_entries: 프로젝트, 업무, 시간 기록

Included routers (Communication):
    - notifications, comments, email_templates: 알림, 코멘트, 이메일

Included routers (Data):
    - files, import_export, dashboard: 파일, 가져오기/내보내기, 대시보드
"""

from fastapi import APIRouter

# Identity 라우터 임포트
from app.api.routes.auth import router as auth_router
from app.api.routes.users import router as users_router

# Data model 라우터 임포트
from app.api.routes.objects import router as objects_router
from app.api.routes.fields import router as fields_router
from app.api.routes.records import router as records_router
from app.api.routes.relations import router as relations_router

# Sales 라우터 임포트
from app.api.routes.activities import router as activities_router
from app.api.routes.pipelines import router as pipelines_router
from app.api.routes.views import router as views_router
from app.api.routes.workflows import router as workflows_router
from app.api.routes.lead_scoring import router as lead_scoring_router

# Work 라우터 임포트
from app.api.routes.projects import router as projects_router
from app.api.routes.tasks import router as tasks_router
from app.api.routes.time_entries import router as time_entries_router

# Communication 라우터 임포트
from app.api.routes.notifications import router as notifications_router
from app.api.routes.comments import router as comments_router
from app.api.routes.email_templates import router as email_templates_router

# Data 라우터 임포트
from app.api.routes.files import router as files_router
from app.api.routes.import_export import router as import_export_router
from app.api.routes.dashboard import router as dashboard_router

api_router: APIRouter = APIRouter()

# ---------------------------------------------------------------------------
# Identity 라우터 등록
# ---------------------------------------------------------------------------
api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])

# ---------------------------------------------------------------------------
# Data model 라우터 등록
# ---------------------------------------------------------------------------
api_router.include_router(objects_router, prefix="/objects", tags=["Objects"])
api_router.include_router(fields_router, prefix="/fields", tags=["Fields"])
api_router.include_router(records_router, prefix="/records", tags=["Records"])
api_router.include_router(relations_router, prefix="/relations", tags=["Relations"])

# ---------------------------------------------------------------------------
# Sales 라우터 등록
# ---------------------------------------------------------------------------
api_router.include_router(activities_router, prefix="/activities", tags=["Activities"])
api_router.include_router(pipelines_router, prefix="/pipelines", tags=["Pipelines"])
api_router.include_router(views_router, prefix="/views", tags=["Views"])
api_router.include_router(workflows_router, prefix="/workflows", tags=["Workflows"])
api_router.include_router(lead_scoring_router, prefix="/lead-scoring", tags=["Lead Scoring"])

# ---------------------------------------------------------------------------
# Work 라우터 등록
# ---------------------------------------------------------------------------
api_router.include_router(projects_router, prefix="/projects", tags=["Projects"])
api_router.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(time_entries_router, prefix="/time-entries", tags=["Time Entries"])

# ---------------------------------------------------------------------------
# Communication 라우터 등록
# ---------------------------------------------------------------------------
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(comments_router, prefix="/comments", tags=["Comments"])
api_router.include_router(email_templates_router, prefix="/email-templates", tags=["Email Templates"])

# ---------------------------------------------------------------------------
# Data 라우터 등록
# ---------------------------------------------------------------------------
api_router.include_router(files_router, prefix="/files", tags=["Files"])
api_router.include_router(import_export_router, prefix="/import-export", tags=["Import/Export"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
