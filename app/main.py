"""FastAPI 애플리케이션 엔트리포인트 - 미들웨어, 예외 처리기, 라우터 등록.

FastAPI application entry point - Middleware, exception handlers and
router registration. Every endpoint lives under ``/api``; the exported web
client is served from ``WEB_STATIC_DIR`` when configured.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.logging_config import configure_logging
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.middleware.spa_fallback import SpaFallbackMiddleware

configure_logging()
logger = logging.getLogger(__name__)

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# SPA 폴백 - 정적 웹 빌드가 있을 때만 (Only when a static web export is configured)
if settings.WEB_STATIC_DIR:
    app.add_middleware(SpaFallbackMiddleware, static_dir=settings.WEB_STATIC_DIR)

# 요청 로깅 미들웨어 - CORS보다 먼저 등록 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 - Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# 예외 처리기 - Exception handlers
# ---------------------------------------------------------------------------


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """pydantic 오류를 {field, message} 목록으로 변환합니다.

    ``loc`` starts with the request part (body, query, path); it is dropped
    so ``field`` is the dotted path inside that part.
    """
    formatted: list[dict[str, str]] = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path", "header", "cookie", "form"):
            loc = loc[1:]
        message: str = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.append({"field": ".".join(str(part) for part in loc) or "body", "message": message})
    return formatted


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 실패 - 422 대신 400 (Invalid input is answered with 400)."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "errors": format_validation_errors(list(exc.errors()))},
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity violation", extra={"path": request.url.path, "error": str(exc.orig)})
    return JSONResponse(status_code=409, content={"detail": "Resource already exists"})


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ---------------------------------------------------------------------------
# 라우터 등록 - Router registration
# ---------------------------------------------------------------------------
from app.api.routes import api_router  # noqa: E402

app.include_router(api_router, prefix="/api")

# 정적 웹 빌드 - 라우터 뒤에 마운트 (Mounted last so /api routes win)
if settings.WEB_STATIC_DIR:
    app.mount("/", StaticFiles(directory=settings.WEB_STATIC_DIR, html=True), name="web")
