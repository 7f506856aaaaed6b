"""API 요청 로깅 미들웨어 - 로컬 로그 + 선택적 Axiom 전송.

Request logging middleware. Every ``/api`` request becomes one structured
event on the ``app.request`` logger; when an Axiom token and dataset are
configured the same event is ingested into Axiom. Keys that look like
credentials (password, token, secret, verification ``code``) are masked
before the event leaves the process.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger("app.request")

SENSITIVE_KEY_PATTERN = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|credential|^code$)",
    re.IGNORECASE,
)
UNLOGGED_PATHS: frozenset[str] = frozenset({"/api/health", "/docs", "/redoc", "/openapi.json"})
MAX_DEPTH: int = 5
MAX_LIST_ITEMS: int = 20
MAX_BODY_CHARS: int = 2000
MAX_ERROR_CHARS: int = 500


def mask_sensitive(data: Any, depth: int = 0) -> Any:
    """민감 키 값을 ``***``로 (Mask credential-like keys, recursing into containers)."""
    if depth > MAX_DEPTH:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if SENSITIVE_KEY_PATTERN.search(str(key)) else mask_sensitive(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item, depth + 1) for item in data[:MAX_LIST_ITEMS]]
    if isinstance(data, str) and len(data) > MAX_BODY_CHARS:
        return data[:MAX_BODY_CHARS] + "...(truncated)"
    return data


def error_summary(body: bytes) -> str:
    """오류 응답의 detail 요약 (Short text for an error response body)."""
    try:
        payload: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace")[:MAX_ERROR_CHARS]
    if isinstance(payload, dict) and "detail" in payload:
        payload = payload["detail"]
    text: str = payload if isinstance(payload, str) else json.dumps(payload, default=str)
    return text if len(text) <= MAX_ERROR_CHARS else text[:MAX_ERROR_CHARS] + "..."


def _log_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """API 요청 한 건당 이벤트 하나 (One structured event per API request).

    The event holds method, path, masked query and JSON body, status code,
    duration and, for 4xx/5xx, the error detail.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._dataset: str = settings.AXIOM_DATASET
        self._client: AxiomClient | None = (
            AxiomClient(token=settings.AXIOM_API_TOKEN)
            if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET
            else None
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path: str = request.url.path
        if not path.startswith("/api") or path in UNLOGGED_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": path, "status_code": 500}
        if request.query_params:
            event["query_params"] = mask_sensitive(dict(request.query_params))
        body: Any = await self._json_body(request)
        if body is not None:
            event["request_body"] = body

        try:
            response: Response = await call_next(request)
            event["status_code"] = response.status_code
            if response.status_code >= 400:
                response = await self._buffer_error(response, event)
            return response
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            if request.path_params:
                event["path_params"] = dict(request.path_params)
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            self._emit(event)

    @staticmethod
    async def _json_body(request: Request) -> Any:
        """JSON 요청 본문만 기록 (multipart uploads are never captured)."""
        if request.method not in ("POST", "PUT", "PATCH"):
            return None
        if not request.headers.get("content-type", "").startswith("application/json"):
            return None
        raw: bytes = await request.body()
        if not raw:
            return None
        try:
            return mask_sensitive(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "(non-json body)"

    @staticmethod
    async def _buffer_error(response: Response, event: dict[str, Any]) -> Response:
        """스트리밍 응답을 읽어 detail 기록 후 다시 감쌈 (Re-wrap the consumed body)."""
        chunks: list[bytes] = []
        async for chunk in response.body_iterator:
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
        content: bytes = b"".join(chunks)
        event["error"] = error_summary(content)
        return Response(
            content=content,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
        )

    def _emit(self, event: dict[str, Any]) -> None:
        logger.log(
            _log_level(event["status_code"]),
            "%s %s %s",
            event["method"],
            event["path"],
            event["status_code"],
            extra=event,
        )
        if self._client is None:
            return
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception:
            # 전송 실패는 응답에 영향 없음 - Ingest failures never fail the request
            logger.warning("Axiom ingest failed", exc_info=True)
