"""SPA 폴백 미들웨어 - 정적 export된 웹 클라이언트의 동적 경로 처리.

SPA fallback middleware. The web client is a static export with one
pre-generated ``_placeholder/index.html`` per dynamic section; a direct
hit on ``/contacts/<id>`` is answered with that page and the client
resolves the id itself.
"""

import logging
import re
from pathlib import Path
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import FileResponse, Response

logger = logging.getLogger(__name__)

DYNAMIC_SECTIONS: tuple[str, ...] = ("contacts", "companies", "deals", "projects")

_DYNAMIC_ROUTES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"^/{section}/([^/]+)/?$"), f"{section}/_placeholder/index.html")
    for section in DYNAMIC_SECTIONS
]


class SpaFallbackMiddleware(BaseHTTPMiddleware):
    """동적 클라이언트 경로를 placeholder 페이지로 응답합니다.

    Args:
        static_dir: 정적 export 디렉토리 (Directory of the exported client)
    """

    def __init__(self, app: Any, static_dir: str) -> None:
        super().__init__(app)
        self._root: Path = Path(static_dir).resolve()

    def fallback_for(self, path: str) -> Path | None:
        """요청 경로에 대한 placeholder 파일. 실제 파일이 있거나 동적 경로가 아니면 None."""
        if path.startswith("/api/"):
            return None
        relative = path.lstrip("/")
        requested = self._root / (f"{relative}index.html" if path.endswith("/") else relative)
        if requested.exists():
            return None
        for pattern, placeholder in _DYNAMIC_ROUTES:
            if pattern.match(path):
                candidate = self._root / placeholder
                return candidate if candidate.is_file() else None
        return None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await call_next(request)
        fallback = self.fallback_for(request.url.path)
        if fallback is None:
            return await call_next(request)
        logger.debug("SPA fallback", extra={"path": request.url.path, "file": str(fallback)})
        return FileResponse(fallback)
