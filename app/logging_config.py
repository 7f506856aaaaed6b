"""애플리케이션 로깅 설정 - JSON 형식 구조화 로그.

Application logging setup. Every module logs through
``logging.getLogger(__name__)``; this module installs a single JSON
formatter on the root logger so service events and request logs share
one format.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from app.config import settings

# 로그 레코드 기본 속성 - Attributes every LogRecord already has
_BASE_RECORD_KEYS: set[str] = set(logging.makeLogRecord({}).__dict__.keys())


class JsonLogFormatter(logging.Formatter):
    """로그 레코드를 한 줄 JSON으로 직렬화합니다.

    Serialize a log record to a single JSON line. Values passed through
    ``extra=`` are emitted under ``fields``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        extras: dict[str, Any] = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _BASE_RECORD_KEYS and not key.startswith("_")
        }
        if record.exc_info:
            extras["exception"] = self.formatException(record.exc_info)
        if extras:
            payload["fields"] = extras

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging() -> None:
    """루트 로거에 JSON 핸들러를 한 번만 설치합니다.

    Install the JSON handler on the root logger once. Safe to call repeatedly.
    """
    root_logger: logging.Logger = logging.getLogger()
    if getattr(root_logger, "_janus_configured", False):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    root_logger._janus_configured = True  # type: ignore[attr-defined]
