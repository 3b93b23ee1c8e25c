"""
structlog 기반 로깅 설정

개발 환경은 콘솔, 프로덕션은 JSON으로 출력한다.
request_id/session_id는 contextvars에서 주입되고,
diff나 LLM 응답 원문 같은 큰 값은 길이로 대체된다.
"""

import logging
import re
import sys

import structlog

from app.core.config import settings
from app.core.context import get_request_id, get_session_id

SECRET_PATTERNS = (
    (re.compile(r"(token=)[^&\s]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(Bearer\s+)[^\s]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(api[_-]?key=)[^&\s]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"\b(gh[pousr]_)[A-Za-z0-9]+"), r"\1***"),
    (re.compile(r"\b(sk-)[A-Za-z0-9_-]{8,}"), r"\1***"),
)

# 로그에 원문을 남기지 않는 필드
PAYLOAD_KEYS = frozenset({"diff", "content", "full_content", "prompt"})

QUIET_LOGGERS = (
    "httpcore",
    "httpx",
    "openai",
    "langchain",
    "langfuse",
    "google_genai",
    "anyio",
)


def mask_secrets(value: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def inject_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """request_id, session_id 주입"""
    request_id = get_request_id()
    if request_id:
        event_dict.setdefault("request_id", request_id)

    session_id = get_session_id()
    if session_id:
        event_dict.setdefault("session_id", session_id)

    return event_dict


def summarize_payloads(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """diff, 응답 원문 등은 길이만 기록"""
    for key in PAYLOAD_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<{len(value)} chars>"
    return event_dict


def mask_secrets_processor(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """프로덕션에서 토큰, API 키 마스킹"""
    if not settings.is_production:
        return event_dict

    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = mask_secrets(value)
    return event_dict


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """structlog와 루트 로거 설정

    Args:
        level: 로그 레벨, 기본값은 LOG_LEVEL
        json_logs: JSON 출력 여부, 기본값은 프로덕션 여부
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    if json_logs is None:
        json_logs = settings.is_production

    shared_processors: list = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        inject_context,
        summarize_payloads,
        mask_secrets_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
