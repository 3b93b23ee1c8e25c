"""
HTTP 요청 로깅 미들웨어

- 요청마다 request_id 부여, X-Request-ID 응답 헤더 추가
- 스트리밍 요청은 sessionId를 함께 기록
- SSE 응답은 스트림이 열린 시점까지만 측정, 본문 종료는 오케스트레이터가 기록
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.context import clear_context, set_request_id
from app.core.logging import get_logger

logger = get_logger(__name__)

SKIP_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico"})
EVENT_STREAM_TYPE = "text/event-stream"


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _request_fields(request: Request) -> dict:
    fields = {"method": request.method, "path": request.url.path}
    session_id = request.query_params.get("sessionId")
    if session_id:
        fields["stream_session"] = session_id
    if request.headers.get("X-Streaming-Request"):
        fields["streaming_header"] = True
    return fields


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or request.url.path in SKIP_PATHS:
            return await call_next(request)

        request_id = set_request_id(request.headers.get("X-Request-ID"))
        fields = _request_fields(request)
        started = time.perf_counter()

        logger.info("요청 시작", client_ip=_client_ip(request), **fields)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "요청 실패",
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                **fields,
            )
            clear_context()
            raise

        is_stream = response.headers.get("content-type", "").startswith(EVENT_STREAM_TYPE)
        logger.info(
            "스트림 시작" if is_stream else "요청 완료",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            **fields,
        )
        response.headers["X-Request-ID"] = request_id
        clear_context()
        return response
