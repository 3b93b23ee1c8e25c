"""릴리스 노트 엔드포인트 공통 CORS 헤더"""

from app.core.config import settings

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.cors_allowed_origins or "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Streaming-Request",
}

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    **CORS_HEADERS,
}
