from enum import Enum

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.cors import CORS_HEADERS


class ErrorCode(str, Enum):
    """에러 코드 열거형"""

    INVALID_INPUT = "INVALID_INPUT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    GITHUB_API_ERROR = "GITHUB_API_ERROR"
    LLM_ERROR = "LLM_ERROR"
    NOTES_PARSE_ERROR = "NOTES_PARSE_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CustomException(Exception):
    def __init__(
        self,
        status_code: int,
        error_code: ErrorCode | str,
        message: str,
        detail: str | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail
        super().__init__(message)


class GitHubAPIError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=502,
            error_code=ErrorCode.GITHUB_API_ERROR,
            message="GitHub API 호출에 실패했습니다",
            detail=detail,
        )


class LLMError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=502,
            error_code=ErrorCode.LLM_ERROR,
            message="LLM 호출에 실패했습니다",
            detail=detail,
        )


class ValidationError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=400,
            error_code=ErrorCode.INVALID_INPUT,
            message="입력값이 올바르지 않습니다",
            detail=detail,
        )


class SessionNotFoundError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=404,
            error_code=ErrorCode.SESSION_NOT_FOUND,
            message="세션을 찾을 수 없습니다",
            detail=detail,
        )


class NotesParseError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=422,
            error_code=ErrorCode.NOTES_PARSE_ERROR,
            message="릴리스 노트 응답을 파싱할 수 없습니다",
            detail=detail,
        )


def _error_content(error_code: ErrorCode | str, message: str, detail: str | None) -> dict:
    content = {
        "error_code": error_code,
        "message": message,
    }
    if detail and not settings.is_production:
        content["detail"] = detail
    return content


def register_exception_handlers(app):
    @app.exception_handler(CustomException)
    async def custom_exception_handler(request: Request, exc: CustomException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(exc.error_code, exc.message, exc.detail),
            headers=CORS_HEADERS,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(loc) for loc in err["loc"]) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=_error_content(
                ErrorCode.INVALID_INPUT,
                "입력값이 올바르지 않습니다",
                f"필수 값 누락 또는 형식 오류: {', '.join(fields)}",
            ),
            headers=CORS_HEADERS,
        )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """요청 제한 초과 - 다른 에러와 같은 본문 형식과 CORS 헤더로 응답"""
    return JSONResponse(
        status_code=429,
        content=_error_content(ErrorCode.RATE_LIMITED, "요청이 너무 많습니다", str(exc.detail)),
        headers=CORS_HEADERS,
    )
