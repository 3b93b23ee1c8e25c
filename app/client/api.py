"""릴리스 노트 서버 HTTP 클라이언트"""

import json
from collections.abc import AsyncIterator

import httpx

from app.api.v1.schemas import DiffListResponse
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

SESSION_PATH = "/api/v1/notes/session"
DIFFS_PATH = "/api/v1/diffs"
SSE_DATA_PREFIX = "data:"


class NotesClientError(Exception):
    """서버 요청 실패"""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SessionExpiredError(NotesClientError):
    """스트리밍 요청 시 세션이 없거나 만료됨"""


def _error_message(response: httpx.Response, default: str) -> str:
    """에러 응답 본문의 message, 없으면 기본 문구"""
    try:
        data = response.json()
    except json.JSONDecodeError:
        return default
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or default
    return default


class DiffDigestClient:
    """diff 제출, SSE 스트림 구독, PR 목록 조회"""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.notes_api_base_url,
            timeout=settings.notes_api_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "DiffDigestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def fetch_diffs(self, page: int = 1, per_page: int | None = None) -> DiffListResponse:
        """머지된 PR 목록 한 페이지 조회"""
        params = {"page": page, "per_page": per_page or settings.diffs_per_page}
        response = await self._client.get(DIFFS_PATH, params=params)
        if response.is_error:
            raise NotesClientError(
                _error_message(response, f"HTTP error! status: {response.status_code}"),
                status_code=response.status_code,
            )
        return DiffListResponse.model_validate(response.json())

    async def create_session(self, item_id: str, description: str, diff: str) -> str:
        """diff 제출 후 sessionId 반환"""
        response = await self._client.post(
            SESSION_PATH,
            json={"prId": item_id, "description": description, "diff": diff},
        )
        if response.is_error:
            raise NotesClientError(
                _error_message(response, "릴리스 노트 생성 요청에 실패했습니다"),
                status_code=response.status_code,
            )
        return response.json()["sessionId"]

    async def stream_session(
        self,
        session_id: str,
        item_id: str | None = None,
        description: str | None = None,
    ) -> AsyncIterator[dict]:
        """세션 SSE 스트림의 이벤트를 순서대로 반환

        Raises:
            SessionExpiredError: 세션이 없거나 만료된 경우
            NotesClientError: 그 밖의 HTTP 오류
        """
        params = {"sessionId": session_id}
        if item_id is not None:
            params["prId"] = item_id
        if description is not None:
            params["description"] = description

        async with self._client.stream(
            "GET", SESSION_PATH, params=params, headers={"Accept": "text/event-stream"}
        ) as response:
            if response.status_code == 404:
                await response.aread()
                raise SessionExpiredError(
                    _error_message(response, "세션을 찾을 수 없습니다"), status_code=404
                )
            if response.is_error:
                await response.aread()
                raise NotesClientError(
                    _error_message(response, "스트림 연결에 실패했습니다"),
                    status_code=response.status_code,
                )

            async for line in response.aiter_lines():
                if not line.startswith(SSE_DATA_PREFIX):
                    continue
                payload = line[len(SSE_DATA_PREFIX) :].strip()
                try:
                    yield json.loads(payload)
                except json.JSONDecodeError:
                    logger.warning("이벤트 파싱 실패 session_id=%s", session_id)
