"""테스트 공통 fixture"""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.messages import AIMessageChunk

from app.client.api import DiffDigestClient
from app.client.models import Item
from app.client.storage import LocalRecordStore, MemoryBackend
from app.core.limiter import limiter
from app.domain.notes.schemas import NotesSession
from app.infra.llm.factory import reset_clients
from app.infra.session.store import get_session_store, reset_session_store
from app.main import app

SAMPLE_NOTES_JSON = '{"developer": "Fixed null check in parser", "marketing": "The app no longer crashes"}'


def split_tokens(text: str, size: int = 7) -> list[str]:
    """LLM 토큰처럼 텍스트를 잘게 나눔"""
    return [text[i : i + size] for i in range(0, len(text), size)]


def make_chat_model(fragments: list[str], error: Exception | None = None) -> MagicMock:
    """astream으로 주어진 조각을 내보내는 채팅 모델 mock"""

    async def astream(messages, config=None):
        for fragment in fragments:
            yield AIMessageChunk(content=fragment)
        if error is not None:
            raise error

    model = MagicMock()
    model.astream = MagicMock(side_effect=astream)
    return model


@pytest.fixture(autouse=True)
def reset_state():
    """세션 저장소, LLM 클라이언트, 요청 제한 초기화"""
    reset_session_store()
    reset_clients()
    limiter.reset()
    yield
    reset_session_store()
    reset_clients()


@pytest.fixture
def session_store():
    return get_session_store()


@pytest.fixture
def mock_llm():
    """릴리스 노트 생성용 LLM 클라이언트 mock

    `mock_llm.stream(fragments)` 로 응답 조각을 지정한다.
    """
    with patch("app.infra.llm.client.get_notes_client") as mock_get:
        mock_client = MagicMock()
        mock_client.describe.return_value = "test/test-model"
        mock_get.return_value = mock_client

        def stream(fragments: list[str], error: Exception | None = None) -> MagicMock:
            model = make_chat_model(fragments, error)
            mock_client.get_chat_model.return_value = model
            return model

        mock_client.stream = stream
        stream(split_tokens(SAMPLE_NOTES_JSON))
        yield mock_client


@pytest.fixture
def sample_session() -> NotesSession:
    """테스트용 세션"""
    return NotesSession(
        session_id="42-1700000000000",
        item_id="42",
        description="fix bug",
        diff="- old\n+ new",
        created_at=1700000000000,
    )


@pytest.fixture
def sample_item() -> Item:
    """테스트용 PR"""
    return Item(
        id="42",
        description="fix bug",
        url="https://github.com/acme/widgets/pull/42",
        diff="- old\n+ new",
        timestamp=1700000000000,
    )


@pytest.fixture
def record_store() -> LocalRecordStore:
    return LocalRecordStore(MemoryBackend())


@pytest.fixture
def async_client():
    """비동기 HTTP 클라이언트"""
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def notes_api(async_client) -> DiffDigestClient:
    """앱에 직접 연결된 릴리스 노트 클라이언트"""
    return DiffDigestClient(http_client=async_client)


@pytest.fixture
def mock_github_response():
    """GitHub API 응답 mock 생성"""
    mock = MagicMock()
    mock.raise_for_status = MagicMock()
    mock.links = {}
    return mock


@pytest.fixture
def create_http_error():
    """HTTPStatusError 생성 helper"""

    def _create(status_code: int, message: str = "Error"):
        return httpx.HTTPStatusError(
            message,
            request=httpx.Request("GET", "https://test.com"),
            response=httpx.Response(status_code),
        )

    return _create


def parse_sse(body: str) -> list[dict]:
    """SSE 본문을 이벤트 목록으로 변환"""
    return [
        json.loads(line[len("data: ") :])
        for line in body.split("\n")
        if line.startswith("data: ")
    ]
