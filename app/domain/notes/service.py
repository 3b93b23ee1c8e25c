import asyncio
import time
from collections.abc import AsyncIterator

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from app.core.config import settings
from app.core.context import set_session_id
from app.core.exceptions import ErrorCode, LLMError, NotesParseError
from app.core.logging import get_logger
from app.domain.notes.parsers import NotesAccumulator, extract_partial_notes, parse_final_notes
from app.domain.notes.prompts import RELEASE_NOTES_HUMAN, RELEASE_NOTES_SYSTEM
from app.domain.notes.schemas import (
    TERMINAL_EVENT_TYPES,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    NotesSession,
    StatusEvent,
    StreamEvent,
)
from app.infra.llm.client import stream_completion
from app.infra.session.store import SessionStore

logger = get_logger(__name__)

_background_tasks: set[asyncio.Task] = set()


def truncate_diff(diff: str, max_length: int | None = None) -> str:
    """토큰 한도를 넘지 않도록 diff 앞부분만 남기고 표시 추가"""
    if max_length is None:
        max_length = settings.diff_max_length
    if len(diff) <= max_length:
        return diff
    return f"{diff[:max_length]}{settings.diff_truncation_marker}"


def build_messages(item_id: str, description: str, diff: str) -> list[BaseMessage]:
    """릴리스 노트 생성 프롬프트 구성"""
    return [
        SystemMessage(content=RELEASE_NOTES_SYSTEM),
        HumanMessage(
            content=RELEASE_NOTES_HUMAN.format(
                item_id=item_id,
                description=description,
                diff=truncate_diff(diff),
            )
        ),
    ]


async def allocate_session_id(store: SessionStore, item_id: str) -> str:
    """PR ID와 밀리초 타임스탬프로 세션 ID 생성, 충돌 시 타임스탬프 증가"""
    timestamp = int(time.time() * 1000)
    session_id = f"{item_id}-{timestamp}"
    while await store.exists(session_id):
        timestamp += 1
        session_id = f"{item_id}-{timestamp}"
    return session_id


async def create_session(
    store: SessionStore,
    item_id: str,
    description: str,
    diff: str,
) -> NotesSession:
    """diff를 서버에 보관하고 세션 발급

    Args:
        store: 세션 저장소
        item_id: PR ID
        description: PR 설명
        diff: PR diff 원문

    Returns:
        발급된 세션
    """
    session_id = await allocate_session_id(store, item_id)
    session = NotesSession(
        session_id=session_id,
        item_id=item_id,
        description=description,
        diff=diff,
        created_at=int(time.time() * 1000),
    )
    await store.set(session)

    logger.info("세션 발급 session_id=%s pr=%s diff_length=%d", session_id, item_id, len(diff))
    return session


async def stream_release_notes(session: NotesSession) -> AsyncIterator[StreamEvent]:
    """LLM 스트리밍 응답을 진행 이벤트로 변환

    토큰마다 누적 텍스트를 다시 추출해 chunk 이벤트를 보내고,
    종료 시 엄격 파싱에 성공하면 complete, 실패하면 error 이벤트로 끝난다.
    """
    yield StatusEvent(status="generating")

    messages = build_messages(session.item_id, session.description, session.diff)
    accumulated = ""
    notes = NotesAccumulator()

    try:
        async for fragment in stream_completion(
            messages, session_id=session.session_id, tags=[f"pr-{session.item_id}"]
        ):
            accumulated += fragment
            notes = notes.merge(extract_partial_notes(accumulated))
            yield ChunkEvent(content=fragment, full_content=accumulated, parsed=notes.as_notes())
    except LLMError as e:
        yield ErrorEvent(error=e.detail or e.message, code=ErrorCode.LLM_ERROR.value)
        return

    if not accumulated.strip():
        logger.warning("LLM 응답 비어 있음 session_id=%s", session.session_id)
        yield ErrorEvent(error="LLM 응답이 비어 있습니다", code=ErrorCode.LLM_ERROR.value)
        return

    try:
        final_notes = parse_final_notes(accumulated)
    except NotesParseError as e:
        yield ErrorEvent(
            error=e.detail or e.message,
            code=ErrorCode.NOTES_PARSE_ERROR.value,
            content=accumulated,
        )
        return

    yield CompleteEvent(content=accumulated, notes=final_notes)


async def _run_session(
    session: NotesSession,
    store: SessionStore,
    queue: asyncio.Queue,
) -> None:
    """오케스트레이터 실행 후 세션 정리

    수신 측 연결이 끊겨도 끝까지 실행된다.
    """
    set_session_id(session.session_id)
    started = time.perf_counter()
    last_type = None
    try:
        async for event in stream_release_notes(session):
            last_type = event.type
            await queue.put(event)
    except Exception as e:
        logger.error("릴리스 노트 생성 실패 error=%s", e)
        last_type = "error"
        await queue.put(ErrorEvent(error=str(e), code=ErrorCode.INTERNAL_ERROR.value))
    finally:
        await store.delete(session.session_id)
        logger.info(
            "세션 종료 result=%s duration_ms=%.2f",
            last_type,
            (time.perf_counter() - started) * 1000,
        )


def start_session_stream(session: NotesSession, store: SessionStore) -> asyncio.Queue:
    """오케스트레이터를 백그라운드 작업으로 시작하고 이벤트 큐 반환"""
    queue: asyncio.Queue = asyncio.Queue()
    task = asyncio.create_task(_run_session(session, store, queue))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return queue


async def iter_queue_events(queue: asyncio.Queue) -> AsyncIterator[StreamEvent]:
    """종료 이벤트가 나올 때까지 큐의 이벤트 반환"""
    while True:
        event = await queue.get()
        yield event
        if event.type in TERMINAL_EVENT_TYPES:
            break
