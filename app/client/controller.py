"""PR 하나의 릴리스 노트 생성 세션 제어

상태 전이: idle → submitted → streaming → completed | failed
재생성은 completed/failed 에서 idle 로 되돌린 뒤 다시 시작한다.
"""

from contextlib import aclosing
from enum import Enum

import httpx

from app.client.api import DiffDigestClient, NotesClientError
from app.client.models import Item, StreamingSnapshot
from app.client.storage import LocalRecordStore
from app.core.exceptions import NotesParseError
from app.core.logging import get_logger
from app.domain.notes.parsers import NotesAccumulator, extract_partial_notes, parse_final_notes
from app.domain.notes.schemas import PartialNotes, ReleaseNotes

logger = get_logger(__name__)


class NoteState(str, Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class NoteSessionController:
    """제출, 스트림 구독, 이벤트 반영, 최종 노트 저장"""

    def __init__(self, item: Item, api: DiffDigestClient, store: LocalRecordStore):
        self.item = item
        self._api = api
        self._store = store
        self.state = NoteState.COMPLETED if item.notes else NoteState.IDLE
        self.notes: ReleaseNotes | None = item.notes
        self.partial = NotesAccumulator()
        self.error: str | None = None
        self.session_id: str | None = None

    @property
    def is_busy(self) -> bool:
        return self.state in (NoteState.SUBMITTED, NoteState.STREAMING)

    def restore(self) -> None:
        """저장된 스냅샷이 있으면 마지막 부분 결과를 정적으로 표시"""
        if self.notes is not None:
            return
        snapshot = self._store.get_streaming_session(self.item.id)
        if snapshot is None:
            return
        self.partial = NotesAccumulator(
            developer=snapshot.partial_developer,
            marketing=snapshot.partial_marketing,
        )
        self.session_id = snapshot.session_id

    def _reset(self) -> None:
        self._store.delete_streaming_session(self.item.id)
        self.state = NoteState.IDLE
        self.notes = None
        self.partial = NotesAccumulator()
        self.error = None
        self.session_id = None

    def _fail(self, message: str) -> None:
        logger.warning("노트 생성 실패 pr=%s error=%s", self.item.id, message)
        self.state = NoteState.FAILED
        self.error = message
        self._store.delete_streaming_session(self.item.id)

    async def generate(self) -> NoteState:
        """노트 생성, 이미 진행 중이거나 완료된 경우 아무것도 하지 않음"""
        if self.is_busy or self.state == NoteState.COMPLETED:
            return self.state

        self._reset()
        # 첫 await 전에 busy 상태로 전환
        self.state = NoteState.SUBMITTED

        try:
            self.session_id = await self._api.create_session(
                self.item.id, self.item.description, self.item.diff
            )
        except (NotesClientError, httpx.HTTPError) as e:
            self._fail(str(e) or "릴리스 노트 생성 요청에 실패했습니다")
            return self.state

        if self._store.get_item(self.item.id) is None:
            self._store.save_item(self.item)
        self._store.save_streaming_session(
            StreamingSnapshot(id=self.item.id, session_id=self.session_id)
        )

        events = self._api.stream_session(self.session_id, self.item.id, self.item.description)
        try:
            async with aclosing(events):
                async for event in events:
                    self.state = NoteState.STREAMING
                    self.apply_event(event)
                    if self.state in (NoteState.COMPLETED, NoteState.FAILED):
                        break
        except (NotesClientError, httpx.HTTPError) as e:
            self._fail(str(e) or "스트림 연결 오류")
            return self.state

        if self.is_busy:
            self._fail("스트림 연결 오류")

        return self.state

    async def regenerate(self) -> NoteState:
        """이전 노트와 부분 결과를 버리고 다시 생성"""
        if self.is_busy:
            return self.state
        self._reset()
        return await self.generate()

    def apply_event(self, event: dict) -> None:
        """서버 이벤트 하나를 화면 상태에 반영"""
        event_type = event.get("type")

        if event_type == "status":
            logger.debug("생성 상태 pr=%s status=%s", self.item.id, event.get("status"))
        elif event_type == "chunk":
            self._apply_chunk(event)
        elif event_type == "complete":
            self._apply_complete(event)
        elif event_type == "error":
            self._fail(event.get("error") or "알 수 없는 오류")
        else:
            logger.warning("알 수 없는 이벤트 pr=%s type=%s", self.item.id, event_type)

    def _apply_chunk(self, event: dict) -> None:
        parsed = event.get("parsed")
        if isinstance(parsed, dict):
            partial = PartialNotes(
                developer=parsed.get("developer") or "",
                marketing=parsed.get("marketing") or "",
            )
        else:
            partial = extract_partial_notes(event.get("fullContent") or "")

        self.partial = self.partial.merge(partial)
        self._store.update_streaming_results(
            self.item.id, self.partial.developer, self.partial.marketing
        )

    def _apply_complete(self, event: dict) -> None:
        notes = event.get("notes")
        try:
            if isinstance(notes, dict):
                final = ReleaseNotes.model_validate(notes)
            else:
                final = parse_final_notes(event.get("content") or "")
        except (NotesParseError, ValueError):
            self._fail("최종 응답을 파싱할 수 없습니다")
            return

        self.notes = final
        self.state = NoteState.COMPLETED
        self.error = None
        saved = self._store.complete_streaming_session(self.item.id, final)
        if saved is not None:
            self.item = saved
        else:
            self.item = self.item.model_copy(update={"notes": final})
            self._store.save_item(self.item)

        logger.info("노트 생성 완료 pr=%s", self.item.id)
