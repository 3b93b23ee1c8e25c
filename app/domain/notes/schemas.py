"""릴리스 노트 도메인 스키마."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ReleaseNotes(BaseModel):
    """최종 릴리스 노트 - 개발자용/마케팅용"""

    developer: str
    marketing: str


class PartialNotes(BaseModel):
    """스트리밍 도중 추출한 릴리스 노트"""

    developer: str = ""
    marketing: str = ""


class NotesSession(BaseModel):
    """diff 제출과 스트리밍 요청을 잇는 서버 세션"""

    session_id: str
    item_id: str
    description: str
    diff: str
    created_at: int


class _StreamEventBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_sse(self) -> str:
        """SSE data 프레임으로 직렬화"""
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class StatusEvent(_StreamEventBase):
    type: Literal["status"] = "status"
    status: str


class ChunkEvent(_StreamEventBase):
    type: Literal["chunk"] = "chunk"
    content: str
    full_content: str = Field(alias="fullContent")
    parsed: PartialNotes


class CompleteEvent(_StreamEventBase):
    type: Literal["complete"] = "complete"
    content: str
    notes: ReleaseNotes


class ErrorEvent(_StreamEventBase):
    type: Literal["error"] = "error"
    error: str
    code: str
    content: str | None = None


StreamEvent = StatusEvent | ChunkEvent | CompleteEvent | ErrorEvent

TERMINAL_EVENT_TYPES = frozenset({"complete", "error"})
