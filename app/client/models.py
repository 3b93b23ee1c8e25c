"""클라이언트 로컬 저장 레코드."""

import time

from pydantic import BaseModel, ConfigDict, Field

from app.domain.notes.schemas import ReleaseNotes


def now_ms() -> int:
    return int(time.time() * 1000)


class Item(BaseModel):
    """릴리스 노트 대상 PR"""

    id: str
    description: str
    url: str
    diff: str
    notes: ReleaseNotes | None = None
    timestamp: int = Field(default_factory=now_ms)


class StreamingSnapshot(BaseModel):
    """진행 중 스트림의 마지막 부분 결과 - 새로고침 후 정적으로 표시"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    session_id: str = Field(alias="sessionId")
    partial_developer: str = Field(default="", alias="partialDeveloper")
    partial_marketing: str = Field(default="", alias="partialMarketing")
    timestamp: int = Field(default_factory=now_ms)


class PaginationState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(default=1, alias="currentPage")
    next_page: int | None = Field(default=None, alias="nextPage")
