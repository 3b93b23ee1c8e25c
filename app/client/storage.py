"""로컬 키-값 저장소 기반 PR/노트 보관

브라우저 localStorage처럼 평탄한 키 하나에 직렬화된 목록 하나를 둔다.
읽기 오류는 빈 값으로 취급하고 로그만 남긴다.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.client.models import Item, PaginationState, StreamingSnapshot, now_ms
from app.core.config import settings
from app.core.logging import get_logger
from app.domain.notes.schemas import ReleaseNotes

logger = get_logger(__name__)

ITEM_STORAGE_KEY = "diff-digest-prs"
STREAMING_STORAGE_KEY = "diff-digest-streaming"
PAGINATION_STORAGE_KEY = "diff-digest-pagination"

_items_adapter = TypeAdapter(list[Item])
_snapshots_adapter = TypeAdapter(list[StreamingSnapshot])


class KeyValueBackend(ABC):
    """문자열 키-값 저장소"""

    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryBackend(KeyValueBackend):
    """메모리 저장소 - 테스트/일회성 실행용"""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileBackend(KeyValueBackend):
    """JSON 파일 하나에 모든 키를 저장"""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("로컬 저장소 파일 읽기 실패 path=%s error=%s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)


class LocalRecordStore:
    """PR 목록, 노트, 진행 중 스트림 스냅샷 저장소"""

    def __init__(self, backend: KeyValueBackend | None = None):
        self._backend = backend or MemoryBackend()

    # --- PR 목록 ---

    def list_items(self) -> list[Item]:
        """저장된 PR 전체, 최신순"""
        raw = self._backend.get(ITEM_STORAGE_KEY)
        if not raw:
            return []
        try:
            return _items_adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.error("저장된 PR 목록 읽기 실패", error_count=e.error_count())
            return []

    def get_item(self, item_id: str) -> Item | None:
        return next((item for item in self.list_items() if item.id == item_id), None)

    def _write_items(self, items: list[Item]) -> None:
        items = sorted(items, key=lambda item: item.timestamp, reverse=True)
        self._backend.set(ITEM_STORAGE_KEY, _items_adapter.dump_json(items).decode("utf-8"))

    def save_item(self, item: Item) -> None:
        self.save_items([item])

    def save_items(self, items: list[Item]) -> None:
        """ID 기준 병합, 나중에 쓴 값이 이긴다"""
        merged = {item.id: item for item in self.list_items()}
        for item in items:
            merged[item.id] = item
        self._write_items(list(merged.values()))
        logger.debug("PR 저장 완료 count=%d total=%d", len(items), len(merged))

    def save_notes(self, item_id: str, notes: ReleaseNotes) -> Item | None:
        """PR에 최종 노트 기록, PR이 없으면 None"""
        item = self.get_item(item_id)
        if item is None:
            logger.warning("노트 저장 대상 PR 없음 pr=%s", item_id)
            return None
        updated = item.model_copy(update={"notes": notes, "timestamp": now_ms()})
        self.save_item(updated)
        return updated

    def delete_item(self, item_id: str) -> None:
        remaining = [item for item in self.list_items() if item.id != item_id]
        self._write_items(remaining)

    # --- 진행 중 스트림 스냅샷 ---

    def _list_snapshots(self) -> list[StreamingSnapshot]:
        raw = self._backend.get(STREAMING_STORAGE_KEY)
        if not raw:
            return []
        try:
            return _snapshots_adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.error("스트림 스냅샷 읽기 실패", error_count=e.error_count())
            return []

    def _write_snapshots(self, snapshots: list[StreamingSnapshot]) -> None:
        payload = _snapshots_adapter.dump_json(snapshots, by_alias=True).decode("utf-8")
        self._backend.set(STREAMING_STORAGE_KEY, payload)

    def get_streaming_session(self, item_id: str) -> StreamingSnapshot | None:
        return next((s for s in self._list_snapshots() if s.id == item_id), None)

    def save_streaming_session(self, snapshot: StreamingSnapshot) -> None:
        snapshots = [s for s in self._list_snapshots() if s.id != snapshot.id]
        snapshots.append(snapshot)
        self._write_snapshots(snapshots)

    def update_streaming_results(self, item_id: str, developer: str, marketing: str) -> None:
        snapshot = self.get_streaming_session(item_id)
        if snapshot is None:
            return
        self.save_streaming_session(
            snapshot.model_copy(
                update={
                    "partial_developer": developer,
                    "partial_marketing": marketing,
                    "timestamp": now_ms(),
                }
            )
        )

    def complete_streaming_session(self, item_id: str, notes: ReleaseNotes) -> Item | None:
        """최종 노트 저장 후 스냅샷 삭제"""
        item = self.save_notes(item_id, notes)
        self.delete_streaming_session(item_id)
        return item

    def delete_streaming_session(self, item_id: str) -> None:
        snapshots = self._list_snapshots()
        remaining = [s for s in snapshots if s.id != item_id]
        if len(remaining) != len(snapshots):
            self._write_snapshots(remaining)

    # --- 페이지 상태 ---

    def get_pagination(self) -> PaginationState:
        raw = self._backend.get(PAGINATION_STORAGE_KEY)
        if not raw:
            return PaginationState()
        try:
            return PaginationState.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("페이지 상태 읽기 실패")
            return PaginationState()

    def save_pagination(self, current_page: int, next_page: int | None) -> None:
        state = PaginationState(current_page=current_page, next_page=next_page)
        self._backend.set(PAGINATION_STORAGE_KEY, state.model_dump_json(by_alias=True))

    def clear_all(self) -> None:
        """사용자 초기화 - 모든 키 삭제"""
        for key in (ITEM_STORAGE_KEY, STREAMING_STORAGE_KEY, PAGINATION_STORAGE_KEY):
            self._backend.remove(key)
        logger.info("로컬 저장소 초기화")


def open_local_store(path: str | Path | None = None) -> LocalRecordStore:
    """설정된 경로의 JSON 파일 저장소 열기"""
    return LocalRecordStore(JsonFileBackend(path or settings.local_store_path))
