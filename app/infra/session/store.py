import time
from abc import ABC, abstractmethod

from app.core.config import settings
from app.core.logging import get_logger
from app.domain.notes.schemas import NotesSession

logger = get_logger(__name__)


class SessionStore(ABC):
    """세션 저장소 추상 클래스 - 만료 시간이 있는 키-값 캐시"""

    @abstractmethod
    async def get(self, session_id: str) -> NotesSession | None:
        """세션 조회, 없거나 만료되었으면 None"""
        pass

    @abstractmethod
    async def set(self, session: NotesSession, ttl: float | None = None) -> None:
        """세션 저장"""
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """세션 삭제, 없으면 무시"""
        pass

    @abstractmethod
    async def take(self, session_id: str) -> NotesSession | None:
        """세션을 꺼내면서 삭제, 스트림은 세션당 한 번만 열린다"""
        pass

    @abstractmethod
    async def exists(self, session_id: str) -> bool:
        """세션 존재 여부"""
        pass


class InMemorySessionStore(SessionStore):
    """프로세스 메모리 기반 세션 저장소"""

    def __init__(self, default_ttl: float | None = None):
        self._default_ttl = default_ttl if default_ttl is not None else settings.session_ttl_seconds
        self._entries: dict[str, tuple[float, NotesSession]] = {}

    def _purge_expired(self) -> None:
        now = time.monotonic()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("만료 세션 정리 count=%d", len(expired))

    async def get(self, session_id: str) -> NotesSession | None:
        self._purge_expired()
        entry = self._entries.get(session_id)
        return entry[1] if entry else None

    async def set(self, session: NotesSession, ttl: float | None = None) -> None:
        self._purge_expired()
        expires_at = time.monotonic() + (ttl if ttl is not None else self._default_ttl)
        self._entries[session.session_id] = (expires_at, session)

    async def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    async def take(self, session_id: str) -> NotesSession | None:
        self._purge_expired()
        entry = self._entries.pop(session_id, None)
        return entry[1] if entry else None

    async def exists(self, session_id: str) -> bool:
        return await self.get(session_id) is not None

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)


_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """세션 저장소 반환"""
    global _session_store

    if _session_store is None:
        _session_store = InMemorySessionStore()
        logger.info("세션 저장소 초기화 ttl=%.0f초", settings.session_ttl_seconds)

    return _session_store


def reset_session_store() -> None:
    """세션 저장소 초기화 - 테스트용"""
    global _session_store
    _session_store = None
