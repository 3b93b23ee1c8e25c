"""일괄 생성 테스트"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from app.client.batch import generate_all
from app.client.controller import NoteState

_yield_control = asyncio.sleep


class _RecordingController:
    """실행 구간이 겹치는지 기록하는 컨트롤러 대역"""

    active = 0
    max_active = 0
    order: list[str] = []

    def __init__(self, item_id: str, result: NoteState = NoteState.COMPLETED, error=None):
        self.item = SimpleNamespace(id=item_id)
        self._result = result
        self._error = error

    async def generate(self) -> NoteState:
        cls = type(self)
        cls.active += 1
        cls.max_active = max(cls.max_active, cls.active)
        cls.order.append(self.item.id)
        try:
            await _yield_control(0)
            if self._error is not None:
                raise self._error
            return self._result
        finally:
            cls.active -= 1


@pytest.fixture(autouse=True)
def reset_recorder():
    _RecordingController.active = 0
    _RecordingController.max_active = 0
    _RecordingController.order = []


class TestGenerateAll:
    """generate_all 함수 테스트"""

    @pytest.mark.asyncio
    async def test_sequential_with_delay_between_items(self):
        """한 번에 한 건씩, 항목 사이에만 대기"""
        controllers = [_RecordingController(item_id) for item_id in ("1", "2", "3")]

        with patch("app.client.batch.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            results = await generate_all(controllers, delay=0.5)

        assert results == {
            "1": NoteState.COMPLETED,
            "2": NoteState.COMPLETED,
            "3": NoteState.COMPLETED,
        }
        assert _RecordingController.order == ["1", "2", "3"]
        assert _RecordingController.max_active == 1
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(self):
        """한 건이 실패해도 나머지 진행"""
        controllers = [
            _RecordingController("1", error=RuntimeError("boom")),
            _RecordingController("2", result=NoteState.FAILED),
            _RecordingController("3"),
        ]

        with patch("app.client.batch.asyncio.sleep", new_callable=AsyncMock):
            results = await generate_all(controllers, delay=0.1)

        assert results == {
            "1": NoteState.FAILED,
            "2": NoteState.FAILED,
            "3": NoteState.COMPLETED,
        }

    @pytest.mark.asyncio
    async def test_progress_callback(self):
        progress = []
        controllers = [_RecordingController("1"), _RecordingController("2")]

        with patch("app.client.batch.asyncio.sleep", new_callable=AsyncMock):
            await generate_all(
                controllers, delay=0, on_progress=lambda done, total: progress.append((done, total))
            )

        assert progress == [(1, 2), (2, 2)]

    @pytest.mark.asyncio
    async def test_single_item_has_no_delay(self):
        with patch("app.client.batch.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await generate_all([_RecordingController("1")], delay=1.0)

        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_delay_from_settings(self):
        controllers = [_RecordingController("1"), _RecordingController("2")]

        with (
            patch("app.client.batch.asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
            patch("app.client.batch.settings") as mock_settings,
        ):
            mock_settings.bulk_generate_delay = 0.25
            await generate_all(controllers)

        mock_sleep.assert_awaited_once_with(0.25)

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await generate_all([]) == {}
