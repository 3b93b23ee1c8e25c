import asyncio
from collections.abc import Callable, Sequence

from app.client.controller import NoteSessionController, NoteState
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


async def generate_all(
    controllers: Sequence[NoteSessionController],
    delay: float | None = None,
    on_progress: ProgressCallback | None = None,
) -> dict[str, NoteState]:
    """PR별 노트를 하나씩 순차 생성

    업스트림 API 부담을 줄이기 위해 동시에 두 건을 요청하지 않고
    항목 사이에 고정 대기 시간을 둔다. 한 건이 실패해도 다음 건을 진행한다.

    Args:
        controllers: PR별 세션 컨트롤러
        delay: 항목 사이 대기 시간(초)
        on_progress: (완료 수, 전체 수) 콜백

    Returns:
        PR ID별 최종 상태
    """
    if delay is None:
        delay = settings.bulk_generate_delay

    total = len(controllers)
    results: dict[str, NoteState] = {}

    for index, controller in enumerate(controllers):
        try:
            results[controller.item.id] = await controller.generate()
        except Exception as e:
            logger.error("일괄 생성 중 오류 pr=%s error=%s", controller.item.id, e)
            results[controller.item.id] = NoteState.FAILED

        if on_progress:
            on_progress(index + 1, total)

        if index < total - 1:
            await asyncio.sleep(delay)

    failed = sum(1 for state in results.values() if state == NoteState.FAILED)
    logger.info("일괄 생성 완료 total=%d failed=%d", total, failed)
    return results
