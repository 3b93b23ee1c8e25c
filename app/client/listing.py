from app.client.api import DiffDigestClient
from app.client.models import Item, now_ms
from app.client.storage import LocalRecordStore
from app.core.logging import get_logger

logger = get_logger(__name__)


class ItemListing:
    """서버의 PR 목록을 페이지 단위로 받아 로컬 저장소와 병합"""

    def __init__(self, api: DiffDigestClient, store: LocalRecordStore):
        self._api = api
        self._store = store
        self.items: list[Item] = store.list_items()

    @property
    def next_page(self) -> int | None:
        return self._store.get_pagination().next_page

    async def load_page(self, page: int = 1, per_page: int | None = None) -> list[Item]:
        """한 페이지를 받아 저장, 이미 있는 PR의 노트는 유지

        1페이지는 목록 맨 앞에, 이후 페이지는 뒤에 붙인다.
        """
        response = await self._api.fetch_diffs(page, per_page)

        fetched = []
        for diff in response.diffs:
            existing = self._store.get_item(diff.id)
            fetched.append(
                Item(
                    id=diff.id,
                    description=diff.description,
                    url=diff.url,
                    diff=diff.diff,
                    notes=existing.notes if existing else None,
                    timestamp=now_ms(),
                )
            )

        self._store.save_items(fetched)
        self._store.save_pagination(response.current_page, response.next_page)

        fetched_ids = {item.id for item in fetched}
        if page == 1:
            self.items = fetched + [item for item in self.items if item.id not in fetched_ids]
        else:
            self.items = [item for item in self.items if item.id not in fetched_ids] + fetched

        logger.info(
            "PR 목록 로드 page=%d count=%d next_page=%s",
            response.current_page,
            len(fetched),
            response.next_page,
        )
        return fetched

    async def load_more(self) -> list[Item]:
        """다음 페이지 로드, 다음 페이지가 없으면 1페이지"""
        return await self.load_page(self.next_page or 1)

    def reset(self) -> None:
        """로컬 데이터 전체 초기화"""
        self._store.clear_all()
        self.items = []
