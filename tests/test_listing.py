"""PR 목록 로드 테스트"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.api.v1.schemas import DiffItem, DiffListResponse
from app.client.listing import ItemListing
from app.client.models import Item
from app.domain.notes.schemas import ReleaseNotes


def _response(ids: list[str], page: int, next_page: int | None) -> DiffListResponse:
    return DiffListResponse(
        diffs=[
            DiffItem(
                id=item_id,
                description=f"PR {item_id}",
                url=f"https://github.com/acme/widgets/pull/{item_id}",
                diff=f"+ change {item_id}",
            )
            for item_id in ids
        ],
        next_page=next_page,
        current_page=page,
        per_page=len(ids),
    )


@pytest.fixture
def mock_api():
    api = MagicMock()
    api.fetch_diffs = AsyncMock()
    return api


class TestItemListing:
    """ItemListing 테스트"""

    @pytest.mark.asyncio
    async def test_load_first_page(self, mock_api, record_store):
        mock_api.fetch_diffs.return_value = _response(["3", "2"], page=1, next_page=2)
        listing = ItemListing(mock_api, record_store)

        fetched = await listing.load_page(1)

        assert [item.id for item in fetched] == ["3", "2"]
        assert [item.id for item in listing.items] == ["3", "2"]
        assert {item.id for item in record_store.list_items()} == {"3", "2"}
        assert listing.next_page == 2

    @pytest.mark.asyncio
    async def test_existing_notes_preserved(self, mock_api, record_store):
        """다시 받아온 PR의 기존 노트 유지"""
        notes = ReleaseNotes(developer="A", marketing="B")
        record_store.save_item(
            Item(id="3", description="old", url="u", diff="d", notes=notes, timestamp=1)
        )
        mock_api.fetch_diffs.return_value = _response(["3"], page=1, next_page=None)
        listing = ItemListing(mock_api, record_store)

        await listing.load_page(1)

        assert record_store.get_item("3").notes == notes
        assert record_store.get_item("3").description == "PR 3"
        assert listing.items[0].notes == notes

    @pytest.mark.asyncio
    async def test_load_more_appends(self, mock_api, record_store):
        """다음 페이지는 목록 뒤에 추가"""
        listing = ItemListing(mock_api, record_store)
        mock_api.fetch_diffs.return_value = _response(["3", "2"], page=1, next_page=2)
        await listing.load_page(1)

        mock_api.fetch_diffs.return_value = _response(["1"], page=2, next_page=None)
        await listing.load_more()

        mock_api.fetch_diffs.assert_awaited_with(2, None)
        assert [item.id for item in listing.items] == ["3", "2", "1"]
        assert listing.next_page is None
        assert record_store.get_pagination().current_page == 2

    @pytest.mark.asyncio
    async def test_load_more_without_next_page_reloads_first(self, mock_api, record_store):
        mock_api.fetch_diffs.return_value = _response(["1"], page=1, next_page=None)
        listing = ItemListing(mock_api, record_store)

        await listing.load_more()

        mock_api.fetch_diffs.assert_awaited_with(1, None)

    def test_reset(self, mock_api, record_store, sample_item):
        record_store.save_item(sample_item)
        listing = ItemListing(mock_api, record_store)
        assert listing.items

        listing.reset()

        assert listing.items == []
        assert record_store.list_items() == []
