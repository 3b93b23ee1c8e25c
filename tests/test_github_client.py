"""GitHub 클라이언트 테스트"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.infra.github.client import (
    DIFF_MEDIA_TYPE,
    _get_headers,
    _next_page,
    get_closed_pulls,
    get_merged_pulls,
    get_pull_diff,
    parse_repo_url,
)

REPO_URL = "https://github.com/acme/widgets"


def _pull(number: int, merged: bool = True) -> dict:
    return {
        "number": number,
        "title": f"PR {number}",
        "html_url": f"{REPO_URL}/pull/{number}",
        "merged_at": "2024-01-01T00:00:00Z" if merged else None,
    }


class TestParseRepoUrl:
    """parse_repo_url 함수 테스트"""

    @pytest.mark.parametrize(
        "url,expected_owner,expected_repo",
        [
            ("https://github.com/user/my-repo", "user", "my-repo"),
            ("https://github.com/user/my-repo.git", "user", "my-repo"),
            ("https://github.com/user/my-repo/", "user", "my-repo"),
            ("https://github.com/org-name/repo_name", "org-name", "repo_name"),
        ],
    )
    def test_valid_urls(self, url, expected_owner, expected_repo):
        """유효한 GitHub URL 파싱"""
        owner, repo = parse_repo_url(url)
        assert owner == expected_owner
        assert repo == expected_repo

    @pytest.mark.parametrize(
        "invalid_url",
        ["invalid-url", "https://gitlab.com/user/repo", "https://github.com/user", ""],
    )
    def test_invalid_urls(self, invalid_url):
        """유효하지 않은 URL은 ValueError 발생"""
        with pytest.raises(ValueError, match="유효하지 않은 GitHub URL"):
            parse_repo_url(invalid_url)


class TestGetHeaders:
    """_get_headers 함수 테스트"""

    def test_without_token(self):
        """토큰 없이 헤더 생성"""
        headers = _get_headers()
        assert headers["Accept"] == "application/vnd.github.v3+json"
        assert "Authorization" not in headers

    def test_with_token(self):
        """토큰 포함 헤더 생성"""
        headers = _get_headers("test-token")
        assert headers["Authorization"] == "Bearer test-token"

    def test_diff_accept(self):
        """diff 원문 요청 헤더"""
        headers = _get_headers(accept=DIFF_MEDIA_TYPE)
        assert headers["Accept"] == "application/vnd.github.v3.diff"


class TestNextPage:
    """_next_page 함수 테스트"""

    def test_next_link(self, mock_github_response):
        mock_github_response.links = {
            "next": {"url": "https://api.github.com/repos/acme/widgets/pulls?page=3&per_page=10"}
        }

        assert _next_page(mock_github_response) == 3

    def test_last_page(self, mock_github_response):
        """next 링크가 없으면 마지막 페이지"""
        assert _next_page(mock_github_response) is None


class TestGetClosedPulls:
    """get_closed_pulls 함수 테스트"""

    @pytest.mark.asyncio
    async def test_request_params(self, mock_github_response):
        mock_github_response.json.return_value = [_pull(1)]

        with patch("app.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=mock_github_response)
            pulls, next_page = await get_closed_pulls(REPO_URL, "token", page=2, per_page=500)

        assert pulls == [_pull(1)]
        assert next_page is None
        params = mock_client.get.call_args.kwargs["params"]
        assert params["state"] == "closed"
        assert params["page"] == 2
        assert params["per_page"] == 100

    @pytest.mark.asyncio
    async def test_http_error_propagates(self, mock_github_response, create_http_error):
        mock_github_response.raise_for_status = MagicMock(side_effect=create_http_error(403))

        with patch("app.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=mock_github_response)
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await get_closed_pulls(REPO_URL)

        assert exc_info.value.response.status_code == 403


class TestGetPullDiff:
    """get_pull_diff 함수 테스트"""

    @pytest.mark.asyncio
    async def test_success(self, mock_github_response):
        """diff 원문 텍스트 반환"""
        mock_github_response.text = "diff --git a/x b/x\n- old\n+ new"

        with patch("app.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=mock_github_response)
            result = await get_pull_diff(REPO_URL, 42, "token")

        assert result.startswith("diff --git")
        url = mock_client.get.call_args.args[0]
        assert url.endswith("/repos/acme/widgets/pulls/42")
        headers = mock_client.get.call_args.kwargs["headers"]
        assert headers["Accept"] == DIFF_MEDIA_TYPE


class TestGetMergedPulls:
    """get_merged_pulls 함수 테스트"""

    @pytest.mark.asyncio
    async def test_filters_unmerged(self):
        """머지되지 않고 닫힌 PR 제외"""
        list_response = MagicMock()
        list_response.raise_for_status = MagicMock()
        list_response.json.return_value = [_pull(7), _pull(8, merged=False)]
        list_response.links = {
            "next": {"url": "https://api.github.com/repos/acme/widgets/pulls?page=2"}
        }
        diff_response = MagicMock()
        diff_response.raise_for_status = MagicMock()
        diff_response.text = "- a\n+ b"

        with patch("app.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(side_effect=[list_response, diff_response])
            result = await get_merged_pulls(REPO_URL, page=1, per_page=10)

        assert [pull.number for pull in result.pulls] == [7]
        assert result.pulls[0].diff == "- a\n+ b"
        assert result.pulls[0].title == "PR 7"
        assert result.page == 1
        assert result.next_page == 2
        assert mock_client.get.call_count == 2

    @pytest.mark.asyncio
    async def test_empty_page(self, mock_github_response):
        mock_github_response.json.return_value = []

        with patch("app.infra.github.client._client") as mock_client:
            mock_client.get = AsyncMock(return_value=mock_github_response)
            result = await get_merged_pulls(REPO_URL, page=5)

        assert result.pulls == []
        assert result.next_page is None
