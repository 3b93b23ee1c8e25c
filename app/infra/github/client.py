import asyncio
import re

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.infra.github.schemas import MergedPull, PullPage

logger = get_logger(__name__)

GITHUB_API_BASE = "https://api.github.com"

GITHUB_URL_PATTERN = re.compile(r"github\.com/([a-zA-Z0-9_.-]+)/([a-zA-Z0-9_.-]+)")

JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"

_client = httpx.AsyncClient(timeout=settings.github_timeout)
_request_semaphore = asyncio.Semaphore(settings.github_max_concurrent_requests)


def _get_headers(token: str | None = None, accept: str = JSON_MEDIA_TYPE) -> dict[str, str]:
    """GitHub API 요청 헤더 생성

    Args:
        token: GitHub 토큰
        accept: 응답 미디어 타입

    Returns:
        HTTP 헤더 딕셔너리
    """
    headers = {"Accept": accept}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def close_client():
    """httpx 클라이언트 종료"""
    await _client.aclose()


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """GitHub URL에서 owner와 repo 추출

    Args:
        repo_url: GitHub 레포지토리 URL

    Returns:
        owner, repo 튜플

    Raises:
        ValueError: 유효하지 않은 GitHub URL인 경우
    """
    match = GITHUB_URL_PATTERN.search(repo_url)
    if not match:
        raise ValueError(f"유효하지 않은 GitHub URL: {repo_url}")
    owner = match.group(1)
    repo = match.group(2).removesuffix(".git")
    return owner, repo


def _next_page(response: httpx.Response) -> int | None:
    """Link 헤더의 rel="next"에서 다음 페이지 번호 추출"""
    next_link = response.links.get("next")
    if not next_link:
        return None
    page = httpx.URL(next_link["url"]).params.get("page")
    return int(page) if page and page.isdigit() else None


async def get_closed_pulls(
    repo_url: str,
    token: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[dict], int | None]:
    """닫힌 PR 목록 한 페이지 조회

    Args:
        repo_url: GitHub 레포지토리 URL
        token: GitHub 토큰
        page: 페이지 번호
        per_page: 페이지 크기

    Returns:
        PR 원본 목록, 다음 페이지 번호
    """
    owner, repo = parse_repo_url(repo_url)
    url = f"{GITHUB_API_BASE}/repos/{owner}/{repo}/pulls"

    params = {
        "state": "closed",
        "sort": "updated",
        "direction": "desc",
        "page": page,
        "per_page": min(per_page, 100),
    }

    response = await _client.get(url, headers=_get_headers(token), params=params)
    response.raise_for_status()

    logger.info("PR 목록 조회 완료 repo=%s/%s page=%d", owner, repo, page)
    return response.json(), _next_page(response)


async def get_pull_diff(repo_url: str, pull_number: int, token: str | None = None) -> str:
    """PR diff 원문 조회

    Args:
        repo_url: GitHub 레포지토리 URL
        pull_number: PR 번호
        token: GitHub 토큰

    Returns:
        unified diff 텍스트
    """
    owner, repo = parse_repo_url(repo_url)
    url = f"{GITHUB_API_BASE}/repos/{owner}/{repo}/pulls/{pull_number}"

    response = await _client.get(url, headers=_get_headers(token, accept=DIFF_MEDIA_TYPE))
    response.raise_for_status()

    logger.info("PR diff 조회 완료 repo=%s/%s pr=%d", owner, repo, pull_number)
    return response.text


async def get_merged_pulls(
    repo_url: str,
    token: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> PullPage:
    """머지된 PR과 diff를 페이지 단위로 조회

    Args:
        repo_url: GitHub 레포지토리 URL
        token: GitHub 토큰
        page: 페이지 번호
        per_page: 페이지 크기

    Returns:
        머지된 PR 목록과 페이지 정보
    """
    pulls, next_page = await get_closed_pulls(repo_url, token, page, per_page)
    merged = [pr for pr in pulls if pr.get("merged_at") is not None]

    async def fetch_diff_with_limit(pull_number: int) -> str:
        async with _request_semaphore:
            return await get_pull_diff(repo_url, pull_number, token)

    diffs = await asyncio.gather(*(fetch_diff_with_limit(pr["number"]) for pr in merged))

    items = [
        MergedPull(
            number=pr["number"],
            title=pr["title"],
            html_url=pr["html_url"],
            merged_at=pr["merged_at"],
            diff=diff,
        )
        for pr, diff in zip(merged, diffs, strict=True)
    ]

    logger.info(
        "머지된 PR 조회 완료 page=%d closed=%d merged=%d next_page=%s",
        page,
        len(pulls),
        len(items),
        next_page,
    )
    return PullPage(pulls=items, page=page, per_page=per_page, next_page=next_page)
