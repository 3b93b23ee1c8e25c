import httpx
from fastapi import APIRouter, Query

from app.api.v1.schemas import DiffItem, DiffListResponse
from app.core.config import settings
from app.core.exceptions import GitHubAPIError, ValidationError
from app.core.logging import get_logger
from app.infra.github.client import get_merged_pulls

router = APIRouter(prefix="/diffs", tags=["diffs"])
logger = get_logger(__name__)


@router.get("", response_model=DiffListResponse)
async def list_diffs(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.diffs_per_page, ge=1, le=100),
) -> DiffListResponse:
    """머지된 PR diff 목록 조회"""
    if not settings.github_repo_url:
        raise ValidationError(detail="GITHUB_REPO_URL이 설정되지 않았습니다")

    try:
        pull_page = await get_merged_pulls(
            settings.github_repo_url,
            token=settings.github_token or None,
            page=page,
            per_page=per_page,
        )
    except httpx.HTTPStatusError as e:
        logger.error("GitHub 응답 오류 status_code=%d", e.response.status_code)
        raise GitHubAPIError(detail=f"status_code={e.response.status_code}") from e
    except httpx.RequestError as e:
        logger.error("GitHub 요청 실패 error=%s", type(e).__name__)
        raise GitHubAPIError(detail=type(e).__name__) from e
    except ValueError as e:
        raise ValidationError(detail=str(e)) from e

    return DiffListResponse(
        diffs=[
            DiffItem(
                id=str(pull.number),
                description=pull.title,
                url=pull.html_url,
                diff=pull.diff,
            )
            for pull in pull_page.pulls
        ],
        next_page=pull_page.next_page,
        current_page=pull_page.page,
        per_page=pull_page.per_page,
    )
