"""PR diff 목록 API 스키마."""

from pydantic import BaseModel, ConfigDict, Field


class DiffItem(BaseModel):
    """머지된 PR 한 건."""

    id: str
    description: str
    url: str
    diff: str


class DiffListResponse(BaseModel):
    """페이지 단위 PR diff 목록."""

    model_config = ConfigDict(populate_by_name=True)

    diffs: list[DiffItem]
    next_page: int | None = Field(alias="nextPage")
    current_page: int = Field(alias="currentPage")
    per_page: int = Field(alias="perPage")
