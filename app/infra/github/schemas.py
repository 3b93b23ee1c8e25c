from pydantic import BaseModel


class MergedPull(BaseModel):
    """머지된 PR과 diff"""

    number: int
    title: str
    html_url: str
    merged_at: str
    diff: str


class PullPage(BaseModel):
    """머지된 PR 한 페이지"""

    pulls: list[MergedPull]
    page: int
    per_page: int
    next_page: int | None = None
