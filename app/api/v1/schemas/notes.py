"""릴리스 노트 세션 API 스키마."""

from pydantic import BaseModel, ConfigDict, Field


class SubmitRequest(BaseModel):
    """diff 제출 요청."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    pr_id: str = Field(alias="prId", min_length=1)
    description: str = Field(min_length=1)
    diff: str = Field(min_length=1)


class SubmitResponse(BaseModel):
    """diff 제출 응답."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")


class StreamRequest(BaseModel):
    """스트리밍 요청 - sessionId 외 값은 로그 컨텍스트용."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    pr_id: str | None = Field(default=None, alias="prId")
    description: str | None = None
