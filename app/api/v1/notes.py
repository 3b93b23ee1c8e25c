import json
from typing import TypeVar

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.api.v1.schemas import StreamRequest, SubmitRequest, SubmitResponse
from app.core.cors import CORS_HEADERS, SSE_HEADERS
from app.core.exceptions import SessionNotFoundError, ValidationError
from app.core.logging import get_logger
from app.domain.notes.service import create_session, iter_queue_events, start_session_stream
from app.infra.session.store import get_session_store

router = APIRouter(prefix="/notes", tags=["notes"])
logger = get_logger(__name__)

STREAMING_HEADER = "X-Streaming-Request"

T = TypeVar("T", bound=BaseModel)


async def _read_json_body(request: Request) -> dict:
    """요청 본문을 JSON 객체로 읽기"""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(detail="요청 본문이 올바른 JSON이 아닙니다") from e
    if not isinstance(body, dict):
        raise ValidationError(detail="요청 본문은 JSON 객체여야 합니다")
    return body


def _validate_body(model: type[T], body: dict) -> T:
    try:
        return model.model_validate(body)
    except PydanticValidationError as e:
        fields = [".".join(str(loc) for loc in err["loc"]) for err in e.errors()]
        raise ValidationError(detail=f"필수 값 누락 또는 형식 오류: {', '.join(fields)}") from e


async def _open_stream(stream_request: StreamRequest) -> StreamingResponse:
    """세션을 꺼내 소비 처리하고 SSE 스트림 시작"""
    store = get_session_store()
    session = await store.take(stream_request.session_id)
    if session is None:
        logger.warning(
            "세션 없음 session_id=%s pr=%s",
            stream_request.session_id,
            stream_request.pr_id,
        )
        raise SessionNotFoundError(detail=f"sessionId={stream_request.session_id}")

    logger.info("스트리밍 시작 session_id=%s pr=%s", session.session_id, session.item_id)
    queue = start_session_stream(session, store)

    async def event_stream():
        async for event in iter_queue_events(queue):
            yield event.to_sse()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.options("/session")
async def session_preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/session")
async def submit_or_stream(request: Request) -> Response:
    """diff 제출 후 sessionId 발급

    X-Streaming-Request: true 헤더가 있으면 본문의 sessionId로 스트리밍한다.
    """
    body = await _read_json_body(request)

    if request.headers.get(STREAMING_HEADER, "").lower() == "true":
        return await _open_stream(_validate_body(StreamRequest, body))

    submit_request = _validate_body(SubmitRequest, body)
    session = await create_session(
        get_session_store(),
        item_id=submit_request.pr_id,
        description=submit_request.description,
        diff=submit_request.diff,
    )
    return JSONResponse(
        content=SubmitResponse(session_id=session.session_id).model_dump(by_alias=True),
        headers=CORS_HEADERS,
    )


@router.get("/session")
async def stream_notes(
    session_id: str = Query(alias="sessionId", min_length=1),
    pr_id: str | None = Query(default=None, alias="prId"),
    description: str | None = None,
) -> StreamingResponse:
    return await _open_stream(
        StreamRequest(session_id=session_id, pr_id=pr_id, description=description)
    )
