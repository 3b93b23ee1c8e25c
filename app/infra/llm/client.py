import os
from collections.abc import AsyncIterator

from langchain_core.messages import BaseMessage, BaseMessageChunk
from langfuse.langchain import CallbackHandler

from app.core.config import settings
from app.core.exceptions import LLMError
from app.core.logging import get_logger
from app.infra.llm.factory import get_notes_client

logger = get_logger(__name__)

if settings.langfuse_public_key:
    os.environ["LANGFUSE_PUBLIC_KEY"] = settings.langfuse_public_key
if settings.langfuse_secret_key:
    os.environ["LANGFUSE_SECRET_KEY"] = settings.langfuse_secret_key
if settings.langfuse_base_url:
    os.environ["LANGFUSE_HOST"] = settings.langfuse_base_url


def get_langfuse_handler() -> CallbackHandler | None:
    """Langfuse 콜백 핸들러 반환"""
    if not settings.langfuse_public_key or not settings.langfuse_secret_key:
        return None

    return CallbackHandler()


def chunk_text(chunk: BaseMessageChunk) -> str:
    """스트리밍 청크에서 텍스트만 추출

    Gemini는 content를 파트 리스트로 돌려줄 수 있다.
    """
    content = chunk.content
    if isinstance(content, str):
        return content

    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


async def stream_completion(
    messages: list[BaseMessage],
    session_id: str | None = None,
    tags: list[str] | None = None,
) -> AsyncIterator[str]:
    """채팅 모델 스트리밍 호출, 텍스트 조각을 순서대로 반환

    Raises:
        LLMError: 클라이언트 초기화 또는 업스트림 호출 실패 시
    """
    langfuse_handler = get_langfuse_handler()
    config = {
        "callbacks": [langfuse_handler] if langfuse_handler else [],
        "metadata": {
            "langfuse_session_id": session_id,
            "langfuse_tags": ["release-notes", "stream", *(tags or [])],
        },
    }

    try:
        client = get_notes_client()
    except ValueError as e:
        logger.error("LLM 클라이언트 초기화 실패 error=%s", e)
        raise LLMError(detail=str(e)) from e

    logger.debug("LLM 스트리밍 요청 model=%s", client.describe())

    fragments = 0
    try:
        async for chunk in client.get_chat_model().astream(messages, config=config):
            text = chunk_text(chunk)
            if not text:
                continue
            fragments += 1
            yield text
    except Exception as e:
        logger.error(
            "LLM 스트리밍 실패 model=%s fragments=%d error=%s",
            client.describe(),
            fragments,
            type(e).__name__,
        )
        raise LLMError(detail=str(e)) from e

    logger.debug("LLM 스트리밍 완료 fragments=%d", fragments)
