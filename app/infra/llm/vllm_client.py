from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from app.core.config import settings
from app.infra.llm.base import BaseLLMClient


class VLLMClient(BaseLLMClient):
    """OpenAI 호환 엔드포인트로 노출된 자체 호스팅 모델"""

    provider = "vllm"

    def _create_model(self) -> BaseChatModel:
        if not settings.vllm_api_url:
            raise ValueError("VLLM_API_URL이 설정되지 않았습니다")

        # vLLM은 키를 검사하지 않아도 클라이언트는 값이 있어야 함
        return ChatOpenAI(
            model=settings.vllm_model,
            api_key=settings.vllm_api_key or "EMPTY",
            base_url=settings.vllm_api_url,
            timeout=settings.vllm_timeout,
            temperature=settings.llm_temperature,
            streaming=True,
        )

    def get_model_name(self) -> str:
        return settings.vllm_model
