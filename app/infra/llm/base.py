from abc import ABC, abstractmethod

from langchain_core.language_models import BaseChatModel


class BaseLLMClient(ABC):
    """릴리스 노트 생성용 채팅 모델 래퍼

    하위 클래스는 프로바이더별 모델 생성만 담당하고,
    스트리밍 호출은 get_chat_model().astream 으로 공통 처리한다.
    """

    provider: str = ""

    def __init__(self):
        self._model = self._create_model()

    @abstractmethod
    def _create_model(self) -> BaseChatModel:
        """스트리밍용 채팅 모델 생성

        Raises:
            ValueError: 필수 설정이 비어 있는 경우
        """

    @abstractmethod
    def get_model_name(self) -> str:
        """사용 중인 모델 이름 반환"""

    def get_chat_model(self) -> BaseChatModel:
        return self._model

    def describe(self) -> str:
        """로그용 프로바이더/모델 표기"""
        return f"{self.provider}/{self.get_model_name()}"
