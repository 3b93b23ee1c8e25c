from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정"""

    environment: str = "development"

    # LLM 프로바이더 선택: "openai", "vllm" 또는 "gemini"
    llm_provider: str = "openai"
    llm_temperature: float = 0.7

    # OpenAI 설정
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 120.0

    # vLLM 설정 - OpenAI 호환 엔드포인트
    vllm_api_url: str = ""
    vllm_api_key: str = ""
    vllm_model: str = ""
    vllm_timeout: float = 180.0

    # Gemini 설정
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_timeout: float = 120.0

    # GitHub - 머지된 PR 목록 조회용
    github_token: str = ""
    github_repo_url: str = ""
    github_timeout: float = 60.0
    github_max_concurrent_requests: int = 5

    # 릴리스 노트 생성 설정
    diff_max_length: int = 15000
    diff_truncation_marker: str = "... [truncated]"

    # 세션 저장소 설정
    session_ttl_seconds: float = 600.0

    # 로깅 설정
    log_level: str = "INFO"

    # CORS 설정
    cors_allowed_origins: str = "*"

    # 요청 제한 설정
    rate_limit_enabled: bool = True
    rate_limit_default: str = "300/minute"

    # Langfuse 설정
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # 클라이언트 설정
    notes_api_base_url: str = "http://localhost:8000"
    notes_api_timeout: float = 300.0
    local_store_path: str = ".diff-digest.json"
    bulk_generate_delay: float = 0.5
    diffs_per_page: int = 10

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_for_production(self) -> list[str]:
        """프로덕션 환경에서 필수 설정 검증 후 누락된 항목 반환"""
        errors = []
        provider = self.llm_provider.lower()
        if provider == "openai" and not self.openai_api_key:
            errors.append("OPENAI_API_KEY")
        if provider == "vllm" and not self.vllm_api_url:
            errors.append("VLLM_API_URL")
        if provider == "gemini" and not self.gemini_api_key:
            errors.append("GEMINI_API_KEY")
        if not self.github_repo_url:
            errors.append("GITHUB_REPO_URL")
        return errors

    @model_validator(mode="after")
    def validate_production_settings(self):
        """프로덕션 환경에서 필수 설정 검증"""
        if self.is_production:
            missing = self.validate_for_production()
            if missing:
                raise ValueError(f"프로덕션 환경에서 필수 설정 누락: {', '.join(missing)}")
        return self


settings = Settings()
