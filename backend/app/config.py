import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    llm_api_key: Optional[str] = Field(None, alias="LEARNPATH_LLM_API_KEY")
    llm_base_url: str = Field("https://ai.gateway.lovable.dev/v1", alias="LEARNPATH_LLM_BASE_URL")
    llm_model: str = Field("google/gemini-2.5-flash", alias="LEARNPATH_LLM_MODEL")
    llm_temperature: float = Field(0.5, ge=0.0, le=2.0, alias="LEARNPATH_LLM_TEMPERATURE")
    llm_timeout_seconds: float = Field(120.0, gt=0, alias="LEARNPATH_LLM_TIMEOUT_SECONDS")
    liveness_timeout_seconds: float = Field(10.0, gt=0, alias="LEARNPATH_LIVENESS_TIMEOUT_SECONDS")
    liveness_retries: int = Field(2, ge=0, alias="LEARNPATH_LIVENESS_RETRIES")
    liveness_backoff_seconds: float = Field(1.0, ge=0, alias="LEARNPATH_LIVENESS_BACKOFF_SECONDS")
    liveness_lenient_network_errors: bool = Field(True, alias="LEARNPATH_LIVENESS_LENIENT")
    liveness_user_agent: str = Field(
        "Mozilla/5.0 (compatible; ResourceValidator/1.0)",
        alias="LEARNPATH_LIVENESS_USER_AGENT",
    )
    validation_concurrency: int = Field(0, ge=0, alias="LEARNPATH_VALIDATION_CONCURRENCY")
    require_credits: bool = Field(False, alias="LEARNPATH_REQUIRE_CREDITS")
    database_url: Optional[str] = Field(None, alias="LEARNPATH_DATABASE_URL")
    database_pool_size: int = Field(10, alias="LEARNPATH_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="LEARNPATH_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="LEARNPATH_DATABASE_ECHO")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
