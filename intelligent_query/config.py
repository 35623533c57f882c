# ============================================================================

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the query service, read from the environment"""

    llm_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    llm_max_tokens: int = Field(default=2048, ge=1)
    llm_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    llm_timeout_seconds: float = Field(default=60.0, gt=0.0)
    llm_max_retries: int = Field(default=0, ge=0)

    chunk_size: int = Field(default=1000, ge=1)
    chunk_overlap_sentences: int = Field(default=2, ge=0)
    top_k: int = Field(default=5, ge=1, validation_alias=AliasChoices("RETRIEVAL_TOP_K", "top_k"))

    max_questions: int = Field(default=20, ge=1)
    max_concurrent_questions: int = Field(default=1, ge=1)

    document_max_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    document_timeout_seconds: float = Field(default=30.0, gt=0.0)

    system_version: str = "HackRx-RAG-v1.0"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    @field_validator('llm_provider')
    @classmethod
    def validate_provider(cls, v):
        v = v.strip().lower()
        if v not in ('openai', 'gemini'):
            raise ValueError('LLM_PROVIDER must be "openai" or "gemini"')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        return v.strip().upper()

# ============================================================================
