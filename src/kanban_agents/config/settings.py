"""Application settings."""

from functools import lru_cache
import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]

DEFAULT_AGENT_PRIORITY: dict[str, int] = {
    "task-assistant-agent": 3,
    "task-analyzer-agent": 2,
    "content-summarizer-agent": 1,
    "task-help-agent": 1,
}


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "kanban-agents"
    app_env: str = "dev"
    log_level: str = "INFO"
    database_url: str = ""

    llm_provider: Literal["ollama", "openai"] = "ollama"
    llm_model: str = "gemma3:1b"
    llm_base_url: str = "http://localhost:11434"
    llm_timeout_s: float = Field(default=120.0, ge=0.5)
    llm_max_retries: int = Field(default=2, ge=0)
    llm_retry_initial_delay_s: float = Field(default=1.0, ge=0.0)
    llm_retry_max_delay_s: float = Field(default=5.0, ge=0.0)
    llm_retry_multiplier: float = Field(default=2.0, ge=1.0)
    llm_pull_timeout_multiplier: float = Field(default=2.0, ge=1.0)
    openai_api_key: str = ""

    web_head_timeout_s: float = Field(default=10.0, ge=0.1)
    web_fetch_timeout_s: float = Field(default=30.0, ge=0.1)
    web_user_agent: str = "Mozilla/5.0 (compatible; KanbanAgents/0.1)"

    auto_apply_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    hint_agent_priority: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_AGENT_PRIORITY)
    )
    hint_dedupe_mode: Literal["append", "recency-window"] = "append"
    hint_dedupe_window_s: float = Field(default=3600.0, ge=0.0)

    model_config = SettingsConfigDict(
        env_prefix="KANBAN_AGENTS_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def resolved_database_url(self) -> str:
        return self.database_url or os.getenv("DATABASE_URL", "")

    def resolved_openai_api_key(self) -> str:
        return self.openai_api_key or os.getenv("OPENAI_API_KEY", "")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
