"""Configuration models and YAML loader for the job outreach assistant."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_ENV_VAR = "JOB_ASSISTANT_CONFIG"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class ServerConfig(BaseModel):
    """HTTP server binding."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class LLMConfig(BaseModel):
    """LLM settings for structured job extraction."""

    provider: str = "groq"
    model: str | None = None
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1)
    json_mode: bool = True
    max_html_chars: int = Field(default=60000, ge=1000)


class AssistantConfig(BaseModel):
    """LLM settings for resume matching and cold email drafting."""

    provider: str = "groq"
    model: str | None = None
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    match_max_tokens: int = Field(default=1500, ge=1)
    email_max_tokens: int = Field(default=1000, ge=1)


class ScrapeConfig(BaseModel):
    """Scraping API settings."""

    api_url: str = "https://api.firecrawl.dev"
    api_key_env: str = "FIRECRAWL_API_KEY"
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "en-US,en;q=0.9"
    wait_for_ms: int = Field(default=5000, ge=0)
    use_proxies: bool = True
    timeout_s: float = Field(default=60.0, gt=0)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LeadsConfig(BaseModel):
    """Email lead lookup settings."""

    api_url: str = "https://api.hunter.io/v2"
    api_key_env: str = "HUNTER_API_KEY"
    timeout_s: float = Field(default=15.0, gt=0)
    limit: int | None = Field(default=None, ge=1)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ExportConfig(BaseModel):
    """CSV export settings. tmp_dir None means the system temp directory."""

    tmp_dir: str | None = None
    chunk_size: int = Field(default=64 * 1024, ge=1024)


class PipelineConfig(BaseModel):
    """Request-level pipeline behaviour."""

    default_portal: str = "indeed"
    request_deadline_s: float = Field(default=120.0, gt=0)
    disconnect_poll_s: float = Field(default=0.5, gt=0)
    rate_limit_retries: int = Field(default=0, ge=0, le=3)
    extraction_retries: int = Field(default=0, ge=0, le=1)
    retry_backoff_s: float = Field(default=2.0, ge=0)
    retry_backoff_cap_s: float = Field(default=30.0, ge=0)

    @field_validator("default_portal")
    @classmethod
    def portal_lowercase(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            msg = "default_portal must not be empty"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    scrape: ScrapeConfig = Field(default_factory=ScrapeConfig)
    leads: LeadsConfig = Field(default_factory=LeadsConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from ``path``, the JOB_ASSISTANT_CONFIG env var, or defaults.

    An explicitly given path must exist. With no path and no env var the
    built-in defaults are returned.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return Settings()
    return Settings.from_yaml(path)
