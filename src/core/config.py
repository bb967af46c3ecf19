"""Configuration models and YAML loader for job scout."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from src.core.schemas import ProviderName

# Server-side fallback keys, read once when settings are built.
_KEY_ENV_VARS: dict[str, str] = {
    "gemini_api_key": "GEMINI_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
}


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/jobscout.db"


class LLMSettings(BaseModel):
    """Server-side LLM defaults. Request-supplied values take precedence."""

    default_provider: ProviderName = ProviderName.GEMINI
    gemini_api_key: str | None = Field(default=None, repr=False)
    openai_api_key: str | None = Field(default=None, repr=False)
    anthropic_api_key: str | None = Field(default=None, repr=False)
    gemini_model: str = "gemini-1.5-flash"
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-sonnet-4-20250514"
    local_model: str = "llama3"
    local_url: str | None = None


class AnalysisConfig(BaseModel):
    """Policy knobs for the job analysis fan-out."""

    max_jobs: int = Field(default=50, ge=1)
    match_threshold: int = Field(default=70, ge=0, le=100)
    request_timeout_s: float = Field(default=60.0, gt=0)
    max_concurrency: int | None = Field(default=None, ge=1)


class ScraperConfig(BaseModel):
    """Limits for the single-shot career page scraper."""

    max_html_chars: int = Field(default=30000, ge=1000)
    fetch_timeout_s: float = Field(default=30.0, gt=0)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("cors_origins")
    @classmethod
    def at_least_one_origin(cls, v: list[str]) -> list[str]:
        if not v:
            msg = "at least one CORS origin must be configured"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings, built once at process start."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, filling missing keys from the environment."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Settings":
        """Validate a raw mapping, filling missing API keys from the environment."""
        llm: dict[str, Any] = dict(raw.get("llm") or {})
        for field, env_var in _KEY_ENV_VARS.items():
            if not llm.get(field):
                value = os.environ.get(env_var)
                if value:
                    llm[field] = value
        return cls.model_validate({**raw, "llm": llm})
