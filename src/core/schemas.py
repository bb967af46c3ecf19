"""Core data models for profiles, jobs, companies, and analysis results."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemotePreference(str, Enum):
    ANY = "Any"
    REMOTE = "Remote"
    ONSITE = "Onsite"


class ProviderName(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    LOCAL = "local"


class CompanyStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    FOUND = "found"
    ERROR = "error"
    SCRAPING = "scraping"
    SCRAPED = "scraped"


class CandidateProfile(BaseModel):
    """What the candidate is looking for.

    Frozen for the duration of an analysis run. Accepts the browser client's
    camelCase keys as well as snake_case.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    preferred_title: str = Field(default="", alias="preferredTitle")
    skills: str = ""
    location: str = ""
    salary: str = ""
    remote_preference: RemotePreference = Field(
        default=RemotePreference.ANY, alias="remotePreference",
    )
    resume_url: str | None = Field(default=None, alias="resumeUrl")

    @field_validator("resume_url")
    @classmethod
    def blank_resume_url_is_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CandidateProfile":
        """Load a profile from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Profile file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)


class LlmConfig(BaseModel):
    """Per-request LLM selection. Never persisted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider: ProviderName = ProviderName.GEMINI
    api_key: str | None = Field(default=None, alias="apiKey", repr=False)
    url: str | None = None
    model: str | None = None


class AnalysisResult(BaseModel):
    """LLM verdict for one job, stored as ``ai_analysis``."""

    model_config = ConfigDict(frozen=True)

    match_score: int = Field(ge=0, le=100)
    reasoning: str = ""
    is_match: bool


class JobRecord(BaseModel):
    """A scraped job listing as read from the store."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    location: str | None = None
    description: str | None = None
    job_url: str
    company_name: str | None = None
    status: str = "new"
    ai_analysis: AnalysisResult | None = None


class JobWithAnalysis(JobRecord):
    """A JobRecord whose analysis is known to be present."""

    ai_analysis: AnalysisResult


class CompanyRecord(BaseModel):
    """A target company tracked through discovery and scraping."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    status: CompanyStatus = CompanyStatus.PENDING
    career_page_url: str | None = None
    jobs_scraped_at: datetime | None = None


class ScrapedJob(BaseModel):
    """One listing extracted from a career page."""

    title: str
    job_url: str
    location: str | None = None

    @field_validator("title", "job_url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()


class AnalysisRun(BaseModel):
    """Outcome of one analysis run: ranked matches plus batch counters."""

    jobs: list[JobWithAnalysis] = Field(default_factory=list)
    analyzed_count: int = 0
    failed_count: int = 0
