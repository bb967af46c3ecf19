"""Persistence gateways used by the pipelines.

The pipelines only see these async interfaces; ``SqliteStore`` backs them
with the functions in ``src.core.db``. Each job update touches its own row,
so concurrent writes from the analysis fan-out need no locking.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime

from src.core import db
from src.core.schemas import (
    AnalysisResult,
    CompanyRecord,
    CompanyStatus,
    JobRecord,
    ScrapedJob,
)

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Read/write access to job records needed by the analysis orchestrator."""

    @abstractmethod
    async def get_jobs_for_analysis(self, limit: int) -> list[JobRecord]:
        """Return up to ``limit`` candidate jobs, most recent first."""

    @abstractmethod
    async def update_job_with_analysis(self, job_id: int, analysis: AnalysisResult) -> None:
        """Attach an analysis to a job. Best-effort: failures are logged, not raised."""


class CompanyStore(ABC):
    """Read/write access to companies needed by the career page pipelines."""

    @abstractmethod
    async def get_company(self, company_id: int) -> CompanyRecord | None:
        """Return the company, or None if it does not exist."""

    @abstractmethod
    async def update_company_status(
        self,
        company_id: int,
        status: CompanyStatus,
        *,
        career_page_url: str | None = None,
        jobs_scraped_at: datetime | None = None,
    ) -> None:
        """Move a company to a new status."""

    @abstractmethod
    async def save_scraped_jobs(self, company_id: int, jobs: list[ScrapedJob]) -> int:
        """Upsert scraped jobs for a company; returns how many were written."""


class SqliteStore(JobStore, CompanyStore):
    """Both gateways over a single SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    async def get_jobs_for_analysis(self, limit: int) -> list[JobRecord]:
        return db.get_jobs_for_analysis(self._conn, limit=limit)

    async def update_job_with_analysis(self, job_id: int, analysis: AnalysisResult) -> None:
        try:
            found = db.update_job_with_analysis(self._conn, job_id, analysis)
        except sqlite3.Error:
            logger.error("Failed to update job %s with analysis", job_id, exc_info=True)
            return
        if not found:
            logger.warning("Job %s vanished before its analysis could be stored", job_id)

    async def add_company(self, name: str) -> CompanyRecord:
        return db.insert_company(self._conn, name)

    async def list_companies(self) -> list[CompanyRecord]:
        return db.list_companies(self._conn)

    async def list_jobs(self, company_id: int | None = None) -> list[JobRecord]:
        return db.list_jobs(self._conn, company_id)

    async def get_company(self, company_id: int) -> CompanyRecord | None:
        return db.get_company(self._conn, company_id)

    async def update_company_status(
        self,
        company_id: int,
        status: CompanyStatus,
        *,
        career_page_url: str | None = None,
        jobs_scraped_at: datetime | None = None,
    ) -> None:
        db.update_company_status(
            self._conn,
            company_id,
            status,
            career_page_url=career_page_url,
            jobs_scraped_at=jobs_scraped_at,
        )
        logger.debug("Company %s -> %s", company_id, status.value)

    async def save_scraped_jobs(self, company_id: int, jobs: list[ScrapedJob]) -> int:
        if not jobs:
            return 0
        return db.upsert_jobs(self._conn, company_id, jobs)
