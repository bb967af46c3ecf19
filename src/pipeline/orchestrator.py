"""Orchestrator: scores every stored job against a candidate profile.

Data flow:
  1. Validate the request
  2. Load up to ``analysis.max_jobs`` jobs from the store
  3. Resolve resume text (document-capable providers only)
  4. Fan out one task per job: prompt → LLM → parse → persist
  5. Settle all tasks; failed jobs are dropped, not raised
  6. Keep matches, sort by score descending

Only steps 1-3 can fail the whole run. Anything that goes wrong inside a
job's task is logged and turns into that job being absent from the result.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable

import httpx

from src.core.config import LLMSettings, Settings
from src.core.errors import ValidationError
from src.core.schemas import (
    AnalysisResult,
    AnalysisRun,
    CandidateProfile,
    JobRecord,
    JobWithAnalysis,
    LlmConfig,
)
from src.core.store import JobStore
from src.llm import get_provider
from src.llm.base import LLMProvider
from src.pipeline.llm_scorer import analyze_job
from src.pipeline.prompts import build_analysis_prompt
from src.pipeline.resume import extract_resume_text

logger = logging.getLogger(__name__)

ProviderFactory = Callable[..., LLMProvider]


class AnalysisOrchestrator:
    """Runs analysis batches against a job store.

    Usage::

        orchestrator = AnalysisOrchestrator(settings, SqliteStore(conn))
        run = await orchestrator.run_analysis(profile, LlmConfig(provider="gemini"))
        for job in run.jobs:
            ...
    """

    def __init__(
        self,
        settings: Settings,
        store: JobStore,
        http_client: httpx.AsyncClient | None = None,
        provider_factory: ProviderFactory = get_provider,
    ) -> None:
        self._settings = settings
        self._store = store
        self._http_client = http_client
        self._provider_factory = provider_factory

    def _make_provider(self, llm_config: LlmConfig) -> LLMProvider:
        llm_settings: LLMSettings = self._settings.llm
        return self._provider_factory(
            llm_config, llm_settings, timeout=self._settings.analysis.request_timeout_s,
        )

    @contextlib.asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        timeout = self._settings.analysis.request_timeout_s
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            yield client

    async def run_analysis(
        self,
        profile: CandidateProfile | None,
        llm_config: LlmConfig | None = None,
    ) -> AnalysisRun:
        """Score the stored jobs against ``profile`` and return the ranked matches.

        Raises:
            ValidationError: If no profile was supplied.
            Exception: Whatever the store raises while loading jobs.
        """
        if profile is None:
            msg = "Profile data is required"
            raise ValidationError(msg)
        if llm_config is None:
            llm_config = LlmConfig(provider=self._settings.llm.default_provider)

        jobs = await self._store.get_jobs_for_analysis(self._settings.analysis.max_jobs)
        if not jobs:
            logger.info("No jobs to analyze")
            return AnalysisRun()

        provider = self._make_provider(llm_config)
        resume_text = await self._resolve_resume_text(profile, provider)

        logger.info(
            "Analyzing %d jobs with %s (%s), resume %s",
            len(jobs),
            provider.provider_id,
            provider.model,
            "included" if resume_text else "not included",
        )

        max_concurrency = self._settings.analysis.max_concurrency
        semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

        outcomes = await asyncio.gather(
            *(
                self._analyze_one(job, profile, resume_text, provider, semaphore)
                for job in jobs
            ),
            return_exceptions=True,
        )

        analyzed: list[JobWithAnalysis] = []
        failed = 0
        for job, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                failed += 1
                reason = (
                    "timed out" if isinstance(outcome, asyncio.TimeoutError) else str(outcome)
                )
                logger.warning(
                    "Analysis failed for job %s (%s): %s",
                    job.id, type(outcome).__name__, reason,
                )
                continue
            analyzed.append(outcome)

        # sorted() is stable, so equal scores keep load order.
        matches = sorted(
            (j for j in analyzed if j.ai_analysis.is_match),
            key=lambda j: j.ai_analysis.match_score,
            reverse=True,
        )

        logger.info(
            "Analysis complete: %d analyzed, %d failed, %d matched",
            len(analyzed), failed, len(matches),
        )
        return AnalysisRun(jobs=matches, analyzed_count=len(analyzed), failed_count=failed)

    async def _resolve_resume_text(
        self,
        profile: CandidateProfile,
        provider: LLMProvider,
    ) -> str | None:
        """Return resume text, or None. Never raises."""
        if not profile.resume_url:
            return None
        if not provider.supports_documents:
            logger.info(
                "Provider '%s' does not read documents; analyzing without the resume",
                provider.provider_id,
            )
            return None

        try:
            async with self._http() as client:
                return await asyncio.wait_for(
                    extract_resume_text(profile.resume_url, provider, client),
                    timeout=self._settings.analysis.request_timeout_s,
                )
        except Exception:
            logger.warning("Error processing resume, proceeding without it", exc_info=True)
            return None

    async def _analyze_one(
        self,
        job: JobRecord,
        profile: CandidateProfile,
        resume_text: str | None,
        provider: LLMProvider,
        semaphore: asyncio.Semaphore | None,
    ) -> JobWithAnalysis:
        prompt = build_analysis_prompt(profile, job, resume_text)
        async with semaphore if semaphore is not None else contextlib.nullcontext():
            analysis = await asyncio.wait_for(
                analyze_job(
                    prompt,
                    provider,
                    job.id,
                    threshold=self._settings.analysis.match_threshold,
                ),
                timeout=self._settings.analysis.request_timeout_s,
            )

        await self._persist(job.id, analysis)
        return JobWithAnalysis.model_validate(
            {**job.model_dump(exclude={"ai_analysis"}), "ai_analysis": analysis},
        )

    async def _persist(self, job_id: int, analysis: AnalysisResult) -> None:
        """Store the analysis. A failed write is logged and never fails the job."""
        try:
            await self._store.update_job_with_analysis(job_id, analysis)
        except Exception:
            logger.error("Failed to update job %s with analysis", job_id, exc_info=True)
