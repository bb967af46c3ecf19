"""HTTP API consumed by the browser client.

Endpoints mirror the client's calls: ``/analyze-jobs`` for scoring, plus
the company endpoints that feed it with scraped jobs. Errors come back as
``{"error": "..."}``; CORS is open by default because the client is served
from a different origin.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.careers.finder import find_career_page
from src.careers.scraper import scrape_jobs
from src.core.config import Settings
from src.core.db import init_db
from src.core.errors import JobScoutError, NotFoundError, ValidationError
from src.core.schemas import CandidateProfile, LlmConfig
from src.core.store import SqliteStore
from src.llm import get_provider
from src.llm.base import LLMProvider
from src.pipeline.orchestrator import AnalysisOrchestrator, ProviderFactory

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile: CandidateProfile | None = None
    llm_config: LlmConfig | None = Field(default=None, alias="llmConfig")


class CompanyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_id: int = Field(alias="companyId")
    llm_config: LlmConfig | None = Field(default=None, alias="llmConfig")


class NewCompanyRequest(BaseModel):
    name: str


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _status_for(exc: JobScoutError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    return 500


def create_app(
    settings: Settings,
    store: SqliteStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    provider_factory: ProviderFactory = get_provider,
) -> FastAPI:
    """Build the FastAPI app.

    ``store`` and ``http_client`` are created on startup (and closed on
    shutdown) unless supplied by the caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned_client = http_client is None
        app.state.store = store or SqliteStore(init_db(settings.database.path))
        app.state.http = http_client or httpx.AsyncClient(
            timeout=settings.scraper.fetch_timeout_s, follow_redirects=True,
        )
        logger.info("Using database %s", settings.database.path)
        yield
        if owned_client:
            await app.state.http.aclose()
        if store is None:
            app.state.store.conn.close()

    app = FastAPI(title="Job Scout", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(f"Invalid request body: {exc.errors()}", 400)

    def _orchestrator(request: Request) -> AnalysisOrchestrator:
        return AnalysisOrchestrator(
            settings,
            request.app.state.store,
            http_client=request.app.state.http,
            provider_factory=provider_factory,
        )

    def _provider(llm_config: LlmConfig | None) -> LLMProvider:
        config = llm_config or LlmConfig(provider=settings.llm.default_provider)
        return provider_factory(
            config, settings.llm, timeout=settings.analysis.request_timeout_s,
        )

    @app.post("/analyze-jobs")
    async def analyze_jobs(body: AnalyzeRequest, request: Request) -> JSONResponse:
        try:
            run = await _orchestrator(request).run_analysis(body.profile, body.llm_config)
        except JobScoutError as e:
            logger.error("Analysis run failed: %s", e)
            return _error(str(e), _status_for(e))
        except Exception as e:
            logger.exception("Analysis run failed")
            return _error(str(e) or type(e).__name__, 500)
        return JSONResponse(run.model_dump(mode="json"))

    @app.get("/companies")
    async def get_companies(request: Request) -> JSONResponse:
        companies = await request.app.state.store.list_companies()
        return JSONResponse([c.model_dump(mode="json") for c in companies])

    @app.post("/companies", status_code=201)
    async def add_company(body: NewCompanyRequest, request: Request) -> JSONResponse:
        try:
            company = await request.app.state.store.add_company(body.name)
        except ValueError as e:
            return _error(str(e), 400)
        return JSONResponse(company.model_dump(mode="json"), status_code=201)

    @app.get("/jobs")
    async def get_jobs(request: Request, company_id: int | None = None) -> JSONResponse:
        jobs = await request.app.state.store.list_jobs(company_id)
        return JSONResponse([j.model_dump(mode="json") for j in jobs])

    @app.post("/find-career-page")
    async def find_career_page_route(body: CompanyRequest, request: Request) -> JSONResponse:
        try:
            url = await find_career_page(
                body.company_id, request.app.state.store, _provider(body.llm_config),
            )
        except JobScoutError as e:
            logger.error("Career page discovery failed for %s: %s", body.company_id, e)
            return _error(str(e), _status_for(e))
        except Exception as e:
            logger.exception("Career page discovery failed for %s", body.company_id)
            return _error(str(e) or type(e).__name__, 500)
        if url is None:
            return JSONResponse({"message": "Career page not found."}, status_code=404)
        return JSONResponse({"message": "Career page found.", "career_page_url": url})

    @app.post("/scrape-jobs")
    async def scrape_jobs_route(body: CompanyRequest, request: Request) -> JSONResponse:
        try:
            count = await scrape_jobs(
                body.company_id,
                request.app.state.store,
                _provider(body.llm_config),
                request.app.state.http,
                settings.scraper,
            )
        except JobScoutError as e:
            logger.error("Scrape failed for %s: %s", body.company_id, e)
            return _error(str(e), _status_for(e))
        except Exception as e:
            logger.exception("Scrape failed for %s", body.company_id)
            return _error(str(e) or type(e).__name__, 500)
        return JSONResponse({"message": f"{count} jobs scraped successfully.", "count": count})

    return app
