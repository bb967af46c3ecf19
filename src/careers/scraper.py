"""Best-effort career page scraper: one page, one LLM prompt, no crawling."""

import logging
from datetime import datetime
from urllib.parse import urljoin, urlparse

import httpx
from pydantic import ValidationError as PydanticValidationError

from src.core.config import ScraperConfig
from src.core.errors import FetchError, NotFoundError
from src.core.schemas import CompanyStatus, ScrapedJob
from src.core.store import CompanyStore
from src.llm.base import LLMProvider, extract_json_array
from src.pipeline.prompts import build_scrape_prompt

logger = logging.getLogger(__name__)


def parse_scraped_jobs(raw_text: str, base_url: str) -> list[ScrapedJob]:
    """Turn the model's JSON array into ScrapedJobs.

    Relative links are resolved against ``base_url``. Malformed entries are
    skipped; duplicate URLs keep the first occurrence.

    Raises:
        ParseError: If the reply holds no JSON array.
    """
    jobs: list[ScrapedJob] = []
    seen: set[str] = set()
    for item in extract_json_array(raw_text):
        if not isinstance(item, dict):
            continue
        try:
            job = ScrapedJob.model_validate(item)
        except PydanticValidationError:
            logger.debug("Skipping malformed job entry: %r", item)
            continue
        absolute = urljoin(base_url + "/", job.job_url)
        if absolute in seen:
            continue
        seen.add(absolute)
        jobs.append(job.model_copy(update={"job_url": absolute}))
    return jobs


async def scrape_jobs(
    company_id: int,
    store: CompanyStore,
    provider: LLMProvider,
    client: httpx.AsyncClient,
    config: ScraperConfig,
) -> int:
    """Scrape a company's career page and store the listings found.

    Status moves found → scraping → scraped (with ``jobs_scraped_at``), or
    → error on any failure.

    Returns:
        Number of jobs written.

    Raises:
        NotFoundError: If the company or its career page URL is missing.
        FetchError: If the career page download fails.
        ParseError: If the model reply holds no JSON array.
    """
    company = await store.get_company(company_id)
    if company is None or not company.career_page_url:
        msg = f"Company {company_id} or its career page URL not found"
        raise NotFoundError(msg)

    await store.update_company_status(company_id, CompanyStatus.SCRAPING)
    try:
        count = await _scrape(
            company.name,
            company.career_page_url,
            company_id,
            store,
            provider,
            client,
            config,
        )
    except Exception:
        await store.update_company_status(company_id, CompanyStatus.ERROR)
        raise

    await store.update_company_status(
        company_id, CompanyStatus.SCRAPED, jobs_scraped_at=datetime.now(),
    )
    logger.info("%d jobs scraped for '%s'", count, company.name)
    return count


async def _scrape(
    company_name: str,
    career_page_url: str,
    company_id: int,
    store: CompanyStore,
    provider: LLMProvider,
    client: httpx.AsyncClient,
    config: ScraperConfig,
) -> int:
    logger.info("Fetching career page for '%s': %s", company_name, career_page_url)
    response = await client.get(career_page_url, timeout=config.fetch_timeout_s)
    if not response.is_success:
        msg = f"Failed to fetch career page: {response.status_code} {response.reason_phrase}"
        raise FetchError(msg, status_code=response.status_code)

    parsed = urlparse(career_page_url)
    base_url = f"{parsed.scheme}://{parsed.netloc}"
    html = response.text[: config.max_html_chars]

    raw = await provider.complete(
        build_scrape_prompt(company_name, base_url, html), json_output=True,
    )
    jobs = parse_scraped_jobs(raw, base_url)
    return await store.save_scraped_jobs(company_id, jobs)
