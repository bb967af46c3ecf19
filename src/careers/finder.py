"""Career page discovery: ask the LLM for a company's job listings URL."""

import logging

from src.core.errors import NotFoundError
from src.core.schemas import CompanyStatus
from src.core.store import CompanyStore
from src.llm.base import LLMProvider
from src.pipeline.prompts import build_career_page_prompt

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT_FOUND"


def parse_career_page_url(raw_text: str) -> str | None:
    """Return the URL from the model's answer, or None for NOT_FOUND or non-URLs."""
    answer = (raw_text or "").strip().strip("`\"'<>").strip()
    if not answer or answer == NOT_FOUND or not answer.startswith("http"):
        return None
    # The model occasionally adds a sentence after the URL.
    return answer.split()[0]


async def find_career_page(
    company_id: int,
    store: CompanyStore,
    provider: LLMProvider,
) -> str | None:
    """Discover and store a company's career page URL.

    Status moves pending → processing → found, or → error when the model
    cannot name a URL or anything raises.

    Returns:
        The career page URL, or None if the model could not find one.

    Raises:
        NotFoundError: If the company does not exist.
    """
    company = await store.get_company(company_id)
    if company is None:
        msg = f"Company {company_id} not found"
        raise NotFoundError(msg)

    await store.update_company_status(company_id, CompanyStatus.PROCESSING)
    try:
        raw = await provider.complete(build_career_page_prompt(company.name), json_output=False)
    except Exception:
        await store.update_company_status(company_id, CompanyStatus.ERROR)
        raise

    url = parse_career_page_url(raw)
    if url is None:
        logger.info("No career page found for '%s'", company.name)
        await store.update_company_status(company_id, CompanyStatus.ERROR)
        return None

    logger.info("Career page for '%s': %s", company.name, url)
    await store.update_company_status(company_id, CompanyStatus.FOUND, career_page_url=url)
    return url
