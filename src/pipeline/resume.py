"""Resume text extraction: download the file and let a document-capable LLM read it."""

import logging
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

import httpx

from src.core.errors import FetchError, UnsupportedFormatError
from src.llm.base import LLMProvider
from src.pipeline.prompts import RESUME_EXTRACTION_INSTRUCTION

logger = logging.getLogger(__name__)

MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc": "application/msword",
    "txt": "text/plain",
}


def resume_mime_type(resume_url: str) -> str:
    """Map the URL's file extension to a MIME type.

    Query strings and fragments (signed storage URLs) are ignored.

    Raises:
        UnsupportedFormatError: For any extension outside pdf/docx/doc/txt.
    """
    path = unquote(urlparse(resume_url).path)
    extension = PurePosixPath(path).suffix.lstrip(".").lower()
    if extension not in MIME_TYPES:
        msg = f"Unsupported resume file type: {extension or '(none)'}"
        raise UnsupportedFormatError(msg)
    return MIME_TYPES[extension]


async def extract_resume_text(
    resume_url: str,
    provider: LLMProvider,
    client: httpx.AsyncClient,
) -> str | None:
    """Download a resume and return its raw text, or None if the model gave none.

    The format is checked before downloading so unsupported files cost no
    network traffic.

    Raises:
        UnsupportedFormatError: Unknown file extension.
        FetchError: Download returned a non-success status.
        ProviderRequestError: The extraction call failed.
    """
    mime_type = resume_mime_type(resume_url)

    logger.info("Processing resume from %s using %s", resume_url, provider.provider_id)
    response = await client.get(resume_url)
    if not response.is_success:
        msg = f"Failed to download resume. Status: {response.status_code}"
        raise FetchError(msg, status_code=response.status_code)

    text = await provider.extract_document(
        response.content, mime_type, RESUME_EXTRACTION_INSTRUCTION,
    )
    if not text or not text.strip():
        logger.warning("Could not extract text from resume, proceeding without it")
        return None

    logger.info("Extracted %d characters from resume", len(text))
    return text
