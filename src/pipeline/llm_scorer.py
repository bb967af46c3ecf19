"""LLM-assisted job scoring: one provider call per job, normalised to AnalysisResult."""

import logging
import math
from typing import Any

from src.core.errors import ParseError
from src.core.schemas import AnalysisResult
from src.llm.base import LLMProvider, extract_json_object
from src.pipeline.prompts import MATCH_THRESHOLD

logger = logging.getLogger(__name__)


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        msg = "'match_score' must be a number"
        raise ParseError(msg)
    try:
        raw_score = float(value)
    except (TypeError, ValueError) as e:
        msg = f"'match_score' must be a number, got {value!r}"
        raise ParseError(msg) from e
    if not math.isfinite(raw_score):
        msg = f"'match_score' must be finite, got {value!r}"
        raise ParseError(msg)
    return max(0, min(100, round(raw_score)))


def parse_analysis(raw_text: str, threshold: int = MATCH_THRESHOLD) -> AnalysisResult:
    """Parse a model reply into an AnalysisResult.

    The JSON object may be wrapped in prose or code fences. The score is
    rounded and clamped to 0-100; when the model omits ``is_match`` it is
    derived from the threshold. A model-supplied ``is_match`` is kept as-is.

    Raises:
        ParseError: On missing JSON or a missing, non-numeric or non-finite
            ``match_score``.
    """
    data = extract_json_object(raw_text)

    if "match_score" not in data:
        msg = "LLM response missing 'match_score' field"
        raise ParseError(msg)
    score = _coerce_score(data["match_score"])

    is_match = data.get("is_match")
    if not isinstance(is_match, bool):
        is_match = score >= threshold

    reasoning = data.get("reasoning")
    return AnalysisResult(
        match_score=score,
        reasoning=str(reasoning) if reasoning is not None else "",
        is_match=is_match,
    )


async def analyze_job(
    prompt: str,
    provider: LLMProvider,
    job_id: int | str,
    threshold: int = MATCH_THRESHOLD,
) -> AnalysisResult:
    """Score one job. Errors propagate; the caller decides what a failure means.

    Raises:
        MissingCredentialError, MissingConfigError: Provider not usable.
        ProviderRequestError: Provider returned a non-success status.
        ParseError: Empty or unparseable model output.
    """
    logger.debug("Analyzing job %s using %s", job_id, provider.provider_id)
    raw = await provider.complete(prompt, json_output=True)
    if not raw or not raw.strip():
        msg = f"LLM did not return parsable text for job {job_id}"
        raise ParseError(msg)

    try:
        return parse_analysis(raw, threshold)
    except ParseError:
        logger.warning("Could not parse analysis for job %s. Raw response: %r", job_id, raw)
        raise
