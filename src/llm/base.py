"""Abstract base classes for LLM providers and shared response parsing."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any

from src.core.errors import MissingCredentialError, ParseError, UnsupportedOperationError

_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Pull the JSON object out of a model reply.

    Takes everything from the first ``{`` to the last ``}``, so prose or
    markdown fences around the payload are ignored.

    Raises:
        ParseError: If no object is present or it is not valid JSON.
    """
    match = _OBJECT_RE.search(raw_text or "")
    if match is None:
        msg = "No JSON object found in the response"
        raise ParseError(msg)
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ParseError(msg) from e
    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise ParseError(msg)
    return data


def extract_json_array(raw_text: str) -> list[Any]:
    """Pull the JSON array out of a model reply (first ``[`` to last ``]``)."""
    match = _ARRAY_RE.search(raw_text or "")
    if match is None:
        msg = "No JSON array found in the response"
        raise ParseError(msg)
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ParseError(msg) from e
    if not isinstance(data, list):
        msg = f"Expected a JSON array, got {type(data).__name__}"
        raise ParseError(msg)
    return data


class LLMProvider(ABC):
    """Base class that every LLM provider must implement.

    Providers are cheap to construct; the SDK client is created on first use
    and reused for the rest of the provider's life.
    """

    #: Whether the provider can read binary documents (used for resumes).
    supports_documents: bool = False

    def __init__(self, model: str | None = None, timeout: float | None = None) -> None:
        self._model = model
        self._timeout = timeout

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'gemini')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The model ID used when no override is specified."""

    @property
    def model(self) -> str:
        return self._model or self.default_model

    @abstractmethod
    async def complete(self, prompt: str, *, json_output: bool = True) -> str:
        """Send a single-turn prompt and return the raw response text.

        Args:
            prompt: The full user prompt.
            json_output: Ask the provider for JSON-formatted output.

        Returns:
            Raw text from the model. May be empty.

        Raises:
            MissingCredentialError: Cloud provider without an API key.
            MissingConfigError: Local provider without an endpoint URL.
            ProviderRequestError: The provider answered with a non-success status.
        """

    async def extract_document(
        self,
        data: bytes,
        mime_type: str,
        instruction: str,
    ) -> str | None:
        """Ask the model to read a binary document. Returns the first text part."""
        msg = f"Provider '{self.provider_id}' does not support document input"
        raise UnsupportedOperationError(msg)


class CloudProvider(LLMProvider):
    """A hosted provider authenticated by API key."""

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(model=model, timeout=timeout)
        self._api_key = api_key

    def _require_key(self) -> str:
        if not self._api_key:
            msg = f"{self.provider_id} API key is required"
            raise MissingCredentialError(msg)
        return self._api_key
