"""Locally hosted LLM provider (Ollama and other OpenAI-compatible servers)."""

import logging
from typing import Any

from src.core.config import LLMSettings
from src.core.errors import MissingConfigError
from src.core.schemas import LlmConfig
from src.llm.base import LLMProvider
from src.llm.openai import chat_completion, import_openai

logger = logging.getLogger(__name__)


def _api_base(url: str) -> str:
    """Map a server root such as http://localhost:11434 to its /v1 API base."""
    base = url.rstrip("/")
    if not base.endswith("/v1"):
        base += "/v1"
    return base


class LocalProvider(LLMProvider):
    """LLM provider for a model server at a caller-supplied URL.

    Local servers are not assumed to read binary documents, so
    ``supports_documents`` stays False.
    """

    def __init__(
        self,
        url: str | None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(model=model, timeout=timeout)
        self._url = url
        self._client: Any = None

    @classmethod
    def from_settings(
        cls,
        config: LlmConfig,
        settings: LLMSettings,
        *,
        timeout: float | None = None,
    ) -> "LocalProvider":
        return cls(
            config.url or settings.local_url,
            model=config.model or settings.local_model,
            timeout=timeout,
        )

    @property
    def provider_id(self) -> str:
        return "local"

    @property
    def default_model(self) -> str:
        return "llama3"

    def _get_client(self) -> Any:
        if not self._url:
            msg = "URL is required for the local provider"
            raise MissingConfigError(msg)
        if self._client is None:
            openai = import_openai()
            # Local servers ignore the key, but the SDK insists on one.
            self._client = openai.AsyncOpenAI(
                base_url=_api_base(self._url),
                api_key="local",
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    async def complete(self, prompt: str, *, json_output: bool = True) -> str:
        client = self._get_client()
        logger.debug("Sending prompt to local model at %s (%s)...", self._url, self.model)
        return await chat_completion(
            client, self.model, prompt, json_output=json_output, label="Local LLM",
        )
