"""OpenAI LLM provider, plus the chat-completions call shared with local servers."""

import logging
from typing import Any

from src.core.config import LLMSettings
from src.core.errors import ProviderRequestError
from src.core.schemas import LlmConfig
from src.llm.base import CloudProvider

logger = logging.getLogger(__name__)


def import_openai() -> Any:
    try:
        import openai
    except ImportError:
        msg = (
            "openai is required for the OpenAI and local providers. "
            "Install with: pip install 'job-scout[openai]'"
        )
        raise ImportError(msg) from None
    return openai


async def chat_completion(
    client: Any,
    model: str,
    prompt: str,
    *,
    json_output: bool,
    label: str,
) -> str:
    """Run one single-turn, non-streamed chat completion and return its text.

    Non-success responses are raised as ProviderRequestError with the
    response body attached.
    """
    openai = import_openai()

    kwargs: dict[str, Any] = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "stream": False,
    }
    if json_output:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        response = await client.chat.completions.create(**kwargs)
    except openai.APIStatusError as e:
        body = e.response.text if e.response is not None else ""
        msg = f"{label} request failed ({e.status_code}): {body}"
        raise ProviderRequestError(msg, status_code=e.status_code, body=body) from e
    except openai.APIConnectionError as e:
        msg = f"{label} request failed: {e}"
        raise ProviderRequestError(msg) from e

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


class OpenAIProvider(CloudProvider):
    """LLM provider using the OpenAI API."""

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(api_key, model=model, timeout=timeout)
        self._client: Any = None

    @classmethod
    def from_settings(
        cls,
        config: LlmConfig,
        settings: LLMSettings,
        *,
        timeout: float | None = None,
    ) -> "OpenAIProvider":
        return cls(
            config.api_key or settings.openai_api_key,
            model=config.model or settings.openai_model,
            timeout=timeout,
        )

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    def _get_client(self) -> Any:
        api_key = self._require_key()
        if self._client is None:
            openai = import_openai()
            self._client = openai.AsyncOpenAI(
                api_key=api_key, timeout=self._timeout, max_retries=0,
            )
        return self._client

    async def complete(self, prompt: str, *, json_output: bool = True) -> str:
        client = self._get_client()
        logger.debug("Sending prompt to OpenAI API (%s)...", self.model)
        return await chat_completion(
            client, self.model, prompt, json_output=json_output, label="OpenAI",
        )
