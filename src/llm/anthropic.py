"""Anthropic Claude LLM provider."""

import logging
from typing import Any

from src.core.config import LLMSettings
from src.core.errors import ProviderRequestError
from src.core.schemas import LlmConfig
from src.llm.base import CloudProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(CloudProvider):
    """LLM provider using the Anthropic Claude API.

    The messages API has no JSON response mode; the prompt asks for JSON and
    the reply is parsed leniently.
    """

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
    ) -> "AnthropicProvider":
        return cls(
            config.api_key or settings.anthropic_api_key,
            model=config.model or settings.anthropic_model,
            timeout=timeout,
        )

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    def _get_client(self) -> Any:
        api_key = self._require_key()
        if self._client is not None:
            return self._client

        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for the Anthropic provider. "
                "Install with: pip install 'job-scout[anthropic]'"
            )
            raise ImportError(msg) from None

        kwargs: dict[str, Any] = {"api_key": api_key, "max_retries": 0}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        self._client = anthropic.AsyncAnthropic(**kwargs)
        return self._client

    async def complete(self, prompt: str, *, json_output: bool = True) -> str:
        client = self._get_client()

        import anthropic

        logger.debug("Sending prompt to Anthropic API (%s)...", self.model)
        try:
            message = await client.messages.create(
                model=self.model,
                max_tokens=1024,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            body = e.response.text if e.response is not None else ""
            msg = f"Anthropic request failed ({e.status_code}): {body}"
            raise ProviderRequestError(msg, status_code=e.status_code, body=body) from e
        except anthropic.APIConnectionError as e:
            msg = f"Anthropic request failed: {e}"
            raise ProviderRequestError(msg) from e

        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text  # type: ignore[no-any-return]
        return ""
