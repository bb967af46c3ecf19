"""Google Gemini LLM provider (google-genai SDK)."""

import logging
from typing import Any

from src.core.config import LLMSettings
from src.core.errors import ProviderRequestError
from src.core.schemas import LlmConfig
from src.llm.base import CloudProvider

logger = logging.getLogger(__name__)


class GeminiProvider(CloudProvider):
    """LLM provider using the Google Gemini API. Reads documents natively."""

    supports_documents = True

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
    ) -> "GeminiProvider":
        return cls(
            config.api_key or settings.gemini_api_key,
            model=config.model or settings.gemini_model,
            timeout=timeout,
        )

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-1.5-flash"

    def _get_client(self) -> Any:
        api_key = self._require_key()
        if self._client is not None:
            return self._client

        try:
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for the Gemini provider. "
                "Install with: pip install 'job-scout[gemini]'"
            )
            raise ImportError(msg) from None

        http_options = None
        if self._timeout is not None:
            http_options = genai_types.HttpOptions(timeout=int(self._timeout * 1000))
        self._client = genai.Client(api_key=api_key, http_options=http_options)
        return self._client

    async def _generate(self, contents: Any, response_mime_type: str) -> str | None:
        client = self._get_client()

        from google.genai import errors as genai_errors
        from google.genai import types as genai_types

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=genai_types.GenerateContentConfig(
                    response_mime_type=response_mime_type,
                ),
            )
        except genai_errors.APIError as e:
            msg = f"Gemini API request failed ({e.code}): {e.message}"
            raise ProviderRequestError(msg, status_code=e.code, body=str(e.details)) from e

        return response.text  # type: ignore[no-any-return]

    async def complete(self, prompt: str, *, json_output: bool = True) -> str:
        logger.debug("Sending prompt to Gemini API (%s)...", self.model)
        mime = "application/json" if json_output else "text/plain"
        return await self._generate(prompt, mime) or ""

    async def extract_document(
        self,
        data: bytes,
        mime_type: str,
        instruction: str,
    ) -> str | None:
        self._get_client()

        from google.genai import types as genai_types

        logger.info("Sending %s document to Gemini API (%s)...", mime_type, self.model)
        contents = [
            instruction,
            genai_types.Part.from_bytes(data=data, mime_type=mime_type),
        ]
        return await self._generate(contents, "text/plain")
