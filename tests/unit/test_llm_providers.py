"""Tests for LLM provider registry, credential resolution, and SDK adapters."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.core.config import LLMSettings
from src.core.errors import (
    MissingConfigError,
    MissingCredentialError,
    ProviderRequestError,
    UnsupportedOperationError,
)
from src.core.schemas import LlmConfig
from src.llm import available_providers, get_provider
from src.llm.base import LLMProvider, extract_json_array, extract_json_object
from src.llm.local import _api_base

# ---------------------------------------------------------------------------
# Registry tests
# ---------------------------------------------------------------------------


class TestProviderRegistry:
    @pytest.mark.parametrize("name", ["gemini", "openai", "anthropic", "local"])
    def test_get_each_provider(self, name: str) -> None:
        provider = get_provider(LlmConfig(provider=name), LLMSettings())
        assert isinstance(provider, LLMProvider)
        assert provider.provider_id == name

    def test_available_providers_sorted(self) -> None:
        assert available_providers() == ["anthropic", "gemini", "local", "openai"]

    def test_only_gemini_reads_documents(self) -> None:
        capable = [
            name for name in available_providers()
            if get_provider(LlmConfig(provider=name), LLMSettings()).supports_documents
        ]
        assert capable == ["gemini"]

    def test_request_key_wins_over_server_default(self) -> None:
        provider = get_provider(
            LlmConfig(provider="gemini", apiKey="request-key"),
            LLMSettings(gemini_api_key="server-key"),
        )
        assert provider._api_key == "request-key"  # type: ignore[attr-defined]

    def test_server_default_key_used_when_request_has_none(self) -> None:
        provider = get_provider(
            LlmConfig(provider="openai"), LLMSettings(openai_api_key="server-key"),
        )
        assert provider._api_key == "server-key"  # type: ignore[attr-defined]

    def test_model_override(self) -> None:
        provider = get_provider(LlmConfig(provider="gemini", model="gemini-2.0-pro"), LLMSettings())
        assert provider.model == "gemini-2.0-pro"

    def test_model_from_settings(self) -> None:
        provider = get_provider(LlmConfig(provider="local"), LLMSettings(local_model="mistral"))
        assert provider.model == "mistral"


# ---------------------------------------------------------------------------
# Credential / config checks
# ---------------------------------------------------------------------------


class TestMissingCredentials:
    @pytest.mark.parametrize("name", ["gemini", "openai", "anthropic"])
    async def test_cloud_provider_without_key(self, name: str) -> None:
        provider = get_provider(LlmConfig(provider=name), LLMSettings())
        with pytest.raises(MissingCredentialError, match="API key is required"):
            await provider.complete("prompt")

    async def test_local_provider_without_url(self) -> None:
        provider = get_provider(LlmConfig(provider="local"), LLMSettings())
        with pytest.raises(MissingConfigError, match="URL is required"):
            await provider.complete("prompt")

    async def test_missing_sdk(self) -> None:
        provider = get_provider(LlmConfig(provider="openai", apiKey="k"), LLMSettings())
        with (
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            await provider.complete("prompt")

    async def test_non_document_provider_rejects_documents(self) -> None:
        provider = get_provider(LlmConfig(provider="openai", apiKey="k"), LLMSettings())
        with pytest.raises(NotImplementedError):
            await provider.extract_document(b"", "application/pdf", "read")


# ---------------------------------------------------------------------------
# OpenAI-compatible providers (openai + local)
# ---------------------------------------------------------------------------


def _chat_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestOpenAIProvider:
    async def test_requests_json_output(self) -> None:
        provider = get_provider(LlmConfig(provider="openai", apiKey="k"), LLMSettings())
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_chat_response('{"a": 1}'))
        provider._client = client  # type: ignore[attr-defined]

        assert await provider.complete("hello") == '{"a": 1}'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [{"role": "user", "content": "hello"}]
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["stream"] is False

    async def test_plain_text_omits_response_format(self) -> None:
        provider = get_provider(LlmConfig(provider="openai", apiKey="k"), LLMSettings())
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_chat_response("https://x"))
        provider._client = client  # type: ignore[attr-defined]

        await provider.complete("hello", json_output=False)
        assert "response_format" not in client.chat.completions.create.call_args.kwargs

    async def test_status_error_carries_body(self) -> None:
        import openai

        provider = get_provider(LlmConfig(provider="local", url="http://gpu:11434"), LLMSettings())
        request = httpx.Request("POST", "http://gpu:11434/v1/chat/completions")
        response = httpx.Response(404, text='{"error": "model not found"}', request=request)
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIStatusError("not found", response=response, body=None),
        )
        provider._client = client  # type: ignore[attr-defined]

        with pytest.raises(ProviderRequestError, match="model not found") as exc_info:
            await provider.complete("hello")
        assert exc_info.value.status_code == 404
        assert "model not found" in exc_info.value.body

    async def test_empty_choices_return_empty_string(self) -> None:
        provider = get_provider(LlmConfig(provider="openai", apiKey="k"), LLMSettings())
        response = MagicMock()
        response.choices = []
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)
        provider._client = client  # type: ignore[attr-defined]

        assert await provider.complete("hello") == ""


class TestLocalProvider:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("http://localhost:11434", "http://localhost:11434/v1"),
            ("http://localhost:11434/", "http://localhost:11434/v1"),
            ("http://localhost:11434/v1", "http://localhost:11434/v1"),
        ],
    )
    def test_api_base(self, url: str, expected: str) -> None:
        assert _api_base(url) == expected

    def test_client_points_at_local_server(self) -> None:
        provider = get_provider(
            LlmConfig(provider="local", url="http://gpu-box:11434"), LLMSettings(),
        )
        client = provider._get_client()  # type: ignore[attr-defined]
        assert str(client.base_url).rstrip("/") == "http://gpu-box:11434/v1"

    def test_settings_url_used_as_fallback(self) -> None:
        provider = get_provider(
            LlmConfig(provider="local"), LLMSettings(local_url="http://fallback:11434"),
        )
        assert provider._url == "http://fallback:11434"  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# One outbound request per call
# ---------------------------------------------------------------------------


def _failing_http(paths: list[str]) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(500, json={"error": {"message": "upstream down"}})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestNoRetries:
    @pytest.mark.parametrize(
        "config",
        [
            LlmConfig(provider="openai", apiKey="k"),
            LlmConfig(provider="local", url="http://gpu-box:11434"),
            LlmConfig(provider="anthropic", apiKey="k"),
        ],
        ids=["openai", "local", "anthropic"],
    )
    def test_clients_built_without_retries(self, config: LlmConfig) -> None:
        provider = get_provider(config, LLMSettings())
        assert provider._get_client().max_retries == 0  # type: ignore[attr-defined]

    @pytest.mark.parametrize(
        "config",
        [
            LlmConfig(provider="local", url="http://gpu-box:11434"),
            LlmConfig(provider="anthropic", apiKey="k"),
        ],
        ids=["local", "anthropic"],
    )
    async def test_server_error_sends_one_request(self, config: LlmConfig) -> None:
        provider = get_provider(config, LLMSettings())
        paths: list[str] = []
        client = provider._get_client()  # type: ignore[attr-defined]
        provider._client = client.with_options(http_client=_failing_http(paths))  # type: ignore[attr-defined]

        with pytest.raises(ProviderRequestError) as exc_info:
            await provider.complete("hi")

        assert exc_info.value.status_code == 500
        assert len(paths) == 1


class TestDocumentSupport:
    async def test_text_only_provider_rejects_documents(self) -> None:
        provider = get_provider(LlmConfig(provider="openai", apiKey="k"), LLMSettings())
        assert provider.supports_documents is False
        with pytest.raises(UnsupportedOperationError, match="openai"):
            await provider.extract_document(b"%PDF", "application/pdf", "extract")


# ---------------------------------------------------------------------------
# Gemini provider
# ---------------------------------------------------------------------------


def _gemini_with_client(text: str | None) -> tuple[LLMProvider, MagicMock]:
    provider = get_provider(LlmConfig(provider="gemini", apiKey="k"), LLMSettings())
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=text))
    provider._client = client  # type: ignore[attr-defined]
    return provider, client


class TestGeminiProvider:
    async def test_complete_requests_json(self) -> None:
        provider, client = _gemini_with_client('{"match_score": 1}')

        assert await provider.complete("hello") == '{"match_score": 1}'
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        assert kwargs["contents"] == "hello"
        assert kwargs["config"].response_mime_type == "application/json"

    async def test_none_text_becomes_empty(self) -> None:
        provider, _ = _gemini_with_client(None)
        assert await provider.complete("hello") == ""

    async def test_extract_document_sends_bytes(self) -> None:
        provider, client = _gemini_with_client("Jane Doe\nEngineer")

        text = await provider.extract_document(b"%PDF", "application/pdf", "extract")

        assert text == "Jane Doe\nEngineer"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        instruction, part = kwargs["contents"]
        assert instruction == "extract"
        assert part.inline_data.mime_type == "application/pdf"
        assert part.inline_data.data == b"%PDF"
        assert kwargs["config"].response_mime_type == "text/plain"

    async def test_api_error_mapped(self) -> None:
        from google.genai import errors as genai_errors

        provider, client = _gemini_with_client(None)
        client.aio.models.generate_content.side_effect = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}},
        )
        with pytest.raises(ProviderRequestError) as exc_info:
            await provider.complete("hello")
        assert exc_info.value.status_code == 400


# ---------------------------------------------------------------------------
# Anthropic provider
# ---------------------------------------------------------------------------


class TestAnthropicProvider:
    async def test_returns_first_text_block(self) -> None:
        provider = get_provider(LlmConfig(provider="anthropic", apiKey="k"), LLMSettings())
        block = MagicMock(type="text", text='{"match_score": 3}')
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=MagicMock(content=[block]))
        provider._client = client  # type: ignore[attr-defined]

        assert await provider.complete("hello") == '{"match_score": 3}'
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "hello"}]


# ---------------------------------------------------------------------------
# Shared parsing helpers
# ---------------------------------------------------------------------------


class TestExtractJson:
    def test_object_inside_fences(self) -> None:
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_array_inside_prose(self) -> None:
        assert extract_json_array('Jobs:\n[{"title": "x"}]\nDone.') == [{"title": "x"}]

    def test_empty_input(self) -> None:
        from src.core.errors import ParseError

        with pytest.raises(ParseError):
            extract_json_object("")
