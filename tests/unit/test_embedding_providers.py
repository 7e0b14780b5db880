"""Unit tests for the OpenAI embedding provider adapter."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from docingest.config.settings import Settings
from docingest.providers.embedding.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
    is_token_limit_message,
)
from docingest.utils.errors import (
    EmbeddingProviderError,
    ProviderUnavailableError,
    TokenLimitError,
)

_PATCH_TARGET = "docingest.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"
_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _provider_with(create: AsyncMock, **overrides) -> OpenAIEmbeddingProvider:
    mock_client = AsyncMock()
    mock_client.embeddings.create = create
    with patch(_PATCH_TARGET, return_value=mock_client):
        return OpenAIEmbeddingProvider(_settings(**overrides))


def _bad_request(message: str) -> openai.BadRequestError:
    return openai.BadRequestError(
        message,
        response=httpx.Response(400, request=_REQUEST),
        body=None,
    )


# ======================================================================
# Metadata
# ======================================================================


class TestProviderMetadata:
    def test_defaults(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings())

        assert provider.get_provider_name() == "openai_embedding"
        assert provider.get_dimension() == 1536
        assert provider.is_available() is True

    def test_without_key(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_api_key=""))
        assert provider.is_available() is False

    def test_without_key_still_builds_a_client(self) -> None:
        with patch(_PATCH_TARGET) as client_cls:
            OpenAIEmbeddingProvider(_settings(openai_api_key=""))

        assert client_cls.call_args.kwargs["api_key"] != ""

    def test_without_key_reports_degraded_registry(self, tmp_path: Path) -> None:
        from docingest.main import build_ingestion_service

        components = build_ingestion_service(
            _settings(openai_api_key="", sqlite_db_path=str(tmp_path / "x.db"))
        )

        assert components["provider_registry"]["embedding"] is False
        assert components["provider_registry"]["storage"] is True

    def test_compatible_endpoint(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(
                openai_base_url="http://localhost:11434/v1",
                openai_embedding_model="nomic-embed-text",
            )
        )

        assert provider.get_provider_name() == "openai-compatible_embedding"
        assert provider.get_dimension() == 768

    def test_unknown_model_has_no_fixed_dimension(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_embedding_model="custom-embed"))
        assert provider.get_dimension() == 0

    def test_sdk_retries_disabled(self) -> None:
        with patch(_PATCH_TARGET) as mock_cls:
            OpenAIEmbeddingProvider(_settings())

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["max_retries"] == 0
        assert kwargs["api_key"] == "sk-test"
        assert "base_url" not in kwargs


# ======================================================================
# embed_single
# ======================================================================


class TestEmbedSingle:
    async def test_success(self) -> None:
        response = MagicMock()
        response.data = [MagicMock(embedding=[0.5] * 1536)]
        response.usage = MagicMock(total_tokens=3)
        create = AsyncMock(return_value=response)

        provider = _provider_with(create)
        vector = await provider.embed_single("hello")

        assert len(vector) == 1536
        create.assert_awaited_once_with(input="hello", model="text-embedding-3-small")

    async def test_empty_response(self) -> None:
        response = MagicMock()
        response.data = []
        provider = _provider_with(AsyncMock(return_value=response))

        with pytest.raises(EmbeddingProviderError):
            await provider.embed_single("hello")

    async def test_context_length_error_maps_to_token_limit(self) -> None:
        error = _bad_request(
            "This model's maximum context length is 8192 tokens, however you "
            "requested 9000 tokens."
        )
        provider = _provider_with(AsyncMock(side_effect=error))

        with pytest.raises(TokenLimitError) as exc_info:
            await provider.embed_single("x" * 40000)
        assert exc_info.value.provider_name == "openai_embedding"

    async def test_other_api_error(self) -> None:
        provider = _provider_with(AsyncMock(side_effect=_bad_request("Invalid model")))

        with pytest.raises(EmbeddingProviderError) as exc_info:
            await provider.embed_single("hello")
        assert not isinstance(exc_info.value, TokenLimitError)

    @pytest.mark.parametrize(
        "error",
        [
            openai.APITimeoutError(request=_REQUEST),
            openai.APIConnectionError(request=_REQUEST),
        ],
    )
    async def test_connection_errors_are_unavailable(self, error: Exception) -> None:
        provider = _provider_with(AsyncMock(side_effect=error))

        with pytest.raises(ProviderUnavailableError):
            await provider.embed_single("hello")


class TestTokenLimitMessage:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("This model's maximum context length is 8192 tokens", True),
            ("Input exceeds the TOKEN LIMIT for this model", True),
            ("Rate limit reached", False),
            ("", False),
        ],
    )
    def test_detection(self, message: str, expected: bool) -> None:
        assert is_token_limit_message(message) is expected
