"""Per-chunk embedding with bounded degradation.

Wraps an :class:`IEmbeddingProvider` with the policies the ingestion
pipeline needs for a single chunk:

- **Cap short-circuit** -- a chunk whose estimate exceeds the embeddable
  cap is refused without a network call.
- **Timeout + one transient retry** -- every provider call is bounded by
  ``asyncio.wait_for``; a timeout or connection failure is retried exactly
  once.
- **Token-limit halving** -- when the provider reports the input is too
  long, only the first half of the characters is kept and the call is
  repeated.  The loop stops after ``max_halvings`` halvings or when the
  fragment falls below ``min_fragment_chars``.
- **Anything else** -- the chunk gets no embedding and the pipeline moves
  on.

The client never raises provider errors; it returns an
:class:`EmbeddingOutcome` describing what happened.
"""

from __future__ import annotations

import asyncio

import structlog

from docingest.interfaces.embedding_provider import IEmbeddingProvider
from docingest.interfaces.token_estimator import ITokenEstimator
from docingest.models.rag import EmbeddingOutcome
from docingest.utils.errors import (
    EmbeddingProviderError,
    ProviderUnavailableError,
    TokenLimitError,
)
from docingest.utils.tokens import CharRatioTokenEstimator

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TOKEN_CAP = 8000
_DEFAULT_TIMEOUT_SECONDS = 30.0
_DEFAULT_MAX_HALVINGS = 12
_DEFAULT_MIN_FRAGMENT_CHARS = 1


class EmbeddingClient:
    """Obtains one embedding vector per chunk from an external provider.

    Parameters
    ----------
    provider:
        The embedding backend.
    token_cap:
        Largest estimated token count the provider accepts.
    estimator:
        Token estimator shared with the chunker.
    timeout_seconds:
        Upper bound on a single provider call.
    max_halvings:
        Upper bound on token-limit halvings for one chunk.
    min_fragment_chars:
        Fragments shorter than this are not sent.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        token_cap: int = _DEFAULT_TOKEN_CAP,
        estimator: ITokenEstimator | None = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        max_halvings: int = _DEFAULT_MAX_HALVINGS,
        min_fragment_chars: int = _DEFAULT_MIN_FRAGMENT_CHARS,
    ) -> None:
        self._provider = provider
        self._token_cap = token_cap
        self._estimator = estimator or CharRatioTokenEstimator()
        self._timeout = timeout_seconds
        self._max_halvings = max_halvings
        self._min_fragment_chars = max(min_fragment_chars, 1)

    @property
    def token_cap(self) -> int:
        return self._token_cap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> EmbeddingOutcome:
        """Return the embedding for *text*, or an outcome explaining why not."""
        if not text:
            return EmbeddingOutcome(reason="empty_text")

        estimate = self._estimator.estimate(text)
        if estimate > self._token_cap:
            logger.warning(
                "embedding_skipped_over_cap",
                estimated_tokens=estimate,
                token_cap=self._token_cap,
            )
            return EmbeddingOutcome(reason="over_cap")

        fragment = text
        halvings = 0

        while True:
            try:
                vector = await self._call_with_retry(fragment)
                break
            except TokenLimitError as exc:
                if halvings >= self._max_halvings:
                    logger.warning(
                        "embedding_halving_exhausted",
                        halvings=halvings,
                        fragment_chars=len(fragment),
                        error=str(exc),
                    )
                    return EmbeddingOutcome(reason="token_limit_exhausted", halvings=halvings)
                fragment = fragment[: len(fragment) // 2]
                halvings += 1
                if len(fragment) < self._min_fragment_chars:
                    logger.warning(
                        "embedding_fragment_too_small",
                        halvings=halvings,
                        fragment_chars=len(fragment),
                    )
                    return EmbeddingOutcome(reason="token_limit_exhausted", halvings=halvings)
                logger.info(
                    "embedding_token_limit_halving",
                    halvings=halvings,
                    fragment_chars=len(fragment),
                )
            except ProviderUnavailableError as exc:
                logger.warning("embedding_provider_unavailable", error=str(exc))
                return EmbeddingOutcome(reason="provider_unavailable", halvings=halvings)
            except EmbeddingProviderError as exc:
                logger.warning("embedding_provider_error", error=str(exc))
                return EmbeddingOutcome(reason="provider_error", halvings=halvings)

        expected = self._provider.get_dimension()
        if not vector or (expected and len(vector) != expected):
            logger.warning(
                "embedding_dimension_mismatch",
                expected=expected,
                received=len(vector) if vector else 0,
            )
            return EmbeddingOutcome(reason="invalid_vector", halvings=halvings)

        return EmbeddingOutcome(vector=vector, halvings=halvings)

    # ------------------------------------------------------------------
    # Provider call
    # ------------------------------------------------------------------

    async def _call_with_retry(self, text: str) -> list[float]:
        """Call the provider, retrying once on timeout or connection failure.

        Token-limit and other provider errors propagate on first occurrence.
        """
        try:
            return await self._call_once(text)
        except ProviderUnavailableError as exc:
            logger.info("embedding_transient_retry", error=str(exc))
        return await self._call_once(text)

    async def _call_once(self, text: str) -> list[float]:
        try:
            return await asyncio.wait_for(
                self._provider.embed_single(text), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            raise ProviderUnavailableError(
                message=f"Embedding request timed out after {self._timeout:.1f}s",
                provider_name=self._provider.get_provider_name(),
            ) from exc
