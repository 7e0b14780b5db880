"""Abstract base class for token-count estimators.

The chunker and the embedding client only ever need an approximation of
how many tokens a text will cost, plus the inverse (how many characters
fit a token budget).  Swapping in a real tokenizer means implementing
this interface; nothing else changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   CharRatioTokenEstimator -- ceil(len / 4), located in docingest/utils/tokens.py
class ITokenEstimator(ABC):
    """Contract for estimating token counts from text."""

    @abstractmethod
    def estimate(self, text: str) -> int:
        """Return the estimated token count of *text*."""

    @abstractmethod
    def max_chars(self, tokens: int) -> int:
        """Return the largest character window that fits *tokens* tokens.

        Must be consistent with :meth:`estimate`: a text of length
        ``max_chars(n)`` has an estimate of at most ``n``.
        """
