"""Approximate token counting from character length.

Embedding models tokenize English prose at roughly four characters per
token.  The estimate is rounded up so that a text whose estimate fits a
budget also fits a character window of ``max_chars(budget)``.
"""

from __future__ import annotations

import math

from docingest.interfaces.token_estimator import ITokenEstimator

_DEFAULT_CHARS_PER_TOKEN = 4


class CharRatioTokenEstimator(ITokenEstimator):
    """Estimate tokens as ``ceil(len(text) / chars_per_token)``."""

    def __init__(self, chars_per_token: int = _DEFAULT_CHARS_PER_TOKEN) -> None:
        if chars_per_token < 1:
            msg = f"chars_per_token must be >= 1, got {chars_per_token}"
            raise ValueError(msg)
        self._chars_per_token = chars_per_token

    def estimate(self, text: str) -> int:
        return math.ceil(len(text) / self._chars_per_token)

    def max_chars(self, tokens: int) -> int:
        return max(tokens, 1) * self._chars_per_token
