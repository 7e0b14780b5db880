"""Token-budgeted text chunking with paragraph, sentence and window fallbacks.

Splits sanitized document text into chunks whose estimated token count
stays within a budget, preferring the most natural boundary available:

1. **Paragraphs** -- when the text has more than one blank-line separated
   paragraph, paragraphs are greedily packed into chunks (joined by a blank
   line).  A paragraph too large on its own is cut into fixed windows.
2. **Sentences** -- otherwise, when the text has more than one sentence,
   sentences are greedily packed (joined by a space).  A sentence too large
   on its own is cut into fixed windows.
3. **Fixed windows** -- otherwise the text is cut into windows of
   ``budget`` tokens worth of characters, nudged back to the last sentence
   end (within a short lookback) or the last whitespace so words stay whole.

Splits only ever happen at whitespace or directly after a sentence
terminator, so joining the chunks back together reproduces the input up to
whitespace.
"""

from __future__ import annotations

import re

import structlog

from docingest.interfaces.token_estimator import ITokenEstimator
from docingest.utils.tokens import CharRatioTokenEstimator

logger = structlog.get_logger(logger_name=__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_LINE_BREAK = re.compile(r"\n+")
# Zero-width split point right after each run of terminators.
_SENTENCE_END = re.compile(r"(?<=[.!?])(?![.!?])")

_SENTENCE_TERMINATORS = ".!?"
_WHITESPACE = " \n\t\r"
# How far back from a window's end a sentence terminator may sit and
# still be preferred over the last whitespace.
_SENTENCE_LOOKBACK = 100

_PARAGRAPH_JOINER = "\n\n"
_SENTENCE_JOINER = " "


class TextChunker:
    """Splits text into chunks that fit an estimated token budget.

    Parameters
    ----------
    estimator:
        Token estimator; defaults to ``ceil(len / 4)``.
    """

    def __init__(self, estimator: ITokenEstimator | None = None) -> None:
        self._estimator = estimator or CharRatioTokenEstimator()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, budget: int) -> list[str]:
        """Split *text* into chunks of at most *budget* estimated tokens.

        Parameters
        ----------
        text:
            Sanitized document text.
        budget:
            Soft per-chunk cap in estimated tokens.

        Returns
        -------
        list[str]
            Non-empty chunks in document order.  Empty or whitespace-only
            input returns an empty list; any other input returns at least
            one chunk.
        """
        if not text or not text.strip():
            return []

        paragraphs = self._split_paragraphs(text)
        if len(paragraphs) > 1:
            chunks = self._pack(paragraphs, budget, _PARAGRAPH_JOINER)
            strategy = "paragraph"
        else:
            sentences = self._split_sentences(text)
            if len(sentences) > 1:
                chunks = self._pack(sentences, budget, _SENTENCE_JOINER)
                strategy = "sentence"
            else:
                chunks = self._split_fixed(text, budget)
                strategy = "fixed"

        if not chunks:
            # Defensive floor: non-empty input always yields a chunk.
            chunks = self._split_fixed(text, budget)

        logger.debug(
            "chunking_complete",
            strategy=strategy,
            num_chunks=len(chunks),
            input_chars=len(text),
            budget=budget,
        )
        return chunks

    def split_oversized(self, text: str, budget: int) -> list[str]:
        """Re-split a chunk that exceeds a stricter cap.

        Breaks on line boundaries when the chunk has several lines and
        packs them under *budget*; otherwise cuts fixed windows.
        """
        if not text or not text.strip():
            return []

        lines = [part.strip() for part in _LINE_BREAK.split(text) if part.strip()]
        if len(lines) > 1:
            chunks = self._pack(lines, budget, _PARAGRAPH_JOINER)
        else:
            chunks = self._split_fixed(text, budget)

        logger.debug(
            "oversized_chunk_split",
            input_chars=len(text),
            num_chunks=len(chunks),
            budget=budget,
        )
        return chunks

    # ------------------------------------------------------------------
    # Boundary detection
    # ------------------------------------------------------------------

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        """Split *text* on blank lines, discarding blanks."""
        parts = _PARAGRAPH_BREAK.split(text)
        return [p.strip() for p in parts if p.strip()]

    @staticmethod
    def _split_sentences(text: str) -> list[str]:
        """Split *text* after each run of ``.``, ``!`` or ``?``.

        Terminators stay attached to their sentence; trailing text without a
        terminator is kept as the last sentence.
        """
        parts = _SENTENCE_END.split(text)
        return [p.strip() for p in parts if p.strip()]

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _pack(self, units: list[str], budget: int, joiner: str) -> list[str]:
        """Greedily pack *units* into chunks under *budget*.

        The current chunk is flushed before a unit that would push it over
        budget.  A unit over budget on its own is flushed around and cut
        into fixed windows.
        """
        chunks: list[str] = []
        current = ""

        for unit in units:
            if self._estimator.estimate(unit) > budget:
                if current:
                    chunks.append(current)
                    current = ""
                chunks.extend(self._split_fixed(unit, budget))
                continue

            candidate = f"{current}{joiner}{unit}" if current else unit
            if current and self._estimator.estimate(candidate) > budget:
                chunks.append(current)
                current = unit
            else:
                current = candidate

        if current:
            chunks.append(current)
        return chunks

    def _split_fixed(self, text: str, budget: int) -> list[str]:
        """Cut *text* into windows of ``max_chars(budget)`` characters.

        When a window ends before the end of the text, its end moves back
        to just after the last sentence terminator if one sits within the
        lookback, else to the last whitespace in the window.  A window with
        neither is cut hard.
        """
        max_chars = self._estimator.max_chars(budget)
        length = len(text)
        chunks: list[str] = []
        start = 0

        while start < length:
            end = min(start + max_chars, length)
            if end < length:
                end = self._find_break(text, start, end)

            piece = text[start:end].strip()
            if piece:
                chunks.append(piece)
            start = end

        return chunks

    @staticmethod
    def _find_break(text: str, start: int, end: int) -> int:
        """Return a cut position in ``(start, end]`` for the window ``text[start:end]``."""
        sentence_end = max(text.rfind(t, start, end) for t in _SENTENCE_TERMINATORS)
        if sentence_end > start and sentence_end >= end - _SENTENCE_LOOKBACK:
            return sentence_end + 1

        # text[end] itself may be whitespace, which makes end a clean cut.
        space = max(text.rfind(w, start + 1, end + 1) for w in _WHITESPACE)
        if space > start:
            return space
        return end
