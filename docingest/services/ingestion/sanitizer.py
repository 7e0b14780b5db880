"""Text sanitization for durable storage.

Extracted document text routinely carries characters that break JSON
serialization or are rejected by text columns: NUL and other C0 controls,
Unicode noncharacters, emoji-range code points, line/paragraph separators
and literal ``\\u0000`` escape sequences left behind by upstream tooling.

:func:`sanitize` removes them and normalizes whitespace.  When the result
still fails a serialization self-check it falls back to
:func:`aggressive_sanitize`, which keeps printable ASCII only.  The
PersistenceWriter also uses :func:`aggressive_sanitize` directly for its
last-chance retry of a rejected chunk.

Both functions are idempotent.
"""

from __future__ import annotations

import json
import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

# C0 controls except tab, newline and carriage return, plus DEL.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_NONCHARACTERS = re.compile("[\ufffd\ufffe\uffff]")
_EMOJI_RANGE = re.compile("[\U0001f000-\U0001ffff]")
_LINE_SEPARATORS = re.compile("[\u2028\u2029]")
_WHITESPACE_RUN = re.compile(r"\s+")
_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7e]")
_SPACE_RUN = re.compile(r" {2,}")

_LITERAL_NUL_ESCAPE = "\\u0000"


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def sanitize(text: str) -> str:
    """Return *text* with storage-unsafe characters removed.

    Steps, in order: strip control characters, noncharacters and the
    U+1F000..U+1FFFF range; remove literal ``\\u0000`` sequences; turn
    U+2028/U+2029 into spaces; collapse whitespace runs to one space; trim.
    """
    if not text:
        return ""

    cleaned = _CONTROL_CHARS.sub("", text)
    cleaned = _NONCHARACTERS.sub("", cleaned)
    cleaned = _EMOJI_RANGE.sub("", cleaned)
    cleaned = _strip_nul_escapes(cleaned)
    cleaned = _LINE_SEPARATORS.sub(" ", cleaned)
    cleaned = _WHITESPACE_RUN.sub(" ", cleaned).strip()

    if not is_serializable(cleaned):
        logger.warning(
            "sanitize_fallback_to_ascii",
            original_chars=len(text),
            cleaned_chars=len(cleaned),
        )
        return aggressive_sanitize(cleaned)

    return cleaned


def aggressive_sanitize(text: str) -> str:
    """Keep printable ASCII (0x20..0x7E) only, collapse spaces and trim."""
    if not text:
        return ""
    cleaned = _WHITESPACE_RUN.sub(" ", text)
    cleaned = _NON_PRINTABLE_ASCII.sub("", cleaned)
    # Dropping a character can join the halves of an escape.
    cleaned = _strip_nul_escapes(cleaned)
    return _SPACE_RUN.sub(" ", cleaned).strip()


def is_serializable(text: str) -> bool:
    """Return ``True`` if *text* survives UTF-8 encoding and a JSON round trip.

    Lone surrogates (e.g. from ``surrogateescape`` decoding) fail the
    UTF-8 encode; anything else that JSON cannot reproduce exactly fails
    the round trip.
    """
    try:
        text.encode("utf-8")
        return json.loads(json.dumps(text, ensure_ascii=False)) == text
    except (UnicodeEncodeError, ValueError):
        return False


def _strip_nul_escapes(text: str) -> str:
    # Removing one escape can splice a new one together ("\\u\\u00000000").
    while _LITERAL_NUL_ESCAPE in text:
        text = text.replace(_LITERAL_NUL_ESCAPE, "")
    return text
