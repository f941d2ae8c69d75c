"""
Text sanitization utilities for content previews and log output.
"""

import html
import logging
import re

import bleach

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_LENGTH = 200
DEFAULT_PREVIEW_SUFFIX = "..."

# bleach drops the tags of script/style blocks but keeps their text.
_NON_TEXT_BLOCKS = re.compile(
    r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)


def strip_markup(text: str) -> str:
    """
    Remove every HTML tag and comment from ``text``.

    Entities escaped by bleach are decoded again, so the result is plain text
    rather than HTML-safe text.
    """
    if not text:
        return ""

    text = _NON_TEXT_BLOCKS.sub("", text)
    cleaned = bleach.clean(text, tags=[], attributes={}, strip=True, strip_comments=True)
    return html.unescape(cleaned)


def summarize(
    text: str,
    max_length: int = DEFAULT_PREVIEW_LENGTH,
    suffix: str = DEFAULT_PREVIEW_SUFFIX,
) -> str:
    """
    Build the preview rendering of a content body.

    Markup is stripped first. Text shorter than ``max_length`` is returned
    unchanged; anything longer is cut to ``max_length`` characters and
    ``suffix`` is appended.

    Args:
        text: Raw body, possibly containing markup.
        max_length: Preview length in characters.
        suffix: Marker appended to truncated previews.

    Returns:
        The plain-text preview.
    """
    plain = strip_markup(text)
    if len(plain) < max_length:
        return plain
    return plain[:max_length] + suffix


def sanitize_for_log(text: str, max_length: int = 30) -> str:
    """
    Sanitize text for logging - truncate and collapse whitespace.

    Args:
        text: The text to sanitize.
        max_length: Maximum length before truncation.

    Returns:
        The sanitized text suitable for logging.
    """
    if not text:
        return "[empty]"
    sanitized = text[:max_length] + "..." if len(text) > max_length else text
    sanitized = re.sub(r"\s+", " ", sanitized)
    return sanitized
