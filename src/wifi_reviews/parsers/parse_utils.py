"""Shared parsing utilities."""

import re
from typing import Optional

# Precompiled regex patterns
WIFI_KEYWORDS_PATTERN = re.compile(
    r"wifi|wi-fi|internet|connectivity|network|broadband|connection|bandwidth|speed|mbps|upload|download",
    re.IGNORECASE,
)
MULTIPLE_SPACES_PATTERN = re.compile(r"\s+")
DISALLOWED_CHARS_PATTERN = re.compile(r"[^\w\s\-.,!?()]")
RATING_NUMBER_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)")


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace to a single space and strip the ends."""
    return MULTIPLE_SPACES_PATTERN.sub(" ", text).strip()


def sanitize_string(text: str) -> str:
    """Normalize whitespace and drop control characters and most punctuation.

    Word characters, whitespace and ``- . , ! ? ( )`` survive.

    Args:
        text: Raw text scraped from the page

    Returns:
        Sanitized single-line text
    """
    if not text:
        return ""
    text = normalize_whitespace(text)
    text = DISALLOWED_CHARS_PATTERN.sub("", text)
    # Removing characters can leave doubled spaces behind
    return normalize_whitespace(text)


def mentions_wifi(text: str) -> bool:
    """Check whether text mentions Wi-Fi or connectivity at all."""
    return bool(text) and WIFI_KEYWORDS_PATTERN.search(text) is not None


def parse_rating(label: Optional[str]) -> int:
    """Parse a star rating out of an aria-label such as "4 stars".

    Returns 0 when no rating can be recovered; values are clamped to 0-5.
    """
    if not label:
        return 0
    match = RATING_NUMBER_PATTERN.search(label)
    if not match:
        return 0
    try:
        value = float(match.group(1).replace(",", "."))
    except ValueError:
        return 0
    return max(0, min(5, int(round(value))))
