"""Extract bandwidth figures (Mbps) from review text."""

import re
from typing import Optional

UNIT = r"(?:mbps|mb/s|mbit/s|megabits?|mega|mbit|mb)\b"
NUMBER = r"(\d+(?:\.\d+)?)"

DIRECT_PATTERN = re.compile(r"(?<![\d.])" + NUMBER + r"\s*" + UNIT, re.IGNORECASE)
QUALIFIED_PATTERN = re.compile(
    r"(?:around|about|up\s+to|over|more\s+than|faster\s+than)\s+" + NUMBER + r"\s*" + UNIT,
    re.IGNORECASE,
)
RANGE_PATTERN = re.compile(
    r"(?:between\s+)?" + NUMBER + r"\s*(?:[-–]|to|and)\s*\d+(?:\.\d+)?\s*" + UNIT,
    re.IGNORECASE,
)
VERB_PATTERN = re.compile(
    r"(?:got|speed\s+(?:was|is|of)|download\s+(?:speed|rate)|upload\s+(?:speed|rate))\s+"
    r"(?:around\s+|about\s+|up\s+to\s+)?" + NUMBER + r"\s*(?:" + UNIT + r")?",
    re.IGNORECASE,
)
BANDWIDTH_PATTERN = re.compile(
    r"bandwidth\s+(?:of\s+|was\s+|is\s+)?" + NUMBER + r"\s*" + UNIT,
    re.IGNORECASE,
)

# A number immediately preceded by "20-", "20 to " or "between 20 and "
RANGE_TAIL_PATTERN = re.compile(r"\d(?:\.\d+)?\s*(?:[-–]|to|and)\s*$", re.IGNORECASE)

MAX_PLAUSIBLE_MBPS = 10000.0


def _is_plausible(speed: float) -> bool:
    return 0 < speed <= MAX_PLAUSIBLE_MBPS


def _direct_mention(text: str) -> Optional[float]:
    for match in DIRECT_PATTERN.finditer(text):
        # The upper end of a range is handled by the range pattern
        if RANGE_TAIL_PATTERN.search(text[: match.start()]):
            continue
        speed = float(match.group(1))
        if _is_plausible(speed):
            return speed
    return None


def _first_match(pattern: re.Pattern, text: str) -> Optional[float]:
    match = pattern.search(text)
    if match and match.group(1):
        speed = float(match.group(1))
        if _is_plausible(speed):
            return speed
    return None


def extract_speed(text: Optional[str]) -> Optional[float]:
    """Extract the first plausible speed figure mentioned in text.

    Tries direct unit mentions, qualified mentions ("up to 50 Mbps"), ranges
    (lower bound wins), verb-anchored mentions ("speed was 100") and
    bandwidth mentions, in that order.

    Args:
        text: Review body

    Returns:
        Speed in Mbps, or None if nothing plausible was found
    """
    if not text:
        return None

    speed = _direct_mention(text)
    if speed is not None:
        return speed

    for pattern in (QUALIFIED_PATTERN, RANGE_PATTERN, VERB_PATTERN, BANDWIDTH_PATTERN):
        speed = _first_match(pattern, text)
        if speed is not None:
            return speed

    return None
