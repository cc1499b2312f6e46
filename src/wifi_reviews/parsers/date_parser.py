"""Normalize human-readable review dates.

Review sites show dates as "2 years ago", "a month ago", "yesterday" or
sometimes a bare year. Everything is resolved against an injectable "now"
so the retention window can be tested deterministically.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

ABSOLUTE_YEAR_PATTERN = re.compile(r"\b(20\d{2})\b")

_COUNT = r"\b(?:(\d+)|an?|one)\s+"

# Tried in order; the first match wins. A missing count means N=1.
RELATIVE_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(_COUNT + r"years?\s+ago", re.IGNORECASE), "years"),
    (re.compile(_COUNT + r"months?\s+ago", re.IGNORECASE), "months"),
    (re.compile(_COUNT + r"weeks?\s+ago", re.IGNORECASE), "weeks"),
    (re.compile(_COUNT + r"days?\s+ago", re.IGNORECASE), "days"),
    (re.compile(r"\byesterday\b", re.IGNORECASE), "days"),
    (re.compile(_COUNT + r"hours?\s+ago", re.IGNORECASE), "hours"),
    (re.compile(_COUNT + r"minutes?\s+ago", re.IGNORECASE), "minutes"),
    (re.compile(r"\b(?:today|just now)\b", re.IGNORECASE), "now"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DateNormalizer:
    """Parse review date strings and decide review-window membership."""

    def __init__(self, now: Optional[Callable[[], datetime]] = None, strict: bool = False):
        """Initialize date normalizer.

        Args:
            now: Clock returning the current time (timezone-aware)
            strict: When True, dates that cannot be parsed fall outside the
                window instead of receiving the benefit of the doubt
        """
        self._now = now or _utcnow
        self.strict = strict

    def now(self) -> datetime:
        return self._now()

    def parse(self, date_text: Optional[str]) -> Optional[datetime]:
        """Resolve a date string to an absolute timestamp.

        Args:
            date_text: Raw date text, e.g. "3 weeks ago" or "2023"

        Returns:
            Timestamp, or None if no known pattern matches
        """
        if not date_text or not date_text.strip():
            return None

        text = date_text.strip().lower()
        now = self.now()

        year_match = ABSOLUTE_YEAR_PATTERN.search(text)
        if year_match:
            # End of the year keeps recent absolute-year reviews in the window
            return datetime(int(year_match.group(1)), 12, 31, 23, 59, 59, tzinfo=now.tzinfo)

        for pattern, unit in RELATIVE_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue

            if unit == "now":
                return now

            count = int(match.group(1)) if match.groups() and match.group(1) else 1

            if unit == "years":
                return now - relativedelta(years=count)
            if unit == "months":
                return now - relativedelta(months=count)
            if unit == "weeks":
                return now - timedelta(weeks=count)
            if unit == "days":
                return now - timedelta(days=count)
            if unit == "hours":
                return now - timedelta(hours=count)
            return now - timedelta(minutes=count)

        return None

    def cutoff(self, years: int) -> datetime:
        """Oldest timestamp still inside a window of the given size."""
        return self.now() - relativedelta(years=years)

    def is_within_window(self, date_text: Optional[str], years: int = 5) -> bool:
        """Check whether a review date falls inside the retention window.

        Unparseable dates pass unless the normalizer is strict.
        """
        review_date = self.parse(date_text)
        if review_date is None:
            return not self.strict

        return review_date >= self.cutoff(years)
