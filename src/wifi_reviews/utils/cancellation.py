"""Cooperative cancellation for long-running crawls."""

from typing import Optional

from wifi_reviews.errors import CrawlCancelled


class CancellationToken:
    """Flag checked between pagination iterations and between targets.

    Nothing is interrupted mid-operation; the crawl loops poll the token
    and wind down through their normal cleanup paths.
    """

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation."""
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        """Raise CrawlCancelled if cancellation was requested."""
        if self._cancelled:
            raise CrawlCancelled(self.reason or "cancelled")
