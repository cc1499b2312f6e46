"""Sequential review collection across many targets."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from wifi_reviews.config import settings
from wifi_reviews.models.result import Err, Ok, Result
from wifi_reviews.models.review import ReviewRecord, Target
from wifi_reviews.models.stats import CrawlStats
from wifi_reviews.parsers.date_parser import DateNormalizer
from wifi_reviews.scraper.session import CrawlSession
from wifi_reviews.utils.cancellation import CancellationToken
from wifi_reviews.utils.logging import logger


@dataclass
class TargetReviews:
    """Deduplicated reviews collected for one target."""

    target: Target
    reviews: List[ReviewRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def deduplicate(reviews: Iterable[ReviewRecord]) -> List[ReviewRecord]:
    """Drop reviews whose (reviewer_name, body_text) was already seen.

    The first occurrence wins and order is preserved.
    """
    seen: Set[Tuple[str, str]] = set()
    unique = []
    for review in reviews:
        if review.dedup_key in seen:
            continue
        seen.add(review.dedup_key)
        unique.append(review)
    return unique


class ReviewCollector:
    """Runs a crawl session per target, one target at a time."""

    def __init__(
        self,
        session: CrawlSession,
        date_normalizer: Optional[DateNormalizer] = None,
        review_window_years: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        """Initialize review collector.

        Args:
            session: Crawl session used for every target
            date_normalizer: Retention-window filter; shared with the session
            review_window_years: Size of the retention window
            cancel_token: Checked between targets and handed to the session
        """
        self.session = session
        self.date_normalizer = date_normalizer or session.date_normalizer
        self.review_window_years = (
            review_window_years if review_window_years is not None else settings.review_window_years
        )
        self.cancel_token = cancel_token or session.cancel_token

        # The session filters as it extracts, so both apply the same window
        self.session.date_normalizer = self.date_normalizer
        self.session.review_window_years = self.review_window_years
        self.session.cancel_token = self.cancel_token

        self.stats = CrawlStats()

    def _within_window(self, review: ReviewRecord) -> bool:
        return self.date_normalizer.is_within_window(review.date_text, self.review_window_years)

    async def collect_target(self, target: Target) -> Result[List[ReviewRecord]]:
        """Crawl one target and return its filtered, deduplicated reviews."""
        result = await self.session.run(target)
        self.stats.merge(self.session.last_stats)

        if isinstance(result, Err):
            logger.error(f"Failed to collect reviews for {target.name}: {result.reason}")
            return result

        reviews = [r for r in result.value if self._within_window(r)]
        unique = deduplicate(reviews)
        if len(unique) < len(result.value):
            logger.debug(f"Dropped {len(result.value) - len(unique)} out-of-window or duplicate reviews")

        return Ok(unique)

    async def collect_all(self, targets: Iterable[Target]) -> List[TargetReviews]:
        """Crawl targets sequentially; a failed target never stops the batch.

        Args:
            targets: Hotels to crawl

        Returns:
            One entry per attempted target, failures carrying their reason
        """
        results: List[TargetReviews] = []

        for target in targets:
            if self.cancel_token is not None and self.cancel_token.cancelled:
                logger.info("Cancellation requested, skipping remaining targets")
                break

            try:
                result = await self.collect_target(target)
            except Exception as e:
                logger.error(f"Unexpected error collecting {target.name}: {e}")
                result = Err(f"{type(e).__name__}: {e}")

            if isinstance(result, Err):
                results.append(TargetReviews(target=target, error=result.reason))
            else:
                results.append(TargetReviews(target=target, reviews=result.value))
                logger.info(f"Collected {len(result.value)} reviews for {target.name}")

        return results
