"""Crawl, summarize and persist a list of hotels."""

import asyncio
from typing import Callable, Iterator, List, Optional, Sequence

from wifi_reviews.ai.processor import SummaryProcessor
from wifi_reviews.config import settings
from wifi_reviews.errors import CrawlCancelled, PersistenceError
from wifi_reviews.models.result import Err
from wifi_reviews.models.review import Target
from wifi_reviews.models.stats import CostTracker, RunStats, TargetOutcome
from wifi_reviews.scraper.collector import ReviewCollector
from wifi_reviews.storage.progress import ProgressTracker
from wifi_reviews.storage.repository import ReviewRepository
from wifi_reviews.utils.cancellation import CancellationToken
from wifi_reviews.utils.logging import logger

OutcomeCallback = Callable[[TargetOutcome], None]


def batched(items: Sequence[Target], size: int) -> Iterator[List[Target]]:
    """Yield consecutive groups of at most `size` targets."""
    size = max(size, 1)
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class PipelineOrchestrator:
    """Sequences collection, summarization and persistence per target."""

    def __init__(
        self,
        collector: ReviewCollector,
        processor: SummaryProcessor,
        repository: ReviewRepository,
        progress: Optional[ProgressTracker] = None,
        batch_size: Optional[int] = None,
        between_target_delay: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        """Initialize pipeline orchestrator.

        Args:
            collector: Review collector driving the crawl sessions
            processor: Summary processor for the language-model stage
            repository: Sink for reviews and summaries
            progress: Optional tracker used to resume interrupted runs
            batch_size: Targets per batch
            between_target_delay: Fixed courtesy pause in seconds between targets
                of the same batch
            cancel_token: Checked before each target
        """
        self.collector = collector
        self.processor = processor
        self.repository = repository
        self.progress = progress
        self.batch_size = batch_size or settings.batch_size
        self.between_target_delay = (
            settings.between_target_delay if between_target_delay is None else between_target_delay
        )
        self.cancel_token = cancel_token or collector.cancel_token or CancellationToken()

    async def process_target(self, target: Target, stats: RunStats) -> TargetOutcome:
        """Collect, summarize and persist one target.

        Every failure is turned into an unsuccessful outcome; nothing here
        propagates except cancellation.
        """
        logger.info(f"Processing {target.name} ({target.id})")

        result = await self.collector.collect_target(target)
        if isinstance(result, Err):
            return TargetOutcome(target.id, target.name, success=False, error=result.reason)

        reviews = result.value
        stats.total_reviews_collected += len(reviews)
        if not reviews:
            return TargetOutcome(target.id, target.name, success=False, error="No reviews collected")

        try:
            self.repository.save_reviews(target, reviews)
        except PersistenceError as e:
            return TargetOutcome(target.id, target.name, False, len(reviews), error=str(e))

        summary = await self.processor.summarize(target.name, reviews)
        if summary is None:
            return TargetOutcome(
                target.id, target.name, False, len(reviews), error="Summary generation failed"
            )

        try:
            self.repository.save_summary(summary)
        except PersistenceError as e:
            return TargetOutcome(target.id, target.name, False, len(reviews), error=str(e))

        stats.total_summaries_generated += 1
        return TargetOutcome(target.id, target.name, True, len(reviews), summary_generated=True)

    def _record(self, stats: RunStats, outcome: TargetOutcome) -> None:
        if outcome.success:
            stats.record_success(outcome)
            if self.progress:
                self.progress.mark_completed(outcome.target_id)
            logger.info(
                f"Completed {outcome.target_name}: {stats.hotels_processed} hotels, "
                f"{stats.total_reviews_collected} reviews, ${stats.cost.total_cost:.4f} cost"
            )
        else:
            stats.record_failure(outcome)
            if self.progress:
                self.progress.mark_failed(outcome.target_id, outcome.error or "")
            logger.error(f"Failed to process {outcome.target_name}: {outcome.error}")

    async def run(
        self,
        targets: Sequence[Target],
        resume: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> RunStats:
        """Run the whole pipeline over the targets.

        Args:
            targets: Hotels to process, in order
            resume: Skip targets the progress file marks as completed
            on_outcome: Called after each target, e.g. to advance a progress bar

        Returns:
            The run's statistics, also used as its final report
        """
        stats = RunStats(
            cost=CostTracker(
                input_cost_per_million=self.processor.cost_tracker.input_cost_per_million,
                output_cost_per_million=self.processor.cost_tracker.output_cost_per_million,
            )
        )
        # Counters are shared by reference so this run's numbers stay separate
        self.processor.cost_tracker = stats.cost
        self.collector.stats = stats.crawl

        targets = list(targets)
        if resume and self.progress:
            remaining = self.progress.get_remaining(targets)
            stats.hotels_skipped = len(targets) - len(remaining)
            if stats.hotels_skipped:
                logger.info(f"Resuming: skipping {stats.hotels_skipped} completed targets")
            targets = remaining

        if self.progress:
            self.progress.start(len(targets))

        try:
            for number, batch in enumerate(batched(targets, self.batch_size), start=1):
                logger.info(f"Starting batch {number} ({len(batch)} hotels)")
                for target in batch:
                    self.cancel_token.raise_if_cancelled()

                    try:
                        outcome = await self.process_target(target, stats)
                    except CrawlCancelled:
                        raise
                    except Exception as e:
                        outcome = TargetOutcome(
                            target.id, target.name, success=False, error=f"{type(e).__name__}: {e}"
                        )

                    self._record(stats, outcome)
                    if on_outcome:
                        on_outcome(outcome)

                    if target is not batch[-1] and self.between_target_delay > 0:
                        await asyncio.sleep(self.between_target_delay)
        except CrawlCancelled as e:
            logger.warning(f"Pipeline cancelled: {e}")
            stats.cancelled = True

        stats.finish()
        self._log_report(stats)
        return stats

    def _log_report(self, stats: RunStats) -> None:
        report = stats.to_report()
        logger.info(
            f"Pipeline finished: {report['hotels_processed']} processed, "
            f"{report['hotels_failed']} failed, {report['hotels_skipped']} skipped, "
            f"{report['reviews_collected']} reviews, {report['summaries_generated']} summaries, "
            f"${report['total_cost']:.4f} total cost in {report['elapsed_seconds']}s"
        )
