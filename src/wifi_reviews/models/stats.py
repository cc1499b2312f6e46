"""Run-scoped counters: crawl efficiency, model cost and pipeline totals."""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class CrawlStats:
    """Counters for a single target's review collection."""

    elements_processed: int = 0
    wifi_reviews_found: int = 0
    non_wifi_skipped: int = 0
    low_quality_skipped: int = 0
    old_reviews_skipped: int = 0
    duplicates_skipped: int = 0
    extraction_errors: int = 0
    stall_count: int = 0
    processing_time_ms: float = 0.0

    @property
    def efficiency_ratio(self) -> float:
        """Percentage of processed elements that yielded a Wi-Fi review."""
        if not self.elements_processed:
            return 0.0
        return self.wifi_reviews_found / self.elements_processed * 100

    def merge(self, other: "CrawlStats") -> None:
        """Add another session's counters into this one."""
        self.elements_processed += other.elements_processed
        self.wifi_reviews_found += other.wifi_reviews_found
        self.non_wifi_skipped += other.non_wifi_skipped
        self.low_quality_skipped += other.low_quality_skipped
        self.old_reviews_skipped += other.old_reviews_skipped
        self.duplicates_skipped += other.duplicates_skipped
        self.extraction_errors += other.extraction_errors
        self.stall_count += other.stall_count
        self.processing_time_ms += other.processing_time_ms


@dataclass
class CostTracker:
    """Token usage and USD cost accumulated across model calls."""

    input_cost_per_million: float = 0.25
    output_cost_per_million: float = 2.00
    input_tokens: int = 0
    output_tokens: int = 0
    requests: int = 0
    total_cost: float = 0.0

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens / 1_000_000 * self.input_cost_per_million
            + output_tokens / 1_000_000 * self.output_cost_per_million
        )

    def record(self, input_tokens: int, output_tokens: int) -> float:
        """Record one call's usage and return its cost."""
        cost = self.calculate_cost(input_tokens, output_tokens)
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.requests += 1
        self.total_cost += cost
        return cost

    def summary(self) -> Dict[str, float]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "requests": self.requests,
            "total_cost": self.total_cost,
        }


@dataclass
class TargetOutcome:
    """What happened to one target during a pipeline run."""

    target_id: str
    target_name: str
    success: bool
    reviews_collected: int = 0
    summary_generated: bool = False
    error: Optional[str] = None


@dataclass
class RunStats:
    """Accumulator passed through one orchestrator run."""

    hotels_processed: int = 0
    hotels_failed: int = 0
    hotels_skipped: int = 0
    total_reviews_collected: int = 0
    total_summaries_generated: int = 0
    cost: CostTracker = field(default_factory=CostTracker)
    crawl: CrawlStats = field(default_factory=CrawlStats)
    outcomes: List[TargetOutcome] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None
    cancelled: bool = False

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def record_success(self, outcome: TargetOutcome) -> None:
        self.outcomes.append(outcome)
        self.hotels_processed += 1

    def record_failure(self, outcome: TargetOutcome) -> None:
        self.outcomes.append(outcome)
        self.hotels_failed += 1

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    def to_report(self) -> Dict[str, object]:
        """Flatten into the final report."""
        processed = self.hotels_processed
        return {
            "hotels_processed": processed,
            "hotels_failed": self.hotels_failed,
            "hotels_skipped": self.hotels_skipped,
            "reviews_collected": self.total_reviews_collected,
            "summaries_generated": self.total_summaries_generated,
            "total_cost": round(self.cost.total_cost, 6),
            "input_tokens": self.cost.input_tokens,
            "output_tokens": self.cost.output_tokens,
            "average_cost_per_hotel": round(self.cost.total_cost / processed, 6) if processed else 0.0,
            "elapsed_seconds": round(self.elapsed_seconds, 1),
            "average_seconds_per_hotel": round(self.elapsed_seconds / processed, 1) if processed else 0.0,
            "cancelled": self.cancelled,
            "successes": [o.target_id for o in self.outcomes if o.success],
            "failures": {o.target_id: o.error for o in self.outcomes if not o.success},
        }
