"""Data models for crawl targets, reviews, summaries and run statistics."""

from wifi_reviews.models.result import Err, Ok, Result
from wifi_reviews.models.review import ANONYMOUS_REVIEWER, ReviewRecord, Target
from wifi_reviews.models.stats import CostTracker, CrawlStats, RunStats, TargetOutcome
from wifi_reviews.models.summary import SpeedAnalysis, SpeedConsistency, SummaryRecord, UseCaseScores

__all__ = [
    "ANONYMOUS_REVIEWER",
    "CostTracker",
    "CrawlStats",
    "Err",
    "Ok",
    "Result",
    "ReviewRecord",
    "RunStats",
    "SpeedAnalysis",
    "SpeedConsistency",
    "SummaryRecord",
    "Target",
    "TargetOutcome",
    "UseCaseScores",
]
