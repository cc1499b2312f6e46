"""Tests for data models."""

import time
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from wifi_reviews.models import (
    CrawlStats,
    Err,
    Ok,
    ReviewRecord,
    RunStats,
    SummaryRecord,
    Target,
    TargetOutcome,
    UseCaseScores,
)
from wifi_reviews.parsers.parse_utils import mentions_wifi, parse_rating, sanitize_string


class TestTarget:
    def test_search_query(self):
        target = Target(id="h1", name="Grand Hotel", city="Lisbon")
        assert target.search_query == "Grand Hotel Lisbon hotel"

    def test_search_query_without_city(self):
        assert Target(id="h1", name="Grand Hotel").search_query == "Grand Hotel hotel"


class TestReviewRecord:
    def test_create_minimal(self):
        record = ReviewRecord(target_id="h1", body_text="wifi was fine")
        assert record.reviewer_name == "Anonymous"
        assert record.rating == 0
        assert record.date_text == ""
        assert record.wifi_mentioned is True
        assert record.extracted_speed_mbps is None

    def test_is_immutable(self):
        record = ReviewRecord(target_id="h1", body_text="wifi was fine")
        with pytest.raises(ValidationError):
            record.body_text = "changed"

    def test_rating_range(self):
        with pytest.raises(ValidationError):
            ReviewRecord(target_id="h1", body_text="x", rating=6)

    def test_dedup_key_ignores_date(self):
        a = ReviewRecord(target_id="h1", reviewer_name="Ana", body_text="wifi", date_text="1 month ago")
        b = ReviewRecord(target_id="h1", reviewer_name="Ana", body_text="wifi", date_text="2 months ago")
        assert a.dedup_key == b.dedup_key


def _summary(**overrides):
    data = dict(
        target_id="h1",
        overall_score=4,
        review_count=7,
        generated_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return SummaryRecord(**data)


class TestSummaryRecord:
    @pytest.mark.parametrize(
        "score, tier", [(5, "excellent"), (4, "good"), (3, "moderate"), (2, "poor"), (1, "poor")]
    )
    def test_speed_tier(self, score, tier):
        assert _summary(overall_score=score).speed_tier == tier

    @pytest.mark.parametrize("count, level", [(12, "high"), (10, "high"), (5, "medium"), (4, "low"), (0, "low")])
    def test_confidence_level(self, count, level):
        assert _summary(review_count=count).confidence_level == level

    def test_business_suitable(self):
        assert _summary(overall_score=4).business_suitable
        assert not _summary(overall_score=3).business_suitable

    def test_list_limits_enforced(self):
        with pytest.raises(ValidationError):
            _summary(warnings=["a", "b", "c"])

    def test_score_range_enforced(self):
        with pytest.raises(ValidationError):
            _summary(overall_score=6)

    def test_use_case_defaults(self):
        scores = UseCaseScores()
        assert (scores.video_calls, scores.streaming, scores.uploads, scores.general_browsing) == (3, 3, 3, 3)

    def test_to_yaml_dict_includes_derived_fields(self):
        data = _summary().to_yaml_dict()
        assert data["speed_tier"] == "good"
        assert data["confidence_level"] == "medium"
        assert data["business_suitable"] is True
        assert data["speed_analysis"]["consistency"] == "unknown"
        assert data["generated_at"].startswith("2025-06-01")


class TestResult:
    def test_ok_and_err(self):
        assert Ok([1]).ok and Ok([1]).value == [1]
        assert not Err("boom").ok and Err("boom").reason == "boom"


class TestStats:
    def test_efficiency_ratio(self):
        assert CrawlStats().efficiency_ratio == 0.0
        assert CrawlStats(elements_processed=200, wifi_reviews_found=10).efficiency_ratio == 5.0

    def test_merge(self):
        total = CrawlStats(elements_processed=5, stall_count=1)
        total.merge(CrawlStats(elements_processed=7, stall_count=2, duplicates_skipped=1))
        assert total.elements_processed == 12
        assert total.stall_count == 3
        assert total.duplicates_skipped == 1

    def test_run_stats_report(self):
        stats = RunStats()
        stats.record_success(TargetOutcome("h1", "Hotel 1", True, 30, summary_generated=True))
        stats.record_success(TargetOutcome("h2", "Hotel 2", True, 20, summary_generated=True))
        stats.record_failure(TargetOutcome("h3", "Hotel 3", False, error="blocked"))
        stats.cost.record(1_000_000, 1_000_000)
        stats.finish()

        report = stats.to_report()

        assert report["hotels_processed"] == 2
        assert report["hotels_failed"] == 1
        assert report["successes"] == ["h1", "h2"]
        assert report["failures"] == {"h3": "blocked"}
        assert report["total_cost"] == pytest.approx(2.25)
        assert report["average_cost_per_hotel"] == pytest.approx(1.125)

    def test_elapsed_frozen_after_finish(self):
        stats = RunStats()
        stats.finish()
        elapsed = stats.elapsed_seconds
        time.sleep(0.01)
        assert stats.elapsed_seconds == elapsed

    def test_averages_without_successes(self):
        report = RunStats().to_report()
        assert report["average_cost_per_hotel"] == 0.0
        assert report["average_seconds_per_hotel"] == 0.0


class TestParseUtils:
    def test_sanitize_string(self):
        assert sanitize_string("  Great\tWi-Fi!!  <b>fast</b> ") == "Great Wi-Fi!! bfastb"
        assert sanitize_string("") == ""

    @pytest.mark.parametrize("text", ["WiFi was great", "the Wi-Fi", "slow internet", "upload failed"])
    def test_mentions_wifi(self, text):
        assert mentions_wifi(text)

    def test_does_not_mention_wifi(self):
        assert not mentions_wifi("Lovely pool and breakfast")
        assert not mentions_wifi("")

    @pytest.mark.parametrize(
        "label, expected",
        [("4 stars", 4), ("Rated 4,6 out of 5", 5), ("1 star", 1), ("no rating", 0), (None, 0), ("9 stars", 5)],
    )
    def test_parse_rating(self, label, expected):
        assert parse_rating(label) == expected
