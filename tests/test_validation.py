"""Tests for model output repair."""

from datetime import datetime, timezone

import pytest

from wifi_reviews.ai.validation import (
    MAX_ITEM_LENGTH,
    build_speed_analysis,
    build_summary,
    clamp_list,
    clamp_score,
    parse_json_object,
)
from wifi_reviews.models.summary import SpeedConsistency


class TestParseJsonObject:
    def test_plain_json(self):
        assert parse_json_object('{"overall_score": 4}') == {"overall_score": 4}

    def test_salvages_wrapped_object(self):
        content = 'Here you go:\n```json\n{"overall_score": 2, "warnings": ["slow"]}\n```'
        assert parse_json_object(content) == {"overall_score": 2, "warnings": ["slow"]}

    @pytest.mark.parametrize("content", [None, "", "no json here", "{broken", "[1, 2, 3]", "{not: valid}"])
    def test_unusable_content_gives_empty_dict(self, content):
        assert parse_json_object(content) == {}


class TestClampScore:
    @pytest.mark.parametrize(
        "value, expected",
        [(9, 5), (0, 1), (-3, 1), (3.6, 4), ("4", 4), ("2.2", 2), (5, 5)],
    )
    def test_clamps_and_rounds(self, value, expected):
        assert clamp_score(value) == expected

    @pytest.mark.parametrize("value", [None, "great", [4], {"score": 4}, True, float("nan")])
    def test_non_numeric_falls_back_to_default(self, value):
        assert clamp_score(value) == 3


class TestClampList:
    def test_truncates_to_limit(self):
        assert clamp_list([f"item {i}" for i in range(7)], 3) == ["item 0", "item 1", "item 2"]

    def test_drops_non_strings_and_blanks(self):
        assert clamp_list(["a", 5, None, "  ", "b"], 5) == ["a", "b"]

    def test_cuts_long_items(self):
        assert len(clamp_list(["x" * 500], 1)[0]) == MAX_ITEM_LENGTH

    @pytest.mark.parametrize("value", [None, "a string", {"a": 1}])
    def test_non_list_gives_empty(self, value):
        assert clamp_list(value, 3) == []


class TestSpeedAnalysis:
    def test_model_speeds_kept(self, wifi_reviews):
        analysis = build_speed_analysis(
            {"mentioned_speeds": [100, "50", -1, "fast"], "average_speed": 75, "speed_consistency": "Consistent"},
            wifi_reviews,
        )
        assert analysis.mentioned_speeds == [100, 50]
        assert analysis.average_speed == 75
        assert analysis.consistency is SpeedConsistency.CONSISTENT

    @pytest.mark.parametrize("raw", [None, {}, {"mentioned_speeds": []}, {"mentioned_speeds": "lots"}])
    def test_backfills_from_extracted_speeds(self, wifi_reviews, raw):
        analysis = build_speed_analysis(raw, wifi_reviews)
        assert analysis.mentioned_speeds == [150, 90, 30]
        assert analysis.average_speed == 90
        assert analysis.consistency is SpeedConsistency.UNKNOWN

    def test_no_speeds_anywhere(self, wifi_reviews):
        reviews = [r.model_copy(update={"extracted_speed_mbps": None}) for r in wifi_reviews]
        analysis = build_speed_analysis({}, reviews)
        assert analysis.mentioned_speeds == []
        assert analysis.average_speed is None


class TestBuildSummary:
    def test_empty_payload_uses_defaults(self, wifi_reviews):
        summary = build_summary({}, "hotel-a", wifi_reviews)
        assert summary.overall_score == 3
        assert summary.narrative_summary == ""
        assert summary.positive_highlights == []
        assert summary.use_case_scores.video_calls == 3
        assert summary.use_case_scores.general_browsing == 3
        assert summary.review_count == 5
        assert summary.speed_tier == "moderate"

    def test_clamps_every_field(self, wifi_reviews):
        data = {
            "summary": "  Mixed.  ",
            "overall_score": 9,
            "positive_highlights": [f"h{i}" for i in range(7)],
            "warnings": ["w1", "w2", "w3"],
            "use_case_scores": {"video_calls": 0, "streaming": 11, "uploads": "2", "general_browsing": None},
            "location_quirks": [f"l{i}" for i in range(9)],
            "time_patterns": [f"t{i}" for i in range(9)],
            "connection_quirks": [f"c{i}" for i in range(9)],
            "business_traveler_notes": [f"b{i}" for i in range(9)],
            "unique_features": [f"u{i}" for i in range(9)],
        }
        generated = datetime(2025, 1, 1, tzinfo=timezone.utc)

        summary = build_summary(data, "hotel-a", wifi_reviews, model="gpt-5-mini", generated_at=generated)

        assert summary.overall_score == 5
        assert summary.narrative_summary == "Mixed."
        assert len(summary.positive_highlights) == 3
        assert len(summary.warnings) == 2
        assert summary.use_case_scores.video_calls == 1
        assert summary.use_case_scores.streaming == 5
        assert summary.use_case_scores.uploads == 2
        assert summary.use_case_scores.general_browsing == 3
        assert len(summary.location_quirks) == 5
        assert len(summary.time_patterns) == 3
        assert len(summary.connection_quirks) == 4
        assert len(summary.business_traveler_notes) == 4
        assert len(summary.unique_features) == 3
        assert summary.generated_at == generated
        assert summary.model == "gpt-5-mini"

    def test_non_dict_use_cases_ignored(self, wifi_reviews):
        summary = build_summary({"use_case_scores": [5, 5, 5, 5]}, "hotel-a", wifi_reviews)
        assert summary.use_case_scores.streaming == 3
