"""Tests for speed extraction."""

import pytest

from wifi_reviews.parsers.speed_parser import extract_speed


class TestExtractSpeed:
    def test_qualified_mention(self):
        assert extract_speed("Got around 150 Mbps download speed") == 150

    def test_range_returns_lower_bound(self):
        assert extract_speed("20-30 Mbps") == 20
        assert extract_speed("speeds between 40 and 60 mbps") == 40
        assert extract_speed("anywhere from 5 to 10 Mbps") == 5

    def test_number_without_unit_is_ignored(self):
        assert extract_speed("room 150 on floor 2") is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Solid 50 Mbps everywhere", 50),
            ("measured 100mb/s on speedtest", 100),
            ("only 25 mbit/s upstairs", 25),
            ("a decent 12.5 Mbps", 12.5),
            ("fiber at 1000 megabits", 1000),
        ],
    )
    def test_direct_mentions(self, text, expected):
        assert extract_speed(text) == expected

    def test_verb_anchored_without_unit(self):
        assert extract_speed("The speed was 100 most of the day") == 100
        assert extract_speed("I got 25mbps at best") == 25

    def test_bandwidth_mention(self):
        assert extract_speed("bandwidth of 75 Mbps shared by the floor") == 75

    def test_implausible_values_discarded(self):
        assert extract_speed("call 5551234567 mbps") is None
        assert extract_speed("0 Mbps, basically nothing") is None

    def test_first_mention_wins(self):
        assert extract_speed("Lobby had 200 Mbps, the room only 10 Mbps") == 200

    @pytest.mark.parametrize("text", [None, "", "Great breakfast and friendly staff"])
    def test_no_speed(self, text):
        assert extract_speed(text) is None
