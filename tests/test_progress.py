"""Tests for progress tracking."""

import json

from wifi_reviews.models.review import Target
from wifi_reviews.storage.progress import ProgressTracker


class TestProgressTracker:
    def test_starts_empty(self, tmp_path):
        tracker = ProgressTracker(tmp_path / "progress.json")
        assert len(tracker.completed) == 0
        assert len(tracker.failed) == 0
        assert tracker.total == 0

    def test_mark_completed(self, tmp_path):
        tracker = ProgressTracker(tmp_path / "progress.json")
        tracker.start(10)
        tracker.mark_completed("grand-hotel")
        assert tracker.is_completed("grand-hotel")
        assert not tracker.is_completed("harbour-inn")

    def test_mark_failed_keeps_reason(self, tmp_path):
        tracker = ProgressTracker(tmp_path / "progress.json")
        tracker.start(10)
        tracker.mark_failed("blocked-hotel", "SelectorNotFoundError: search box")
        assert tracker.failed["blocked-hotel"] == "SelectorNotFoundError: search box"

    def test_completed_removes_from_failed(self, tmp_path):
        tracker = ProgressTracker(tmp_path / "progress.json")
        tracker.start(10)
        tracker.mark_failed("retry-hotel", "timeout")
        tracker.mark_completed("retry-hotel")
        assert "retry-hotel" not in tracker.failed
        assert tracker.is_completed("retry-hotel")

    def test_get_remaining_keeps_order(self, tmp_path):
        tracker = ProgressTracker(tmp_path / "progress.json")
        targets = [Target(id=i, name=i) for i in ("c", "a", "b")]
        tracker.start(3)
        tracker.mark_completed("a")
        assert [t.id for t in tracker.get_remaining(targets)] == ["c", "b"]

    def test_get_stats(self, tmp_path):
        tracker = ProgressTracker(tmp_path / "progress.json")
        tracker.start(10)
        tracker.mark_completed("a")
        tracker.mark_completed("b")
        tracker.mark_failed("c", "blocked")
        stats = tracker.get_stats()
        assert stats["total"] == 10
        assert stats["completed"] == 2
        assert stats["failed"] == 1
        assert stats["remaining"] == 8
        assert stats["progress_percent"] == 20.0

    def test_persistence(self, tmp_path):
        progress_file = tmp_path / "progress.json"
        tracker = ProgressTracker(progress_file)
        tracker.start(5)
        tracker.mark_completed("a")
        tracker.mark_failed("b", "no reviews")

        # Load from file again
        tracker2 = ProgressTracker(progress_file)
        assert tracker2.is_completed("a")
        assert tracker2.failed == {"b": "no reviews"}
        assert tracker2.total == 5

    def test_corrupt_file_is_ignored(self, tmp_path):
        progress_file = tmp_path / "progress.json"
        progress_file.write_text("{not json")
        tracker = ProgressTracker(progress_file)
        assert tracker.completed == set()

    def test_clear(self, tmp_path):
        progress_file = tmp_path / "progress.json"
        tracker = ProgressTracker(progress_file)
        tracker.start(5)
        tracker.mark_completed("a")
        tracker.clear()
        assert len(tracker.completed) == 0
        assert tracker.total == 0
        assert not progress_file.exists()

    def test_save_creates_valid_json(self, tmp_path):
        progress_file = tmp_path / "progress.json"
        tracker = ProgressTracker(progress_file)
        tracker.start(3)
        tracker.mark_completed("a")

        with open(progress_file) as f:
            data = json.load(f)
        assert data["completed"] == ["a"]
        assert data["failed"] == {}
        assert data["total"] == 3
