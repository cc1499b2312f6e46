"""Progress file that lets an interrupted pipeline run resume."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from wifi_reviews.models.review import Target
from wifi_reviews.utils.logging import logger


class ProgressState(BaseModel):
    """On-disk shape of the progress file."""

    completed: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    total: int = 0
    started_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class ProgressTracker:
    """Remembers which targets finished, and why the others failed."""

    def __init__(self, progress_file: Path):
        """Initialize progress tracker.

        Args:
            progress_file: Path to progress JSON file
        """
        self.progress_file = Path(progress_file)
        self.state = self._load()

    @property
    def completed(self) -> set:
        return set(self.state.completed)

    @property
    def failed(self) -> Dict[str, str]:
        return dict(self.state.failed)

    @property
    def total(self) -> int:
        return self.state.total

    def _load(self) -> ProgressState:
        if not self.progress_file.exists():
            return ProgressState()

        try:
            state = ProgressState.model_validate_json(self.progress_file.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable progress file {self.progress_file}: {e}")
            return ProgressState()

        logger.info(
            f"Loaded progress: {len(state.completed)} completed, "
            f"{len(state.failed)} failed, {state.total} total"
        )
        return state

    def save(self) -> None:
        """Write the current state; failures are logged, not raised."""
        self.state.last_updated = datetime.now(timezone.utc)
        self.state.completed.sort()
        try:
            self.progress_file.write_text(self.state.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save progress file: {e}")

    def start(self, total: int) -> None:
        """Record the size of the run about to begin."""
        if self.state.started_at is None:
            self.state.started_at = datetime.now(timezone.utc)
        self.state.total = total
        self.save()

    def mark_completed(self, target_id: str) -> None:
        if target_id not in self.state.completed:
            self.state.completed.append(target_id)
        self.state.failed.pop(target_id, None)
        self.save()

    def mark_failed(self, target_id: str, reason: str = "") -> None:
        """Mark target as failed.

        Args:
            target_id: Target identifier
            reason: Short failure description kept for the report
        """
        self.state.failed[target_id] = reason
        self.save()

    def is_completed(self, target_id: str) -> bool:
        return target_id in self.state.completed

    def get_remaining(self, targets: List[Target]) -> List[Target]:
        """Targets not yet completed, in their original order."""
        done = self.completed
        return [t for t in targets if t.id not in done]

    def get_stats(self) -> Dict[str, Any]:
        """Summarize the tracked run."""
        done = len(self.state.completed)
        total = self.state.total
        return {
            "total": total,
            "completed": done,
            "failed": len(self.state.failed),
            "remaining": max(total - done, 0),
            "progress_percent": round(done / total * 100, 1) if total else 0,
            "started_at": self.state.started_at,
            "last_updated": self.state.last_updated,
        }

    def clear(self) -> None:
        """Forget all progress and delete the file."""
        self.state = ProgressState()
        if self.progress_file.exists():
            self.progress_file.unlink()
        logger.info("Cleared progress")
