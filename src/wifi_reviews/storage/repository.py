"""Persistence for collected reviews and generated summaries."""

import re
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import yaml
from pydantic import ValidationError

from wifi_reviews.errors import PersistenceError
from wifi_reviews.models.review import ReviewRecord, Target
from wifi_reviews.models.summary import SummaryRecord
from wifi_reviews.utils.logging import logger

SUMMARY_STAMP_FORMAT = "%Y%m%dT%H%M%S%f"
SUMMARY_STAMP_PATTERN = re.compile(r"\d{8}T\d{12}")


class ReviewRepository(Protocol):
    """Sink the pipeline hands its records to.

    Implementations raise PersistenceError when a write fails.
    """

    def save_reviews(self, target: Target, reviews: Sequence[ReviewRecord]) -> None:
        ...

    def save_summary(self, summary: SummaryRecord) -> None:
        ...


def _str_representer(dumper: yaml.Dumper, data: str) -> yaml.Node:
    """Custom string representer for multiline strings."""
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


class _Dumper(yaml.SafeDumper):
    pass


_Dumper.add_representer(str, _str_representer)


class YAMLRepository:
    """Write reviews and summaries as YAML files under an output directory.

    Layout::

        <output_dir>/reviews/<target_id>.yaml
        <output_dir>/summaries/<target_id>-<timestamp>.yaml

    Each run's summary is a new file, so earlier summaries are superseded
    rather than overwritten.
    """

    def __init__(self, output_dir: Path):
        """Initialize YAML repository.

        Args:
            output_dir: Directory to write YAML files
        """
        self.output_dir = Path(output_dir)
        self.reviews_dir = self.output_dir / "reviews"
        self.summaries_dir = self.output_dir / "summaries"
        self.reviews_dir.mkdir(parents=True, exist_ok=True)
        self.summaries_dir.mkdir(parents=True, exist_ok=True)

    def _dump(self, data: dict, filepath: Path, mode: str = "w") -> None:
        try:
            with open(filepath, mode, encoding="utf-8") as f:
                yaml.dump(
                    data,
                    f,
                    Dumper=_Dumper,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=1000,  # Prevent line wrapping
                    indent=2,
                )
        except FileExistsError:
            raise
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(f"Failed to write {filepath}: {e}") from e

    def save_reviews(self, target: Target, reviews: Sequence[ReviewRecord]) -> None:
        """Write a target's review batch.

        Args:
            target: Target the reviews belong to
            reviews: Deduplicated review records
        """
        filepath = self.reviews_dir / f"{target.id}.yaml"
        data = {
            "target": target.model_dump(),
            "review_count": len(reviews),
            "reviews": [review.model_dump(mode="json") for review in reviews],
        }
        self._dump(data, filepath)
        logger.info(f"Saved {len(reviews)} reviews to {filepath}")

    def save_summary(self, summary: SummaryRecord) -> None:
        """Write a summary as a new timestamped file.

        Existing files are never replaced; a summary stamped identically to
        an earlier one gets a `_<n>` suffix.
        """
        base = f"{summary.target_id}-{summary.generated_at.strftime(SUMMARY_STAMP_FORMAT)}"
        filepath = self.summaries_dir / f"{base}.yaml"
        data = summary.to_yaml_dict()

        sequence = 1
        while True:
            try:
                self._dump(data, filepath, mode="x")
                break
            except FileExistsError:
                sequence += 1
                filepath = self.summaries_dir / f"{base}_{sequence}.yaml"

        logger.info(f"Saved summary for {summary.target_id} to {filepath}")

    def summary_files(self, target_id: str) -> List[Path]:
        """A target's summary files, oldest first.

        Ids sharing a prefix ("grand-hotel", "grand-hotel-lisbon") are told
        apart by requiring everything after the last hyphen to be a stamp.
        """
        keyed = []
        for path in self.summaries_dir.glob(f"{target_id}-*.yaml"):
            owner, _, suffix = path.stem.rpartition("-")
            stamp, _, sequence = suffix.partition("_")
            if owner != target_id or not SUMMARY_STAMP_PATTERN.fullmatch(stamp):
                continue
            if sequence and not sequence.isdigit():
                continue
            keyed.append(((stamp, int(sequence or 1)), path))
        return [path for _, path in sorted(keyed)]

    def reviews_exist(self, target_id: str) -> bool:
        return (self.reviews_dir / f"{target_id}.yaml").exists()

    def load_reviews(self, target_id: str) -> List[ReviewRecord]:
        """Load a target's stored reviews, or an empty list if none."""
        filepath = self.reviews_dir / f"{target_id}.yaml"
        if not filepath.exists():
            return []

        try:
            with open(filepath, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return [ReviewRecord(**item) for item in data.get("reviews", [])]
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise PersistenceError(f"Failed to read {filepath}: {e}") from e

    def latest_summary(self, target_id: str) -> Optional[SummaryRecord]:
        """Most recent summary written for a target."""
        files = self.summary_files(target_id)
        if not files:
            return None

        try:
            with open(files[-1], encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            for derived in ("speed_tier", "confidence_level", "business_suitable"):
                data.pop(derived, None)
            return SummaryRecord(**data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise PersistenceError(f"Failed to read {files[-1]}: {e}") from e
