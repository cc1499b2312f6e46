"""Load the list of hotels to crawl."""

from pathlib import Path
from typing import List

import yaml
from pydantic import ValidationError

from wifi_reviews.errors import ConfigurationError
from wifi_reviews.models.review import Target


def load_targets(path: Path) -> List[Target]:
    """Read targets from a YAML file.

    The file holds either a list of target mappings or a mapping with a
    ``targets`` key::

        targets:
          - id: grand-hotel-lisbon
            name: Grand Hotel
            city: Lisbon

    Raises:
        ConfigurationError: If the file is missing, malformed, or repeats an id
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read targets file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("targets")
    if not isinstance(data, list):
        raise ConfigurationError(f"Targets file {path} must contain a list of targets")

    try:
        targets = [Target(**item) for item in data]
    except (TypeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid target in {path}: {e}") from e

    seen = set()
    for target in targets:
        if target.id in seen:
            raise ConfigurationError(f"Duplicate target id {target.id!r} in {path}")
        seen.add(target.id)

    return targets
