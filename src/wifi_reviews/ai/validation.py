"""Repair model output into a valid SummaryRecord.

Every field is validated on its own: scores are clamped, lists truncated,
enums checked against an allow-list and anything missing or malformed falls
back to a default. A received response is never rejected.
"""

import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from wifi_reviews.models.review import ReviewRecord
from wifi_reviews.models.summary import SpeedAnalysis, SpeedConsistency, SummaryRecord, UseCaseScores
from wifi_reviews.utils.logging import logger

DEFAULT_SCORE = 3
MIN_SCORE = 1
MAX_SCORE = 5
MAX_ITEM_LENGTH = 200

LIST_LIMITS = {
    "positive_highlights": 3,
    "warnings": 2,
    "location_quirks": 5,
    "time_patterns": 3,
    "connection_quirks": 4,
    "business_traveler_notes": 4,
    "unique_features": 3,
}

USE_CASES = ("video_calls", "streaming", "uploads", "general_browsing")


def parse_json_object(content: Optional[str]) -> Dict[str, Any]:
    """Parse the model's JSON, salvaging the outermost {...} if needed.

    Returns an empty dict when nothing parseable is found.
    """
    if not content:
        return {}

    try:
        data = json.loads(content)
        return data if isinstance(data, dict) else {}
    except json.JSONDecodeError:
        pass

    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        logger.warning("Model response contained no JSON object, using defaults")
        return {}

    try:
        data = json.loads(content[start : end + 1])
    except json.JSONDecodeError:
        logger.warning("Model response JSON could not be repaired, using defaults")
        return {}
    return data if isinstance(data, dict) else {}


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def clamp_score(value: Any, default: int = DEFAULT_SCORE) -> int:
    """Round to an int score in [1, 5]; non-numeric values get the default."""
    number = _number(value)
    if number is None:
        return default
    return max(MIN_SCORE, min(MAX_SCORE, int(round(number))))


def clamp_list(value: Any, limit: int) -> List[str]:
    """Keep up to `limit` non-empty strings, each cut to MAX_ITEM_LENGTH."""
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if not isinstance(item, str):
            continue
        item = item.strip()
        if item:
            items.append(item[:MAX_ITEM_LENGTH])
        if len(items) >= limit:
            break
    return items


def _consistency(value: Any) -> SpeedConsistency:
    if isinstance(value, str):
        try:
            return SpeedConsistency(value.strip().lower())
        except ValueError:
            pass
    return SpeedConsistency.UNKNOWN


def build_speed_analysis(raw: Any, reviews: List[ReviewRecord]) -> SpeedAnalysis:
    """Validate speed statistics, backfilling from extracted speeds."""
    raw = raw if isinstance(raw, dict) else {}
    extracted = [r.extracted_speed_mbps for r in reviews if r.extracted_speed_mbps is not None]

    mentioned: List[float] = []
    if isinstance(raw.get("mentioned_speeds"), list):
        for value in raw["mentioned_speeds"]:
            number = _number(value)
            if number is not None and number > 0:
                mentioned.append(number)
    if not mentioned:
        mentioned = list(extracted)

    average = _number(raw.get("average_speed"))
    if average is None or average <= 0:
        average = round(sum(mentioned) / len(mentioned), 2) if mentioned else None

    return SpeedAnalysis(
        mentioned_speeds=mentioned,
        average_speed=average,
        consistency=_consistency(raw.get("speed_consistency")),
    )


def build_summary(
    data: Dict[str, Any],
    target_id: str,
    reviews: List[ReviewRecord],
    model: str = "",
    generated_at: Optional[datetime] = None,
) -> SummaryRecord:
    """Turn a (possibly malformed) model payload into a SummaryRecord."""
    raw_use_cases = data.get("use_case_scores")
    raw_use_cases = raw_use_cases if isinstance(raw_use_cases, dict) else {}

    summary = data.get("summary")

    return SummaryRecord(
        target_id=target_id,
        overall_score=clamp_score(data.get("overall_score")),
        narrative_summary=summary.strip() if isinstance(summary, str) else "",
        use_case_scores=UseCaseScores(**{name: clamp_score(raw_use_cases.get(name)) for name in USE_CASES}),
        speed_analysis=build_speed_analysis(data.get("speed_analysis"), reviews),
        review_count=len(reviews),
        generated_at=generated_at or datetime.now(timezone.utc),
        model=model,
        **{name: clamp_list(data.get(name), limit) for name, limit in LIST_LIMITS.items()},
    )
