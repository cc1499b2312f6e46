"""Prompts for the Wi-Fi summary model."""

from typing import List

from wifi_reviews.models.review import ReviewRecord

SYSTEM_PROMPT = (
    "You are a WiFi quality analyst specializing in hotel internet connectivity for "
    "business travelers. Analyze reviews and provide structured, factual summaries "
    "with accurate scoring."
)

RESPONSE_SCHEMA = """{
  "summary": "Brief summary with key characteristics and quirks",
  "overall_score": 1-5,
  "positive_highlights": ["Up to 3 positive points"],
  "warnings": ["Up to 2 warnings if any"],
  "use_case_scores": {
    "video_calls": 1-5,
    "streaming": 1-5,
    "uploads": 1-5,
    "general_browsing": 1-5
  },
  "speed_analysis": {
    "mentioned_speeds": [numbers],
    "average_speed": number_or_null,
    "speed_consistency": "consistent|variable|unknown"
  },
  "location_quirks": ["Location-specific behaviors"],
  "time_patterns": ["Time-based patterns"],
  "connection_quirks": ["Connection issues"],
  "business_traveler_notes": ["Work-specific insights"],
  "unique_features": ["Special features"]
}"""


def format_review(index: int, review: ReviewRecord) -> str:
    rating = f"{review.rating}/5 stars" if review.rating else "unrated"
    date = review.date_text or "date unknown"
    return f'Review {index} ({rating}, {date}): "{review.body_text}"'


def build_user_prompt(target_name: str, reviews: List[ReviewRecord]) -> str:
    """Embed every review plus the mechanically extracted speeds."""
    review_block = "\n\n".join(format_review(i, r) for i, r in enumerate(reviews, start=1))

    speeds = [r.extracted_speed_mbps for r in reviews if r.extracted_speed_mbps is not None]
    speed_line = f"Speeds mentioned: {', '.join(f'{s:g}' for s in speeds)} Mbps" if speeds else ""

    return f"""Analyze WiFi reviews for {target_name}. Extract patterns and quirks for business travelers.

Reviews:
{review_block}

{speed_line}

Return JSON only:
{RESPONSE_SCHEMA}

Focus: Extract specific quirks like floor differences, time patterns, VPN issues, premium options. Be concise but specific."""
