"""Crawl target and review data models."""

from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

ANONYMOUS_REVIEWER = "Anonymous"


class Target(BaseModel):
    """A hotel to search for and crawl."""

    id: str
    name: str
    city: str = ""
    address: str = ""

    @property
    def search_query(self) -> str:
        """Query typed into the map search box."""
        parts = [self.name, self.city, "hotel"]
        return " ".join(part for part in parts if part)


class ReviewRecord(BaseModel):
    """One review that mentions Wi-Fi, as extracted from the page."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    reviewer_name: str = ANONYMOUS_REVIEWER
    rating: int = Field(default=0, ge=0, le=5)  # 0 = not recovered
    body_text: str
    date_text: str = ""  # raw, kept for audit
    wifi_mentioned: bool = True
    extracted_speed_mbps: Optional[float] = None

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.reviewer_name, self.body_text)
