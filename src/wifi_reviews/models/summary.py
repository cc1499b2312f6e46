"""Model-generated Wi-Fi summary data models."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SpeedConsistency(str, Enum):
    CONSISTENT = "consistent"
    VARIABLE = "variable"
    UNKNOWN = "unknown"


class UseCaseScores(BaseModel):
    """Suitability scores (1-5) for common traveler activities."""

    model_config = ConfigDict(frozen=True)

    video_calls: int = Field(default=3, ge=1, le=5)
    streaming: int = Field(default=3, ge=1, le=5)
    uploads: int = Field(default=3, ge=1, le=5)
    general_browsing: int = Field(default=3, ge=1, le=5)


class SpeedAnalysis(BaseModel):
    """Speeds mentioned across a hotel's reviews."""

    model_config = ConfigDict(frozen=True)

    mentioned_speeds: List[float] = Field(default_factory=list)
    average_speed: Optional[float] = None
    consistency: SpeedConsistency = SpeedConsistency.UNKNOWN


class SummaryRecord(BaseModel):
    """Validated summary of one hotel's Wi-Fi reviews."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    target_id: str
    overall_score: int = Field(ge=1, le=5)
    narrative_summary: str = ""
    positive_highlights: List[str] = Field(default_factory=list, max_length=3)
    warnings: List[str] = Field(default_factory=list, max_length=2)
    use_case_scores: UseCaseScores = Field(default_factory=UseCaseScores)
    speed_analysis: SpeedAnalysis = Field(default_factory=SpeedAnalysis)

    location_quirks: List[str] = Field(default_factory=list, max_length=5)
    time_patterns: List[str] = Field(default_factory=list, max_length=3)
    connection_quirks: List[str] = Field(default_factory=list, max_length=4)
    business_traveler_notes: List[str] = Field(default_factory=list, max_length=4)
    unique_features: List[str] = Field(default_factory=list, max_length=3)

    review_count: int = Field(ge=0)
    generated_at: datetime
    model: str = ""

    @property
    def speed_tier(self) -> str:
        if self.overall_score >= 5:
            return "excellent"
        if self.overall_score >= 4:
            return "good"
        if self.overall_score >= 3:
            return "moderate"
        return "poor"

    @property
    def confidence_level(self) -> str:
        if self.review_count >= 10:
            return "high"
        if self.review_count >= 5:
            return "medium"
        return "low"

    @property
    def business_suitable(self) -> bool:
        return self.overall_score >= 4

    def to_yaml_dict(self) -> dict:
        """Convert to a plain dict including the derived fields."""
        data = self.model_dump(mode="json")
        data["speed_tier"] = self.speed_tier
        data["confidence_level"] = self.confidence_level
        data["business_suitable"] = self.business_suitable
        return data
