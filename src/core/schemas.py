"""
Pydantic schemas for the judge's per-item verdicts
"""
import math
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

SCORE_MIN = 1
SCORE_MAX = 10


class JudgeScore(BaseModel):
    """
    One entry of the JSON array returned for a batch. ``index`` is the
    item's position within the batch.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    index: int
    score: float
    reasoning: str = ""
    category: str = ""
    key_insights: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("keyInsights", "keyLearnings", "key_insights"),
    )

    @field_validator("score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("score must be a finite number")
        return float(max(SCORE_MIN, min(SCORE_MAX, value)))

    @field_validator("reasoning", "category", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("key_insights", mode="before")
    @classmethod
    def coerce_insights(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]


class ResourceScore(JudgeScore):
    """
    Verdict for learning resources, which also carry difficulty and reading
    or watching time.
    """
    difficulty: Optional[str] = None
    estimated_time: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("estimatedTime", "estimated_time"),
    )

    @field_validator("estimated_time", mode="before")
    @classmethod
    def drop_unusable_time(cls, value: Any) -> Any:
        try:
            minutes = int(float(value))
        except (TypeError, ValueError):
            return None
        return minutes if minutes > 0 else None
