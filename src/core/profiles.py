from dataclasses import dataclass
from typing import Optional, Tuple, Type

from core.schemas import JudgeScore, ResourceScore


@dataclass(frozen=True)
class CurationProfile:
    """
    Declarative description of one curation flavour.
    """
    name: str
    description: str
    score_schema: Type[JudgeScore]
    prompt_kind: str
    categories: Tuple[str, ...]
    default_category: str
    difficulties: Tuple[str, ...] = ()
    default_difficulty: Optional[str] = None
    default_estimated_time: Optional[int] = None

    def coerce_category(self, category: str) -> str:
        return category if category in self.categories else self.default_category

    def coerce_difficulty(self, difficulty: Optional[str]) -> Optional[str]:
        if not self.difficulties:
            return None
        return difficulty if difficulty in self.difficulties else self.default_difficulty


NEWSLETTER = CurationProfile(
    name="NEWSLETTER",
    description="Weekly system design, scalability and DevOps reading list",
    score_schema=JudgeScore,
    prompt_kind="articles",
    categories=(
        "System Design", "DevOps", "Scalability", "Cloud Architecture",
        "Observability", "Performance", "Security", "Database",
    ),
    default_category="System Design",
)

SYSTEM_DESIGN = CurationProfile(
    name="SYSTEM_DESIGN",
    description="Curated system design learning resources",
    score_schema=ResourceScore,
    prompt_kind="resources",
    categories=(
        "Fundamentals", "Intermediate", "Advanced", "Case Studies", "Interview Problems",
    ),
    default_category="Intermediate",
    difficulties=("Beginner", "Intermediate", "Advanced"),
    default_difficulty="Intermediate",
    default_estimated_time=10,
)


ALL_PROFILES = {
    NEWSLETTER.name: NEWSLETTER,
    SYSTEM_DESIGN.name: SYSTEM_DESIGN,
}
