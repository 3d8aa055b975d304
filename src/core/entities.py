from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ingestion.base import RawItem


class BatchState(str, Enum):
    """
    Lifecycle of a single scoring batch.
    """
    PENDING = "PENDING"
    FETCHING = "FETCHING"
    SUCCESS = "SUCCESS"
    FALLBACK = "FALLBACK"
    DONE = "DONE"


_VALID_TRANSITIONS: Dict[BatchState, set] = {
    BatchState.PENDING: {BatchState.FETCHING},
    BatchState.FETCHING: {BatchState.SUCCESS, BatchState.FALLBACK},
    BatchState.SUCCESS: {BatchState.DONE},
    BatchState.FALLBACK: {BatchState.DONE},
    BatchState.DONE: set(),
}


@dataclass(frozen=True)
class ScoredItem:
    """
    A RawItem with the judge's verdict overlaid.
    """
    item: RawItem
    score: float
    reasoning: str
    category: str
    key_insights: Tuple[str, ...] = ()
    difficulty: Optional[str] = None
    estimated_time: Optional[int] = None
    rank: Optional[int] = None

    @property
    def url(self) -> str:
        return self.item.url

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def source(self) -> str:
        return self.item.source

    def with_rank(self, rank: Optional[int]) -> "ScoredItem":
        return replace(self, rank=rank)

    def to_record(self) -> Dict[str, Any]:
        """Flatten into a plain dict, the shape handed to stores and sinks."""
        record = self.item.model_dump(mode="json")
        record.update(
            score=self.score,
            reasoning=self.reasoning,
            category=self.category,
            key_insights=list(self.key_insights),
            difficulty=self.difficulty,
            estimated_time=self.estimated_time,
            rank=self.rank,
        )
        return record


@dataclass
class Batch:
    """
    A bounded slice of RawItems sent together to the judge.
    """
    items: List[RawItem]
    offset: int
    state: BatchState = BatchState.PENDING
    attempts: int = 0
    history: List[BatchState] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def fell_back(self) -> bool:
        return BatchState.FALLBACK in self.history

    def advance(self, new_state: BatchState) -> None:
        if new_state not in _VALID_TRANSITIONS[self.state]:
            raise ValueError(
                f"Illegal batch transition at offset {self.offset}: "
                f"{self.state.value} -> {new_state.value}"
            )
        self.history.append(self.state)
        self.state = new_state


@dataclass(frozen=True)
class RankedResult:
    """
    Output of the ranker: the dense-ranked top N and everything else.
    """
    featured: List[ScoredItem]
    rest: List[ScoredItem] = field(default_factory=list)

    @property
    def all_items(self) -> List[ScoredItem]:
        return [*self.featured, *self.rest]


@dataclass(frozen=True)
class RunSummary:
    """
    What a pipeline run reports back to its trigger.
    """
    pipeline: str
    total_scraped: int
    total_scored: int = 0
    ranked_count: int = 0
    fallback_batches: int = 0
    empty: bool = False

    @classmethod
    def nothing_to_do(cls, pipeline: str) -> "RunSummary":
        return cls(pipeline=pipeline, total_scraped=0, empty=True)
