"""Shared fixtures and fakes for the curation pipeline tests."""

import json
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from core.entities import ScoredItem
from ingestion.base import RawItem, SourceAdapter


def make_item(
    n: int = 0,
    title: Optional[str] = None,
    source: str = "test",
    **kwargs: Any,
) -> RawItem:
    """Create a RawItem with a unique URL."""
    return RawItem(
        title=title or f"Scaling service {n}",
        url=kwargs.pop("url", f"https://example.com/post/{n}"),
        description=kwargs.pop("description", f"How service {n} scaled its database"),
        source=source,
        **kwargs,
    )


def make_scored(n: int, score: float, **kwargs: Any) -> ScoredItem:
    """Create a ScoredItem around make_item(n)."""
    return ScoredItem(
        item=make_item(n),
        score=score,
        reasoning=kwargs.pop("reasoning", "solid"),
        category=kwargs.pop("category", "System Design"),
        **kwargs,
    )


def verdicts(count: int, score: float = 8, **extra: Any) -> str:
    """A well-formed judge response covering indices 0..count-1."""
    return json.dumps(
        [
            {
                "index": i,
                "score": score,
                "reasoning": f"item {i}",
                "category": "Scalability",
                "keyInsights": [f"insight {i}"],
                **extra,
            }
            for i in range(count)
        ]
    )


class FakeJudge:
    """
    Scripted judge. Each call consumes the next response; a response that is
    an exception instance is raised instead of returned. With ``auto=True``
    every call answers with well-formed verdicts for the prompted count.
    """

    def __init__(self, responses: Sequence[Union[str, Exception]] = (), auto: bool = False):
        self.responses = list(responses)
        self.auto = auto
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def evaluate(self, prompt: str) -> Dict[str, Any]:
        self.prompts.append(prompt)
        if self.auto:
            count = int(prompt.split("Analyze these ", 1)[1].split(" ", 1)[0])
            return {"content": verdicts(count), "latency_ms": 1}

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return {"content": response, "latency_ms": 1}


class RecordingSleep:
    """Drop-in for asyncio.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class StaticAdapter(SourceAdapter):
    """Adapter returning a fixed list, or raising the given error."""

    def __init__(self, name: str, items: Sequence[RawItem] = (), error: Optional[Exception] = None):
        super().__init__()
        self.name = name
        self.items = list(items)
        self.error = error
        self.calls = 0

    async def _fetch(self) -> List[RawItem]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


class RecordingStore:
    """In-memory persistence collaborator recording every call."""

    def __init__(self, fail_on_upsert: Optional[Exception] = None):
        self.calls: List[str] = []
        self.records: Dict[str, Dict[str, Any]] = {}
        self.fail_on_upsert = fail_on_upsert

    async def clear_all_ranks(self) -> None:
        self.calls.append("clear_all_ranks")
        for record in self.records.values():
            record["rank"] = None

    async def upsert_by_url(self, item: ScoredItem) -> Dict[str, Any]:
        self.calls.append("upsert_by_url")
        if self.fail_on_upsert is not None:
            raise self.fail_on_upsert
        self.records[item.url] = item.to_record()
        return self.records[item.url]


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()

