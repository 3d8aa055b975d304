"""
Batch scoring against the LLM judge: prompt, parse, validate, retry, fall back.
"""
import asyncio
import json
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from core.entities import Batch, BatchState, ScoredItem
from core.profiles import CurationProfile
from core.schemas import SCORE_MAX, SCORE_MIN, JudgeScore
from ingestion.base import RawItem
from processing.batcher import chunk_items
from processing.prompts import build_prompt
from services.llm import JudgeClient

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Failed to score - using default"
DEFAULT_FALLBACK_SCORE = 5

# Only fence lines and fences hugging the ends; backticks inside values stay
_CODE_FENCE = re.compile(r"^[ \t]*```[\w-]*[ \t]*$|\A\s*```[\w-]*|```\s*\Z", re.MULTILINE)
_decoder = json.JSONDecoder()

Sleep = Callable[[float], Awaitable[Any]]


class ScoringResponseError(ValueError):
    """The judge answered, but not with anything usable."""


def strip_code_fences(content: str) -> str:
    return _CODE_FENCE.sub("", content).strip()


def extract_json_array(content: str) -> List[Any]:
    """
    Return the first JSON array in the response.

    Each ``[`` is tried as the start of a JSON document, so brackets nested
    inside the array or inside strings never cut it short.
    """
    text = strip_code_fences(content)
    start = text.find("[")

    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None

        if isinstance(value, list):
            if not value:
                raise ScoringResponseError("Judge returned an empty array")
            return value

        start = text.find("[", start + 1)

    raise ScoringResponseError("No JSON array found in judge response")


def fallback_item(item: RawItem, profile: CurationProfile, score: float = DEFAULT_FALLBACK_SCORE) -> ScoredItem:
    return ScoredItem(
        item=item,
        score=float(score),
        reasoning=FALLBACK_REASONING,
        category=profile.default_category,
        key_insights=(),
        difficulty=profile.default_difficulty,
        estimated_time=_estimated_time(item, profile, None),
    )


def _estimated_time(item: RawItem, profile: CurationProfile, judged: Optional[int]) -> Optional[int]:
    if profile.default_estimated_time is None:
        return None
    return judged or item.duration_minutes or profile.default_estimated_time


def merge_verdict(item: RawItem, verdict: JudgeScore, profile: CurationProfile) -> ScoredItem:
    """Overlay a validated verdict on the item it refers to."""
    return ScoredItem(
        item=item,
        score=verdict.score,
        reasoning=verdict.reasoning,
        category=profile.coerce_category(verdict.category),
        key_insights=tuple(verdict.key_insights),
        difficulty=profile.coerce_difficulty(getattr(verdict, "difficulty", None)),
        estimated_time=_estimated_time(item, profile, getattr(verdict, "estimated_time", None)),
    )


def parse_batch_response(
    content: str,
    items: Sequence[RawItem],
    profile: CurationProfile,
    fallback_score: float = DEFAULT_FALLBACK_SCORE,
) -> List[ScoredItem]:
    """
    Turn a raw judge response into exactly one ScoredItem per batch item.

    Entries pointing outside the batch, repeating an index or failing
    validation are dropped. Items the judge skipped get the fallback score.
    Raises ScoringResponseError when nothing usable remains.
    """
    verdicts: Dict[int, JudgeScore] = {}

    for entry in extract_json_array(content):
        if not isinstance(entry, dict):
            continue
        try:
            verdict = profile.score_schema.model_validate(entry)
        except ValidationError as e:
            logger.debug(f"Dropping invalid verdict {entry!r}: {e}")
            continue
        if not 0 <= verdict.index < len(items):
            logger.debug(f"Dropping verdict with out-of-range index {verdict.index}")
            continue
        verdicts.setdefault(verdict.index, verdict)

    if not verdicts:
        raise ScoringResponseError("Judge response contained no usable verdicts")

    missing = len(items) - len(verdicts)
    if missing:
        logger.warning(f"Judge skipped {missing}/{len(items)} items; using fallback score for them")

    return [
        merge_verdict(item, verdicts[i], profile) if i in verdicts
        else fallback_item(item, profile, fallback_score)
        for i, item in enumerate(items)
    ]


@dataclass
class ScoringRun:
    items: List[ScoredItem] = field(default_factory=list)
    batches: List[Batch] = field(default_factory=list)

    @property
    def fallback_batches(self) -> int:
        return sum(1 for b in self.batches if b.fell_back or b.state is BatchState.FALLBACK)


class BatchScorer:
    """
    Scores items in sequential batches. A batch that keeps failing is never
    propagated as an error; its items get the fallback score instead.
    """

    def __init__(
        self,
        llm: JudgeClient,
        profile: CurationProfile,
        *,
        batch_size: int = 20,
        retry_attempts: int = 3,
        retry_base_delay: float = 2.0,
        retry_jitter: float = 1.0,
        batch_delay: float = 15.0,
        fallback_score: float = DEFAULT_FALLBACK_SCORE,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        if retry_attempts < 1:
            raise ValueError(f"retry_attempts must be at least 1, got {retry_attempts}")
        if not SCORE_MIN <= fallback_score <= SCORE_MAX:
            raise ValueError(
                f"fallback_score must be between {SCORE_MIN} and {SCORE_MAX}, got {fallback_score}"
            )

        self.llm = llm
        self.profile = profile
        self.batch_size = batch_size
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self.retry_jitter = retry_jitter
        self.batch_delay = batch_delay
        self.fallback_score = fallback_score
        self.sleep = sleep
        self.rng = rng or random.Random()

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        jitter = self.rng.uniform(0, self.retry_jitter) if self.retry_jitter > 0 else 0.0
        return self.retry_base_delay * 2 ** (attempt - 1) + jitter

    async def score_batch(self, batch: Batch) -> List[ScoredItem]:
        batch.advance(BatchState.FETCHING)
        prompt = build_prompt(self.profile, batch.items)

        for attempt in range(1, self.retry_attempts + 1):
            batch.attempts = attempt
            try:
                response = await self.llm.evaluate(prompt)
                scored = parse_batch_response(
                    response["content"], batch.items, self.profile, self.fallback_score
                )
            except Exception as e:
                logger.warning(
                    f"Batch at offset {batch.offset}: attempt {attempt}/{self.retry_attempts} failed: {e}"
                )
                if attempt < self.retry_attempts:
                    await self.sleep(self.backoff_delay(attempt))
                continue

            logger.info(
                f"Batch at offset {batch.offset}: scored {len(scored)} items "
                f"(attempt {attempt}, latency {response.get('latency_ms', '?')}ms)"
            )
            batch.advance(BatchState.SUCCESS)
            return scored

        logger.error(
            f"Batch at offset {batch.offset}: all {self.retry_attempts} attempts failed, "
            f"assigning fallback score {self.fallback_score} to {len(batch)} items"
        )
        batch.advance(BatchState.FALLBACK)
        return [fallback_item(item, self.profile, self.fallback_score) for item in batch.items]

    async def score_all(self, items: Sequence[RawItem]) -> ScoringRun:
        run = ScoringRun(batches=chunk_items(items, self.batch_size))
        logger.info(f"Scoring {len(items)} items in {len(run.batches)} batches of up to {self.batch_size}")

        for i, batch in enumerate(run.batches):
            run.items.extend(await self.score_batch(batch))

            if i < len(run.batches) - 1:
                await self.sleep(self.batch_delay)
            batch.advance(BatchState.DONE)

        return run
