"""Tests for batch scoring: response parsing, retries and the fallback."""

import asyncio
import json
import random

import pytest

from conftest import FakeJudge, RecordingSleep, make_item, verdicts
from core.entities import BatchState
from core.profiles import NEWSLETTER, SYSTEM_DESIGN
from processing.batcher import chunk_items
from processing.evaluator import (
    FALLBACK_REASONING,
    BatchScorer,
    ScoringResponseError,
    extract_json_array,
    parse_batch_response,
)


def make_scorer(judge, sleep, **kwargs) -> BatchScorer:
    kwargs.setdefault("rng", random.Random(7))
    return BatchScorer(judge, NEWSLETTER, sleep=sleep, **kwargs)


class TestExtractJsonArray:
    """Tests for extract_json_array."""

    @pytest.mark.unit
    def test_plain_array(self) -> None:
        assert extract_json_array('[{"index": 0}]') == [{"index": 0}]

    @pytest.mark.unit
    def test_strips_code_fences(self) -> None:
        content = '```json\n[{"index": 0, "score": 8}]\n```'
        assert extract_json_array(content) == [{"index": 0, "score": 8}]

    @pytest.mark.unit
    def test_ignores_surrounding_prose(self) -> None:
        content = 'Here are the scores:\n[{"index": 0}]\nHope this helps!'
        assert extract_json_array(content) == [{"index": 0}]

    @pytest.mark.unit
    def test_brackets_inside_strings_and_nested_arrays(self) -> None:
        content = 'Scores [see below]: [{"index": 0, "reasoning": "uses [brackets]", "keyInsights": ["a", "b"]}]'
        (entry,) = extract_json_array(content)
        assert entry["reasoning"] == "uses [brackets]"
        assert entry["keyInsights"] == ["a", "b"]

    @pytest.mark.unit
    def test_backticks_inside_values_are_kept(self) -> None:
        content = '```json\n[{"index": 0, "reasoning": "shows ```kubectl rollout``` usage"}]\n```'
        (entry,) = extract_json_array(content)
        assert entry["reasoning"] == "shows ```kubectl rollout``` usage"

    @pytest.mark.unit
    def test_single_line_fence(self) -> None:
        assert extract_json_array('```json[{"index": 0}]```') == [{"index": 0}]

    @pytest.mark.unit
    def test_no_array(self) -> None:
        with pytest.raises(ScoringResponseError):
            extract_json_array('{"index": 0}')

    @pytest.mark.unit
    def test_empty_array(self) -> None:
        with pytest.raises(ScoringResponseError):
            extract_json_array("[]")


class TestParseBatchResponse:
    """Tests for parse_batch_response."""

    @pytest.mark.unit
    def test_overlays_verdicts_by_index(self) -> None:
        items = [make_item(0), make_item(1)]
        content = json.dumps([
            {"index": 1, "score": 9, "reasoning": "deep", "category": "DevOps", "keyInsights": ["x"]},
            {"index": 0, "score": 4, "reasoning": "thin", "category": "Database"},
        ])

        scored = parse_batch_response(content, items, NEWSLETTER)

        assert [s.url for s in scored] == [items[0].url, items[1].url]
        assert [s.score for s in scored] == [4.0, 9.0]
        assert scored[1].category == "DevOps"
        assert scored[1].key_insights == ("x",)

    @pytest.mark.unit
    def test_out_of_range_and_duplicate_indices_are_dropped(self) -> None:
        items = [make_item(0), make_item(1)]
        content = json.dumps([
            {"index": 0, "score": 9, "reasoning": "first"},
            {"index": 0, "score": 2, "reasoning": "second"},
            {"index": 5, "score": 10, "reasoning": "nowhere"},
            {"index": -1, "score": 10, "reasoning": "nowhere"},
        ])

        scored = parse_batch_response(content, items, NEWSLETTER)

        assert len(scored) == 2
        assert scored[0].score == 9.0
        assert scored[0].reasoning == "first"
        # skipped by the judge
        assert scored[1].reasoning == FALLBACK_REASONING
        assert scored[1].score == 5.0

    @pytest.mark.unit
    def test_unknown_category_is_coerced(self) -> None:
        content = json.dumps([{"index": 0, "score": 7, "category": "Gardening"}])
        (scored,) = parse_batch_response(content, [make_item()], NEWSLETTER)
        assert scored.category == NEWSLETTER.default_category

    @pytest.mark.unit
    def test_score_is_clamped(self) -> None:
        content = json.dumps([{"index": 0, "score": 15}, {"index": 1, "score": -3}])
        scored = parse_batch_response(content, [make_item(0), make_item(1)], NEWSLETTER)
        assert [s.score for s in scored] == [10.0, 1.0]

    @pytest.mark.unit
    def test_invalid_entries_are_dropped(self) -> None:
        content = json.dumps([{"index": 0, "score": "great"}, "junk", {"index": 1, "score": 6}])
        scored = parse_batch_response(content, [make_item(0), make_item(1)], NEWSLETTER)
        assert scored[0].reasoning == FALLBACK_REASONING
        assert scored[1].score == 6.0

    @pytest.mark.unit
    def test_nothing_usable_raises(self) -> None:
        content = json.dumps([{"index": 9, "score": 6}])
        with pytest.raises(ScoringResponseError):
            parse_batch_response(content, [make_item()], NEWSLETTER)

    @pytest.mark.unit
    def test_resource_fields(self) -> None:
        items = [
            make_item(0, kind="video", duration_minutes=42),
            make_item(1, kind="video", duration_minutes=42),
            make_item(2, kind="guide"),
        ]
        content = json.dumps([
            {"index": 0, "score": 8, "category": "Advanced", "difficulty": "Advanced",
             "keyLearnings": ["Raft"], "estimatedTime": 25},
            {"index": 1, "score": 8, "category": "Advanced", "difficulty": "Expert"},
            {"index": 2, "score": 8, "category": "Fundamentals"},
        ])

        scored = parse_batch_response(content, items, SYSTEM_DESIGN)

        assert scored[0].estimated_time == 25
        assert scored[0].difficulty == "Advanced"
        assert scored[0].key_insights == ("Raft",)
        assert scored[1].estimated_time == 42
        assert scored[1].difficulty == SYSTEM_DESIGN.default_difficulty
        assert scored[2].estimated_time == SYSTEM_DESIGN.default_estimated_time

    @pytest.mark.unit
    def test_articles_have_no_resource_fields(self) -> None:
        content = json.dumps([{"index": 0, "score": 8, "difficulty": "Advanced", "estimatedTime": 9}])
        (scored,) = parse_batch_response(content, [make_item()], NEWSLETTER)
        assert scored.difficulty is None
        assert scored.estimated_time is None


class TestBatchScorer:
    """Tests for BatchScorer retry, backoff and fallback behaviour."""

    @pytest.mark.unit
    def test_two_batches_with_one_inter_batch_delay(self) -> None:
        """22 items at batch size 20 make two calls and one pause."""
        judge = FakeJudge(auto=True)
        sleep = RecordingSleep()
        scorer = make_scorer(judge, sleep, batch_size=20, batch_delay=15.0)

        run = asyncio.run(scorer.score_all([make_item(i) for i in range(22)]))

        assert judge.calls == 2
        assert "Analyze these 20 articles" in judge.prompts[0]
        assert "Analyze these 2 articles" in judge.prompts[1]
        assert sleep.delays == [15.0]
        assert len(run.items) == 22
        assert run.fallback_batches == 0
        assert all(b.state is BatchState.DONE for b in run.batches)

    @pytest.mark.unit
    def test_retries_with_increasing_backoff(self) -> None:
        """Fail, fail, succeed: two growing sleeps, then the parsed result."""
        judge = FakeJudge([RuntimeError("503"), TimeoutError("slow"), verdicts(3, score=9)])
        sleep = RecordingSleep()
        scorer = make_scorer(judge, sleep, retry_attempts=3, retry_base_delay=2.0, retry_jitter=1.0)
        (batch,) = chunk_items([make_item(i) for i in range(3)], 20)

        scored = asyncio.run(scorer.score_batch(batch))

        assert judge.calls == 3
        assert len(sleep.delays) == 2
        assert 2.0 <= sleep.delays[0] <= 3.0
        assert 4.0 <= sleep.delays[1] <= 5.0
        assert sleep.delays[0] < sleep.delays[1]
        assert [s.score for s in scored] == [9.0, 9.0, 9.0]
        assert batch.state is BatchState.SUCCESS
        assert batch.attempts == 3

    @pytest.mark.unit
    def test_unparseable_response_is_retried(self) -> None:
        judge = FakeJudge(["I cannot help with that", verdicts(1)])
        sleep = RecordingSleep()
        scorer = make_scorer(judge, sleep)
        (batch,) = chunk_items([make_item()], 20)

        scored = asyncio.run(scorer.score_batch(batch))

        assert judge.calls == 2
        assert scored[0].reasoning == "item 0"

    @pytest.mark.unit
    def test_exhausted_retries_fall_back(self) -> None:
        """Three failures give every item the neutral fallback verdict."""
        judge = FakeJudge([RuntimeError("down")] * 3)
        sleep = RecordingSleep()
        scorer = make_scorer(judge, sleep, retry_attempts=3)
        items = [make_item(i) for i in range(4)]

        run = asyncio.run(scorer.score_all(items))

        assert judge.calls == 3
        assert len(sleep.delays) == 2  # between attempts only
        assert len(run.items) == len(items)
        assert all(s.score == 5.0 for s in run.items)
        assert all(s.category == NEWSLETTER.default_category for s in run.items)
        assert all(s.reasoning == FALLBACK_REASONING for s in run.items)
        assert all(s.key_insights == () for s in run.items)
        assert run.fallback_batches == 1

    @pytest.mark.unit
    def test_fallback_never_drops_items(self) -> None:
        """Batch sizes in always equal scored items out."""
        responses = [verdicts(20), RuntimeError("x"), RuntimeError("x"), RuntimeError("x"), verdicts(1)]
        judge = FakeJudge(responses)
        scorer = make_scorer(judge, RecordingSleep(), batch_size=20)
        items = [make_item(i) for i in range(45)]

        run = asyncio.run(scorer.score_all(items))

        assert [s.url for s in run.items] == [i.url for i in items]
        assert run.fallback_batches == 1

    @pytest.mark.unit
    def test_backoff_without_jitter(self) -> None:
        scorer = make_scorer(FakeJudge(), RecordingSleep(), retry_base_delay=2.0, retry_jitter=0)
        assert [scorer.backoff_delay(a) for a in (1, 2, 3)] == [2.0, 4.0, 8.0]

    @pytest.mark.unit
    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            make_scorer(FakeJudge(), RecordingSleep(), retry_attempts=0)

    @pytest.mark.unit
    @pytest.mark.parametrize("fallback_score", [0, 10.5, 50])
    def test_rejects_out_of_range_fallback(self, fallback_score: float) -> None:
        with pytest.raises(ValueError, match="fallback_score"):
            make_scorer(FakeJudge(), RecordingSleep(), fallback_score=fallback_score)

    @pytest.mark.unit
    def test_accepts_fallback_at_bounds(self) -> None:
        assert make_scorer(FakeJudge(), RecordingSleep(), fallback_score=1).fallback_score == 1
        assert make_scorer(FakeJudge(), RecordingSleep(), fallback_score=10).fallback_score == 10
