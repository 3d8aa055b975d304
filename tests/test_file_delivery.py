"""Tests for the JSON and Markdown file sink."""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from conftest import make_item
from core.entities import RankedResult, RunSummary, ScoredItem
from delivery.file_delivery import FileDelivery, source_family


def scored(n: int, source: str, score: float, rank=None) -> ScoredItem:
    return ScoredItem(
        item=make_item(n, source=source, topics=["Caching"]),
        score=score,
        reasoning="clear diagrams",
        category="Intermediate",
        key_insights=("Cache aside",),
        difficulty="Intermediate",
        estimated_time=12,
        rank=rank,
    )


RANKED = RankedResult(
    featured=[
        scored(1, "github-bytebytego", 9, rank=1),
        scored(2, "youtube-freecodecamp", 8, rank=2),
    ],
    rest=[scored(3, "blog-netflix", 4)],
)
SUMMARY = RunSummary(pipeline="system_design", total_scraped=3, total_scored=3, ranked_count=2)


class TestSourceFamily:
    """Tests for source_family."""

    @pytest.mark.unit
    def test_families(self) -> None:
        assert source_family("github-system-design-primer") == "github"
        assert source_family("youtube-bytebytego") == "youtube"
        assert source_family("blog-stripe") == "blog"
        assert source_family("reddit") == "other"


class TestFileDelivery:
    """Tests for FileDelivery."""

    @pytest.mark.unit
    def test_build_document(self) -> None:
        generated_at = datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc)

        document = FileDelivery().build_document(
            pipeline="system_design", ranked=RANKED, summary=SUMMARY, generated_at=generated_at
        )

        metadata = document["metadata"]
        assert metadata["generatedDate"] == "Monday, January 06, 2025"
        assert metadata["totalScraped"] == 3
        assert metadata["topSelected"] == 2
        assert metadata["sources"] == {"blog": 1, "github": 1, "youtube": 1}
        first = document["featured"][0]
        assert first["rank"] == 1
        assert first["key_insights"] == ["Cache aside"]
        assert first["estimated_time"] == 12
        assert "thumbnail" not in first

    @pytest.mark.unit
    def test_deliver_writes_json_and_markdown(self, tmp_path) -> None:
        delivery = FileDelivery(str(tmp_path / "out"), "resources.json")

        asyncio.run(
            delivery.deliver(pipeline="system_design", run_date="2025-01-06", ranked=RANKED, summary=SUMMARY)
        )

        document = json.loads((tmp_path / "out" / "resources.json").read_text())
        assert [f["url"] for f in document["featured"]] == [
            "https://example.com/post/1",
            "https://example.com/post/2",
        ]
        markdown = (tmp_path / "out" / "resources.md").read_text()
        assert "## 1. Scaling service 1" in markdown
        assert "**Score:** 9/10" in markdown

    @pytest.mark.unit
    def test_default_file_name(self, tmp_path) -> None:
        delivery = FileDelivery(str(tmp_path))
        asyncio.run(delivery.deliver(pipeline="newsletter", run_date="2025-01-06", ranked=RANKED, summary=SUMMARY))
        assert (tmp_path / "newsletter_2025-01-06.json").exists()
