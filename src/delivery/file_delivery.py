"""
File delivery channel: curated JSON plus a Markdown rendering
"""
import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.entities import RankedResult, RunSummary, ScoredItem
from delivery.base import DeliveryChannel

FEATURED_FIELDS = (
    "rank", "title", "url", "description", "source", "kind", "category",
    "difficulty", "score", "reasoning", "topics", "key_insights",
    "estimated_time", "has_visuals", "thumbnail", "upvotes", "comment_count",
)


def source_family(source: str) -> str:
    for family in ("github", "youtube", "blog"):
        if family in source:
            return family
    return "other"


def _featured_entry(item: ScoredItem) -> Dict[str, Any]:
    record = item.to_record()
    return {key: record[key] for key in FEATURED_FIELDS if record.get(key) not in (None, [], "")}


class FileDelivery(DeliveryChannel):
    name = "file"

    def __init__(self, output_dir: str = "output", output_file: Optional[str] = None):
        self.output_dir = Path(output_dir)
        self.output_file = output_file

    def build_document(
        self,
        *,
        pipeline: str,
        ranked: RankedResult,
        summary: RunSummary,
        generated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        generated_at = generated_at or datetime.now(timezone.utc)
        families = Counter(source_family(item.source) for item in ranked.all_items)

        return {
            "metadata": {
                "pipeline": pipeline,
                "generatedAt": generated_at.isoformat(),
                "generatedDate": generated_at.strftime("%A, %B %d, %Y"),
                "totalScraped": summary.total_scraped,
                "totalScored": summary.total_scored,
                "topSelected": len(ranked.featured),
                "fallbackBatches": summary.fallback_batches,
                "sources": dict(sorted(families.items())),
            },
            "featured": [_featured_entry(item) for item in ranked.featured],
        }

    async def deliver(
        self,
        *,
        pipeline: str,
        run_date: str,
        ranked: RankedResult,
        summary: RunSummary,
    ) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        json_path = self.output_dir / (self.output_file or f"{pipeline}_{run_date}.json")
        md_path = json_path.with_suffix(".md")

        document = self.build_document(pipeline=pipeline, ranked=ranked, summary=summary)
        json_path.write_text(json.dumps(document, indent=2), encoding="utf-8")

        md_lines: List[str] = [f"# {pipeline} - {run_date}", ""]
        for item in ranked.featured:
            md_lines.append(f"## {item.rank}. {item.title}")
            md_lines.append(f"**Score:** {item.score:g}/10 | **Category:** {item.category} | **Source:** {item.source}")
            if item.item.description:
                md_lines.append(item.item.description)
            if item.reasoning:
                md_lines.append(f"**Why:** {item.reasoning}")
            for insight in item.key_insights:
                md_lines.append(f"- {insight}")
            md_lines.append("")
            md_lines.append(item.url)
            md_lines.append("\n")

        md_path.write_text("\n".join(md_lines), encoding="utf-8")
