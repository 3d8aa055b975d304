from typing import List

from core.profiles import CurationProfile
from ingestion.base import RawItem

PROMPT_DESCRIPTION_LENGTH = 200

ARTICLES_PROMPT = """You are an expert curator for "ArchWeekly" - a newsletter focused on system design, scalability, DevOps, and site reliability engineering.

Analyze these {count} articles and score each from 1-10 based on:
- Relevance to system design/scalability/DevOps (40%)
- Technical depth and actionable insights (30%)
- Real-world production experience (20%)
- Novelty and uniqueness (10%)

Articles:
{items}

Return ONLY a valid JSON array (no markdown, no code blocks, no extra text). Use the index shown before each article:
[
  {{
    "index": 0,
    "score": 9,
    "reasoning": "Excellent deep-dive into Netflix's production reliability patterns",
    "category": "System Design",
    "keyInsights": ["Temporal workflow patterns", "Failure recovery at scale"]
  }}
]

Categories must be one of: {categories}"""

RESOURCES_PROMPT = """You are an expert curator for "ArchWeekly System Design" - a section focused on helping engineers master system design, scalability, and distributed systems.

Analyze these {count} system design resources (GitHub guides, YouTube videos, and engineering blogs) and score each from 1-10 based on:

For guides and articles:
- Educational value and clarity (40%)
- Visual quality and diagrams (20%)
- Completeness and depth (20%)
- Practical applicability (20%)

For videos:
- Content quality and clarity (40%)
- Visual explanations (25%)
- Engagement and pacing (15%)
- Practical examples (20%)

For engineering blogs:
- Technical depth and insights (40%)
- Real-world production experience (30%)
- Actionable takeaways (20%)
- Novelty and uniqueness (10%)

Resources:
{items}

Return ONLY a valid JSON array (no markdown, no code blocks, no extra text). Use the index shown before each resource:
[
  {{
    "index": 0,
    "score": 9,
    "reasoning": "Excellent visual explanation of distributed consensus with real-world examples",
    "category": "Advanced",
    "difficulty": "Intermediate",
    "keyLearnings": ["Raft consensus", "Leader election", "Production tradeoffs"],
    "estimatedTime": 15
  }}
]

category (choose ONE): {categories}
- Fundamentals: core concepts (CAP, scalability, performance)
- Intermediate: specific tech (load balancers, caching, databases)
- Advanced: complex topics (consensus, sharding, multi-region)
- Case Studies: real-world designs (Netflix, Uber, Twitter)
- Interview Problems: practice problems and solutions

difficulty (choose ONE): {difficulties}

estimatedTime: videos use the actual duration, articles 10-30 minutes based on depth.

keyLearnings: 2-4 key takeaways.

Respond with ONLY the JSON array."""


def _preview(text: str) -> str:
    return text[:PROMPT_DESCRIPTION_LENGTH].replace("\n", " ").strip()


def format_article(index: int, item: RawItem) -> str:
    lines = [
        f"{index}. {item.title} ({item.source})",
        f"   {_preview(item.description) or 'No description'}",
        f"   URL: {item.url}",
    ]
    if item.upvotes is not None:
        lines.append(f"   Upvotes: {item.upvotes}, Comments: {item.comment_count or 0}")
    return "\n".join(lines)


def format_resource(index: int, item: RawItem) -> str:
    lines = [
        f"{index}. {item.title} [{item.kind.upper()}]",
        f"   Source: {item.source}",
        f"   {_preview(item.description)}",
        f"   Topics: {', '.join(item.topics)}",
    ]
    if item.kind == "video":
        lines.append(f"   Duration: {item.duration_minutes or 'Unknown'} min")
    lines.append(f"   Has Visuals: {'Yes' if item.has_visuals else 'No'}")
    return "\n".join(lines)


def build_prompt(profile: CurationProfile, items: List[RawItem]) -> str:
    if profile.prompt_kind == "resources":
        listing = "\n\n".join(format_resource(i, item) for i, item in enumerate(items))
        return RESOURCES_PROMPT.format(
            count=len(items),
            items=listing,
            categories=", ".join(profile.categories),
            difficulties=", ".join(profile.difficulties),
        )

    listing = "\n\n".join(format_article(i, item) for i, item in enumerate(items))
    return ARTICLES_PROMPT.format(
        count=len(items),
        items=listing,
        categories=", ".join(profile.categories),
    )
