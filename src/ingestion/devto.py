"""
Ingest top articles from the public Dev.to API
"""
from typing import Any, Dict, List, Optional

from ingestion.base import RawItem, SourceAdapter
from ingestion.text import clean_description
from processing.prefilter import filter_relevant

DEFAULT_KEYWORDS = [
    "redis", "kafka", "kubernetes", "docker", "microservices",
    "system design", "scalability", "distributed systems",
    "load balancing", "caching", "database optimization",
    "devops", "ci/cd", "architecture", "performance",
    "aws", "azure", "gcp", "cloud", "infrastructure",
    "monitoring", "postgresql", "mongodb", "nginx",
    "rabbitmq", "elasticsearch", "graphql", "api design",
]


class DevToAdapter(SourceAdapter):
    name = "devto"
    API_URL = "https://dev.to/api/articles"

    def __init__(
        self,
        keywords: Optional[List[str]] = None,
        per_page: int = 50,
        top_days: int = 7,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.keywords = DEFAULT_KEYWORDS if keywords is None else keywords
        self.per_page = per_page
        self.top_days = top_days

    async def _fetch(self) -> List[RawItem]:
        async with self.client() as client:
            resp = await client.get(
                self.API_URL,
                params={"per_page": self.per_page, "top": self.top_days},
            )
            resp.raise_for_status()
            articles = resp.json()

        return filter_relevant(self.parse_articles(articles), self.keywords)

    def parse_articles(self, articles: List[Dict[str, Any]]) -> List[RawItem]:
        items: List[RawItem] = []
        for article in articles:
            if not article.get("title") or not article.get("url"):
                continue

            tags = article.get("tag_list") or []
            if isinstance(tags, str):
                tags = [t.strip() for t in tags.split(",") if t.strip()]

            items.append(
                RawItem(
                    title=article["title"],
                    url=article["url"],
                    description=clean_description(article.get("description") or ""),
                    source=self.name,
                    kind="article",
                    tags=tags,
                    comment_count=article.get("comments_count"),
                    published_at=article.get("published_at"),
                )
            )
        return items
