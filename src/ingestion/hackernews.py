"""
Ingest stories from the Hacker News front page
"""
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ingestion.base import RawItem, SourceAdapter
from processing.prefilter import keyword_match

DEFAULT_KEYWORDS = [
    "redis", "kafka", "kubernetes", "docker", "microservices",
    "system design", "scalability", "distributed", "scale",
    "load balancing", "caching", "database", "optimization",
    "devops", "ci/cd", "architecture", "performance",
    "aws", "azure", "gcp", "cloud", "infrastructure",
    "monitoring", "postgresql", "mongodb", "nginx",
]


class HackerNewsAdapter(SourceAdapter):
    name = "hackernews"
    BASE_URL = "https://news.ycombinator.com/"

    def __init__(self, keywords: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.keywords = DEFAULT_KEYWORDS if keywords is None else keywords

    async def _fetch(self) -> List[RawItem]:
        async with self.client() as client:
            resp = await client.get(self.BASE_URL)
            resp.raise_for_status()

        return self.parse_front_page(resp.text)

    def parse_front_page(self, html: str) -> List[RawItem]:
        soup = BeautifulSoup(html, "html.parser")
        items: List[RawItem] = []

        for line in soup.select("span.titleline"):
            link = line.find("a")
            if link is None:
                continue

            title = link.get_text(strip=True)
            href = link.get("href")
            if not title or not href:
                continue
            # Only the title is available here, so that is what gets matched
            if self.keywords and not keyword_match(title, self.keywords):
                continue

            items.append(
                RawItem(
                    title=title,
                    url=href if href.startswith("http") else urljoin(self.BASE_URL, href),
                    description=title,
                    source=self.name,
                    kind="discussion",
                )
            )

        return items
