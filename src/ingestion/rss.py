"""
Ingestion from RSS sources
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import feedparser
import httpx

from core.scoring import MEDIA_TOPICS, extract_topics
from ingestion.base import RawItem, SourceAdapter
from ingestion.text import MAX_DESCRIPTION_LENGTH, clean_description
from processing.prefilter import filter_relevant

logger = logging.getLogger(__name__)

MAX_ITEMS_PER_FEED = 5


@dataclass(frozen=True)
class Feed:
    url: str
    source: str
    name: Optional[str] = None


class RSSAdapter(SourceAdapter):
    """
    Reads a set of feeds concurrently. A feed that fails only loses its own
    entries; the adapter fails as a whole only if something outside the
    per-feed fetch breaks.
    """

    def __init__(
        self,
        feeds: Sequence[Feed],
        source_name: str = "rss",
        *,
        keywords: Optional[List[str]] = None,
        max_items: int = MAX_ITEMS_PER_FEED,
        max_description_length: int = MAX_DESCRIPTION_LENGTH,
        extract_resource_topics: bool = False,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.feeds = list(feeds)
        self.name = source_name
        self.keywords = keywords
        self.max_items = max_items
        self.max_description_length = max_description_length
        self.extract_resource_topics = extract_resource_topics

    async def _fetch(self) -> List[RawItem]:
        async with self.client() as client:
            per_feed = await asyncio.gather(
                *(self._read_feed(client, feed) for feed in self.feeds)
            )

        items = [item for feed_items in per_feed for item in feed_items]
        return filter_relevant(items, self.keywords)

    async def _read_feed(self, client: httpx.AsyncClient, feed: Feed) -> List[RawItem]:
        try:
            resp = await client.get(feed.url)
            resp.raise_for_status()
            return self.parse_feed(resp.text, feed.source)
        except Exception as e:
            logger.warning(f"Feed {feed.name or feed.url} failed: {e}")
            return []

    def parse_feed(self, document: str, source: str) -> List[RawItem]:
        parsed = feedparser.parse(document)
        items: List[RawItem] = []

        for entry in parsed.entries[: self.max_items]:
            title = (entry.get("title") or "").strip()
            url = (entry.get("link") or "").strip()
            if not title or not url:
                continue

            description = clean_description(
                entry.get("summary") or entry.get("description") or "",
                self.max_description_length,
            )

            topics: List[str] = []
            if self.extract_resource_topics:
                topics = extract_topics(f"{title} {description}", MEDIA_TOPICS)

            items.append(
                RawItem(
                    title=title,
                    url=url,
                    description=description,
                    source=source,
                    kind="article",
                    topics=topics,
                    published_at=entry.get("published"),
                )
            )

        return items
