from typing import List, Optional

from ingestion.base import RawItem, SourceAdapter
from ingestion.text import MAX_DESCRIPTION_LENGTH, truncate
from processing.prefilter import keyword_match

DEFAULT_KEYWORDS = [
    "kubernetes", "docker", "redis", "kafka", "microservices",
    "scaling", "infrastructure", "devops", "ci/cd", "monitoring",
    "aws", "azure", "gcp", "cloud", "terraform", "ansible",
    "prometheus", "grafana", "elk", "nginx", "load balancer",
]


class RedditAdapter(SourceAdapter):
    POST_LIMIT = 50

    def __init__(
        self,
        subreddit: str,
        keywords: Optional[List[str]] = None,
        user_agent: str = "ArchWeekly-Scraper/1.0",
        **kwargs,
    ):
        super().__init__(user_agent=user_agent, **kwargs)
        self.subreddit = subreddit
        self.name = f"reddit/{subreddit}"
        self.keywords = DEFAULT_KEYWORDS if keywords is None else keywords

    async def _fetch(self) -> List[RawItem]:
        async with self.client() as client:
            resp = await client.get(
                f"https://www.reddit.com/r/{self.subreddit}/hot.json",
                params={"limit": self.POST_LIMIT},
            )
            resp.raise_for_status()
            payload = resp.json()

        return self.parse_listing(payload)

    def parse_listing(self, payload: dict) -> List[RawItem]:
        items: List[RawItem] = []

        for post in payload["data"]["children"]:
            data = post["data"]
            title = data.get("title", "")
            selftext = data.get("selftext") or ""

            if not title:
                continue
            if self.keywords and not keyword_match(f"{title} {selftext}", self.keywords):
                continue

            url = data.get("url") or ""
            if not url.startswith("http"):
                url = f"https://reddit.com{data.get('permalink', '')}"

            items.append(
                RawItem(
                    title=title,
                    url=url,
                    description=truncate(selftext, MAX_DESCRIPTION_LENGTH)
                    or f"Discussion on r/{self.subreddit}",
                    source="reddit",
                    kind="discussion",
                    upvotes=int(data.get("ups") or 0),
                    comment_count=int(data.get("num_comments") or 0),
                )
            )

        return items
