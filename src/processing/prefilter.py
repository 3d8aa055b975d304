import logging
from typing import Iterable, List, Optional

from ingestion.base import RawItem

logger = logging.getLogger(__name__)


def keyword_match(text: str, keywords: Iterable[str]) -> bool:
    text = text.lower()
    return any(k.lower() in text for k in keywords)


def relevance_text(item: RawItem) -> str:
    return " ".join([item.title, item.description, *item.tags])


def is_relevant(item: RawItem, keywords: Optional[Iterable[str]]) -> bool:
    """
    Cheap topical filter. An empty or missing keyword list keeps everything.
    """
    keywords = list(keywords or [])
    if not keywords:
        return True
    return keyword_match(relevance_text(item), keywords)


def filter_relevant(items: List[RawItem], keywords: Optional[Iterable[str]]) -> List[RawItem]:
    keywords = list(keywords or [])
    kept = [item for item in items if is_relevant(item, keywords)]
    if keywords:
        logger.debug(f"Keyword filter: {len(items)} -> {len(kept)} items")
    return kept


def passes_engagement(item: RawItem, min_upvotes: Optional[int]) -> bool:
    """Discussion items must beat the upvote floor; other items always pass."""
    if min_upvotes is None or item.upvotes is None:
        return True
    return item.upvotes > min_upvotes
