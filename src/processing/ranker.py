import logging
from typing import List, Sequence

from core.entities import RankedResult, ScoredItem

logger = logging.getLogger(__name__)


def rank_items(scored: Sequence[ScoredItem], top_n: int) -> RankedResult:
    """
    Sort by score, highest first, and give the top ``top_n`` dense ranks 1..N.

    The sort is stable: equal scores keep the order they were merged in.
    A URL reported by several sources is kept once, as its highest-scored
    copy, so every rank maps to a distinct stored record.
    Everything past the cut is returned unranked.
    """
    if top_n < 0:
        raise ValueError(f"top_n must not be negative, got {top_n}")

    ordered: List[ScoredItem] = []
    seen_urls = set()
    for item in sorted(scored, key=lambda s: s.score, reverse=True):
        if item.url in seen_urls:
            continue
        seen_urls.add(item.url)
        ordered.append(item)

    duplicates = len(scored) - len(ordered)
    if duplicates:
        logger.info(f"Dropped {duplicates} duplicate URLs before ranking")

    featured = [item.with_rank(rank) for rank, item in enumerate(ordered[:top_n], start=1)]
    rest = [item.with_rank(None) for item in ordered[top_n:]]

    logger.info(f"Ranked {len(ordered)} items: {len(featured)} featured, {len(rest)} unranked")
    return RankedResult(featured=featured, rest=rest)
