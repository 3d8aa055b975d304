import asyncio
import logging
from typing import List, Optional, Sequence

from ingestion.base import RawItem, SourceAdapter
from processing.prefilter import passes_engagement

logger = logging.getLogger(__name__)


async def run_all(
    adapters: Sequence[SourceAdapter],
    *,
    min_upvotes: Optional[int] = None,
) -> List[RawItem]:
    """
    Run every adapter concurrently and concatenate what they return.

    Never raises. A failed adapter contributes nothing; an empty list means
    there is nothing to score.
    """
    if not adapters:
        return []

    results = await asyncio.gather(*(adapter.fetch() for adapter in adapters))

    items: List[RawItem] = []
    failed = 0
    for result in results:
        if not result.ok:
            failed += 1
            logger.warning(f"No items from {result.source}: {result.error.message}")
        items.extend(result.items_or_empty())

    kept = [item for item in items if passes_engagement(item, min_upvotes)]

    logger.info(
        f"Aggregated {len(kept)} items from {len(adapters)} sources "
        f"({failed} failed, {len(items) - len(kept)} below engagement threshold)"
    )
    return kept
