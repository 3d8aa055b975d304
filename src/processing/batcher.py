from typing import List, Sequence

from core.entities import Batch
from ingestion.base import RawItem


def chunk_items(items: Sequence[RawItem], batch_size: int) -> List[Batch]:
    """
    Split items into consecutive batches of at most ``batch_size``.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    return [
        Batch(items=list(items[offset:offset + batch_size]), offset=offset)
        for offset in range(0, len(items), batch_size)
    ]
