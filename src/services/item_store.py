"""
ItemStore - persistence for scored items, keyed by URL within a collection.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from core.entities import ScoredItem
from services.database import Database

logger = logging.getLogger(__name__)


class ItemPersistence(Protocol):
    async def clear_all_ranks(self) -> None:
        ...

    async def upsert_by_url(self, item: ScoredItem) -> Dict[str, Any]:
        ...


def _row_to_record(row) -> Dict[str, Any]:
    record = dict(row)
    record["payload"] = json.loads(record["payload"])
    return record


class ItemStore:
    """
    One collection of curated items (for example the newsletter articles or
    the system design resources) inside the shared database.
    """

    def __init__(self, db: Database, collection: str):
        self.db = db
        self.collection = collection

    async def init(self) -> None:
        await self.db.init_tables()

    async def clear_all_ranks(self) -> None:
        """Unset the rank of every previously ranked record in this collection."""
        cleared = await self.db.execute(
            "UPDATE curated_items SET rank = NULL WHERE collection = ? AND rank IS NOT NULL",
            (self.collection,),
        )
        logger.info(f"Cleared {cleared} stale ranks in {self.collection}")

    async def upsert_by_url(self, item: ScoredItem) -> Dict[str, Any]:
        """
        Insert or update the record for ``item.url``. Re-running with the same
        item leaves exactly one record.
        """
        record = item.to_record()
        now = datetime.now(timezone.utc).isoformat()

        async with self.db.connect() as conn:
            await conn.execute(
                """
                INSERT INTO curated_items
                (collection, url, title, description, source, kind, score, reasoning,
                 category, difficulty, rank, payload, scraped_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(collection, url) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    source = excluded.source,
                    kind = excluded.kind,
                    score = excluded.score,
                    reasoning = excluded.reasoning,
                    category = excluded.category,
                    difficulty = excluded.difficulty,
                    rank = COALESCE(excluded.rank, curated_items.rank),
                    payload = excluded.payload,
                    scraped_at = excluded.scraped_at,
                    updated_at = excluded.updated_at
                """,
                (
                    self.collection,
                    item.url,
                    item.title,
                    item.item.description,
                    item.source,
                    item.item.kind,
                    item.score,
                    item.reasoning,
                    item.category,
                    item.difficulty,
                    item.rank,
                    json.dumps(record),
                    record["scraped_at"],
                    now,
                ),
            )
            await conn.commit()

            cursor = await conn.execute(
                "SELECT * FROM curated_items WHERE collection = ? AND url = ?",
                (self.collection, item.url),
            )
            row = await cursor.fetchone()

        return _row_to_record(row)

    async def get_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        row = await self.db.fetchone(
            "SELECT * FROM curated_items WHERE collection = ? AND url = ?",
            (self.collection, url),
        )
        return _row_to_record(row) if row else None

    async def count(self) -> int:
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM curated_items WHERE collection = ?",
            (self.collection,),
        )
        return row[0]

    async def ranked_items(self) -> List[Dict[str, Any]]:
        rows = await self.db.fetchall(
            """SELECT * FROM curated_items
               WHERE collection = ? AND rank IS NOT NULL
               ORDER BY rank""",
            (self.collection,),
        )
        return [_row_to_record(row) for row in rows]
