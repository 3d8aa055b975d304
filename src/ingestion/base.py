"""
Base classes for Ingestion
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 10.0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Diagram(BaseModel):
    """An illustration referenced by a guide section."""
    model_config = ConfigDict(frozen=True)

    url: str
    description: str = "Diagram"
    source: str = "github"


class RawItem(BaseModel):
    """
    Normalized, unscored content item. Every adapter produces this shape.
    """
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    description: str = ""
    source: str
    scraped_at: datetime = Field(default_factory=utcnow)
    kind: str = "article"  # article, discussion, video, guide

    upvotes: Optional[int] = None
    comment_count: Optional[int] = None
    tags: List[str] = []
    topics: List[str] = []
    duration_minutes: Optional[int] = None
    has_visuals: bool = False
    thumbnail: Optional[str] = None
    published_at: Optional[str] = None
    diagrams: List[Diagram] = []


@dataclass(frozen=True)
class AdapterError:
    source: str
    message: str


@dataclass(frozen=True)
class AdapterResult:
    """
    Either the items one adapter produced or the reason it produced none.
    """
    source: str
    items: List[RawItem] = field(default_factory=list)
    error: Optional[AdapterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def items_or_empty(self) -> List[RawItem]:
        return list(self.items) if self.ok else []


class SourceAdapter(ABC):
    """
    Base interface for all ingestion sources.

    Subclasses implement ``_fetch``; callers use ``fetch``, which never raises.
    """

    name: str = "source"

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            transport=self.transport,
            **kwargs,
        )

    async def fetch(self) -> AdapterResult:
        try:
            items = await self._fetch()
        except Exception as e:
            logger.warning(f"Source {self.name} failed: {type(e).__name__}: {e}")
            return AdapterResult(
                source=self.name,
                error=AdapterError(source=self.name, message=str(e) or type(e).__name__),
            )

        logger.info(f"Source {self.name} returned {len(items)} items")
        return AdapterResult(source=self.name, items=items)

    @abstractmethod
    async def _fetch(self) -> List[RawItem]:
        """
        Fetch and normalize items. May raise; ``fetch`` converts failures.
        """
        raise NotImplementedError
