"""
Module to contain base class for result delivery channels
"""
from abc import ABC, abstractmethod

from core.entities import RankedResult, RunSummary


class DeliveryChannel(ABC):
    """
    Base interface for everything that receives a finished curation run.
    """

    name: str

    @abstractmethod
    async def deliver(
        self,
        *,
        pipeline: str,
        run_date: str,
        ranked: RankedResult,
        summary: RunSummary,
    ) -> None:
        """
        Deliver the curated results.
        Must raise exceptions on failure (handled upstream).
        """
        raise NotImplementedError
