"""
Contains base class for curation pipelines
"""
from abc import ABC, abstractmethod

from core.entities import RunSummary


class CurationWorkflow(ABC):
    """
    Orchestrates aggregation → scoring → ranking → persistence
    for one curated collection.
    """

    name: str

    @abstractmethod
    async def run(self) -> RunSummary:
        """
        Execute the pipeline and report what happened.
        Expected degenerate cases (no items, scoring outage) are reported in
        the summary; persistence errors propagate.
        """
        raise NotImplementedError
