"""
Pipeline Factory - Creates curation pipelines from configuration.
"""
import logging
from datetime import date
from typing import List, Optional, Sequence

from core.entities import RankedResult, RunSummary
from delivery.base import DeliveryChannel
from delivery.file_delivery import FileDelivery
from ingestion.base import SourceAdapter
from ingestion.source_factory import create_adapters_from_config
from processing.aggregator import run_all
from processing.evaluator import BatchScorer
from processing.ranker import rank_items
from services.config import Config, PipelineConfig
from services.database import Database
from services.item_store import ItemPersistence, ItemStore
from services.llm import JudgeClient
from workflows.base import CurationWorkflow

logger = logging.getLogger(__name__)


class CurationPipeline(CurationWorkflow):
    """
    Config-independent engine: every collaborator is passed in.
    """

    def __init__(
        self,
        *,
        name: str,
        adapters: Sequence[SourceAdapter],
        scorer: BatchScorer,
        store: ItemPersistence,
        top_n: int,
        min_upvotes: Optional[int] = None,
        deliveries: Sequence[DeliveryChannel] = (),
    ):
        self.name = name
        self.adapters = list(adapters)
        self.scorer = scorer
        self.store = store
        self.top_n = top_n
        self.min_upvotes = min_upvotes
        self.deliveries = list(deliveries)

    async def run(self) -> RunSummary:
        items = await run_all(self.adapters, min_upvotes=self.min_upvotes)
        logger.info(f"[{self.name}] Fetched {len(items)} items from {len(self.adapters)} sources")

        if not items:
            logger.info(f"[{self.name}] Nothing to score, skipping run")
            return RunSummary.nothing_to_do(self.name)

        scoring = await self.scorer.score_all(items)
        logger.info(
            f"[{self.name}] Scored {len(scoring.items)} items "
            f"({scoring.fallback_batches} batches used the fallback score)"
        )

        ranked = rank_items(scoring.items, self.top_n)
        await self._persist(ranked)

        summary = RunSummary(
            pipeline=self.name,
            total_scraped=len(items),
            total_scored=len(scoring.items),
            ranked_count=len(ranked.featured),
            fallback_batches=scoring.fallback_batches,
        )

        await self._deliver(ranked, summary)
        return summary

    async def _persist(self, ranked: RankedResult) -> None:
        # Ranks from the previous run must not survive into this one
        await self.store.clear_all_ranks()

        for item in ranked.all_items:
            await self.store.upsert_by_url(item)

        logger.info(f"[{self.name}] Saved {len(ranked.all_items)} items ({len(ranked.featured)} ranked)")

    async def _deliver(self, ranked: RankedResult, summary: RunSummary) -> None:
        run_date = date.today().isoformat()
        for delivery in self.deliveries:
            try:
                await delivery.deliver(
                    pipeline=self.name,
                    run_date=run_date,
                    ranked=ranked,
                    summary=summary,
                )
                logger.info(f"[{self.name}] Delivered results via {delivery.name}")
            except Exception as e:
                logger.error(f"[{self.name}] Delivery via {delivery.name} failed: {e}")


def create_pipeline(
    pipeline_config: PipelineConfig,
    config: Config,
    llm: JudgeClient,
    db: Database,
) -> CurationPipeline:
    """Build one pipeline with its adapters, scorer, store and file output."""
    scoring = config.scoring

    scorer = BatchScorer(
        llm,
        pipeline_config.profile,
        batch_size=scoring.batch_size,
        retry_attempts=scoring.retry_attempts,
        retry_base_delay=scoring.retry_base_delay,
        retry_jitter=scoring.retry_jitter,
        batch_delay=scoring.batch_delay,
        fallback_score=scoring.fallback_score,
    )

    return CurationPipeline(
        name=pipeline_config.name,
        adapters=create_adapters_from_config(pipeline_config, config.YOUTUBE_API_KEY),
        scorer=scorer,
        store=ItemStore(db, collection=pipeline_config.name),
        top_n=pipeline_config.top_n,
        min_upvotes=pipeline_config.min_upvotes,
        deliveries=[FileDelivery(config.OUTPUT_DIR, pipeline_config.output_file)],
    )


def create_pipelines_from_config(
    config: Config,
    llm: JudgeClient,
    db: Database,
    only: Optional[Sequence[str]] = None,
) -> List[CurationPipeline]:
    """
    Factory function to create pipeline instances from configuration.

    Args:
        config: Loaded application configuration
        llm: Shared judge client
        db: Shared database
        only: Restrict to these pipeline names

    Returns:
        List of configured CurationPipeline instances
    """
    pipelines = []

    for pipeline_config in config.pipelines:
        if only and pipeline_config.name not in only:
            continue
        if not pipeline_config.enabled:
            logger.info(f"Pipeline '{pipeline_config.name}' is disabled, skipping")
            continue

        try:
            pipelines.append(create_pipeline(pipeline_config, config, llm, db))
            logger.info(f"Created pipeline: {pipeline_config.name}")
        except Exception as e:
            logger.error(f"Failed to create pipeline '{pipeline_config.name}': {e}")

    return pipelines
