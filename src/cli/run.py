import asyncio
import json
import logging
import time
from dataclasses import asdict
from typing import List, Optional, Sequence

import click

from core.entities import RunSummary
from services.config import load_config
from services.database import Database
from services.llm import OllamaClient
from services.logging import setup_logging
from workflows.pipeline_factory import create_pipelines_from_config


async def main(
    pipeline_names: Optional[Sequence[str]] = None,
    config_path: Optional[str] = None,
) -> List[RunSummary]:
    start_time = time.perf_counter()

    config = load_config(config_path)
    setup_logging(config.LOG_LEVEL)
    logger = logging.getLogger(__name__)

    logger.info("Starting curation run")

    # ----------------------------
    # Initialize shared services
    # ----------------------------
    llm = OllamaClient(
        base_url=config.OLLAMA_BASE_URL,
        model=config.OLLAMA_MODEL,
        temperature=config.OLLAMA_TEMPERATURE,
        timeout=config.OLLAMA_TIMEOUT,
    )
    if not await llm.health_check():
        logger.warning(f"Judge model {config.OLLAMA_MODEL} is unavailable, batches will fall back to the default score")

    db = Database(config.DATABASE_PATH)
    await db.init_tables()

    pipelines = create_pipelines_from_config(config, llm, db, only=pipeline_names or None)
    logger.info(f"Created {len(pipelines)} pipelines from config")

    # ----------------------------
    # Execute pipelines
    # ----------------------------
    summaries = []
    for pipeline in pipelines:
        try:
            logger.info(f"Running pipeline: {pipeline.name}")
            summary = await pipeline.run()
        except Exception as e:
            logger.exception(f"Pipeline failed: {pipeline.name}: {e}")
            continue

        summaries.append(summary)
        click.echo(json.dumps(asdict(summary)))

    logger.info("Curation run completed")
    end_time = time.perf_counter()
    logger.info(f"Total time: {end_time - start_time}")
    return summaries


@click.command()
@click.option(
    "--pipeline",
    "pipeline_names",
    multiple=True,
    help="Pipeline to run (repeatable). Defaults to every enabled pipeline.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to config.yml",
)
def cli(pipeline_names: Sequence[str], config_path: Optional[str]) -> None:
    """Run the content curation pipelines."""
    asyncio.run(main(pipeline_names, config_path))


if __name__ == "__main__":
    cli()
