"""
Source Factory - Creates ingestion adapters from configuration.
"""
import logging
from typing import Any, Dict, List, Optional

from ingestion.base import SourceAdapter
from ingestion.devto import DevToAdapter
from ingestion.github import ByteByteGoAdapter, SystemDesignPrimerAdapter
from ingestion.hackernews import HackerNewsAdapter
from ingestion.reddit import RedditAdapter
from ingestion.rss import Feed, RSSAdapter
from ingestion.youtube import Channel, YouTubeChannelAdapter
from services.config import PipelineConfig, SourceConfig, get_enabled_sources

logger = logging.getLogger(__name__)


def _common_kwargs(source_config: SourceConfig) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    if source_config.timeout is not None:
        kwargs["timeout"] = source_config.timeout
    return kwargs


def create_source_adapters(
    source_config: SourceConfig,
    youtube_api_key: Optional[str] = None,
) -> List[SourceAdapter]:
    """
    Create the adapter(s) for one configured source. A YouTube source yields
    one adapter per channel; every other type yields exactly one.

    Raises:
        ValueError: If the source type is unknown or a required field is missing
    """
    source_type = source_config.type.lower()
    kwargs = _common_kwargs(source_config)

    if source_type == "rss":
        if not source_config.feeds:
            raise ValueError("RSS source requires 'feeds' field")
        if source_config.max_items is not None:
            kwargs["max_items"] = source_config.max_items
        return [
            RSSAdapter(
                feeds=[Feed(url=f.url, source=f.source, name=f.name) for f in source_config.feeds],
                source_name=source_config.name or "rss",
                keywords=source_config.keywords,
                extract_resource_topics=source_config.extract_topics,
                **kwargs,
            )
        ]

    if source_type == "hackernews":
        return [HackerNewsAdapter(keywords=source_config.keywords, **kwargs)]

    if source_type == "reddit":
        if not source_config.subreddit:
            raise ValueError("Reddit source requires 'subreddit' field")
        return [RedditAdapter(source_config.subreddit, keywords=source_config.keywords, **kwargs)]

    if source_type == "devto":
        return [DevToAdapter(keywords=source_config.keywords, **kwargs)]

    if source_type == "github_primer":
        return [SystemDesignPrimerAdapter(**kwargs)]

    if source_type == "bytebytego":
        return [ByteByteGoAdapter(**kwargs)]

    if source_type == "youtube":
        if not source_config.channels:
            raise ValueError("YouTube source requires 'channels' field")
        return [
            YouTubeChannelAdapter(
                Channel(
                    channel_id=c.channel_id,
                    source=c.source,
                    query=c.query,
                    max_results=c.max_results,
                    order=c.order,
                ),
                api_key=youtube_api_key,
                **kwargs,
            )
            for c in source_config.channels
        ]

    raise ValueError(f"Unknown source type: {source_type}")


def create_adapters_from_config(
    pipeline_config: PipelineConfig,
    youtube_api_key: Optional[str] = None,
) -> List[SourceAdapter]:
    """
    Create all enabled source adapters for a pipeline. Sources that cannot be
    built are logged and skipped.
    """
    adapters: List[SourceAdapter] = []

    for source_config in get_enabled_sources(pipeline_config):
        try:
            created = create_source_adapters(source_config, youtube_api_key)
            adapters.extend(created)
            logger.info(
                f"Created {source_config.type} source: "
                f"{', '.join(a.name for a in created)}"
            )
        except Exception as e:
            logger.error(f"Failed to create adapter for {source_config.type}: {e}")

    return adapters
