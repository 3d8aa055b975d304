"""
Loads and handles config from config.yml
Secrets (YOUTUBE_API_KEY) and deployment overrides are loaded from .env / the environment
"""
import os
import logging
from typing import List, Dict, Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from core.schemas import SCORE_MAX, SCORE_MIN

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("rss", "hackernews", "reddit", "devto", "github_primer", "bytebytego", "youtube")


class FeedConfig(BaseModel):
    """One RSS feed."""
    url: str
    source: str
    name: Optional[str] = None


class ChannelConfig(BaseModel):
    """One YouTube channel search."""
    channel_id: str
    source: str
    query: Optional[str] = None
    max_results: int = 10
    order: str = "relevance"


class SourceConfig(BaseModel):
    """Configuration for a single ingestion source."""
    type: str  # one of SOURCE_TYPES
    enabled: bool = True
    name: Optional[str] = None
    keywords: Optional[List[str]] = None  # None: adapter default, []: no filtering
    timeout: Optional[float] = None
    max_items: Optional[int] = None  # For rss, per feed
    feeds: Optional[List[FeedConfig]] = None  # For rss
    extract_topics: bool = False  # For rss
    subreddit: Optional[str] = None  # For reddit
    channels: Optional[List[ChannelConfig]] = None  # For youtube


class ScoringConfig(BaseModel):
    """Batching, retry and fallback settings for the LLM judge."""
    batch_size: int = Field(20, ge=1)
    retry_attempts: int = Field(3, ge=1)
    retry_base_delay: float = Field(2.0, ge=0)
    retry_jitter: float = Field(1.0, ge=0)
    batch_delay: float = Field(15.0, ge=0)
    fallback_score: float = Field(5, ge=SCORE_MIN, le=SCORE_MAX)


class PipelineConfig(BaseModel):
    """
    Complete configuration for a single curation pipeline.
    """
    name: str  # Unique pipeline name, also the storage collection
    enabled: bool = True
    profile_name: str  # Reference to a profile in ALL_PROFILES
    sources: List[SourceConfig] = []
    min_upvotes: Optional[int] = None
    top_n: int = Field(12, ge=0)
    output_file: Optional[str] = None

    @property
    def profile(self):
        from core.profiles import ALL_PROFILES
        if self.profile_name not in ALL_PROFILES:
            raise ValueError(f"Unknown profile: {self.profile_name}")
        return ALL_PROFILES[self.profile_name]


class Config(BaseModel):
    # Core
    DATABASE_PATH: str
    OUTPUT_DIR: str = "output"
    LOG_LEVEL: str = "INFO"

    # Ollama
    OLLAMA_BASE_URL: str
    OLLAMA_MODEL: str
    OLLAMA_TIMEOUT: float = 300.0
    OLLAMA_TEMPERATURE: float = 0.7

    # YouTube
    YOUTUBE_API_KEY: Optional[str] = None

    scoring: ScoringConfig = ScoringConfig()
    pipelines: List[PipelineConfig] = []


def _bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path(path: Optional[str] = None) -> str:
    """Resolve config.yml: explicit path, CURATOR_CONFIG, cwd, then project root."""
    if path:
        return path

    env_path = os.getenv("CURATOR_CONFIG")
    if env_path:
        return env_path

    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    raise FileNotFoundError("Cannot find resources/config.yml")


def _parse_source_config(data: Dict[str, Any]) -> SourceConfig:
    source_type = str(data.get("type", "")).lower()
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type: {data.get('type')!r}")
    return SourceConfig(**{**data, "type": source_type})


def _parse_pipeline_config(name: str, data: Dict[str, Any]) -> PipelineConfig:
    """Parse a single pipeline configuration from YAML data."""
    sources = []
    for src in data.get("sources", []):
        try:
            sources.append(_parse_source_config(src))
        except Exception as e:
            logger.error(f"Pipeline '{name}': skipping invalid source {src!r}: {e}")

    return PipelineConfig(
        name=name,
        enabled=_bool(data.get("enabled", True)),
        profile_name=data.get("profile", name.upper()),
        sources=sources,
        min_upvotes=data.get("min_upvotes"),
        top_n=data.get("top_n", 12),
        output_file=data.get("output_file"),
    )


def _scoring_from_env(scoring: Dict[str, Any]) -> Dict[str, Any]:
    overrides = {
        "SCORING_BATCH_SIZE": ("batch_size", int),
        "SCORING_BATCH_DELAY": ("batch_delay", float),
        "SCORING_RETRY_ATTEMPTS": ("retry_attempts", int),
        "SCORING_RETRY_BASE_DELAY": ("retry_base_delay", float),
    }
    merged = dict(scoring)
    for env_name, (field_name, cast) in overrides.items():
        value = os.getenv(env_name)
        if value:
            merged[field_name] = cast(value)
    return merged


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml, then apply environment overrides."""
    load_dotenv()

    config_path = _get_config_path(path)

    with open(config_path, 'r') as file:
        config = yaml.safe_load(file) or {}

    pipelines = []
    for pipeline_name, pipeline_data in (config.get("pipelines") or {}).items():
        try:
            pipelines.append(_parse_pipeline_config(pipeline_name, pipeline_data or {}))
        except Exception as e:
            logger.error(f"Failed to parse pipeline '{pipeline_name}': {e}")

    return Config(
        DATABASE_PATH=os.getenv("DATABASE_PATH", config.get("DATABASE_PATH", "data/curator.db")),
        OUTPUT_DIR=os.getenv("OUTPUT_DIR", config.get("OUTPUT_DIR", "output")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", config.get("LOG_LEVEL", "INFO")),

        OLLAMA_BASE_URL=os.getenv("OLLAMA_BASE_URL", config.get("OLLAMA_BASE_URL", "http://localhost:11434")),
        OLLAMA_MODEL=os.getenv("OLLAMA_MODEL", config.get("OLLAMA_MODEL", "llama3.1:8b")),
        OLLAMA_TIMEOUT=float(config.get("OLLAMA_TIMEOUT", 300.0)),
        OLLAMA_TEMPERATURE=float(config.get("OLLAMA_TEMPERATURE", 0.7)),

        YOUTUBE_API_KEY=os.getenv("YOUTUBE_API_KEY"),

        scoring=ScoringConfig(**_scoring_from_env(config.get("scoring") or {})),
        pipelines=pipelines,
    )


def get_enabled_sources(pipeline_config: PipelineConfig) -> List[SourceConfig]:
    """Get only enabled sources from a pipeline config."""
    return [src for src in pipeline_config.sources if src.enabled]
