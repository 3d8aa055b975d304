"""
Workflows module - Pipeline orchestration for content curation.
"""
from workflows.base import CurationWorkflow
from workflows.pipeline_factory import CurationPipeline, create_pipeline, create_pipelines_from_config

__all__ = [
    "CurationWorkflow",
    "CurationPipeline",
    "create_pipeline",
    "create_pipelines_from_config",
]
