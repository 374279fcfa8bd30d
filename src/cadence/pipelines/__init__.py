"""Pipelines orchestrating storage and the rollup engine."""

from .rollup_pipeline import RollupPipeline, RollupPipelineConfig, create_rollup_pipeline

__all__ = [
    "RollupPipeline",
    "RollupPipelineConfig",
    "create_rollup_pipeline",
]
