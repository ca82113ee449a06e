"""
Crawl Pipeline

The concrete discovery, resolution, download, processing and snapshot stages,
plus helpers that assemble and run them for a configuration.
"""

from stereocrawl.core.concurrency import run_bounded
from stereocrawl.pipeline.stages import (
    DiscoveryStage,
    ResolutionStage,
    DownloadStage,
    ProcessingStage,
    SnapshotStage,
    FanOutPolicy,
)
from stereocrawl.pipeline.runner import RunReport, build_pipeline, run_pipeline

__all__ = [
    'DiscoveryStage',
    'ResolutionStage',
    'DownloadStage',
    'ProcessingStage',
    'SnapshotStage',
    'FanOutPolicy',
    'RunReport',
    'build_pipeline',
    'run_pipeline',
    'run_bounded',
]
