"""
Pipeline Stages

Concrete stages of the crawl: discovery, link resolution, cached download,
image processing and the accepted snapshot.
"""

from stereocrawl.pipeline.stages.base import PerPostStage
from stereocrawl.pipeline.stages.discovery import DiscoveryStage
from stereocrawl.pipeline.stages.resolution import ResolutionStage, FanOutPolicy
from stereocrawl.pipeline.stages.download import DownloadStage
from stereocrawl.pipeline.stages.processing import ProcessingStage
from stereocrawl.pipeline.stages.snapshot import SnapshotStage

__all__ = [
    'PerPostStage',
    'DiscoveryStage',
    'ResolutionStage',
    'FanOutPolicy',
    'DownloadStage',
    'ProcessingStage',
    'SnapshotStage',
]
