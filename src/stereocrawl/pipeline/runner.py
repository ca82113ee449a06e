"""
Crawl Pipeline Assembly

Builds the stage sequence for a configuration and runs it. Every collaborator
(scraper, resolver registry, downloader, processor, snapshot store) can be
injected, which keeps the whole crawl runnable without network or Reddit
credentials.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import requests

from stereocrawl.core.config.models import AppConfig
from stereocrawl.core.pipeline import PipelineContext, PipelineExecutor, ExecutionMetrics
from stereocrawl.core.state import PostStore
from stereocrawl.downloader import DownloadCache, MediaDownloader
from stereocrawl.models import ProcessedPost, SkipRecord, accepted_only
from stereocrawl.pipeline.stages import (
    DiscoveryStage, ResolutionStage, DownloadStage, ProcessingStage, SnapshotStage, FanOutPolicy
)
from stereocrawl.processing import ImageProcessor, StereoImageProcessor
from stereocrawl.resolvers import ResolverRegistry, create_default_registry
from stereocrawl.scrapers import PrawScraper


logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """
    Summary of one crawl.

    Attributes:
        discovered: Posts produced by discovery (or loaded on resume)
        resolved: Posts after resolution and fan-out
        downloaded: Posts whose image is in the cache
        cache_hits: Downloads served from the cache
        accepted: Processed posts in discovery order (empty without processing)
        skipped: One record per dropped post
        processing_ran: Whether the processing and snapshot stages ran
        snapshot_path: Accepted snapshot written by this run, if any
        metrics: Executor metrics
    """
    discovered: int = 0
    resolved: int = 0
    downloaded: int = 0
    cache_hits: int = 0
    accepted: List[ProcessedPost] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)
    processing_ran: bool = True
    snapshot_path: Optional[Path] = None
    metrics: Optional[ExecutionMetrics] = None

    @property
    def unsupported(self) -> List[SkipRecord]:
        return [record for record in self.skipped if record.unsupported]

    @property
    def failures(self) -> List[SkipRecord]:
        return [record for record in self.skipped if not record.unsupported]


def build_pipeline(
    config: AppConfig,
    scraper: Optional[PrawScraper] = None,
    registry: Optional[ResolverRegistry] = None,
    downloader: Optional[MediaDownloader] = None,
    processor: Optional[ImageProcessor] = None,
    store: Optional[PostStore] = None
) -> PipelineExecutor:
    """
    Assemble the crawl stages for ``config``.

    Missing collaborators are built from the configuration; the default
    resolver registry and downloader share one HTTP session. With
    ``pipeline.run_processing`` disabled the run stops after download and no
    accepted snapshot is written.

    Returns:
        A PipelineExecutor that stops at the first failing stage
    """
    store = store or PostStore(indent=config.output.indent)

    session = None
    if registry is None or downloader is None:
        session = requests.Session()
        session.headers['User-Agent'] = config.download.user_agent

    if registry is None:
        registry = create_default_registry(
            session=session,
            timeout=config.download.timeout,
            user_agent=config.download.user_agent
        )
    if downloader is None:
        download = config.download
        downloader = MediaDownloader(
            DownloadCache(download.directory),
            session=session,
            timeout=download.timeout,
            chunk_size=download.chunk_size,
            user_agent=download.user_agent,
            sleep_interval=download.sleep_interval
        )

    stages = [
        DiscoveryStage(scraper=scraper, store=store),
        ResolutionStage(registry=registry, fan_out=FanOutPolicy(config.pipeline.fan_out)),
        DownloadStage(downloader=downloader),
    ]
    if config.pipeline.run_processing:
        stages.append(ProcessingStage(processor=processor or StereoImageProcessor(config.processing)))
        stages.append(SnapshotStage(store=store))

    return PipelineExecutor(stages=stages)


async def run_pipeline(config: AppConfig, **collaborators) -> RunReport:
    """
    Run one crawl and summarise it.

    Args:
        config: Application configuration
        **collaborators: Passed to :func:`build_pipeline`

    Returns:
        RunReport for the completed run

    Raises:
        StereoCrawlError: If discovery, the resume snapshot, or the accepted
            snapshot write fails
    """
    executor = build_pipeline(config, **collaborators)
    context = PipelineContext(config=config)

    logger.debug(f"Running stages: {', '.join(executor.get_stage_names())}")
    metrics = await executor.execute(context)

    results = context.stage_results
    snapshot_path = context.get_metadata('snapshot_path')

    report = RunReport(
        discovered=context.get_metadata('discovered_count', 0),
        resolved=_count(results, 'resolution', 'resolved_count'),
        downloaded=_count(results, 'download', 'downloaded_count'),
        cache_hits=context.get_metadata('cache_hits', 0),
        accepted=accepted_only(context.posts) if config.pipeline.run_processing else [],
        skipped=list(context.skipped),
        processing_ran=config.pipeline.run_processing,
        snapshot_path=Path(snapshot_path) if snapshot_path else None,
        metrics=metrics
    )

    logger.info(
        f"Run finished: {report.discovered} discovered, {report.resolved} resolved, "
        f"{report.downloaded} downloaded, {len(report.accepted)} accepted, "
        f"{len(report.skipped)} skipped"
    )
    return report


def _count(results, stage_name: str, key: str) -> int:
    result = results.get(stage_name)
    if result is None:
        return 0
    return result.get_data(key, 0)
