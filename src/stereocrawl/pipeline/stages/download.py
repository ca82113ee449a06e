"""
Download Pipeline Stage

Makes sure every resolved image is present in the download cache. Cache hits
skip network I/O; failed transfers drop the post for this run only, leaving
nothing in the cache so the next run retries it.
"""

import time
from pathlib import Path
from typing import List, Optional, Tuple

from stereocrawl.core.exceptions import StereoCrawlError
from stereocrawl.core.pipeline.interfaces import PipelineContext, PipelineResult
from stereocrawl.downloader import DownloadCache, MediaDownloader
from stereocrawl.models import DownloadedPost, ResolvedPost
from stereocrawl.pipeline.stages.base import PerPostStage
from stereocrawl.utils import url_host


class DownloadStage(PerPostStage):
    """Pipeline stage fetching resolved images into the cache."""

    def __init__(self, downloader: Optional[MediaDownloader] = None):
        super().__init__("download")
        self.downloader = downloader

    def _ensure_downloader(self, context: PipelineContext) -> MediaDownloader:
        if self.downloader is None:
            download = context.config.download
            self.downloader = MediaDownloader(
                DownloadCache(download.directory),
                timeout=download.timeout,
                chunk_size=download.chunk_size,
                user_agent=download.user_agent,
                sleep_interval=download.sleep_interval
            )
        return self.downloader

    async def process(self, context: PipelineContext) -> PipelineResult:
        result = PipelineResult(stage_name=self.name)
        start_time = time.time()
        downloader = self._ensure_downloader(context)

        # Unresolved posts never reach the fetcher.
        posts = [post for post in context.posts if isinstance(post, ResolvedPost)]
        self.logger.info(f"Downloading {len(posts)} image(s)")

        def fetch(post: ResolvedPost) -> Tuple[Path, bool]:
            return downloader.fetch(post.image_url)

        outcomes = await self.run_items(context, posts, fetch)

        downloaded: List[DownloadedPost] = []
        cache_hits = 0
        for outcome in outcomes:
            post = outcome.item
            if not outcome.ok:
                error = outcome.error
                detail = error.message if isinstance(error, StereoCrawlError) else str(error)
                host = url_host(post.image_url)
                self.skip(
                    context, result, post,
                    reason=f"Error at {host}: {detail}",
                    message=f"Error at {host}: {detail} ([{post.score}] {post.title})"
                )
                continue

            local_path, from_cache = outcome.result
            if from_cache:
                cache_hits += 1
            downloaded.append(DownloadedPost.from_resolved(post, local_path, from_cache))

        context.replace_posts(downloaded)
        context.set_metadata('cache_hits', cache_hits)
        result.processed_count = len(posts)
        result.set_data('downloaded_count', len(downloaded))
        result.set_data('cache_hits', cache_hits)
        result.execution_time = time.time() - start_time

        self.logger.info(
            f"Downloaded {len(downloaded) - cache_hits} image(s), "
            f"{cache_hits} already cached, {len(posts) - len(downloaded)} failed"
        )
        return result
