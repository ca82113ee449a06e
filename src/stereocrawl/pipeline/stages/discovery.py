"""
Discovery Pipeline Stage

Produces the discovered post sequence, either by querying Reddit (fresh mode)
or by loading the discovered snapshot from a previous run (resume mode).
Both failure paths are fatal. An empty result halts the run without error,
so no accepted snapshot is written.
"""

import asyncio
import time
from typing import Optional

from stereocrawl.core.exceptions import SnapshotError
from stereocrawl.core.pipeline.interfaces import PipelineStage, PipelineContext, PipelineResult
from stereocrawl.core.state import PostStore
from stereocrawl.models import SceneCollection
from stereocrawl.scrapers import PrawScraper


class DiscoveryStage(PipelineStage):
    """
    Pipeline stage that fills ``context.posts`` with discovered posts.

    In fresh mode the scraper runs and its result is written to the
    discovered snapshot so that later runs can resume from it. A failure to
    write that snapshot is only a warning; the crawl itself can continue.
    """

    def __init__(self, scraper: Optional[PrawScraper] = None, store: Optional[PostStore] = None):
        super().__init__("discovery")
        self.scraper = scraper
        self.store = store or PostStore()

    async def process(self, context: PipelineContext) -> PipelineResult:
        result = PipelineResult(stage_name=self.name)
        start_time = time.time()

        config = context.config
        mode = config.pipeline.mode if config else "fresh"
        snapshot_path = config.discovered_snapshot_path() if config else None

        if mode == "resume":
            if snapshot_path is None:
                raise SnapshotError("Resume requested without a configured snapshot path")
            collection = await asyncio.to_thread(self.store.load, snapshot_path)
            posts = list(collection)
            self.logger.info(f"Resumed {len(posts)} post(s) from {snapshot_path}")
            result.set_data('source', str(snapshot_path))
        else:
            if self.scraper is None:
                self.scraper = PrawScraper(config.discovery)
            posts = await asyncio.to_thread(self.scraper.fetch_posts)
            result.set_data('source', f"r/{self.scraper.config.subreddit}")

            if snapshot_path is not None:
                try:
                    await asyncio.to_thread(self.store.save, SceneCollection(list(posts)), snapshot_path)
                    result.set_data('snapshot_path', str(snapshot_path))
                except SnapshotError as e:
                    self.logger.warning(f"Could not save discovered posts: {e.message}")
                    result.add_warning(e.message)

        context.replace_posts(posts)
        context.set_metadata('discovered_count', len(posts))
        result.processed_count = len(posts)
        result.set_data('mode', mode)
        if not posts:
            result.add_warning("No posts discovered")
            context.halt("No posts discovered")

        result.execution_time = time.time() - start_time
        return result
