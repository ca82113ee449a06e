"""
Shared plumbing for stages that work post by post.

Per-post stages run their blocking worker through ``run_bounded`` and turn
every failure into a ``SkipRecord`` on the context; nothing raised for one
post reaches another post or the executor.
"""

import logging
from typing import Callable, List, Optional, Sequence

from stereocrawl.core.concurrency import ItemOutcome, run_bounded
from stereocrawl.core.pipeline.interfaces import PipelineStage, PipelineContext, PipelineResult
from stereocrawl.models import Post, SkipRecord


class PerPostStage(PipelineStage):
    """Base class for the resolution, download and processing stages."""

    def _max_workers(self, context: PipelineContext) -> int:
        if context.config is None:
            return 1
        return context.config.pipeline.max_workers

    def _item_timeout(self, context: PipelineContext) -> Optional[float]:
        if context.config is None:
            return None
        return context.config.pipeline.item_timeout

    async def run_items(self, context: PipelineContext, posts: Sequence[Post],
                        worker: Callable[[Post], object]) -> List[ItemOutcome]:
        """Run ``worker`` over ``posts`` with the configured pool size and timeout."""
        return await run_bounded(
            posts,
            worker,
            max_workers=self._max_workers(context),
            timeout=self._item_timeout(context)
        )

    def skip(self, context: PipelineContext, result: PipelineResult, post: Post, reason: str,
             level: int = logging.WARNING, unsupported: bool = False,
             message: Optional[str] = None) -> SkipRecord:
        """
        Record a dropped post on the context and log one diagnostic line for it.

        The log line is ``message`` when given, otherwise the record description.
        """
        record = SkipRecord(post=post, stage=self.name, reason=reason, unsupported=unsupported)
        context.add_skip(record)
        if level >= logging.WARNING:
            result.add_warning(record.describe())
        self.logger.log(level, message or record.describe())
        return record
