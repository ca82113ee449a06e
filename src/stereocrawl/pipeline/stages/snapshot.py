"""
Snapshot Pipeline Stage

Writes the accepted set to the output snapshot, keeping discovery order.
"""

import asyncio
import time
from typing import Optional

from stereocrawl.core.pipeline.interfaces import PipelineStage, PipelineContext, PipelineResult
from stereocrawl.core.state import PostStore
from stereocrawl.models import SceneCollection, accepted_only


class SnapshotStage(PipelineStage):
    """
    Pipeline stage persisting accepted posts.

    Only ProcessedPost values are written. A failed write raises a
    non-recoverable SnapshotError: the run produced nothing durable.
    """

    def __init__(self, store: Optional[PostStore] = None):
        super().__init__("snapshot")
        self.store = store

    async def process(self, context: PipelineContext) -> PipelineResult:
        result = PipelineResult(stage_name=self.name)
        start_time = time.time()

        config = context.config
        store = self.store or PostStore(indent=config.output.indent)
        path = config.accepted_snapshot_path()

        accepted = accepted_only(context.posts)
        written = await asyncio.to_thread(store.save, SceneCollection(list(accepted)), path)

        context.set_metadata('snapshot_path', str(written))
        result.processed_count = len(accepted)
        result.set_data('snapshot_path', str(written))
        result.execution_time = time.time() - start_time

        self.logger.info(f"Saved {len(accepted)} accepted post(s) to {written}")
        return result
