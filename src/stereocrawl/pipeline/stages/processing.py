"""
Processing Pipeline Stage

Hands each downloaded file to the image processor. Accepted files become
ProcessedPost values with their dimensions; rejections drop the post with the
processor's reason.
"""

import time
from typing import List, Optional

from stereocrawl.core.exceptions import StereoCrawlError
from stereocrawl.core.pipeline.interfaces import PipelineContext, PipelineResult
from stereocrawl.models import DownloadedPost, ProcessedPost
from stereocrawl.pipeline.stages.base import PerPostStage
from stereocrawl.processing import ImageMetrics, ImageProcessor, StereoImageProcessor


class ProcessingStage(PerPostStage):
    """Pipeline stage validating downloaded images."""

    def __init__(self, processor: Optional[ImageProcessor] = None):
        super().__init__("processing")
        self.processor = processor

    def _ensure_processor(self, context: PipelineContext) -> ImageProcessor:
        if self.processor is None:
            config = context.config.processing if context.config else None
            self.processor = StereoImageProcessor(config)
        return self.processor

    async def process(self, context: PipelineContext) -> PipelineResult:
        result = PipelineResult(stage_name=self.name)
        start_time = time.time()
        processor = self._ensure_processor(context)

        posts = [post for post in context.posts if isinstance(post, DownloadedPost)]
        self.logger.info(f"Processing {len(posts)} image(s)")

        def validate(post: DownloadedPost) -> ImageMetrics:
            return processor.process(post.local_path)

        outcomes = await self.run_items(context, posts, validate)

        accepted: List[ProcessedPost] = []
        for outcome in outcomes:
            post = outcome.item
            if outcome.ok:
                try:
                    accepted.append(ProcessedPost.from_downloaded(
                        post, outcome.result.width, outcome.result.height
                    ))
                    continue
                except ValueError as e:
                    detail = str(e)
            else:
                error = outcome.error
                detail = error.message if isinstance(error, StereoCrawlError) else str(error)

            self.skip(
                context, result, post,
                reason=detail,
                message=f"Error processing {post.local_path}: {detail} ({post.describe()})"
            )

        context.replace_posts(accepted)
        result.processed_count = len(posts)
        result.set_data('accepted_count', len(accepted))
        result.execution_time = time.time() - start_time

        self.logger.info(f"Accepted {len(accepted)} of {len(posts)} image(s)")
        return result
