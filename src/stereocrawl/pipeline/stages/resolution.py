"""
Resolution Pipeline Stage

Turns each discovered post's link into direct image URLs through the resolver
registry. A link resolving to several images fans out into several posts,
each carrying the original post's title, score, permalink and creation time.
"""

import logging
import time
from enum import Enum
from typing import List, Optional

from stereocrawl.core.exceptions import StereoCrawlError
from stereocrawl.core.pipeline.interfaces import PipelineContext, PipelineResult
from stereocrawl.models import Post, ResolvedPost
from stereocrawl.pipeline.stages.base import PerPostStage
from stereocrawl.resolvers import ResolverRegistry, create_default_registry


class FanOutPolicy(str, Enum):
    """What to do with a link that resolves to more than one image."""

    ALL = "all"
    FIRST = "first"

    def apply(self, urls: List[str]) -> List[str]:
        if self is FanOutPolicy.FIRST:
            return urls[:1]
        return list(urls)


class ResolutionStage(PerPostStage):
    """
    Pipeline stage resolving post links to direct image URLs.

    Outcomes per post:
    - resolver raised: skipped with a warning naming the host
    - host has no resolver: skipped at info level as an unsupported source
    - resolver found no image: skipped at info level
    - one or more URLs: one ResolvedPost per URL kept by the fan-out policy

    Posts that are already resolved (loaded from a snapshot) pass through.
    """

    def __init__(self, registry: Optional[ResolverRegistry] = None,
                 fan_out: Optional[FanOutPolicy] = None):
        super().__init__("resolution")
        self.registry = registry or create_default_registry()
        self.fan_out = fan_out

    def _policy(self, context: PipelineContext) -> FanOutPolicy:
        if self.fan_out is not None:
            return self.fan_out
        if context.config is not None:
            return FanOutPolicy(context.config.pipeline.fan_out)
        return FanOutPolicy.ALL

    def _resolve(self, post: Post) -> List[str]:
        if isinstance(post, ResolvedPost):
            return [post.image_url]
        return self.registry.resolve(post.url)

    async def process(self, context: PipelineContext) -> PipelineResult:
        result = PipelineResult(stage_name=self.name)
        start_time = time.time()
        policy = self._policy(context)

        posts = list(context.posts)
        self.logger.info(f"Resolving {len(posts)} post(s)")

        outcomes = await self.run_items(context, posts, self._resolve)

        resolved: List[ResolvedPost] = []
        fanned_out = 0
        for outcome in outcomes:
            post = outcome.item

            if not outcome.ok:
                error = outcome.error
                detail = error.message if isinstance(error, StereoCrawlError) else str(error)
                self.skip(
                    context, result, post,
                    reason=f"Error at {post.host}: {detail}",
                    message=f"Error at {post.host}: {detail} ([{post.score}] {post.title})"
                )
                continue

            urls = policy.apply(outcome.result or [])
            if not urls:
                if self.registry.resolver_for(post.url) is None:
                    self.skip(
                        context, result, post,
                        reason="unsupported source",
                        level=logging.INFO,
                        unsupported=True,
                        message=f"Not supported domain {post.describe()}"
                    )
                else:
                    self.skip(
                        context, result, post,
                        reason="no image found",
                        level=logging.INFO,
                        message=f"No image found at {post.describe()}"
                    )
                continue

            if isinstance(post, ResolvedPost):
                resolved.append(post)
            else:
                resolved.extend(ResolvedPost.from_post(post, url) for url in urls)
                if len(urls) > 1:
                    fanned_out += 1
            self.logger.info(f"OK: [{post.score}] {post.title}")

        context.replace_posts(resolved)
        result.processed_count = len(posts)
        result.set_data('resolved_count', len(resolved))
        result.set_data('fanned_out', fanned_out)
        result.set_data('fan_out_policy', policy.value)
        result.execution_time = time.time() - start_time

        self.logger.info(f"Resolved {len(resolved)} image(s) from {len(posts)} post(s)")
        return result
