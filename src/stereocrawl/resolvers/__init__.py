"""
Link Resolvers

Per-host strategies that turn a post's link into direct image URLs.
"""

from stereocrawl.resolvers.base import (
    BaseResolver,
    ResolverRegistry,
    ResolverError,
    create_default_registry
)
from stereocrawl.resolvers.direct import DirectImageResolver
from stereocrawl.resolvers.imgur import ImgurResolver
from stereocrawl.resolvers.reddit import RedditGalleryResolver

__all__ = [
    'BaseResolver',
    'ResolverRegistry',
    'ResolverError',
    'create_default_registry',
    'DirectImageResolver',
    'ImgurResolver',
    'RedditGalleryResolver',
]
