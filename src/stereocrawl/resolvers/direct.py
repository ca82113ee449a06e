"""
Direct Image Resolver

Handles links that already point at an image file on a media host.
"""

import html
from typing import List

from .base import BaseResolver
from stereocrawl.utils import url_extension


IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp', '.tif', '.tiff'}


class DirectImageResolver(BaseResolver):
    """
    Resolver for direct media-host links such as ``https://i.redd.it/abc.jpg``.

    No network access is needed; the link is returned unchanged when its path
    carries an image extension. Video-like extensions (``.gifv``, ``.mp4``)
    and extension-less paths yield nothing.
    """

    name = "direct"
    hosts = {'i.redd.it', 'i.imgur.com', 'preview.redd.it'}

    def resolve(self, url: str) -> List[str]:
        # Reddit hands out preview links HTML-escaped
        url = html.unescape(url.strip())
        extension = url_extension(url)
        if extension not in IMAGE_EXTENSIONS:
            self.logger.debug(f"Not an image path ({extension or 'no extension'}): {url}")
            return []
        return [url]
