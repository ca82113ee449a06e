"""
Reddit Gallery Resolver

Handles reddit.com gallery links by reading the post's public JSON.
"""

import html
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .base import BaseResolver, ResolverError
from .direct import IMAGE_EXTENSIONS
from stereocrawl.utils import url_host, url_extension


GALLERY_PATH = re.compile(r'^/gallery/([A-Za-z0-9]+)/?$')
COMMENTS_PATH = re.compile(r'^(?:/r/[^/]+)?/comments/([A-Za-z0-9]+)(?:/.*)?$')

MIME_EXTENSIONS = {
    'image/jpg': 'jpg',
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
}


class RedditGalleryResolver(BaseResolver):
    """
    Resolver for reddit.com gallery and comment-page links.

    ``/gallery/<id>`` and ``/r/<sub>/comments/<id>/...`` both load
    ``https://www.reddit.com/comments/<id>.json``. Gallery posts yield one
    ``https://i.redd.it/<media_id>.<ext>`` per item in gallery order; other
    posts yield their own link when it is a direct image.
    """

    name = "reddit"
    hosts = {'www.reddit.com', 'reddit.com', 'old.reddit.com'}

    def resolve(self, url: str) -> List[str]:
        post_id = self.post_id(url)
        if post_id is None:
            self.logger.debug(f"Not a gallery or comments link: {url}")
            return []

        response = self.fetch(f"https://www.reddit.com/comments/{post_id}.json", accept="application/json")
        try:
            payload = response.json()
        except ValueError as e:
            raise ResolverError(f"Invalid JSON for post {post_id}", url=url, resolver=self.name, cause=e)

        post = self._post_data(payload)
        if post is None:
            raise ResolverError(f"Post {post_id} not found in response", url=url, resolver=self.name)

        if post.get('gallery_data'):
            return self.gallery_urls(post)

        link = html.unescape(post.get('url_overridden_by_dest') or post.get('url') or '')
        if url_host(link) in ('i.redd.it', 'i.imgur.com') and url_extension(link) in IMAGE_EXTENSIONS:
            return [link]
        return []

    @staticmethod
    def post_id(url: str) -> Optional[str]:
        path = urlparse(url.strip()).path or ""
        for pattern in (GALLERY_PATH, COMMENTS_PATH):
            match = pattern.match(path)
            if match:
                return match.group(1)
        return None

    @staticmethod
    def _post_data(payload: Any) -> Optional[Dict[str, Any]]:
        """Dig the submission out of a comments listing response."""
        try:
            listing = payload[0] if isinstance(payload, list) else payload
            return listing['data']['children'][0]['data']
        except (KeyError, IndexError, TypeError):
            return None

    def gallery_urls(self, post: Dict[str, Any]) -> List[str]:
        """
        Build direct image URLs for a gallery post, in gallery order.

        Items whose media entry is missing, failed processing, or is not an
        image are skipped.
        """
        items = (post.get('gallery_data') or {}).get('items') or []
        metadata = post.get('media_metadata') or {}

        urls: List[str] = []
        for item in items:
            media_id = item.get('media_id') if isinstance(item, dict) else None
            if not media_id:
                continue
            media = metadata.get(media_id) or {}
            if media.get('status', 'valid') != 'valid':
                self.logger.debug(f"Skipping gallery item {media_id}: status {media.get('status')}")
                continue
            ext = MIME_EXTENSIONS.get((media.get('m') or 'image/jpg').lower())
            if ext is None:
                self.logger.debug(f"Skipping gallery item {media_id}: type {media.get('m')}")
                continue
            url = f"https://i.redd.it/{media_id}.{ext}"
            if url not in urls:
                urls.append(url)
        return urls
