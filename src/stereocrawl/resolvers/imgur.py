"""
Imgur Resolver

Handles imgur.com landing pages: single images, albums and galleries.
"""

import re
from typing import List
from urllib.parse import urlparse, urljoin

from bs4 import BeautifulSoup

from .base import BaseResolver, ResolverError
from stereocrawl.utils import url_extension


IMAGE_ID_PATTERN = re.compile(r'^[A-Za-z0-9]{5,}$')
# Album and gallery slugs may carry a title before the id: /gallery/title-words-AbC12
COLLECTION_PATTERN = re.compile(r'^/(a|gallery|t/[^/]+)/([A-Za-z0-9_-]+)/?$')

DIRECT_IMAGE_URL = "https://i.imgur.com/{id}{ext}"


class ImgurResolver(BaseResolver):
    """
    Resolver for imgur.com links.

    - ``imgur.com/<id>`` maps straight to ``https://i.imgur.com/<id>.jpg``
      (Imgur serves the original under any image extension), no request made.
    - ``imgur.com/a/<id>`` and ``imgur.com/gallery/<slug>`` fetch the landing
      page and collect every ``og:image`` meta tag, in page order and without
      duplicates. Each one becomes its own resolved URL.
    """

    name = "imgur"
    hosts = {'imgur.com', 'www.imgur.com', 'm.imgur.com'}

    def resolve(self, url: str) -> List[str]:
        path = urlparse(url.strip()).path or "/"

        if COLLECTION_PATTERN.match(path):
            return self._resolve_collection(url)

        segment = path.strip('/')
        if '/' in segment or not segment:
            self.logger.debug(f"Unrecognised imgur path: {path}")
            return []

        image_id, _, _ = segment.partition('.')
        if not IMAGE_ID_PATTERN.match(image_id):
            self.logger.debug(f"Not an imgur image id: {segment}")
            return []

        ext = url_extension(url) or '.jpg'
        if ext in ('.gifv', '.mp4', '.webm'):
            return []
        return [DIRECT_IMAGE_URL.format(id=image_id, ext=ext)]

    def _resolve_collection(self, url: str) -> List[str]:
        response = self.fetch(url)
        images = self.extract_og_images(response.text, base_url=url)
        if not images:
            raise ResolverError("No images found on imgur page", url=url, resolver=self.name)
        self.logger.debug(f"Imgur collection {url} expanded to {len(images)} image(s)")
        return images

    @staticmethod
    def extract_og_images(page: str, base_url: str = "") -> List[str]:
        """Return the distinct ``og:image`` URLs of an HTML page, in order."""
        soup = BeautifulSoup(page, "html.parser")
        images: List[str] = []
        for tag in soup.find_all('meta', attrs={'property': 'og:image'}):
            content = (tag.get('content') or '').strip()
            if not content:
                continue
            # Imgur appends sizing hints such as ?fb to og:image URLs
            content = urljoin(base_url, content).split('?', 1)[0]
            if content not in images:
                images.append(content)
        return images
