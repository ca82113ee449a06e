#!/usr/bin/env python3
"""
Post values flowing through the crawl pipeline.

Each pipeline stage consumes one of these frozen dataclasses and produces the
next, richer one:

    Post -> ResolvedPost -> DownloadedPost -> ProcessedPost

A ``SceneCollection`` is the ordered sequence of posts persisted as a
snapshot. Records carry only the fields needed to resume a run; the local
download path of a ``DownloadedPost`` is not part of the snapshot schema.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Iterable, Iterator, Optional

from stereocrawl.utils import url_host, timestamp_to_iso


REQUIRED_FIELDS = ('url', 'title', 'permalink', 'score', 'created_utc')


@dataclass(frozen=True)
class Post:
    """
    A discovered candidate post.

    Attributes:
        url: The link as published; its host selects the resolver
        title: Post title
        permalink: Reddit permalink (also used as the post identity)
        score: Post score at discovery time
        created_utc: Creation time as Unix seconds (UTC)
    """

    url: str
    title: str
    permalink: str
    score: int
    created_utc: float

    @property
    def host(self) -> str:
        """Lower-cased authority of the source URL."""
        return url_host(self.url)

    @property
    def created_at(self) -> datetime:
        """Creation time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.created_utc, timezone.utc)

    @property
    def created_year(self) -> int:
        return self.created_at.year

    @property
    def created_iso(self) -> str:
        return timestamp_to_iso(self.created_utc)

    def base_fields(self) -> Dict[str, Any]:
        """Descriptive fields shared by every stage value."""
        return {
            'url': self.url,
            'title': self.title,
            'permalink': self.permalink,
            'score': self.score,
            'created_utc': self.created_utc,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the post to its snapshot record."""
        return self.base_fields()

    def describe(self) -> str:
        """One-line description used in per-post log messages."""
        return f"{self.host or '?'}: [{self.score}] {self.title}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Post':
        """
        Create the richest post type a snapshot record supports.

        Records with ``width`` and ``height`` become ``ProcessedPost``, records
        with ``image_url`` become ``ResolvedPost``, anything else a ``Post``.
        Unknown keys are ignored.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field cannot be converted
        """
        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise KeyError(f"Missing required field(s): {', '.join(missing)}")

        base = {
            'url': str(data['url']),
            'title': str(data['title']),
            'permalink': str(data['permalink']),
            'score': int(data['score']),
            'created_utc': float(data['created_utc']),
        }

        image_url = data.get('image_url')
        width = data.get('width')
        height = data.get('height')

        if image_url and width is not None and height is not None:
            return ProcessedPost(image_url=str(image_url), width=int(width), height=int(height), **base)
        if image_url:
            return ResolvedPost(image_url=str(image_url), **base)
        return Post(**base)


@dataclass(frozen=True)
class ResolvedPost(Post):
    """A post whose link resolved to one direct image URL."""

    image_url: str

    @classmethod
    def from_post(cls, post: Post, image_url: str) -> 'ResolvedPost':
        return cls(image_url=image_url, **post.base_fields())

    def to_dict(self) -> Dict[str, Any]:
        record = self.base_fields()
        record['image_url'] = self.image_url
        return record


@dataclass(frozen=True)
class DownloadedPost(ResolvedPost):
    """A resolved post whose image is present in the download cache."""

    local_path: Path
    from_cache: bool

    @classmethod
    def from_resolved(cls, post: ResolvedPost, local_path: Path, from_cache: bool) -> 'DownloadedPost':
        return cls(
            image_url=post.image_url,
            local_path=Path(local_path),
            from_cache=from_cache,
            **post.base_fields()
        )


@dataclass(frozen=True)
class ProcessedPost(ResolvedPost):
    """An accepted post: downloaded and validated, with image dimensions."""

    width: int
    height: int

    def __post_init__(self):
        if not self.image_url:
            raise ValueError("Processed post requires an image URL")
        for name in ('width', 'height'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"Processed post {name} must be a positive integer, got {value!r}")

    @classmethod
    def from_downloaded(cls, post: DownloadedPost, width: int, height: int) -> 'ProcessedPost':
        return cls(image_url=post.image_url, width=width, height=height, **post.base_fields())

    def to_dict(self) -> Dict[str, Any]:
        record = super().to_dict()
        record['width'] = self.width
        record['height'] = self.height
        return record


@dataclass
class SceneCollection:
    """
    Ordered sequence of posts forming one snapshot.

    Insertion order is preserved; it reflects discovery order and carries no
    further ranking guarantee.
    """

    scenes: List[Post] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.scenes)

    def __iter__(self) -> Iterator[Post]:
        return iter(self.scenes)

    def __getitem__(self, index: int) -> Post:
        return self.scenes[index]

    def extend(self, posts: Iterable[Post]) -> None:
        self.scenes.extend(posts)

    def to_dict(self) -> Dict[str, Any]:
        return {'scenes': [post.to_dict() for post in self.scenes]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SceneCollection':
        """
        Build a collection from a snapshot document.

        Raises:
            ValueError: If the document is not shaped like a snapshot
            KeyError: If a record lacks required fields
        """
        if not isinstance(data, dict) or 'scenes' not in data:
            raise ValueError("Snapshot document must be an object with a 'scenes' field")
        scenes = data['scenes']
        if scenes is None:
            scenes = []
        if not isinstance(scenes, list):
            raise ValueError("Snapshot 'scenes' field must be a list")

        posts = []
        for index, record in enumerate(scenes):
            if not isinstance(record, dict):
                raise ValueError(f"Scene {index} is not an object")
            posts.append(Post.from_dict(record))
        return cls(scenes=posts)


@dataclass(frozen=True)
class SkipRecord:
    """
    A post excluded from further stages.

    Attributes:
        post: The post as it was when it left the pipeline
        stage: Name of the stage that dropped it
        reason: Human-readable explanation
        unsupported: True for the expected "no resolver for this host" outcome
    """

    post: Post
    stage: str
    reason: str
    unsupported: bool = False

    def describe(self) -> str:
        return f"[{self.stage}] {self.post.describe()} - {self.reason}"


def accepted_only(posts: Iterable[Post]) -> List[ProcessedPost]:
    """Filter an iterable down to processed posts, keeping order."""
    return [post for post in posts if isinstance(post, ProcessedPost)]


def find_by_permalink(posts: Iterable[Post], permalink: str) -> Optional[Post]:
    for post in posts:
        if post.permalink == permalink:
            return post
    return None
