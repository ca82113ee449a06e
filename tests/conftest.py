"""
Shared Test Configuration and Fixtures

Sample posts, isolated configurations, image files and fake collaborators
that let the crawl pipeline run without Reddit or the network.
"""

import pytest
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from unittest.mock import patch

from PIL import Image

from stereocrawl.core.config.models import AppConfig
from stereocrawl.models import Post
from stereocrawl.processing import ImageMetrics


@pytest.fixture(autouse=True)
def no_retry_sleep():
    """Retry backoff never actually sleeps in tests; other sleeps are left alone."""
    with patch("stereocrawl.utils.backoff_sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep STEREOCRAWL_* variables and config files from the host out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("STEREOCRAWL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


def make_post(index: int, url: Optional[str] = None, score: Optional[int] = None) -> Post:
    """Create a discovered post with predictable fields."""
    return Post(
        url=url or f"https://i.redd.it/post{index}.jpg",
        title=f"Cross-view scene {index}",
        permalink=f"https://www.reddit.com/r/crossview/comments/id{index}/scene_{index}/",
        score=100 - index if score is None else score,
        created_utc=1640995200.0 + index * 3600
    )


@pytest.fixture
def post_factory():
    return make_post


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Configuration writing everything below tmp_path."""
    return AppConfig(
        download={'directory': tmp_path / "drop"},
        output={'directory': tmp_path / "out"},
    )


def write_image(path: Path, size: Tuple[int, int] = (800, 400), image_format: str = "JPEG") -> Path:
    """Write a solid-colour image; the default size is a plausible side-by-side pair."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color=(120, 60, 200)).save(path, format=image_format)
    return path


@pytest.fixture
def image_writer():
    return write_image


class FakeScraper:
    """Stands in for PrawScraper; optionally raises instead of returning posts."""

    def __init__(self, config, posts: Optional[List[Post]] = None, error: Optional[Exception] = None):
        self.config = config
        self.posts = posts or []
        self.error = error
        self.calls = 0

    def fetch_posts(self) -> List[Post]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.posts)


class FakeDownloader:
    """Writes a small file per URL; URLs listed in ``failures`` raise instead."""

    def __init__(self, directory: Path, failures: Optional[Dict[str, Exception]] = None):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.failures = failures or {}
        self.fetched: List[str] = []

    def fetch(self, url: str):
        if url in self.failures:
            raise self.failures[url]
        self.fetched.append(url)
        path = self.directory / url.rsplit('/', 1)[-1]
        from_cache = path.exists()
        if not from_cache:
            path.write_bytes(b"image-bytes")
        return path, from_cache


class FakeProcessor:
    """Accepts every file as an 800x400 JPEG unless its name is in ``rejects``."""

    def __init__(self, rejects: Optional[Dict[str, Exception]] = None, size: Tuple[int, int] = (800, 400)):
        self.rejects = rejects or {}
        self.size = size
        self.processed: List[Path] = []

    def process(self, path) -> ImageMetrics:
        path = Path(path)
        if path.name in self.rejects:
            raise self.rejects[path.name]
        self.processed.append(path)
        return ImageMetrics(width=self.size[0], height=self.size[1], format="JPEG")
