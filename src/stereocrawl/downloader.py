#!/usr/bin/env python3
"""
Cached image downloader.

This module provides the DownloadCache, which maps a resolved image URL to a
deterministic file in the download directory, and the MediaDownloader, which
streams remote images into that cache. A file only ever appears at its cache
path once its transfer completed, so an existing non-empty file is always a
valid cache hit.
"""

import os
import time
import hashlib
import logging
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

import requests

from stereocrawl.core.config.models import DEFAULT_USER_AGENT
from stereocrawl.core.exceptions import NetworkError, ErrorCode, ErrorContext
from stereocrawl.utils import sanitize_filename, url_basename, url_host, api_retry


logger = logging.getLogger(__name__)

FALLBACK_SUFFIX = ".img"
TEMP_SUFFIX = ".part"


class DownloadError(NetworkError):
    """Exception raised when an image cannot be transferred into the cache."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None, **kwargs):
        kwargs.setdefault('context', ErrorContext(operation="download", stage="download"))
        kwargs.setdefault('error_code', ErrorCode.NETWORK_INVALID_RESPONSE)
        super().__init__(message, url=url, status_code=status_code, **kwargs)


class DownloadCache:
    """
    Deterministic on-disk cache keyed by image URL.

    The cache key is the sanitized final path segment of the URL. URLs whose
    path has no usable file name fall back to the SHA-1 of the full URL with
    an ``.img`` suffix. Distinct URLs may share a key; callers serialize work
    on a path through ``lock_for``.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._locks: Dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def ensure_directory(self) -> None:
        """
        Create the cache directory.

        Raises:
            OSError: If the directory cannot be created
        """
        self.directory.mkdir(parents=True, exist_ok=True)

    def key_for(self, url: str) -> str:
        """
        Compute the cache file name for a URL.

        Examples:
            >>> DownloadCache(Path("drop")).key_for("https://i.redd.it/abc123.jpg")
            'abc123.jpg'
        """
        name = sanitize_filename(url_basename(url))
        if name == "unnamed_file" or name.endswith(TEMP_SUFFIX):
            digest = hashlib.sha1(url.encode('utf-8')).hexdigest()
            return digest + FALLBACK_SUFFIX
        return name

    def path_for(self, url: str) -> Path:
        return self.directory / self.key_for(url)

    def contains(self, url: str) -> bool:
        """True when a complete, non-empty file exists at the URL's cache path."""
        path = self.path_for(url)
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError:
            return False

    def lock_for(self, path: Path) -> threading.Lock:
        """Return the lock guarding a cache path, creating it on first use."""
        path = Path(path)
        with self._locks_guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = threading.Lock()
                self._locks[path] = lock
            return lock


class MediaDownloader:
    """
    Streams remote images into a DownloadCache.

    Transfers are all-or-nothing: bytes are written to a temporary ``.part``
    file beside the target and moved into place with ``os.replace`` only after
    the stream finished. Any failure removes the temporary file.
    """

    def __init__(
        self,
        cache: DownloadCache,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        chunk_size: int = 8192,
        user_agent: str = DEFAULT_USER_AGENT,
        sleep_interval: float = 0.0
    ):
        """
        Initialize MediaDownloader.

        Args:
            cache: Cache that decides target paths and hits
            session: HTTP session used for transfers
            timeout: Per-request timeout in seconds
            chunk_size: Streaming chunk size in bytes
            user_agent: User-Agent header for image requests
            sleep_interval: Pause after each network transfer (seconds)

        Raises:
            OSError: If unable to create the cache directory
        """
        self.cache = cache
        self.session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.user_agent = user_agent
        self.sleep_interval = sleep_interval
        self.cache.ensure_directory()

    def fetch(self, url: str) -> Tuple[Path, bool]:
        """
        Make sure the image behind ``url`` is in the cache.

        Args:
            url: Direct image URL

        Returns:
            Tuple of (cache path, True when served from cache without network I/O)

        Raises:
            ValueError: If the URL is empty
            DownloadError: If the transfer failed; nothing is left at the cache path
        """
        if not url or not url.strip():
            raise ValueError("Media URL cannot be empty")

        path = self.cache.path_for(url)
        with self.cache.lock_for(path):
            if self.cache.contains(url):
                logger.debug(f"Cache hit: {path.name}")
                return path, True

            try:
                self._transfer(url, path)
            except requests.RequestException as e:
                raise DownloadError(
                    f"Network error downloading from {url_host(url)}: {e}",
                    url=url,
                    error_code=ErrorCode.NETWORK_CONNECTION_FAILED,
                    cause=e
                )
            except OSError as e:
                raise DownloadError(
                    f"Failed to write {path.name}: {e}",
                    url=url,
                    error_code=ErrorCode.FS_PERMISSION_DENIED,
                    cause=e
                )
            finally:
                if self.sleep_interval > 0:
                    time.sleep(self.sleep_interval)

        logger.debug(f"Downloaded {url} -> {path.name}")
        return path, False

    @api_retry(max_retries=3, initial_delay=0.7)
    def _transfer(self, url: str, path: Path) -> None:
        """
        Stream one attempt into a temp file and move it into place.

        Raises:
            DownloadError: On a non-2xx response or an empty body (not retried)
            requests.RequestException: On transport failures (retried)
        """
        headers = {
            'User-Agent': self.user_agent,
            'Accept': 'image/*,*/*;q=0.8',
        }

        response = self.session.get(url, stream=True, headers=headers, timeout=self.timeout)
        try:
            if not response.ok:
                raise DownloadError(
                    f"HTTP {response.status_code} for {url}",
                    url=url,
                    status_code=response.status_code
                )
            self._write_atomically(path, response)
        finally:
            response.close()

    def _write_atomically(self, path: Path, response: requests.Response) -> None:
        temp_file = tempfile.NamedTemporaryFile(
            dir=path.parent,
            prefix=path.name + '.',
            suffix=TEMP_SUFFIX,
            delete=False
        )
        temp_path = Path(temp_file.name)
        try:
            written = 0
            with temp_file:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:  # Filter out keep-alive chunks
                        temp_file.write(chunk)
                        written += len(chunk)
                temp_file.flush()
                os.fsync(temp_file.fileno())

            if written == 0:
                raise DownloadError(f"Empty response body for {response.url}", url=response.url)

            os.replace(temp_path, path)
        except BaseException:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise
