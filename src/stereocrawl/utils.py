#!/usr/bin/env python3
"""
Utility functions for stereocrawl.

This module provides common helpers used across the crawler, including
filename sanitization, URL inspection, timestamp formatting, and the retry
decorators wrapped around every outbound network call.
"""

import re
import time
import random
import logging
import functools
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Tuple, Type, Callable, Optional
from urllib.parse import urlparse, unquote


logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by replacing invalid characters and truncating to safe length.

    Replaces filesystem-unsafe characters (/, \\, ?, *, :, <, >, |, ") with underscores
    and truncates the filename to a maximum of 128 characters for cross-platform
    compatibility.

    Args:
        filename: The filename string to sanitize

    Returns:
        str: A sanitized filename safe for use across different filesystems

    Examples:
        >>> sanitize_filename("my/file:name?.jpg")
        'my_file_name_.jpg'
        >>> sanitize_filename("")
        'unnamed_file'
    """
    if not filename or not filename.strip():
        return "unnamed_file"

    invalid_chars = r'[/\\?*:|"<>]'
    sanitized = re.sub(invalid_chars, '_', filename.strip())

    # Leading dots would produce hidden files
    sanitized = sanitized.lstrip('.')

    if not sanitized or sanitized.replace('_', '').strip() == '':
        return "unnamed_file"

    if len(sanitized) > 128:
        if '.' in sanitized:
            name, ext = sanitized.rsplit('.', 1)
            max_name_length = 128 - len(ext) - 1
            if max_name_length > 0:
                sanitized = name[:max_name_length] + '.' + ext
            else:
                sanitized = sanitized[:128]
        else:
            sanitized = sanitized[:128]

    return sanitized


def url_host(url: str) -> str:
    """
    Return the lower-cased authority of a URL without port or credentials.

    Examples:
        >>> url_host("https://I.Imgur.com:443/abc.jpg")
        'i.imgur.com'
        >>> url_host("not a url")
        ''
    """
    if not url:
        return ""
    try:
        hostname = urlparse(url.strip()).hostname
    except ValueError:
        return ""
    return (hostname or "").lower()


def url_basename(url: str) -> str:
    """
    Return the final, percent-decoded path segment of a URL.

    Examples:
        >>> url_basename("https://i.redd.it/abc123.jpg?width=640")
        'abc123.jpg'
        >>> url_basename("https://example.com/")
        ''
    """
    path = unquote(urlparse(url).path or "")
    if path.endswith('/'):
        return ""
    return PurePosixPath(path).name


def url_extension(url: str) -> str:
    """Return the lower-cased file extension of a URL path, with leading dot."""
    return PurePosixPath(url_basename(url)).suffix.lower()


def timestamp_to_iso(created_utc: float) -> str:
    """
    Convert a Unix timestamp to ISO 8601 format with a Z suffix.

    Examples:
        >>> timestamp_to_iso(1640995200)
        '2022-01-01T00:00:00Z'
    """
    dt = datetime.fromtimestamp(float(created_utc), timezone.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%SZ')


def backoff_sleep(delay: float) -> None:
    """Pause between retry attempts; the default sleeper of the retry decorators."""
    time.sleep(delay)


def exponential_backoff_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    jitter: bool = True,
    log_level: int = logging.INFO,
    sleep: Optional[Callable[[float], None]] = None
) -> Callable:
    """
    Decorator that implements exponential backoff retry logic with configurable parameters.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds before first retry (default: 1.0)
        backoff_factor: Multiplier for exponential backoff (default: 2.0)
        exceptions: Tuple of exception types to retry on (default: (Exception,))
        jitter: Whether to add random jitter to delays (default: True)
        log_level: Level used to log each retry attempt
        sleep: Called with each delay; defaults to ``backoff_sleep``, looked up per retry

    Returns:
        Decorated function with retry logic

    Examples:
        @exponential_backoff_retry(max_retries=3, initial_delay=0.7)
        def api_call():
            pass
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exception: Optional[Exception] = None

            for attempt in range(max_retries + 1):  # +1 for initial attempt
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    if attempt == max_retries:
                        logger.error(f"{func.__name__} failed after {max_retries + 1} attempts: {e}")
                        raise

                    delay = initial_delay * (backoff_factor ** attempt)
                    if jitter:
                        delay += random.uniform(0, min(1.0, delay * 0.1))

                    logger.log(
                        log_level,
                        f"{func.__name__} attempt {attempt + 1} failed ({e}), retrying in {delay:.1f}s..."
                    )
                    (sleep or backoff_sleep)(delay)

            if last_exception:
                raise last_exception

        return wrapper
    return decorator


def api_retry(max_retries: int = 3, initial_delay: float = 0.7) -> Callable:
    """
    Convenience decorator for network calls with the standard retry pattern.

    Implements the 0.7s -> 1.4s -> 2.8s pattern for transient transport
    errors raised by requests and prawcore. HTTP status failures and
    authentication errors are not retried.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 0.7)

    Returns:
        Decorated function with API retry logic
    """
    import requests
    import prawcore

    transient_exceptions = (
        requests.exceptions.ConnectionError,
        requests.exceptions.Timeout,
        requests.exceptions.ChunkedEncodingError,
        prawcore.exceptions.RequestException,
        prawcore.exceptions.ServerError,
    )

    return exponential_backoff_retry(
        max_retries=max_retries,
        initial_delay=initial_delay,
        backoff_factor=2.0,
        exceptions=transient_exceptions,
    )
