"""
Core stereocrawl Package

Contains core infrastructure: configuration, pipeline, snapshot state and
error handling.
"""

from stereocrawl.core.exceptions import (
    StereoCrawlError,
    NetworkError,
    ConfigurationError,
    AuthenticationError,
    DiscoveryError,
    ProcessingError,
    ValidationError,
    SnapshotError,
    ErrorCode,
    ErrorContext,
    RecoverySuggestion
)

__all__ = [
    'StereoCrawlError',
    'NetworkError',
    'ConfigurationError',
    'AuthenticationError',
    'DiscoveryError',
    'ProcessingError',
    'ValidationError',
    'SnapshotError',
    'ErrorCode',
    'ErrorContext',
    'RecoverySuggestion',
]
