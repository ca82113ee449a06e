"""
Configuration Management Package

Provides Pydantic-based configuration models and management for stereocrawl.
"""

from stereocrawl.core.config.models import (
    AppConfig,
    DiscoveryConfig,
    DownloadConfig,
    ProcessingConfig,
    OutputConfig,
    PipelineConfig,
)
from stereocrawl.core.config.manager import ConfigManager

__all__ = [
    "AppConfig",
    "DiscoveryConfig",
    "DownloadConfig",
    "ProcessingConfig",
    "OutputConfig",
    "PipelineConfig",
    "ConfigManager",
]
