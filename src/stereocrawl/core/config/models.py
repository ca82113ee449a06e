"""
Configuration Models

Pydantic models for type-safe configuration management with validation,
defaults, and field documentation.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict


LISTING_TYPES = ('top', 'hot', 'new', 'controversial', 'rising')
TIME_FILTERS = ('hour', 'day', 'week', 'month', 'year', 'all')
RUN_MODES = ('fresh', 'resume')
FAN_OUT_POLICIES = ('all', 'first')
IMAGE_FORMATS = ('JPEG', 'PNG', 'WEBP', 'GIF', 'BMP', 'TIFF')

DEFAULT_USER_AGENT = "stereocrawl/0.1.0 (cross-view stereo image crawler)"


class DiscoveryConfig(BaseModel):
    """Configuration for querying Reddit for candidate posts."""

    # Credentials
    client_id: Optional[str] = Field(
        default=None,
        description="Reddit API client ID"
    )
    client_secret: Optional[str] = Field(
        default=None,
        description="Reddit API client secret"
    )
    username: Optional[str] = Field(
        default=None,
        description="Reddit username for a script-app user session"
    )
    password: Optional[str] = Field(
        default=None,
        description="Reddit password for a script-app user session"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent string for API requests"
    )

    # Listing
    subreddit: str = Field(
        default="crossview",
        description="Subreddit to crawl, without the r/ prefix"
    )
    listing: str = Field(
        default="top",
        description="Listing to read (top, hot, new, controversial, rising)"
    )
    time_filter: str = Field(
        default="month",
        description="Time window for top/controversial listings"
    )
    limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of posts to request from the listing"
    )
    year: Optional[int] = Field(
        default=None,
        ge=2005,
        le=2100,
        description="Keep only posts created in this UTC year"
    )
    include_self_posts: bool = Field(
        default=False,
        description="Keep text posts (normally skipped, they carry no image link)"
    )

    # Request settings
    timeout: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Request timeout in seconds"
    )

    @field_validator('subreddit')
    @classmethod
    def validate_subreddit(cls, v):
        """Strip an r/ prefix and reject empty names."""
        name = v.strip()
        for prefix in ('/r/', 'r/'):
            if name.lower().startswith(prefix):
                name = name[len(prefix):]
        name = name.strip('/')
        if not name:
            raise ValueError("Subreddit name cannot be empty")
        return name

    @field_validator('listing')
    @classmethod
    def validate_listing(cls, v):
        if v.lower() not in LISTING_TYPES:
            raise ValueError(f"Listing must be one of: {', '.join(LISTING_TYPES)}")
        return v.lower()

    @field_validator('time_filter')
    @classmethod
    def validate_time_filter(cls, v):
        if v.lower() not in TIME_FILTERS:
            raise ValueError(f"Time filter must be one of: {', '.join(TIME_FILTERS)}")
        return v.lower()

    @model_validator(mode='after')
    def validate_user_session(self):
        """A user session needs both username and password."""
        if bool(self.username) != bool(self.password):
            raise ValueError("username and password must be given together")
        return self

    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


class DownloadConfig(BaseModel):
    """Configuration for the download cache and fetcher."""

    directory: Path = Field(
        default=Path("drop"),
        description="Download cache directory; also holds the discovered snapshot"
    )
    timeout: int = Field(
        default=30,
        ge=1,
        le=600,
        description="Per-request HTTP timeout in seconds"
    )
    chunk_size: int = Field(
        default=8192,
        ge=1024,
        le=1048576,
        description="Download chunk size in bytes"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent sent with image and landing-page requests"
    )
    sleep_interval: float = Field(
        default=0.0,
        ge=0.0,
        le=60.0,
        description="Pause after each network transfer (seconds)"
    )


class ProcessingConfig(BaseModel):
    """Configuration for validating downloaded stereo images."""

    supported_formats: List[str] = Field(
        default_factory=lambda: list(IMAGE_FORMATS),
        description="Pillow format names accepted by the processor"
    )
    min_aspect_ratio: float = Field(
        default=1.2,
        gt=0.0,
        description="Minimum width/height ratio of a side-by-side pair"
    )
    max_aspect_ratio: float = Field(
        default=4.0,
        gt=0.0,
        description="Maximum width/height ratio of a side-by-side pair"
    )
    min_width: int = Field(
        default=200,
        ge=1,
        description="Minimum image width in pixels"
    )
    min_height: int = Field(
        default=100,
        ge=1,
        description="Minimum image height in pixels"
    )

    @field_validator('supported_formats')
    @classmethod
    def validate_formats(cls, v):
        """Normalize format names and reject ones Pillow is not asked to handle."""
        normalized = []
        for name in v:
            upper = name.strip().upper().lstrip('.')
            if upper == 'JPG':
                upper = 'JPEG'
            if upper not in IMAGE_FORMATS:
                raise ValueError(f"Unsupported image format: {name}. Valid formats: {', '.join(IMAGE_FORMATS)}")
            if upper not in normalized:
                normalized.append(upper)
        if not normalized:
            raise ValueError("At least one image format must be supported")
        return normalized

    @model_validator(mode='after')
    def validate_aspect_range(self):
        if self.max_aspect_ratio < self.min_aspect_ratio:
            raise ValueError("max_aspect_ratio must not be below min_aspect_ratio")
        return self


class OutputConfig(BaseModel):
    """Configuration for the accepted snapshot."""

    directory: Path = Field(
        default=Path("out"),
        description="Directory receiving the accepted snapshot"
    )
    snapshot_name: str = Field(
        default="posts.json",
        description="File name used for both discovered and accepted snapshots"
    )
    indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="JSON indentation of written snapshots"
    )

    @field_validator('snapshot_name')
    @classmethod
    def validate_snapshot_name(cls, v):
        if not v or '/' in v or '\\' in v:
            raise ValueError("snapshot_name must be a plain file name")
        return v


class PipelineConfig(BaseModel):
    """Run-mode and concurrency settings for the crawl pipeline."""

    mode: str = Field(
        default="fresh",
        description="fresh: query Reddit; resume: reuse the discovered snapshot"
    )
    run_processing: bool = Field(
        default=True,
        description="Download and validate images, then write the accepted snapshot"
    )
    fan_out: str = Field(
        default="all",
        description="Gallery policy: all resolved images, or only the first"
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Bounded worker pool size for per-post work"
    )
    item_timeout: float = Field(
        default=120.0,
        gt=0.0,
        description="Upper bound in seconds for one post's work in a stage"
    )

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v):
        if v.lower() not in RUN_MODES:
            raise ValueError(f"Run mode must be one of: {', '.join(RUN_MODES)}")
        return v.lower()

    @field_validator('fan_out')
    @classmethod
    def validate_fan_out(cls, v):
        if v.lower() not in FAN_OUT_POLICIES:
            raise ValueError(f"Fan-out policy must be one of: {', '.join(FAN_OUT_POLICIES)}")
        return v.lower()


class AppConfig(BaseModel):
    """Root application configuration model."""

    version: str = Field(default="0.1.0", description="Configuration version")
    created: datetime = Field(default_factory=datetime.now, description="Configuration creation time")

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig, description="Discovery configuration")
    download: DownloadConfig = Field(default_factory=DownloadConfig, description="Download configuration")
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig, description="Processing configuration")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output configuration")
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig, description="Pipeline configuration")

    verbose: bool = Field(
        default=False,
        description="Enable verbose logging output"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed logging"
    )
    quiet: bool = Field(
        default=False,
        description="Only log warnings and errors"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    def discovered_snapshot_path(self) -> Path:
        """Snapshot of every discovered post, next to the download cache."""
        return self.download.directory / self.output.snapshot_name

    def accepted_snapshot_path(self) -> Path:
        """Snapshot of posts that passed processing."""
        return self.output.directory / self.output.snapshot_name
