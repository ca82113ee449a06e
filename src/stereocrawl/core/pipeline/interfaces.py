"""
Pipeline Architecture Interfaces

Abstract base classes and data structures for the crawl pipeline. Stages
communicate through a shared ``PipelineContext``; each stage replaces
``context.posts`` with the richer values it produced and records the posts it
dropped as ``SkipRecord`` entries.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Union, TYPE_CHECKING
from datetime import datetime
import logging

from stereocrawl.models import Post, SkipRecord

if TYPE_CHECKING:
    from stereocrawl.core.config.models import AppConfig


@dataclass
class PipelineContext:
    """
    Shared context passed between pipeline stages.

    Attributes:
        posts: Posts surviving the stages run so far, in discovery order
        config: Application configuration
        skipped: Posts excluded by any stage, in the order they were dropped
        metadata: Additional storage for inter-stage communication
        start_time: Pipeline execution start timestamp
        stage_results: Results from previous stages, keyed by stage name
        halted: Set by a stage to stop the remaining stages cleanly
    """
    posts: List[Post] = field(default_factory=list)
    config: Optional['AppConfig'] = None
    skipped: List[SkipRecord] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=datetime.now)
    stage_results: Dict[str, Any] = field(default_factory=dict)
    halted: bool = False

    def replace_posts(self, new_posts: List[Post]) -> None:
        self.posts = list(new_posts)

    def add_skip(self, record: SkipRecord) -> None:
        self.skipped.append(record)

    def get_metadata(self, key: str, default: Any = None) -> Any:
        """Get metadata value with default fallback."""
        return self.metadata.get(key, default)

    def set_metadata(self, key: str, value: Any) -> None:
        """Set metadata value."""
        self.metadata[key] = value

    def halt(self, reason: str) -> None:
        """Stop the pipeline after the current stage without raising."""
        self.halted = True
        self.metadata['halt_reason'] = reason


@dataclass
class PipelineResult:
    """
    Result object returned by each pipeline stage.

    Attributes:
        success: Whether the stage completed without per-post errors
        stage_name: Name of the stage that produced this result
        processed_count: Number of items the stage handled
        error_count: Number of errors encountered
        errors: List of error messages or exceptions
        execution_time: Time taken to execute the stage in seconds
        data: Stage-specific result data
        warnings: Non-fatal warnings from stage execution
    """
    success: bool = True
    stage_name: str = ""
    processed_count: int = 0
    error_count: int = 0
    errors: List[Union[str, Exception]] = field(default_factory=list)
    execution_time: float = 0.0
    data: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, error: Union[str, Exception]) -> None:
        """Add an error to the result."""
        self.errors.append(error)
        self.error_count += 1
        self.success = False

    def add_warning(self, warning: str) -> None:
        """Add a warning to the result."""
        self.warnings.append(warning)

    def set_data(self, key: str, value: Any) -> None:
        """Set result data value."""
        self.data[key] = value

    def get_data(self, key: str, default: Any = None) -> Any:
        """Get result data value with default fallback."""
        return self.data.get(key, default)


class PipelineStage(ABC):
    """
    Abstract base class for all pipeline stages.

    Stages are stateless between runs; all state flows through the
    ``PipelineContext``. Per-post failures are recorded on the context and the
    result, never raised. A stage raises only for failures that make the rest
    of the run meaningless, and calls ``context.halt`` when there is simply
    nothing left to do.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"pipeline.{name}")

    @abstractmethod
    async def process(self, context: PipelineContext) -> PipelineResult:
        """
        Process the pipeline context and return results.

        Args:
            context: The shared pipeline context

        Returns:
            PipelineResult: Execution results and status

        Raises:
            StereoCrawlError: Failures that abort the run
        """
        pass

    def __str__(self) -> str:
        return f"PipelineStage({self.name})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}')"
