"""
Pipeline Executor

Runs the crawl stages in order over one shared context and records what each
stage did. A stage that raises ends the run; a stage that calls
``context.halt`` ends it without an error.
"""

import logging
import time
from typing import List, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime

from stereocrawl.core.exceptions import (
    StereoCrawlError, ProcessingError, ErrorContext, ErrorCode, RecoverySuggestion
)
from .interfaces import PipelineStage, PipelineContext, PipelineResult


@dataclass
class ExecutionMetrics:
    """
    Timing and outcome of one pipeline run.

    Attributes:
        total_stages: Stages that ran (including a failed one)
        successful_stages: Stages whose result reported success
        failed_stages: Stages that raised or reported errors
        total_execution_time: Wall time of the whole run in seconds
        stage_times: Wall time per stage name
        total_posts_processed: Sum of every stage's processed count
        start_time: When the run started
        end_time: When the run finished
        halted_at: First stage that did not run, or the stage that raised
    """
    total_stages: int = 0
    successful_stages: int = 0
    failed_stages: int = 0
    total_execution_time: float = 0.0
    stage_times: Dict[str, float] = field(default_factory=dict)
    total_posts_processed: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    halted_at: Optional[str] = None

    def add_stage_result(self, stage_name: str, result: PipelineResult) -> None:
        self.total_stages += 1
        self.stage_times[stage_name] = result.execution_time
        self.total_posts_processed += result.processed_count

        if result.success:
            self.successful_stages += 1
        else:
            self.failed_stages += 1


class PipelineExecutor:
    """
    Sequential runner for pipeline stages.

    Per-post problems never reach the executor; stages record them as skips.
    Anything a stage raises therefore means the run cannot go on: a
    ``StereoCrawlError`` is re-raised unchanged, any other exception is
    wrapped in a ``ProcessingError`` naming the stage.
    """

    def __init__(self, stages: Optional[List[PipelineStage]] = None):
        self.stages: List[PipelineStage] = stages or []
        self.logger = logging.getLogger("pipeline.executor")

    async def execute(self, context: PipelineContext) -> ExecutionMetrics:
        """
        Run every stage against ``context``.

        Returns:
            ExecutionMetrics for the run

        Raises:
            RuntimeError: If the stage list is empty or has duplicate names
            StereoCrawlError: If a stage fails
        """
        problems = self._validate_stages()
        if problems:
            raise RuntimeError(f"Pipeline validation failed: {problems}")

        metrics = ExecutionMetrics(start_time=datetime.now())
        run_started = time.time()

        for position, stage in enumerate(self.stages, 1):
            if context.halted:
                metrics.halted_at = stage.name
                self.logger.info(
                    f"Stopping before stage '{stage.name}': "
                    f"{context.get_metadata('halt_reason', 'no reason given')}"
                )
                break

            self.logger.debug(f"Stage {position}/{len(self.stages)}: {stage.name}")
            stage_started = time.time()
            try:
                result = await stage.process(context)
            except StereoCrawlError as e:
                self._fail(metrics, stage, e, stage_started)
                raise
            except Exception as e:
                error = self._wrap(stage, e)
                self._fail(metrics, stage, error, stage_started)
                self.logger.debug(f"Traceback of stage '{stage.name}'", exc_info=True)
                raise error from e

            result.stage_name = stage.name
            result.execution_time = time.time() - stage_started
            context.stage_results[stage.name] = result
            metrics.add_stage_result(stage.name, result)

            self.logger.debug(
                f"Stage '{stage.name}' done: processed={result.processed_count}, "
                f"warnings={len(result.warnings)}, time={result.execution_time:.2f}s"
            )

        metrics.total_execution_time = time.time() - run_started
        metrics.end_time = datetime.now()
        self.logger.debug(
            f"Pipeline finished: {metrics.total_stages} stage(s), "
            f"{len(context.posts)} post(s) left, {metrics.total_execution_time:.2f}s"
        )
        return metrics

    def _wrap(self, stage: PipelineStage, error: Exception) -> ProcessingError:
        wrapped = ProcessingError(
            message=f"Stage '{stage.name}' execution failed: {error}",
            error_code=ErrorCode.INTERNAL_ERROR,
            context=ErrorContext(operation=f"pipeline_stage_{stage.name}", stage=stage.name),
            cause=error
        )
        wrapped.add_suggestion(RecoverySuggestion(
            action="Re-run with --debug",
            description="Debug logging shows the full traceback of the failing stage.",
            priority=1
        ))
        return wrapped

    def _fail(self, metrics: ExecutionMetrics, stage: PipelineStage,
              error: StereoCrawlError, started: float) -> None:
        failed = PipelineResult(success=False, stage_name=stage.name, execution_time=time.time() - started)
        failed.add_error(error)
        metrics.add_stage_result(stage.name, failed)
        metrics.halted_at = stage.name
        self.logger.error(f"Stage '{stage.name}' failed, aborting run: {error.message}")

    def _validate_stages(self) -> List[str]:
        if not self.stages:
            return ["No stages configured in pipeline"]

        problems = []
        seen = set()
        for stage in self.stages:
            if stage.name in seen:
                problems.append(f"Duplicate stage name: {stage.name}")
            seen.add(stage.name)
        return problems

    def get_stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def __len__(self) -> int:
        return len(self.stages)
