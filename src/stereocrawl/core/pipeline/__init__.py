"""
Pipeline Infrastructure

Stage interfaces and the sequential executor the crawl pipeline is built on.
"""

from .interfaces import PipelineStage, PipelineContext, PipelineResult
from .executor import PipelineExecutor, ExecutionMetrics

__all__ = [
    'PipelineStage',
    'PipelineContext',
    'PipelineResult',
    'PipelineExecutor',
    'ExecutionMetrics',
]
