"""
Image Validation

Pillow-based validation of downloaded cross-view images.

This module provides:
- StereoImageProcessor: decodes a file and checks it is a side-by-side pair
- ImageMetrics: the width, height and format reported for accepted files
- ImageProcessor: the protocol the pipeline expects from any processor
- Rejection exceptions carrying a human-readable reason

Example usage:
    from stereocrawl.processing import StereoImageProcessor

    metrics = StereoImageProcessor().process(Path("drop/abc123.jpg"))
"""

from pathlib import Path
from typing import Protocol, Union

from stereocrawl.processing.exceptions import (
    ImageProcessingError,
    UnsupportedFormatError,
    StereoLayoutError
)
from stereocrawl.processing.image_processor import StereoImageProcessor, ImageMetrics


class ImageProcessor(Protocol):
    """Anything that turns a local file into metrics or raises a rejection."""

    def process(self, path: Union[str, Path]) -> ImageMetrics:
        ...


__all__ = [
    'ImageProcessingError',
    'UnsupportedFormatError',
    'StereoLayoutError',
    'StereoImageProcessor',
    'ImageMetrics',
    'ImageProcessor',
]
