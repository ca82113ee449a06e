"""
Image Processing Module

PIL/Pillow-based validation of downloaded cross-view images. The processor
checks that a file decodes as a supported image format and that its shape is
plausible for a side-by-side stereo pair, and reports the image dimensions.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from stereocrawl.core.config.models import ProcessingConfig
from .exceptions import ImageProcessingError, UnsupportedFormatError, StereoLayoutError


@dataclass(frozen=True)
class ImageMetrics:
    """Structural metadata of a validated image."""

    width: int
    height: int
    format: str

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class StereoImageProcessor:
    """
    Validates downloaded images as side-by-side stereo pairs.

    A cross-view pair places the left and right views next to each other, so
    the combined image is roughly twice as wide as a single view. Files are
    rejected when they fail to decode, are in an unsupported format, are too
    small, or have an aspect ratio outside the configured range.
    """

    def __init__(self, config: Optional[ProcessingConfig] = None):
        """
        Initialize the image processor.

        Args:
            config: Processing configuration; defaults are used when omitted
        """
        self.config = config or ProcessingConfig()
        self.supported_formats = set(self.config.supported_formats)
        self.logger = logging.getLogger("stereocrawl.processing.image")

    def process(self, path: Union[str, Path]) -> ImageMetrics:
        """
        Validate an image file and return its dimensions.

        Args:
            path: Path to the downloaded file

        Returns:
            ImageMetrics with width, height and Pillow format name

        Raises:
            UnsupportedFormatError: If the format is not accepted
            StereoLayoutError: If the dimensions do not fit a stereo pair
            ImageProcessingError: If the file is missing or cannot be decoded
        """
        path = Path(path)
        if not path.is_file():
            raise ImageProcessingError(f"File not found: {path}", path=str(path))

        metrics = self.read_metrics(path)

        if metrics.format not in self.supported_formats:
            raise UnsupportedFormatError(metrics.format, self.supported_formats, path=str(path))

        self._check_layout(metrics, path)

        self.logger.debug(
            f"Validated {path.name}: {metrics.width}x{metrics.height} {metrics.format} "
            f"(aspect {metrics.aspect_ratio:.2f})"
        )
        return metrics

    def read_metrics(self, path: Path) -> ImageMetrics:
        """
        Decode the image header and verify the file's integrity.

        ``Image.verify()`` leaves the image object unusable, so dimensions are
        read before verification.
        """
        try:
            with Image.open(path) as img:
                width, height = img.size
                image_format = img.format
                img.verify()
        except UnidentifiedImageError as e:
            raise UnsupportedFormatError(None, self.supported_formats, path=str(path), cause=e)
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise ImageProcessingError(f"Corrupt image data: {e}", path=str(path), cause=e)

        if not image_format:
            raise UnsupportedFormatError(None, self.supported_formats, path=str(path))

        return ImageMetrics(width=width, height=height, format=image_format.upper())

    def _check_layout(self, metrics: ImageMetrics, path: Path) -> None:
        if metrics.width <= 0 or metrics.height <= 0:
            raise StereoLayoutError(
                f"Image has no pixels ({metrics.width}x{metrics.height})",
                metrics.width, metrics.height, path=str(path)
            )

        if metrics.width < self.config.min_width or metrics.height < self.config.min_height:
            raise StereoLayoutError(
                f"Image too small: {metrics.width}x{metrics.height} "
                f"(minimum {self.config.min_width}x{self.config.min_height})",
                metrics.width, metrics.height, path=str(path)
            )

        ratio = metrics.aspect_ratio
        if not self.config.min_aspect_ratio <= ratio <= self.config.max_aspect_ratio:
            raise StereoLayoutError(
                f"Aspect ratio {ratio:.2f} is not a side-by-side stereo pair "
                f"(expected {self.config.min_aspect_ratio:.2f}-{self.config.max_aspect_ratio:.2f})",
                metrics.width, metrics.height, path=str(path)
            )
