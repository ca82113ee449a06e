"""
Processing Exceptions

Rejection signals raised by the image processor. Each carries a short,
human-readable ``reason`` that ends up in the per-post skip diagnostics.
"""

from typing import Iterable, Optional

from stereocrawl.core.exceptions import ProcessingError, ErrorCode


class ImageProcessingError(ProcessingError):
    """Exception raised when a downloaded file cannot be validated as an image."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        kwargs.setdefault('error_code', ErrorCode.PROCESSING_CORRUPT_DATA)
        kwargs.setdefault('content_type', 'image')
        super().__init__(message, **kwargs)
        if path:
            self.context.file_path = str(path)

    @property
    def reason(self) -> str:
        return self.message


class UnsupportedFormatError(ImageProcessingError):
    """Exception raised when the image is in a format the crawler does not accept."""

    def __init__(self, format_name: Optional[str], supported_formats: Iterable[str], **kwargs):
        self.format_name = format_name
        self.supported_formats = sorted(supported_formats)
        message = (
            f"Unsupported format: {format_name or 'unknown'}. "
            f"Supported formats: {', '.join(self.supported_formats)}"
        )
        kwargs['error_code'] = ErrorCode.PROCESSING_UNSUPPORTED_FORMAT
        super().__init__(message, **kwargs)


class StereoLayoutError(ImageProcessingError):
    """Exception raised when an image does not have the shape of a side-by-side pair."""

    def __init__(self, message: str, width: int, height: int, **kwargs):
        self.width = width
        self.height = height
        kwargs['error_code'] = ErrorCode.PROCESSING_INVALID_CONTENT
        super().__init__(message, **kwargs)
