"""
Core Exception Hierarchy for stereocrawl

Classifies crawler failures with error codes, recovery suggestions and
context, and separates run-aborting failures (discovery, configuration,
unreadable snapshots) from per-post failures that the pipeline absorbs.
"""

import sys
import time
import uuid
import traceback
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field


class ErrorCode(Enum):
    """Standard error codes for different error categories."""

    # Network related errors (1000-1999)
    NETWORK_CONNECTION_FAILED = 1001
    NETWORK_TIMEOUT = 1002
    NETWORK_RATE_LIMITED = 1005
    NETWORK_INVALID_RESPONSE = 1006

    # Authentication errors (2000-2999)
    AUTH_INVALID_CREDENTIALS = 2001
    AUTH_INSUFFICIENT_PERMISSIONS = 2003
    AUTH_MISSING_CREDENTIALS = 2005

    # Configuration errors (3000-3999)
    CONFIG_INVALID_FORMAT = 3001
    CONFIG_INVALID_VALUE = 3003
    CONFIG_FILE_NOT_FOUND = 3004

    # Processing errors (4000-4999)
    PROCESSING_INVALID_CONTENT = 4001
    PROCESSING_UNSUPPORTED_FORMAT = 4002
    PROCESSING_CORRUPT_DATA = 4005
    PROCESSING_OPERATION_FAILED = 4006

    # Validation errors (5000-5999)
    VALIDATION_INVALID_INPUT = 5001
    VALIDATION_MISSING_FIELD = 5002

    # File system / snapshot errors (6000-6999)
    FS_FILE_NOT_FOUND = 6001
    FS_PERMISSION_DENIED = 6002
    SNAPSHOT_CORRUPT = 6007

    # Source errors (8000-8999)
    TARGET_NOT_FOUND = 8001
    TARGET_ACCESS_DENIED = 8002
    TARGET_CONTENT_UNAVAILABLE = 8004

    # Generic/unknown errors (9000-9999)
    UNKNOWN_ERROR = 9000
    INTERNAL_ERROR = 9001
    OPERATION_TIMEOUT = 9003


@dataclass
class ErrorContext:
    """Contextual information about an error occurrence."""

    operation: str = ""
    stage: str = ""
    url: Optional[str] = None
    file_path: Optional[str] = None
    target: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    system_info: Dict[str, Any] = field(default_factory=dict)
    user_context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            'operation': self.operation,
            'stage': self.stage,
            'url': self.url,
            'file_path': self.file_path,
            'target': self.target,
            'correlation_id': self.correlation_id,
            'timestamp': self.timestamp,
            'system_info': self.system_info,
            'user_context': self.user_context
        }


@dataclass
class RecoverySuggestion:
    """Structured recovery suggestion for error resolution."""

    action: str  # Brief action description
    description: str  # Detailed explanation
    command: Optional[str] = None  # CLI command to resolve
    url: Optional[str] = None  # Documentation URL
    priority: int = 1  # Priority order (1=highest)

    def to_dict(self) -> Dict[str, Any]:
        """Convert suggestion to dictionary."""
        return {
            'action': self.action,
            'description': self.description,
            'command': self.command,
            'url': self.url,
            'priority': self.priority
        }


class StereoCrawlError(Exception):
    """
    Base exception for all stereocrawl errors.

    Carries an error code, recovery suggestions and context. ``recoverable``
    tells the pipeline executor whether the run may continue past the stage
    that raised it.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
        suggestions: Optional[List[RecoverySuggestion]] = None
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error description
            error_code: Standardized error code
            context: Contextual information about the error
            cause: Original exception that caused this error
            recoverable: Whether the run can continue after this error
            suggestions: List of recovery suggestions
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.stack_trace = traceback.format_exc()

        if not self.context.correlation_id:
            self.context.correlation_id = str(uuid.uuid4())[:8]

        if not self.context.system_info:
            self.context.system_info = {
                'platform': sys.platform,
                'python_version': sys.version.split()[0],
            }

    def add_suggestion(self, suggestion: RecoverySuggestion) -> None:
        """Add a recovery suggestion to the error."""
        self.suggestions.append(suggestion)
        self.suggestions.sort(key=lambda s: s.priority)

    def get_user_message(self) -> str:
        """Get user-friendly error message with suggestions."""
        lines = [f"Error: {self.message}"]

        if self.cause is not None:
            lines.append(f"Cause: {type(self.cause).__name__}: {self.cause}")

        if self.error_code != ErrorCode.UNKNOWN_ERROR:
            lines.append(f"Error Code: {self.error_code.value}")

        if self.suggestions:
            lines.append("\nSuggested solutions:")
            for i, suggestion in enumerate(self.suggestions[:3], 1):
                lines.append(f"  {i}. {suggestion.action}")
                lines.append(f"     {suggestion.description}")
                if suggestion.command:
                    lines.append(f"     Command: {suggestion.command}")

        return "\n".join(lines)

    def get_debug_info(self) -> Dict[str, Any]:
        """Get comprehensive debug information."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'error_code': self.error_code.value,
            'recoverable': self.recoverable,
            'context': self.context.to_dict(),
            'cause': {
                'type': type(self.cause).__name__ if self.cause else None,
                'message': str(self.cause) if self.cause else None
            },
            'suggestions': [s.to_dict() for s in self.suggestions],
            'stack_trace': self.stack_trace
        }


class NetworkError(StereoCrawlError):
    """Exception for network-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NETWORK_CONNECTION_FAILED,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if url:
            context.url = url
            context.user_context['status_code'] = status_code

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)
        self.status_code = status_code

        if error_code == ErrorCode.NETWORK_CONNECTION_FAILED:
            self.add_suggestion(RecoverySuggestion(
                action="Check internet connection",
                description="Verify your internet connection is working and try again.",
                priority=1
            ))
        elif error_code == ErrorCode.NETWORK_RATE_LIMITED:
            self.add_suggestion(RecoverySuggestion(
                action="Wait and retry",
                description="Rate limit exceeded. Wait for the rate limit to reset.",
                priority=1
            ))


class ConfigurationError(StereoCrawlError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_INVALID_FORMAT,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if config_key:
            context.user_context['config_key'] = config_key
            context.user_context['config_value'] = config_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code
        kwargs.setdefault('recoverable', False)

        super().__init__(message, **kwargs)

        if error_code == ErrorCode.CONFIG_FILE_NOT_FOUND:
            self.add_suggestion(RecoverySuggestion(
                action="Create configuration file",
                description="Create a configuration file using the default template.",
                command="stereocrawl config init stereocrawl.yaml",
                priority=1
            ))
        elif error_code == ErrorCode.CONFIG_INVALID_VALUE:
            self.add_suggestion(RecoverySuggestion(
                action="Check configuration values",
                description="Review the configuration file and environment for invalid values.",
                priority=1
            ))


class AuthenticationError(StereoCrawlError):
    """Exception for authentication-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.AUTH_INVALID_CREDENTIALS,
        auth_method: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if auth_method:
            context.user_context['auth_method'] = auth_method

        kwargs['context'] = context
        kwargs['error_code'] = error_code
        kwargs.setdefault('recoverable', False)

        super().__init__(message, **kwargs)

        if error_code in (ErrorCode.AUTH_INVALID_CREDENTIALS, ErrorCode.AUTH_MISSING_CREDENTIALS):
            self.add_suggestion(RecoverySuggestion(
                action="Check credentials",
                description="Verify your Reddit API client id, secret, username and password.",
                url="https://www.reddit.com/prefs/apps",
                priority=1
            ))
            self.add_suggestion(RecoverySuggestion(
                action="Reuse the last snapshot",
                description="Skip discovery and continue from the previously saved posts.",
                command="stereocrawl crawl --resume",
                priority=2
            ))


class DiscoveryError(StereoCrawlError):
    """
    Exception raised when the content source cannot be queried.

    Discovery failures are never partial: nothing downstream can run, so the
    error is always non-recoverable.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('error_code', ErrorCode.TARGET_CONTENT_UNAVAILABLE)
        kwargs['recoverable'] = False
        super().__init__(message, **kwargs)

        self.add_suggestion(RecoverySuggestion(
            action="Reuse the last snapshot",
            description="Continue from the previously discovered posts without querying Reddit.",
            command="stereocrawl crawl --resume",
            priority=2
        ))


class ProcessingError(StereoCrawlError):
    """Exception for content processing errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.PROCESSING_OPERATION_FAILED,
        content_type: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if content_type:
            context.user_context['content_type'] = content_type

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)


class ValidationError(StereoCrawlError):
    """Exception for input validation errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_INVALID_INPUT,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if field_name:
            context.user_context['field_name'] = field_name
            context.user_context['field_value'] = field_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)


class SnapshotError(StereoCrawlError):
    """Exception raised when a snapshot file cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.SNAPSHOT_CORRUPT,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if path:
            context.file_path = str(path)

        kwargs['context'] = context
        kwargs['error_code'] = error_code
        kwargs.setdefault('recoverable', False)

        super().__init__(message, **kwargs)

        if error_code == ErrorCode.FS_FILE_NOT_FOUND:
            self.add_suggestion(RecoverySuggestion(
                action="Run discovery first",
                description="No saved snapshot exists yet; fetch fresh posts from Reddit.",
                command="stereocrawl crawl --fresh",
                priority=1
            ))
