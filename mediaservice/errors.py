"""
Exception hierarchy for the media service.
"""


class MediaServiceError(Exception):
    """Base class for all service errors."""


class ConfigError(MediaServiceError):
    """Configuration file missing, unreadable or invalid."""


class StorageError(MediaServiceError):
    """Durable store operation failed."""


class ValidationError(MediaServiceError):
    """Bad request parameters at the HTTP boundary."""


class DownloadError(MediaServiceError):
    """HTTP or filesystem failure while fetching a resource."""


class ProbeError(MediaServiceError):
    """The media probe program failed or produced unparseable output."""


class AttemptsExhaustedError(MediaServiceError):
    """All download attempts for a task were spent."""


class PipelineClosedError(MediaServiceError):
    """A task was submitted after the pipeline began shutting down."""
