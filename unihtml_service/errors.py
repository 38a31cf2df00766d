"""
Error taxonomy for the conversion pipeline.

Every failure aborts the whole conversion. The HTTP layer maps
RequestDecodeError to 400 and every other ConversionError to 500.
"""

from typing import Optional


class ConversionError(Exception):
    """Base class for all conversion failures."""


class RequestDecodeError(ConversionError):
    """Request body could not be decoded into a conversion request."""


class ResourceCreationError(ConversionError):
    """Temporary HTML file could not be created or written."""


class SessionAcquisitionError(ConversionError):
    """Browser binary missing or the browser could not be launched."""


class StepExecutionError(ConversionError):
    """A browser action failed mid-sequence."""

    def __init__(
        self,
        stage: str,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
    ):
        self.stage = stage
        self.cause = cause
        if message is None:
            message = f"{stage}: {cause}" if cause is not None else stage
        super().__init__(message)


class DeadlineExceededError(StepExecutionError):
    """The conversion deadline expired before the sequence completed."""

    def __init__(self, stage: str, timeout_ms: int, cause: Optional[BaseException] = None):
        self.timeout_ms = timeout_ms
        super().__init__(stage, cause, message=f"{stage}: timed out after {timeout_ms}ms")
