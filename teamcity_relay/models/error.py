"""Error tracking data models and relay exceptions."""

import traceback
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel


class ErrorRecord(BaseModel):
    """Error record for tracking failures."""

    phase: str
    error_type: str
    message: str
    stack_trace: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_exception(cls, phase: str, error: BaseException) -> "ErrorRecord":
        """Capture an exception raised while handling one team."""
        return cls(
            phase=phase,
            error_type=type(error).__name__,
            message=str(error),
            stack_trace="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            timestamp=datetime.now(timezone.utc),
        )


class RelayError(Exception):
    """Base exception for build relay errors."""
    pass


class DataShapeError(RelayError):
    """Build facts cannot be turned into an event."""
    pass


class RepositoryParseError(DataShapeError):
    """Repository URL does not carry an owner and a name."""
    pass


class MalformedBuildFactsError(DataShapeError):
    """A build identifier cannot be parsed."""
    pass


class InvalidEventError(RelayError):
    """Event violates the type/field invariant and must not be sent."""
    pass


class DeliveryError(RelayError):
    """Webhook delivery failed after the retry."""

    def __init__(self, message: str, url: str, attempts: int):
        super().__init__(message)
        self.url = url
        self.attempts = attempts
