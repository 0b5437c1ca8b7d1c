"""API request and response data models."""

from enum import Enum
from typing import List

from pydantic import BaseModel

from .build import RawBuildFacts, Subscriber


class Occurrence(str, Enum):
    """Build lifecycle occurrence reported by TeamCity."""

    STARTED = "started"
    FAILED = "failed"
    FAILED_TO_START = "failed_to_start"
    SUCCEEDED = "succeeded"


class BuildOccurrenceRequest(BaseModel):
    """Build occurrence posted by the TeamCity host binding."""

    occurrence: Occurrence
    facts: RawBuildFacts
    subscribers: List[Subscriber]
    revision_count: int = 1


class WebhookResponse(BaseModel):
    """Response from webhook handler."""

    status: str
    message: str
