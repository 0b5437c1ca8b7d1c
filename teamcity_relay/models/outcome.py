"""Per-team delivery outcome models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from .error import ErrorRecord
from .revision import ClassificationWarning


class DeliveryStatus(str, Enum):
    """Final status of one (occurrence, team) unit of work."""

    DELIVERED = "delivered"
    INVALID_DATA = "invalid_data"
    INVALID_EVENT = "invalid_event"
    DELIVERY_FAILED = "delivery_failed"


class TeamOutcome(BaseModel):
    """Result of relaying one build occurrence to one team."""

    team_id: str
    status: DeliveryStatus
    warnings: List[ClassificationWarning] = []
    degraded: bool = False
    response_body: Optional[str] = None
    error: Optional[str] = None
    error_record: Optional[ErrorRecord] = None


class DispatchReport(BaseModel):
    """Result of relaying one build occurrence to all subscribed teams."""

    build_id: str
    skipped: bool = False
    skip_reason: Optional[str] = None
    outcomes: List[TeamOutcome] = []

    @property
    def delivered_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == DeliveryStatus.DELIVERED)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.delivered_count
