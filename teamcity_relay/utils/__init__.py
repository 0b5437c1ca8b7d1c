"""
Utility modules for the TeamCity build relay.
"""

from teamcity_relay.utils.logging import (
    get_logger,
    setup_logging,
    log_build_event,
    log_api_call,
    log_error_with_context,
)
from teamcity_relay.utils.resilience import (
    retry_with_backoff,
    handle_partial_failure,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_build_event",
    "log_api_call",
    "log_error_with_context",
    "retry_with_backoff",
    "handle_partial_failure",
]
