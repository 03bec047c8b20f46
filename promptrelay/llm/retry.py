"""Retry and escalation policy for update runs.

Decides, from the classified failure of a single LLM attempt, whether the
next attempt should stay on the current tier or move down the chain.
"""

import logging
from dataclasses import dataclass

from promptrelay.utils.errors import (
    ConfigurationError,
    EmptyResponseError,
    GenerationError,
    InvocationError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for the standard retry/escalation loop."""

    max_attempts: int = 5
    delay_seconds: float = 2.0
    escalate_on_server_error: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")


def is_rate_limit_error(error: Exception) -> bool:
    """Check if a failure is an HTTP 429 from the LLM endpoint."""
    return isinstance(error, InvocationError) and error.status_code == RATE_LIMIT_STATUS


def is_server_error(error: Exception) -> bool:
    """Check if a failure is an HTTP 5xx from the LLM endpoint."""
    return (
        isinstance(error, InvocationError)
        and error.status_code is not None
        and error.status_code >= 500
    )


class EscalationPolicy:
    """Classifies attempt failures into "retry same tier" or "escalate"."""

    def __init__(self, config: RetryConfig):
        self.config = config

    def should_escalate(self, error: Exception) -> bool:
        """Decide whether a failure justifies moving to the next tier.

        Args:
            error: The failure of the attempt that just finished

        Returns:
            True if the next attempt should use the next-priority tier
        """
        if isinstance(error, InvocationError):
            if is_rate_limit_error(error):
                return True
            if self.config.escalate_on_server_error and is_server_error(error):
                return True
            return False
        if isinstance(error, EmptyResponseError):
            # Filtered or truncated output is as likely on another tier
            return False
        if isinstance(error, ConfigurationError):
            return False
        if isinstance(error, GenerationError):
            return False
        logger.debug(f"Unclassified failure {type(error).__name__}, not escalating")
        return False
