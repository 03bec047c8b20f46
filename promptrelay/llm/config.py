"""Model tier definitions.

This module defines the named tiers of the escalation chain and the
default tier table built from application settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from promptrelay.config import Settings


class TierKey(Enum):
    """Named model tiers, in escalation order."""

    PRIMARY = "PRIMARY"  # Tried first
    FALLBACK = "FALLBACK"  # Escalation target on rate limit / server error
    FINAL = "FINAL"  # One last-resort attempt after the standard budget

    @property
    def rank(self) -> int:
        """Escalation rank (0 = highest priority)."""
        return _TIER_ORDER.index(self)


_TIER_ORDER = (TierKey.PRIMARY, TierKey.FALLBACK, TierKey.FINAL)


@dataclass(frozen=True)
class ModelTier:
    """Configuration for one LLM backend in the escalation chain."""

    key: TierKey
    model_id: str
    endpoint: str
    credential_ref: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


# Generation parameters merged verbatim into each tier's request body
PRIMARY_PARAMETERS: dict[str, Any] = {
    "temperature": 2.0,
    "reasoning_effort": "high",
}
FALLBACK_PARAMETERS: dict[str, Any] = {
    "temperature": 2.0,
    "reasoning_effort": "medium",
}
FINAL_PARAMETERS: dict[str, Any] = {
    "temperature": 1.2,
}


def build_default_tiers(settings: Settings) -> list[ModelTier]:
    """Build the tier table from settings.

    Args:
        settings: Application settings with model ids and endpoints

    Returns:
        Tiers in escalation order; FINAL only when enabled
    """
    tiers = [
        ModelTier(
            key=TierKey.PRIMARY,
            model_id=settings.primary_model,
            endpoint=settings.primary_endpoint,
            credential_ref="GEMINI_API_KEY",
            parameters=PRIMARY_PARAMETERS,
        ),
        ModelTier(
            key=TierKey.FALLBACK,
            model_id=settings.fallback_model,
            endpoint=settings.fallback_endpoint,
            credential_ref="GEMINI_API_KEY",
            parameters=FALLBACK_PARAMETERS,
        ),
    ]
    if settings.final_tier_enabled:
        tiers.append(
            ModelTier(
                key=TierKey.FINAL,
                model_id=settings.final_model,
                endpoint=settings.final_endpoint,
                credential_ref="OPENAI_API_KEY",
                parameters=FINAL_PARAMETERS,
            )
        )
    return tiers
