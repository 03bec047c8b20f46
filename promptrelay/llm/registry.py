"""Tier registry for escalation-ordered model lookup.

Resolves tier keys to model configurations and answers "what comes
next" questions for the update orchestrator.
"""

import logging
from typing import Iterable, Optional

from promptrelay.utils.errors import ConfigurationError

from .config import ModelTier, TierKey

logger = logging.getLogger(__name__)


class TierRegistry:
    """Immutable, escalation-ordered table of model tiers."""

    def __init__(self, tiers: Iterable[ModelTier]):
        """Initialize registry.

        Args:
            tiers: Tier configurations; duplicates are rejected

        Raises:
            ConfigurationError: If a key appears twice or no tier is given
        """
        ordered = sorted(tiers, key=lambda t: t.key.rank)
        keys = [t.key for t in ordered]
        if not ordered:
            raise ConfigurationError("Tier registry needs at least one tier")
        if len(set(keys)) != len(keys):
            raise ConfigurationError(f"Duplicate tier keys: {[k.value for k in keys]}")

        self._tiers: tuple[ModelTier, ...] = tuple(ordered)
        self._by_key = {t.key: t for t in ordered}

        logger.debug(f"Tier registry: {[k.value for k in keys]}")

    def lookup(self, key: TierKey | str) -> ModelTier:
        """Get the tier for a key.

        Args:
            key: Tier key, or its string name

        Returns:
            The configured ModelTier

        Raises:
            ConfigurationError: If the key is unknown or not configured
        """
        if isinstance(key, str):
            try:
                key = TierKey(key.upper())
            except ValueError:
                raise ConfigurationError(f"Unknown model tier: {key}") from None

        tier = self._by_key.get(key)
        if tier is None:
            raise ConfigurationError(f"Model tier not configured: {key.value}")
        return tier

    def has(self, key: TierKey) -> bool:
        return key in self._by_key

    def chain(self) -> tuple[ModelTier, ...]:
        """All tiers in escalation order."""
        return self._tiers

    def first(self) -> ModelTier:
        """The highest-priority tier."""
        return self._tiers[0]

    def next_after(self, key: TierKey) -> Optional[ModelTier]:
        """Get the next configured tier after ``key``, or None at the end."""
        current = self.lookup(key)
        index = self._tiers.index(current)
        if index + 1 >= len(self._tiers):
            return None
        return self._tiers[index + 1]
