"""LLM subsystem for tiered model access.

This module provides:
- Named model tiers in a fixed escalation order
- A registry resolving tier keys to configurations
- A single-request chat-completion client with failure classification
- The escalation policy deciding retry-same-tier vs. next tier

Example usage:
    from promptrelay.llm import LLMClient, TierKey, TierRegistry, build_default_tiers

    registry = TierRegistry(build_default_tiers(settings))
    client = LLMClient(timeout_seconds=60)

    text = await client.invoke(
        registry.lookup(TierKey.PRIMARY),
        system_prompt="...",
        fixed_user_prompt="...",
        dynamic_prompt="...",
        api_key=settings.credential("GEMINI_API_KEY"),
    )
"""

from .client import LLMClient, build_messages
from .config import ModelTier, TierKey, build_default_tiers
from .registry import TierRegistry
from .retry import (
    EscalationPolicy,
    RetryConfig,
    is_rate_limit_error,
    is_server_error,
)

__all__ = [
    # Config
    "ModelTier",
    "TierKey",
    "build_default_tiers",
    # Registry
    "TierRegistry",
    # Client
    "LLMClient",
    "build_messages",
    # Retry
    "RetryConfig",
    "EscalationPolicy",
    "is_rate_limit_error",
    "is_server_error",
]
