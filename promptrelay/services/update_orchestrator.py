"""Resilient update orchestrator.

Drives one update run end to end:

1. Prompt acquisition: the dynamic prompt is fetched exactly once and
   reused by every attempt of the run. Failure aborts the run before any
   LLM call (CriticalDependencyFailure).
2. Standard loop: up to ``max_attempts`` invocations with a fixed delay
   between them. Attempts start on the primary tier; a rate-limit (and,
   by policy, a server-error) failure on the primary tier moves every
   later attempt to the fallback tier. Escalation never reverts.
3. Last resort: if the loop is exhausted and a FINAL tier is configured,
   exactly one more invocation is made against it.

A run ends with one UpdateResult (also written to the content cache) or
one raised error.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from promptrelay.config import Settings
from promptrelay.llm import (
    EscalationPolicy,
    LLMClient,
    ModelTier,
    RetryConfig,
    TierKey,
    TierRegistry,
    build_default_tiers,
)
from promptrelay.services.content_cache import ContentCache
from promptrelay.services.prompt_source import (
    SYSTEM_PROMPT,
    USER_PROMPT,
    PromptSource,
    load_prompt,
)
from promptrelay.utils.errors import (
    ConfigurationError,
    CriticalDependencyFailure,
    DependencyError,
    ExhaustedAllStrategies,
    GenerationError,
)

logger = logging.getLogger(__name__)

# Failures folded into loop state; anything else is a bug and propagates
ATTEMPT_FAILURES = (GenerationError, ConfigurationError)


@dataclass
class UpdateAttempt:
    """One invocation of the LLM client within a run."""

    tier: ModelTier
    attempt_index: int
    error: Optional[Exception] = None

    @property
    def summary(self) -> str:
        outcome = "succeeded" if self.error is None else (
            f"failed | {type(self.error).__name__}: {self.error}"
        )
        return f"Attempt {self.attempt_index} {outcome} | tier={self.tier.key.value}"


@dataclass
class UpdateResult:
    """Accepted output of a successful run."""

    tier_used: TierKey
    content: str
    attempts: int = 1


class UpdateOrchestrator:
    """Runs the prompt → LLM → cache pipeline with retry and escalation."""

    def __init__(
        self,
        registry: TierRegistry,
        llm_client: LLMClient,
        prompt_source: PromptSource,
        cache: ContentCache,
        credentials: Callable[[str], Optional[str]],
        retry_config: RetryConfig,
        cache_key: str = "generated_text",
        prompt_token: Optional[str] = None,
        system_prompt: Optional[str] = None,
        user_prompt: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the orchestrator.

        Args:
            registry: Model tiers in escalation order
            llm_client: Client used for every attempt
            prompt_source: Source of the dynamic prompt fragment
            cache: Destination for accepted content
            credentials: Resolves a tier's credential_ref to an API key
            retry_config: Attempt budget, delay and escalation trigger
            cache_key: Storage key of the generated text
            prompt_token: Bearer token for the prompt source
            system_prompt: Overrides the packaged system prompt
            user_prompt: Overrides the packaged fixed user prompt
            sleep: Delay primitive between attempts
        """
        self.registry = registry
        self.llm_client = llm_client
        self.prompt_source = prompt_source
        self.cache = cache
        self.credentials = credentials
        self.retry_config = retry_config
        self.policy = EscalationPolicy(retry_config)
        self.cache_key = cache_key
        self.prompt_token = prompt_token
        self.system_prompt = system_prompt
        self.user_prompt = user_prompt
        self._sleep = sleep

    def _escalation_target(self) -> Optional[ModelTier]:
        """Tier that standard-loop escalation moves to (never FINAL)."""
        target = self.registry.next_after(self.registry.first().key)
        if target is None or target.key is TierKey.FINAL:
            return None
        return target

    async def run(self) -> UpdateResult:
        """Execute one update run.

        Returns:
            UpdateResult with the tier used and the trimmed content

        Raises:
            CriticalDependencyFailure: If the dynamic prompt could not be fetched
            ExhaustedAllStrategies: If every attempt on every tier failed
            CacheError: If the accepted content could not be stored
        """
        system_prompt = self.system_prompt or load_prompt(SYSTEM_PROMPT)
        user_prompt = self.user_prompt or load_prompt(USER_PROMPT)

        # Stage 0: prompt acquisition
        try:
            dynamic_prompt = await self.prompt_source.fetch_dynamic_prompt(self.prompt_token)
        except DependencyError as e:
            logger.error(f"[UPDATE] Aborting run, prompt fetch failed: {e.message}")
            raise CriticalDependencyFailure(e) from e

        async def attempt_with(tier: ModelTier, index: int) -> str:
            attempt = UpdateAttempt(tier=tier, attempt_index=index)
            try:
                text = await self.llm_client.invoke(
                    tier,
                    system_prompt,
                    user_prompt,
                    dynamic_prompt,
                    self.credentials(tier.credential_ref),
                )
            except ATTEMPT_FAILURES as e:
                attempt.error = e
                logger.warning(f"[UPDATE] {attempt.summary}")
                raise
            logger.info(f"[UPDATE] {attempt.summary}")
            return text

        # Stage 1: standard retry/escalation loop
        max_attempts = self.retry_config.max_attempts
        current = self.registry.first()
        escalation_target = self._escalation_target()
        last_error: Optional[Exception] = None
        content: Optional[str] = None
        tier = current
        number = 0

        try:
            async for attempt_state in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_fixed(self.retry_config.delay_seconds),
                retry=retry_if_exception_type(ATTEMPT_FAILURES),
                sleep=self._sleep,
                reraise=True,
            ):
                with attempt_state:
                    number = attempt_state.retry_state.attempt_number
                    tier = current
                    try:
                        content = await attempt_with(tier, number)
                    except ATTEMPT_FAILURES as e:
                        last_error = e
                        if (
                            escalation_target is not None
                            and tier.key is self.registry.first().key
                            and self.policy.should_escalate(e)
                        ):
                            current = escalation_target
                            logger.warning(
                                f"[UPDATE] Escalating {tier.key.value} -> "
                                f"{current.key.value} after attempt {number}/{max_attempts}"
                            )
                        raise
        except ATTEMPT_FAILURES as e:
            last_error = e
            logger.error(
                f"[UPDATE] All {max_attempts} standard attempts failed. Last error: {e}"
            )
        else:
            return await self._accept(tier, content, number)

        # Stage 2: last-resort tier
        if not self.registry.has(TierKey.FINAL):
            raise ExhaustedAllStrategies(last_error) from last_error

        final_tier = self.registry.lookup(TierKey.FINAL)
        logger.warning(f"[UPDATE] Trying last-resort tier {final_tier.model_id}")
        try:
            content = await attempt_with(final_tier, max_attempts + 1)
        except ATTEMPT_FAILURES as final_error:
            error = ExhaustedAllStrategies(last_error, final_error)
            logger.error(f"[UPDATE] {error.message}")
            raise error from final_error

        return await self._accept(final_tier, content, max_attempts + 1)

    async def _accept(self, tier: ModelTier, content: str, attempts: int) -> UpdateResult:
        """Persist accepted content and build the run result."""
        result = UpdateResult(tier_used=tier.key, content=content.strip(), attempts=attempts)
        await self.cache.put(self.cache_key, result.content)
        logger.info(
            f"[UPDATE] Stored new content from tier={tier.key.value} "
            f"after {attempts} attempt(s)"
        )
        return result


def create_orchestrator_from_settings(
    settings: Settings,
    cache: ContentCache,
) -> UpdateOrchestrator:
    """Create an UpdateOrchestrator from application settings.

    Args:
        settings: Application settings
        cache: Content cache shared with the read endpoint

    Returns:
        Configured UpdateOrchestrator instance
    """
    registry = TierRegistry(build_default_tiers(settings))
    retry_config = RetryConfig(
        max_attempts=settings.update_max_attempts,
        delay_seconds=settings.update_retry_delay_seconds,
        escalate_on_server_error=settings.escalate_on_server_error,
    )

    logger.info(
        f"[UPDATE] Orchestrator configured | tiers="
        f"{[t.key.value for t in registry.chain()]} | "
        f"max_attempts={retry_config.max_attempts} | "
        f"delay={retry_config.delay_seconds}s"
    )

    return UpdateOrchestrator(
        registry=registry,
        llm_client=LLMClient(timeout_seconds=settings.llm_timeout_seconds),
        prompt_source=PromptSource(
            settings.prompt_source_url,
            timeout_seconds=settings.prompt_source_timeout_seconds,
        ),
        cache=cache,
        credentials=settings.credential,
        retry_config=retry_config,
        cache_key=settings.cache_key,
        prompt_token=settings.prompt_source_token,
    )
