"""Shared fixtures and fakes for the prompt relay tests."""

import os
import tempfile

# Keep log files and the background scheduler out of test runs
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="promptrelay-logs-"))
os.environ.setdefault("SCHEDULE_ENABLED", "false")

import pytest  # noqa: E402

from promptrelay.llm import ModelTier, RetryConfig, TierKey, TierRegistry  # noqa: E402
from promptrelay.services.content_cache import InMemoryContentCache  # noqa: E402
from promptrelay.services.update_orchestrator import UpdateOrchestrator  # noqa: E402


PRIMARY = ModelTier(
    key=TierKey.PRIMARY,
    model_id="primary-model",
    endpoint="https://llm.test/primary/chat/completions",
    credential_ref="GEMINI_API_KEY",
    parameters={"temperature": 2.0},
)
FALLBACK = ModelTier(
    key=TierKey.FALLBACK,
    model_id="fallback-model",
    endpoint="https://llm.test/fallback/chat/completions",
    credential_ref="GEMINI_API_KEY",
)
FINAL = ModelTier(
    key=TierKey.FINAL,
    model_id="final-model",
    endpoint="https://llm.test/final/chat/completions",
    credential_ref="OPENAI_API_KEY",
)


class FakePromptSource:
    """Prompt source returning a fixed phrase (or raising) and counting calls."""

    def __init__(self, text: str = "seed phrase", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls = 0
        self.tokens = []

    async def fetch_dynamic_prompt(self, token):
        self.calls += 1
        self.tokens.append(token)
        if self.error is not None:
            raise self.error
        return self.text


class ScriptedLLMClient:
    """LLM client replaying a script of outcomes (text or exception)."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.dynamic_prompts = []
        self.api_keys = []

    async def invoke(self, tier, system_prompt, fixed_user_prompt, dynamic_prompt, api_key):
        self.calls.append(tier.key)
        self.dynamic_prompts.append(dynamic_prompt)
        self.api_keys.append(api_key)
        if not self.outcomes:
            raise AssertionError(f"Unexpected attempt #{len(self.calls)} on {tier.key}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingCache(InMemoryContentCache):
    """In-memory cache that remembers every write."""

    def __init__(self):
        super().__init__()
        self.puts = []

    async def put(self, key, text):
        self.puts.append((key, text))
        await super().put(key, text)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def cache():
    return RecordingCache()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(cache, sleep):
    """Build an orchestrator around fakes.

    Usage: make_orchestrator(outcomes, max_attempts=5, with_final=False, ...)
    Returns (orchestrator, llm_client, prompt_source).
    """

    def factory(
        outcomes,
        max_attempts=5,
        with_final=False,
        escalate_on_server_error=True,
        prompt_source=None,
        credentials=None,
        delay_seconds=2.0,
    ):
        tiers = [PRIMARY, FALLBACK] + ([FINAL] if with_final else [])
        llm_client = ScriptedLLMClient(outcomes)
        source = prompt_source or FakePromptSource()
        orchestrator = UpdateOrchestrator(
            registry=TierRegistry(tiers),
            llm_client=llm_client,
            prompt_source=source,
            cache=cache,
            credentials=credentials or (lambda ref: f"key-for-{ref}"),
            retry_config=RetryConfig(
                max_attempts=max_attempts,
                delay_seconds=delay_seconds,
                escalate_on_server_error=escalate_on_server_error,
            ),
            prompt_token="prompt-token",
            system_prompt="system",
            user_prompt="fixed",
            sleep=sleep,
        )
        return orchestrator, llm_client, source

    return factory
