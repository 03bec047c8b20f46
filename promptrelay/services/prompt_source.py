"""Prompt inputs for update runs.

Fixed prompt text ships in the package ``prompts/`` directory; the dynamic
fragment is fetched from a remote source once per run.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

import httpx

from promptrelay.utils.errors import DependencyError

logger = logging.getLogger(__name__)

# Prompts directory
PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

SYSTEM_PROMPT = "system_prompt"
USER_PROMPT = "user_prompt"


@lru_cache
def load_prompt(name: str) -> str:
    """
    Load a prompt text from the prompts directory.

    Args:
        name: Prompt file name (without .txt extension)

    Returns:
        Prompt text, trailing whitespace removed

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    prompt_file = PROMPTS_DIR / f"{name}.txt"
    if not prompt_file.exists():
        raise FileNotFoundError(f"Prompt not found: {prompt_file}")
    logger.info(f"[PROMPT] Loaded prompt: {name}")
    return prompt_file.read_text(encoding="utf-8").rstrip()


class PromptSource:
    """Fetches the dynamic prompt fragment from the upstream endpoint."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def fetch_dynamic_prompt(self, token: Optional[str]) -> str:
        """Fetch the dynamic prompt with one authenticated request.

        Args:
            token: Shared Bearer token for the prompt source

        Returns:
            Response body as text

        Raises:
            DependencyError: On non-2xx response or transport failure
        """
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        logger.info(f"[PROMPT] Fetching dynamic prompt from {self.url}")

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.post(self.url, headers=headers)
        except httpx.HTTPError as e:
            raise DependencyError(
                f"Could not reach prompt source: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            raise DependencyError(
                f"Prompt source answered with status {response.status_code}",
                status_code=response.status_code,
            )

        text = response.text
        logger.info(f'[PROMPT] Fetched dynamic prompt: "{text}"')
        return text
