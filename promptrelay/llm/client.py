"""Chat-completion client for a single model tier.

Executes exactly one generation request against a tier's endpoint and
normalizes the outcome: trimmed text on success, a classified
GenerationError (or ConfigurationError) on failure. No retry happens here;
retry and escalation belong to the update orchestrator.
"""

import logging
from typing import Any, Optional

import httpx

from promptrelay.utils.errors import (
    ConfigurationError,
    EmptyResponseError,
    InvocationError,
)

from .config import ModelTier

logger = logging.getLogger(__name__)

# Max characters of an error body carried into log lines and error messages
ERROR_BODY_PREVIEW = 500


def build_messages(
    system_prompt: str,
    fixed_user_prompt: str,
    dynamic_prompt: str,
) -> list[dict[str, str]]:
    """Build the two-message conversation sent to every tier.

    The user message is the fixed prompt, a blank line, and the dynamic
    prompt wrapped in double quotes.
    """
    user_prompt = f'{fixed_user_prompt}\n\n"{dynamic_prompt}"'
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


class LLMClient:
    """Sends one chat-completion request per call."""

    def __init__(
        self,
        timeout_seconds: float = 120.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            timeout_seconds: Per-request timeout when no http_client is given
            http_client: Shared AsyncClient (tests pass one with a MockTransport)
        """
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def invoke(
        self,
        tier: ModelTier,
        system_prompt: str,
        fixed_user_prompt: str,
        dynamic_prompt: str,
        api_key: Optional[str],
    ) -> str:
        """Generate text with the given tier.

        Args:
            tier: Model tier to call
            system_prompt: System role content
            fixed_user_prompt: Fixed part of the user message
            dynamic_prompt: Dynamic fragment fetched for this run
            api_key: Credential resolved from ``tier.credential_ref``

        Returns:
            Generated text, trimmed of surrounding whitespace

        Raises:
            ConfigurationError: If the credential is missing
            InvocationError: On non-2xx response or transport failure
            EmptyResponseError: On 2xx response without usable text
        """
        if not api_key:
            raise ConfigurationError(
                f"{tier.credential_ref} is not set; cannot call tier {tier.key.value}"
            )

        payload: dict[str, Any] = {
            "model": tier.model_id,
            "messages": build_messages(system_prompt, fixed_user_prompt, dynamic_prompt),
            **tier.parameters,
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"[LLM] Calling tier={tier.key.value} | model={tier.model_id}")

        try:
            response = await self._post(tier.endpoint, payload, headers)
        except httpx.HTTPError as e:
            logger.warning(f"[LLM] Transport failure on tier={tier.key.value}: {e!r}")
            raise InvocationError(
                f"Request to {tier.model_id} failed: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            body = response.text[:ERROR_BODY_PREVIEW]
            logger.warning(
                f"[LLM] tier={tier.key.value} answered {response.status_code}: {body}"
            )
            raise InvocationError(
                f"LLM API request failed with status {response.status_code}: {body}",
                status_code=response.status_code,
            )

        content, finish_reason = self._extract(response)
        text = (content or "").strip()
        if not text:
            logger.error(
                f"[LLM] Empty content from tier={tier.key.value} | "
                f"finish_reason={finish_reason}"
            )
            raise EmptyResponseError(finish_reason)

        logger.info(
            f"[LLM] Generated text | tier={tier.key.value} | model={tier.model_id} | "
            f"chars={len(text)}"
        )
        return text

    async def _post(
        self, url: str, payload: dict[str, Any], headers: dict[str, str]
    ) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(url, json=payload, headers=headers)

    @staticmethod
    def _extract(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
        """Pull ``choices[0].message.content`` and ``choices[0].finish_reason``."""
        try:
            data = response.json()
        except ValueError:
            logger.error(f"[LLM] Non-JSON success body: {response.text[:ERROR_BODY_PREVIEW]}")
            return None, None

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None, None

        choice = choices[0]
        message = choice.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if content is not None and not isinstance(content, str):
            content = None
        return content, choice.get("finish_reason")
