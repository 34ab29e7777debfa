"""
Anthropic Claude chat client.

Rate limits and transient failures are retried by the SDK itself
(max_retries); whatever still fails surfaces as a ProviderError.
"""

import logging

from anthropic import APIConnectionError, APIStatusError, APITimeoutError, AsyncAnthropic

from vidscribe.config import Settings
from vidscribe.services.ai_clients.base import (
    ChatReply,
    LLMClient,
    Message,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)

# The Messages API requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096


class ClaudeClient(LLMClient):
    """
    Chat client for the Anthropic Messages API.

    System messages are lifted into the request's `system` field.

    Example:
        async with ClaudeClient.from_settings(settings, "claude-haiku-4-5") as client:
            reply = await client.chat([{"role": "user", "content": transcript}])
            spent += reply.cost
    """

    provider = "claude"

    def __init__(
        self,
        api_key: str | None,
        default_model: str,
        timeout: float = 300.0,
        max_retries: int = 3,
    ):
        if not api_key:
            raise ValueError(f"ANTHROPIC_API_KEY is not set; cannot use {default_model}")
        super().__init__(default_model)
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=max_retries)

    @classmethod
    def from_settings(cls, settings: Settings, model: str | None = None) -> "ClaudeClient":
        return cls(
            api_key=settings.anthropic_api_key,
            default_model=model or settings.describe_model,
            timeout=settings.llm_timeout,
        )

    async def close(self) -> None:
        await self.client.close()

    async def _complete(
        self,
        messages: list[Message],
        model: str,
        temperature: float,
        max_tokens: int | None,
    ) -> ChatReply:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        request = {
            "model": model,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "temperature": temperature,
            "messages": [m for m in messages if m["role"] != "system"],
        }
        if system:
            request["system"] = system

        try:
            response = await self.client.messages.create(**request)
        except APITimeoutError as e:
            raise ProviderTimeoutError("request timed out", self.provider, model) from e
        except APIConnectionError as e:
            raise ProviderUnavailableError(f"cannot reach the API: {e}", self.provider, model) from e
        except APIStatusError as e:
            raise ProviderResponseError(
                f"HTTP {e.status_code}: {e.message}", self.provider, model, status_code=e.status_code
            ) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        return ChatReply(text, model, response.usage.input_tokens, response.usage.output_tokens)

    async def ping(self) -> bool:
        """Whether the API accepts our key, spending a one-token request."""
        try:
            await self.chat([{"role": "user", "content": "ping"}], max_tokens=1)
        except ProviderError as e:
            logger.debug(f"Claude unavailable: {e}")
            return False
        return True
