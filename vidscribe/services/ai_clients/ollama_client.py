"""
Ollama chat client.

Uses the OpenAI-compatible /v1/chat/completions endpoint of a local
Ollama server. Local models have no price, so the token counts it
reports only end up in the debug log.
"""

import logging

import httpx

from vidscribe.config import Settings
from vidscribe.services.ai_clients.base import (
    ChatReply,
    LLMClient,
    Message,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    retry_transient,
)

logger = logging.getLogger(__name__)

VERSION_TIMEOUT = 5.0


class OllamaClient(LLMClient):
    """
    Example:
        async with OllamaClient("http://localhost:11434", "gemma2:9b") as client:
            reply = await client.chat(messages, temperature=0.0, max_tokens=10)
    """

    provider = "ollama"

    def __init__(
        self,
        base_url: str,
        default_model: str,
        timeout: float = 300.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(default_model)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Timeouts are passed per request
        self.http_client = http_client or httpx.AsyncClient(timeout=None)

    @classmethod
    def from_settings(cls, settings: Settings, model: str | None = None) -> "OllamaClient":
        return cls(settings.ollama_url, model or settings.describe_model, settings.llm_timeout)

    async def close(self) -> None:
        await self.http_client.aclose()

    async def version(self) -> str | None:
        """Server version, or None when Ollama does not answer."""
        try:
            response = await self.http_client.get(f"{self.base_url}/api/version", timeout=VERSION_TIMEOUT)
            response.raise_for_status()
            return response.json().get("version", "unknown")
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Ollama not reachable at {self.base_url}: {e}")
            return None

    async def _complete(
        self,
        messages: list[Message],
        model: str,
        temperature: float,
        max_tokens: int | None,
    ) -> ChatReply:
        body = {"model": model, "messages": messages, "temperature": temperature}
        if max_tokens is not None:
            body["max_tokens"] = max_tokens

        try:
            data = await self._post_completion(body)
            text = data["choices"][0]["message"]["content"] or ""
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"no answer within {self.timeout:.0f}s", self.provider, model
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderResponseError(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                self.provider,
                model,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(f"cannot reach {self.base_url}: {e}", self.provider, model) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderResponseError(f"unexpected response: {e!r}", self.provider, model) from e

        usage = data.get("usage") or {}
        return ChatReply(text, model, usage.get("prompt_tokens", 0), usage.get("completion_tokens", 0))

    @retry_transient
    async def _post_completion(self, body: dict) -> dict:
        response = await self.http_client.post(
            f"{self.base_url}/v1/chat/completions",
            json=body,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()
