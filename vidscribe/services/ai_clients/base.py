"""
Common ground for the model clients.

Chat providers answer with a ChatReply that knows which model produced
it and how many tokens it used, so the description services can report
what a run cost without talking to the pricing table themselves.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from vidscribe.utils.pricing_utils import calculate_cost

logger = logging.getLogger(__name__)

Message = dict[str, str]

# HTTP clients retry dropped connections and timeouts, never error statuses
retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=60),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


@dataclass(frozen=True)
class ChatReply:
    """Completion text with the token counts it was billed for."""

    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def cost(self) -> float:
        """USD; 0.0 for models without a price (local Ollama models)."""
        return calculate_cost(self.model, self.input_tokens, self.output_tokens)


class ProviderError(Exception):
    """
    A model or transcription service request failed.

    Attributes:
        provider: "claude", "ollama" or "whisper"
        model: Model the request was for, if known
    """

    def __init__(self, message: str, provider: str, model: str | None = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model

    def __str__(self) -> str:
        source = self.provider if self.model is None else f"{self.provider}/{self.model}"
        return f"{source}: {self.message}"


class ProviderTimeoutError(ProviderError):
    pass


class ProviderUnavailableError(ProviderError):
    """Service could not be reached."""


class ProviderResponseError(ProviderError):
    """Service answered with an error status or a body we cannot read."""

    def __init__(
        self,
        message: str,
        provider: str,
        model: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, provider, model)
        self.status_code = status_code


@runtime_checkable
class ChatClient(Protocol):
    """What the generator, evaluator and summarizer need from a model."""

    async def chat(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> ChatReply: ...

    async def close(self) -> None: ...


class LLMClient(ABC):
    """
    Base for chat providers.

    Resolves the model, times the call and logs tokens and cost; the
    request itself is the subclass's _complete().
    """

    provider: str = ""

    def __init__(self, default_model: str):
        self.default_model = default_model

    async def chat(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> ChatReply:
        """
        One chat completion.

        Args:
            messages: {"role", "content"} dicts; "system" roles allowed
            model: Overrides default_model
            temperature: Sampling temperature
            max_tokens: Reply length limit (provider default when None)

        Raises:
            ProviderError: If the request fails
        """
        model = model or self.default_model
        started = time.monotonic()
        reply = await self._complete(messages, model, temperature, max_tokens)
        logger.debug(
            f"{self.provider} {model}: {reply.input_tokens} in / {reply.output_tokens} out, "
            f"${reply.cost:.4f}, {time.monotonic() - started:.1f}s"
        )
        return reply

    @abstractmethod
    async def _complete(
        self,
        messages: list[Message],
        model: str,
        temperature: float,
        max_tokens: int | None,
    ) -> ChatReply: ...

    @abstractmethod
    async def close(self) -> None: ...

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
