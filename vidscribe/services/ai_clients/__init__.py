"""
Clients for the external models: Claude and Ollama for text, Whisper for speech.

    async with ClaudeClient.from_settings(settings) as client:
        reply = await client.chat([{"role": "user", "content": "..."}])
        logger.info(f"{reply.text} (${reply.cost:.4f})")
"""

from vidscribe.services.ai_clients.base import (
    ChatClient,
    ChatReply,
    LLMClient,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from vidscribe.services.ai_clients.claude_client import ClaudeClient
from vidscribe.services.ai_clients.ollama_client import OllamaClient
from vidscribe.services.ai_clients.whisper_client import WhisperClient, WhisperTranscription

__all__ = [
    "ChatClient",
    "ChatReply",
    "ClaudeClient",
    "LLMClient",
    "OllamaClient",
    "ProviderError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "WhisperClient",
    "WhisperTranscription",
]
