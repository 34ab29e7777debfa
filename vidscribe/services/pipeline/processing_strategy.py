"""
Provider selection and production wiring.

Model names decide the provider: anything starting with "claude" goes
to the Anthropic API, every other name to the local Ollama server.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from enum import Enum

from vidscribe.config import Settings
from vidscribe.services.ai_clients import ClaudeClient, LLMClient, OllamaClient, WhisperClient
from vidscribe.services.audio_extractor import FfmpegAudioExtractor
from vidscribe.services.collaborators import Collaborators
from vidscribe.services.description_evaluator import LLMDescriptionEvaluator
from vidscribe.services.description_generator import LLMDescriptionGenerator
from vidscribe.services.text_summarizer import TextSummarizer
from vidscribe.services.transcriber import WhisperTranscriber

logger = logging.getLogger(__name__)


class ProviderType(str, Enum):
    LOCAL = "local"  # Ollama
    CLOUD = "cloud"  # Anthropic


@dataclass
class ServiceStatus:
    """Which external services answered a health check."""

    whisper: bool
    ollama: bool
    claude: bool


class ProcessingStrategy:
    """
    Picks a chat client per model and builds the collaborators a run needs.

    Example:
        async with ProcessingStrategy(settings).open_collaborators() as collaborators:
            store = await DirectoryPipeline(collaborators, settings).run(root, store_path, 3)
    """

    CLOUD_MODEL_PREFIXES = ("claude",)

    def __init__(self, settings: Settings):
        self.settings = settings

    def get_provider_type(self, model: str) -> ProviderType:
        if model.lower().startswith(self.CLOUD_MODEL_PREFIXES):
            return ProviderType.CLOUD
        return ProviderType.LOCAL

    def create_client(self, model: str) -> LLMClient:
        """
        Unopened client for `model`; the caller closes it.

        Raises:
            ValueError: For a Claude model when ANTHROPIC_API_KEY is missing
        """
        if self.get_provider_type(model) == ProviderType.CLOUD:
            return ClaudeClient.from_settings(self.settings, model)
        return OllamaClient.from_settings(self.settings, model)

    async def check_availability(self) -> ServiceStatus:
        """Check Whisper, Ollama and Claude. Never raises."""
        async with WhisperClient.from_settings(self.settings) as whisper:
            whisper_up = await whisper.is_available()
        async with OllamaClient.from_settings(self.settings) as ollama:
            ollama_up = await ollama.version() is not None
        return ServiceStatus(whisper=whisper_up, ollama=ollama_up, claude=await self._claude_up())

    async def _claude_up(self) -> bool:
        if not self.settings.anthropic_api_key:
            logger.debug("Claude not checked: ANTHROPIC_API_KEY is not set")
            return False
        async with ClaudeClient.from_settings(self.settings) as client:
            return await client.ping()

    @asynccontextmanager
    async def open_collaborators(self) -> AsyncIterator[Collaborators]:
        """
        Production collaborators; every client is closed on exit.

        Clients are created before the first yield, so missing credentials
        fail the run before any file is touched.

        Raises:
            ValueError: If a configured model needs an API key that is not set
        """
        settings = self.settings
        async with AsyncExitStack() as stack:
            whisper = await stack.enter_async_context(WhisperClient.from_settings(settings))
            clients = {}
            for role, model in (
                ("describe", settings.describe_model),
                ("evaluate", settings.evaluate_model),
                ("summarize", settings.summarize_model),
            ):
                clients[role] = await stack.enter_async_context(self.create_client(model))
                logger.info(f"{role}: {model} ({self.get_provider_type(model).value})")

            summarizer = TextSummarizer(clients["summarize"], settings)
            yield Collaborators(
                extractor=FfmpegAudioExtractor(settings),
                transcriber=WhisperTranscriber(whisper, settings),
                generator=LLMDescriptionGenerator(clients["describe"], settings, summarizer),
                evaluator=LLMDescriptionEvaluator(clients["evaluate"], settings, summarizer),
            )
