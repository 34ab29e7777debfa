"""
Whisper speech-to-text client.

Uploads one audio file to an OpenAI-compatible /v1/audio/transcriptions
endpoint (OpenAI or a self-hosted server) and returns the text with the
language Whisper heard.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import httpx

from vidscribe.config import Settings
from vidscribe.services.ai_clients.base import (
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    retry_transient,
)

logger = logging.getLogger(__name__)

# Long recordings over slow uplinks
UPLOAD_TIMEOUT = 1800.0
AVAILABILITY_TIMEOUT = 5.0


@dataclass(frozen=True)
class WhisperTranscription:
    text: str
    language: str | None = None
    duration: float | None = None

    @classmethod
    def from_response(cls, data: dict) -> "WhisperTranscription":
        """Read a verbose_json body; plain json bodies carry only "text"."""
        text = data.get("text")
        if text is None:
            text = " ".join(segment.get("text", "").strip() for segment in data.get("segments", []))
        return cls(text=text.strip(), language=data.get("language") or None, duration=data.get("duration"))


class WhisperClient:
    """
    Example:
        async with WhisperClient.from_settings(settings) as client:
            result = await client.transcribe(Path(".tmp/clip.wav"))
            logger.info(f"{result.language}: {result.text[:80]}")
    """

    provider = "whisper"

    def __init__(
        self,
        base_url: str,
        model: str = "whisper-1",
        api_key: str | None = None,
        language: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        # None lets Whisper detect the language
        self.language = language
        self.http_client = http_client or httpx.AsyncClient(timeout=None)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhisperClient":
        return cls(
            base_url=settings.whisper_url,
            model=settings.whisper_model,
            api_key=settings.whisper_api_key,
            language=settings.whisper_language,
        )

    async def __aenter__(self) -> "WhisperClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http_client.aclose()

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    async def is_available(self) -> bool:
        """Whether the server lists its models for our credentials."""
        try:
            response = await self.http_client.get(
                f"{self.base_url}/v1/models", headers=self._auth_headers, timeout=AVAILABILITY_TIMEOUT
            )
        except httpx.HTTPError as e:
            logger.debug(f"Whisper not reachable at {self.base_url}: {e}")
            return False
        return response.status_code == 200

    async def transcribe(self, audio_path: Path) -> WhisperTranscription:
        """
        Transcribe one audio file in a single request.

        Raises:
            FileNotFoundError: If the file does not exist
            ProviderError: If the upload or the transcription fails
        """
        audio_path = Path(audio_path)
        if not audio_path.is_file():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        try:
            result = WhisperTranscription.from_response(await self._upload(audio_path))
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"no transcription of {audio_path.name} within {UPLOAD_TIMEOUT:.0f}s",
                self.provider,
                self.model,
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderResponseError(
                f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                self.provider,
                self.model,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(f"cannot reach {self.base_url}: {e}", self.provider, self.model) from e
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderResponseError(f"unexpected response: {e!r}", self.provider, self.model) from e

        logger.debug(
            f"{audio_path.name}: {len(result.text)} chars, "
            f"language={result.language}, duration={result.duration}"
        )
        return result

    @retry_transient
    async def _upload(self, audio_path: Path) -> dict:
        form = {"model": self.model, "response_format": "verbose_json"}
        if self.language:
            form["language"] = self.language

        response = await self.http_client.post(
            f"{self.base_url}/v1/audio/transcriptions",
            headers=self._auth_headers,
            files={"file": (audio_path.name, audio_path.read_bytes(), "application/octet-stream")},
            data=form,
            timeout=UPLOAD_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()
