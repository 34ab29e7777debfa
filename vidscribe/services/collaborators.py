"""
Stage collaborator capabilities.

Each capability has a single async operation. Production implementations
(ffmpeg, Whisper, LLM) and test doubles satisfy the same Protocol and are
injected into the pipeline through Collaborators.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class AudioExtractor(Protocol):
    async def extract(self, video_path: Path, audio_path: Path) -> bool:
        """
        Extract the audio track of a video into audio_path.

        Returns:
            True if audio was written, False if the video has no audio stream

        Raises:
            AudioExtractionError: If the extraction tool fails
        """
        ...


@runtime_checkable
class Transcriber(Protocol):
    async def transcribe(self, audio_path: Path, max_chunk_duration: float) -> str:
        """
        Transcribe an audio file, chunking audio longer than max_chunk_duration seconds.

        Returns:
            Full transcript text
        """
        ...


@runtime_checkable
class DescriptionGenerator(Protocol):
    async def generate(self, transcript: str, filename_hint: str, count: int) -> list[str]:
        """
        Generate `count` description candidates.

        Raises:
            DescriptionGenerationError: With the texts produced before the failure
        """
        ...


@runtime_checkable
class DescriptionEvaluator(Protocol):
    async def evaluate(self, candidates: list[str], transcript: str, filename_hint: str) -> int:
        """
        Rank candidates.

        Returns:
            1-based index of the best candidate
        """
        ...


@dataclass
class Collaborators:
    """The four stage collaborators used by the pipeline."""

    extractor: AudioExtractor
    transcriber: Transcriber
    generator: DescriptionGenerator
    evaluator: DescriptionEvaluator


class AudioExtractionError(Exception):
    """Raised when ffmpeg fails for a reason other than a missing audio stream."""


class EmptyTranscriptError(Exception):
    """Raised when transcription succeeds but yields no text."""


class DescriptionGenerationError(Exception):
    """
    Raised when description generation stops early.

    Attributes:
        partial: Candidate texts generated before the failure
    """

    def __init__(self, message: str, partial: list[str] | None = None):
        self.partial = list(partial or [])
        super().__init__(message)


class DescriptionEvaluationError(Exception):
    """Raised when no valid ranking is obtained within the allowed attempts."""
