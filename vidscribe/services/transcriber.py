"""
Transcriber backed by the Whisper HTTP API.

Audio longer than the chunk limit is cut with ffmpeg into consecutive
pieces, each sent as its own request; the texts are joined in order.
"""

import asyncio
import logging
import math
import time
from pathlib import Path

from vidscribe.config import Settings
from vidscribe.services.ai_clients import WhisperClient, WhisperTranscription
from vidscribe.services.collaborators import AudioExtractionError
from vidscribe.utils.media_utils import get_media_duration, run_ffmpeg
from vidscribe.utils.pricing_utils import calculate_transcription_cost

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("vidscribe.perf")


class WhisperTranscriber:
    """
    Example:
        async with WhisperClient.from_settings(settings) as whisper:
            transcript = await WhisperTranscriber(whisper, settings).transcribe(wav_path, 300)
    """

    def __init__(self, whisper: WhisperClient, settings: Settings):
        self.whisper = whisper
        self.settings = settings

    async def transcribe(self, audio_path: Path, max_chunk_duration: float) -> str:
        """
        Transcript of `audio_path`, sending at most `max_chunk_duration`
        seconds of audio per request. Chunk texts are joined by single spaces.

        Raises:
            FileNotFoundError: If audio file doesn't exist
            AudioExtractionError: If splitting the audio fails
            ProviderError: If the API returns an error
        """
        audio_path = Path(audio_path)
        if not audio_path.is_file():
            raise FileNotFoundError(f"No such audio file: {audio_path}")

        started = time.monotonic()
        duration = await asyncio.to_thread(get_media_duration, audio_path)

        if duration is None or duration <= max_chunk_duration:
            chunks = [audio_path]
        else:
            chunks = await self._split_audio(audio_path, duration, max_chunk_duration)

        results: list[WhisperTranscription] = []
        try:
            for index, chunk in enumerate(chunks):
                result = await self.whisper.transcribe(chunk)
                logger.debug(f"Chunk {index + 1}/{len(chunks)}: {len(result.text)} chars")
                results.append(result)
        finally:
            for chunk in chunks:
                if chunk != audio_path:
                    chunk.unlink(missing_ok=True)

        transcript = " ".join(r.text for r in results if r.text).strip()
        language = next((r.language for r in results if r.language), "unknown")
        elapsed = time.monotonic() - started

        logger.info(
            f"Transcribed {audio_path.name}: {len(chunks)} chunk(s), {len(transcript)} chars, "
            f"language {language}"
        )
        perf_logger.info(
            f"PERF | transcribe | "
            f"duration={duration or 0:.0f}s | "
            f"chunks={len(chunks)} | "
            f"cost=${calculate_transcription_cost(self.settings.whisper_model, duration or 0):.4f} | "
            f"total={elapsed:.1f}s"
        )

        return transcript

    async def _split_audio(
        self,
        audio_path: Path,
        duration: float,
        max_chunk_duration: float,
    ) -> list[Path]:
        """
        Cut audio into consecutive pieces of at most max_chunk_duration seconds.

        Returns:
            Chunk paths next to the source audio, in playback order
        """
        count = math.ceil(duration / max_chunk_duration)
        logger.info(
            f"Splitting {audio_path.name} ({duration:.0f}s) into {count} chunks "
            f"of <= {max_chunk_duration:.0f}s"
        )

        chunks: list[Path] = []
        try:
            for index in range(count):
                chunk_path = audio_path.with_name(f"{audio_path.stem}_chunk_{index}.wav")
                cmd = [
                    "ffmpeg",
                    "-nostdin",
                    "-y",
                    "-i", str(audio_path),
                    "-ss", f"{index * max_chunk_duration:.3f}",
                    "-t", f"{max_chunk_duration:.3f}",
                    "-acodec", "pcm_s16le",
                    "-ar", "16000",
                    "-ac", "1",
                    str(chunk_path),
                ]
                try:
                    returncode, stderr = await run_ffmpeg(cmd, timeout=self.settings.ffmpeg_timeout)
                except (FileNotFoundError, asyncio.TimeoutError) as e:
                    raise AudioExtractionError(f"Failed to create audio chunk {index}: {e}") from e
                if returncode != 0:
                    raise AudioExtractionError(
                        f"Failed to create audio chunk {index}: {stderr[-300:].strip()}"
                    )
                chunks.append(chunk_path)
        except BaseException:
            for chunk in chunks:
                chunk.unlink(missing_ok=True)
            raise

        return chunks

