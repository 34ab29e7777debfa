"""
Soundtrack extraction with ffmpeg.

Each video becomes a mono 16 kHz PCM WAV for Whisper. Videos that have
no audio stream are reported as such instead of failing.
"""

import asyncio
import logging
from pathlib import Path

from vidscribe.config import Settings
from vidscribe.services.collaborators import AudioExtractionError
from vidscribe.utils.media_utils import run_ffmpeg

logger = logging.getLogger(__name__)

# ffmpeg stderr fragments meaning "this input has no audio stream"
NO_AUDIO_MARKERS = (
    "does not contain any stream",
    "Output file is empty, nothing was encoded",
    "matches no streams",
)


def build_ffmpeg_command(video_path: Path, audio_path: Path) -> list[str]:
    return [
        "ffmpeg",
        "-nostdin",
        "-y",
        "-i", str(video_path),
        "-vn",
        # 16-bit mono PCM at 16 kHz
        "-acodec", "pcm_s16le",
        "-ar", "16000",
        "-ac", "1",
        str(audio_path),
    ]


class FfmpegAudioExtractor:
    """
    AudioExtractor backed by the ffmpeg binary.

    ffmpeg runs as an asyncio subprocess so a cancelled run kills it
    instead of waiting for it to finish.

    Example:
        extractor = FfmpegAudioExtractor(settings)
        has_audio = await extractor.extract(video_path, Path(".tmp/video.wav"))
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def extract(self, video_path: Path, audio_path: Path) -> bool:
        """
        Write the soundtrack of `video_path` to `audio_path` (parent created).

        Returns:
            False when the video has no audio stream; nothing is left behind then

        Raises:
            FileNotFoundError: If the video is missing
            AudioExtractionError: If ffmpeg fails or times out
        """
        video_path = Path(video_path)
        audio_path = Path(audio_path)

        if not video_path.is_file():
            raise FileNotFoundError(f"No such video: {video_path}")

        audio_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"ffmpeg: {video_path.name} -> {audio_path}")

        returncode, stderr = await self._run_ffmpeg(
            build_ffmpeg_command(video_path, audio_path)
        )

        if returncode != 0:
            if any(marker in stderr for marker in NO_AUDIO_MARKERS):
                logger.info(f"No audio stream in {video_path.name}")
                audio_path.unlink(missing_ok=True)
                return False
            logger.error(f"ffmpeg failed: {stderr[-500:]}")
            raise AudioExtractionError(
                f"ffmpeg error (code {returncode}) for {video_path.name}: {stderr[-300:].strip()}"
            )

        if not audio_path.is_file():
            raise AudioExtractionError(f"ffmpeg reported success but wrote no {audio_path.name}")

        logger.info(f"Soundtrack of {video_path.name}: {audio_path.stat().st_size // 1024} KiB WAV")
        return True

    async def _run_ffmpeg(self, cmd: list[str]) -> tuple[int, str]:
        """
        Run ffmpeg and return (returncode, stderr).

        Raises:
            AudioExtractionError: If ffmpeg is missing or exceeds ffmpeg_timeout
        """
        try:
            return await run_ffmpeg(cmd, timeout=self.settings.ffmpeg_timeout)
        except FileNotFoundError as e:
            raise AudioExtractionError("ffmpeg not found on PATH") from e
        except asyncio.TimeoutError as e:
            raise AudioExtractionError(
                f"ffmpeg timed out after {self.settings.ffmpeg_timeout}s"
            ) from e
