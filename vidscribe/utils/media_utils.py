"""ffmpeg and ffprobe helpers, and the list of video containers we scan for."""

import asyncio
import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".mkv", ".wmv"})

_FFPROBE_DURATION = (
    "ffprobe",
    "-v", "error",
    "-show_entries", "format=duration",
    "-of", "default=noprint_wrappers=1:nokey=1",
)
FFPROBE_TIMEOUT = 30


def is_video_file(file_path: Path) -> bool:
    """Extension check, case-insensitive."""
    return Path(file_path).suffix.lower() in VIDEO_EXTENSIONS


def get_media_duration(media_path: Path) -> float | None:
    """
    Length of an audio or video file in seconds.

    Returns None when ffprobe is missing, fails or prints nothing usable.
    """
    try:
        result = subprocess.run(
            [*_FFPROBE_DURATION, str(media_path)],
            capture_output=True,
            text=True,
            timeout=FFPROBE_TIMEOUT,
        )
        output = result.stdout.strip()
        if result.returncode == 0 and output:
            return float(output)
        logger.warning(f"ffprobe gave no duration for {Path(media_path).name}: {result.stderr.strip()}")
    except (OSError, ValueError, subprocess.TimeoutExpired) as e:
        logger.warning(f"ffprobe failed for {Path(media_path).name}: {e}")
    return None


async def run_ffmpeg(cmd: list[str], timeout: float) -> tuple[int, str]:
    """
    Run an ffmpeg-family command and wait for it.

    The child is killed if it outlives `timeout` or the awaiting task is
    cancelled.

    Returns:
        (returncode, stderr text)

    Raises:
        FileNotFoundError: If the executable is not on PATH
        asyncio.TimeoutError: If the command exceeds timeout
    """
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except (asyncio.TimeoutError, asyncio.CancelledError):
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        raise

    return proc.returncode, stderr.decode("utf-8", errors="replace")
