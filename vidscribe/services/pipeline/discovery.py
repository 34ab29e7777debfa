"""
Video file discovery.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from vidscribe.utils.media_utils import is_video_file

logger = logging.getLogger(__name__)


def iter_video_files(root: Path) -> Iterator[Path]:
    """
    Yield video files under root in a deterministic order.

    Directories and file names are visited in sorted order; symlinked
    directories are not followed. The walk is lazy, so files are handed
    out as they are found.

    Raises:
        FileNotFoundError: If root does not exist
        NotADirectoryError: If root is a file
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Scan root not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Scan root is not a directory: {root}")

    def _on_error(error: OSError) -> None:
        logger.warning(f"Cannot list {error.filename}: {error.strerror}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if is_video_file(path):
                yield path
