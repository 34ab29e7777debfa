"""
Directory pipeline driver.

Walks a scan root, brings every video's record up to the target candidate
count through FileProcessor, and rewrites the progress store after each
file whose record changed. Everything persisted before a failure or an
interruption stays valid and is picked up by the next run.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from vidscribe.config import Settings, get_settings
from vidscribe.models.schemas import ProcessingRecord, ProcessingStore
from vidscribe.services.collaborators import Collaborators

from .discovery import iter_video_files
from .errors import FileProcessingError, PipelineError, ProgressStoreError
from .progress_store import load_store, normalize_key, relative_key, save_store
from .unit_of_work import FileProcessor

logger = logging.getLogger(__name__)
perf_logger = logging.getLogger("vidscribe.perf")


@dataclass
class RunStats:
    """Counters for one directory run."""

    discovered: int = 0
    skipped: int = 0
    processed: int = 0
    no_audio: int = 0


def cleanup_scratch_dir(scratch_dir: Path) -> int:
    """
    Delete the files left in the scratch directory.

    Returns:
        Number of files removed
    """
    scratch_dir = Path(scratch_dir)
    if not scratch_dir.is_dir():
        return 0

    removed = 0
    for path in scratch_dir.iterdir():
        if not path.is_file():
            continue
        try:
            path.unlink()
            removed += 1
        except OSError as e:
            logger.warning(f"Failed to remove scratch file {path.name}: {e}")

    if removed:
        logger.debug(f"Removed {removed} scratch file(s) from {scratch_dir}")
    return removed


class DirectoryPipeline:
    """
    Resumable directory pipeline.

    Files are processed one at a time in discovery order. The store is
    loaded once at the start of a run and rewritten whole after every
    file whose record changed, so a crash loses at most the file in flight.

    Example:
        pipeline = DirectoryPipeline(collaborators, settings)
        store = await pipeline.run(Path("videos"), Path("descriptions.json"), target=3)

    Example (single file, no store):
        record = await pipeline.process_single(Path("videos/trip.mp4"), target=3)
    """

    def __init__(self, collaborators: Collaborators, settings: Settings | None = None):
        """
        Initialize the pipeline.

        Args:
            collaborators: Stage collaborators
            settings: Application settings (uses defaults if None)
        """
        self.collaborators = collaborators
        self.settings = settings or get_settings()
        self.scratch_dir = Path(self.settings.temp_dir)

    def _processor(self, cancel_event: asyncio.Event | None) -> FileProcessor:
        return FileProcessor(
            self.collaborators,
            self.scratch_dir,
            self.settings.transcribe_max_chunk_seconds,
            cancel_event,
        )

    async def run(
        self,
        scan_root: Path,
        store_location: Path,
        target: int,
        cancel_event: asyncio.Event | None = None,
    ) -> ProcessingStore:
        """
        Process every video under scan_root.

        Args:
            scan_root: Directory to walk
            store_location: Progress store JSON file
            target: Desired number of candidates per file
            cancel_event: Set to stop at the next collaborator boundary

        Returns:
            Final store (identical to what is on disk)

        Raises:
            ValueError: If target < 1
            FileNotFoundError / NotADirectoryError: If scan_root is not a directory
            ProgressStoreError: If the store cannot be read or written
            PipelineError: If a file fails; prior work is already persisted
            asyncio.CancelledError: If the run was cancelled
        """
        if target < 1:
            raise ValueError(f"target must be >= 1, got {target}")

        scan_root = Path(scan_root)
        store_location = Path(store_location)
        store = load_store(store_location)

        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        cleanup_scratch_dir(self.scratch_dir)

        processor = self._processor(cancel_event)
        stats = RunStats()
        start_time = time.time()

        logger.info(f"Scanning {scan_root} (target: {target} description(s) per file)")

        try:
            for video_path in iter_video_files(scan_root):
                stats.discovered += 1
                key = relative_key(video_path, scan_root)
                existing = store.get(key)

                try:
                    record = await processor.process(video_path, key, target, existing)
                except FileProcessingError as e:
                    self._persist_partial(store_location, store, existing, e.partial)
                    logger.error(f"Pipeline stopped at {e}")
                    raise PipelineError(e.source_path, e.stage, e.message, e.cause, store) from e

                if record is existing:
                    stats.skipped += 1
                    continue

                stats.processed += 1
                if not record.has_audio:
                    stats.no_audio += 1

                if record != existing:
                    self._save_record(store_location, store, record)
                    logger.info(f"Saved progress for {key}")
        finally:
            cleanup_scratch_dir(self.scratch_dir)

        elapsed = time.time() - start_time
        logger.info(
            f"Run complete: {stats.discovered} discovered, {stats.processed} processed, "
            f"{stats.skipped} skipped, {stats.no_audio} without audio"
        )
        perf_logger.info(
            f"PERF | run | "
            f"files={stats.discovered} | "
            f"processed={stats.processed} | "
            f"total={elapsed:.1f}s"
        )

        return store

    def _persist_partial(
        self,
        store_location: Path,
        store: ProcessingStore,
        existing: ProcessingRecord | None,
        partial: ProcessingRecord | None,
    ) -> None:
        """Save the failing file's progress, if it advanced."""
        if partial is None or partial == existing:
            return
        self._save_record(store_location, store, partial)
        logger.info(f"Saved partial progress for {partial.source_path}")

    @staticmethod
    def _save_record(
        store_location: Path,
        store: ProcessingStore,
        record: ProcessingRecord,
    ) -> None:
        """
        Write the store with `record` upserted, then apply it in memory.

        Raises:
            ProgressStoreError: With `store` attached, unchanged and matching the file on disk
        """
        updated = store.model_copy(deep=True)
        updated.upsert(record)
        try:
            save_store(store_location, updated)
        except ProgressStoreError as e:
            raise ProgressStoreError(e.location, e.message, e.cause, store=store) from e
        store.upsert(record)

    async def process_single(
        self,
        video_path: Path,
        target: int,
        cancel_event: asyncio.Event | None = None,
    ) -> ProcessingRecord:
        """
        Process one file without a store.

        Raises:
            ValueError: If target < 1
            FileNotFoundError: If the video does not exist
            PipelineError: If a stage fails
        """
        if target < 1:
            raise ValueError(f"target must be >= 1, got {target}")

        video_path = Path(video_path)
        if not video_path.is_file():
            raise FileNotFoundError(f"Video file not found: {video_path}")

        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        processor = self._processor(cancel_event)
        key = normalize_key(video_path.name)

        try:
            return await processor.process(video_path, key, target)
        except FileProcessingError as e:
            raise PipelineError(e.source_path, e.stage, e.message, e.cause) from e
        finally:
            cleanup_scratch_dir(self.scratch_dir)

