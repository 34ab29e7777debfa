"""
Per-file unit of work.

Works out which stages a file still needs (extraction, transcription,
generation, evaluation) from its existing record and runs only those.
"""

import asyncio
import logging
import time
from pathlib import Path

from vidscribe.models.schemas import (
    NO_AUDIO,
    Candidate,
    ProcessingRecord,
    ProcessingStage,
)
from vidscribe.services.collaborators import (
    Collaborators,
    DescriptionGenerationError,
    EmptyTranscriptError,
)

from .errors import FileProcessingError
from .progress_store import normalize_key

logger = logging.getLogger(__name__)


class FileProcessor:
    """
    Brings one file's record up to a target candidate count.

    The processor never touches the store; it returns the updated record
    and leaves persistence to the caller. Any collaborator error is raised
    as FileProcessingError carrying the record as advanced so far.

    Example:
        processor = FileProcessor(collaborators, Path(".tmp"), 300)
        record = await processor.process(video, "sub/video.mp4", 3, store.get("sub/video.mp4"))
    """

    def __init__(
        self,
        collaborators: Collaborators,
        scratch_dir: Path,
        max_chunk_duration: float,
        cancel_event: asyncio.Event | None = None,
    ):
        self.collaborators = collaborators
        self.scratch_dir = Path(scratch_dir)
        self.max_chunk_duration = max_chunk_duration
        self.cancel_event = cancel_event

    async def process(
        self,
        video_path: Path,
        key: str,
        target: int,
        existing: ProcessingRecord | None = None,
    ) -> ProcessingRecord:
        """
        Run the remaining stages for one file.

        Args:
            video_path: Path of the video on disk
            key: Store key (normalized relative path)
            target: Desired number of candidates
            existing: Record from a previous run, if any

        Returns:
            Updated record; `existing` itself when nothing was left to do

        Raises:
            FileProcessingError: If a collaborator fails
            asyncio.CancelledError: If cancellation was requested
        """
        video_path = Path(video_path)

        if existing is not None and existing.is_terminal(target):
            logger.debug(f"Skipping {key}: nothing to do for target {target}")
            return existing

        record = (
            existing.model_copy(deep=True)
            if existing is not None
            else ProcessingRecord(source_path=key)
        )

        if not record.transcript:
            record = await self._ensure_transcript(video_path, record, existing is not None)
            if not record.has_audio:
                return record

        remaining = target - len(record.candidates)
        if remaining > 0:
            record = await self._add_candidates(video_path, record, remaining)

        # Also covers records left unranked by an earlier evaluation failure
        if not record.is_ranked:
            record = await self._rank_candidates(video_path, record)

        return record

    async def _ensure_transcript(
        self,
        video_path: Path,
        record: ProcessingRecord,
        advanced: bool,
    ) -> ProcessingRecord:
        """Extract audio and transcribe it, or mark the record as silent."""
        key = record.source_path
        partial = record if advanced else None
        audio_path = self.scratch_dir / f"{video_path.stem}_{time.time_ns()}.wav"

        self._check_cancelled()
        try:
            has_audio = await self.collaborators.extractor.extract(video_path, audio_path)
        except Exception as e:
            raise FileProcessingError(key, ProcessingStage.EXTRACTION, str(e), e, partial) from e

        if not has_audio:
            logger.info(f"{key}: no audio track")
            return ProcessingRecord(source_path=key, audio_asset_path=NO_AUDIO)

        record = record.model_copy(update={"audio_asset_path": normalize_key(audio_path)})

        self._check_cancelled()
        try:
            transcript = await self.collaborators.transcriber.transcribe(
                audio_path, self.max_chunk_duration
            )
            if not transcript or not transcript.strip():
                raise EmptyTranscriptError(f"Empty transcript for {video_path.name}")
        except Exception as e:
            raise FileProcessingError(
                key, ProcessingStage.TRANSCRIPTION, str(e), e, record
            ) from e

        logger.info(f"{key}: transcript {len(transcript)} chars")
        return record.model_copy(update={"transcript": transcript})

    async def _add_candidates(
        self,
        video_path: Path,
        record: ProcessingRecord,
        remaining: int,
    ) -> ProcessingRecord:
        """Generate the missing candidates. The result is unranked."""
        key = record.source_path

        self._check_cancelled()
        try:
            texts = await self.collaborators.generator.generate(
                record.transcript, video_path.name, remaining
            )
        except DescriptionGenerationError as e:
            partial = _with_candidates(record, e.partial) if e.partial else record
            raise FileProcessingError(
                key, ProcessingStage.GENERATION, str(e), e, partial
            ) from e
        except Exception as e:
            raise FileProcessingError(key, ProcessingStage.GENERATION, str(e), e, record) from e

        if len(texts) != remaining:
            logger.warning(f"{key}: requested {remaining} description(s), got {len(texts)}")
        if not texts:
            raise FileProcessingError(
                key, ProcessingStage.GENERATION, "generator returned no descriptions", None, record
            )

        record = _with_candidates(record, texts)
        logger.info(f"{key}: {len(record.candidates)} candidate(s)")
        return record

    async def _rank_candidates(self, video_path: Path, record: ProcessingRecord) -> ProcessingRecord:
        """Ask the evaluator for the best of the current candidates."""
        key = record.source_path

        self._check_cancelled()
        try:
            index = await self.collaborators.evaluator.evaluate(
                record.candidate_texts, record.transcript, video_path.name
            )
            if not 1 <= index <= len(record.candidates):
                raise ValueError(
                    f"evaluator returned {index}, expected 1..{len(record.candidates)}"
                )
        except Exception as e:
            raise FileProcessingError(key, ProcessingStage.EVALUATION, str(e), e, record) from e

        best = record.candidates[index - 1].ordinal
        logger.info(f"{key}: best candidate {best}")
        return record.model_copy(update={"best_candidate_ordinal": best})

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise asyncio.CancelledError()


def _with_candidates(record: ProcessingRecord, texts: list[str]) -> ProcessingRecord:
    """
    Append texts as new candidates with ordinals continuing from the maximum.

    The previous best pick no longer covers the enlarged set, so it is cleared.
    """
    start = record.next_ordinal
    added = [Candidate(ordinal=start + i, text=text) for i, text in enumerate(texts)]
    return record.model_copy(
        update={"candidates": [*record.candidates, *added], "best_candidate_ordinal": 0}
    )
