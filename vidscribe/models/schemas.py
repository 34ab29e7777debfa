"""
Pydantic models for the video description pipeline.
"""

from enum import Enum

from pydantic import BaseModel, Field, PrivateAttr, model_validator

# Persisted in audio_asset_path when the video has no audio stream
NO_AUDIO = "No audio"

STORE_FORMAT_VERSION = 1


class ProcessingStage(str, Enum):
    """Stage of a file's unit of work, used for error context."""

    EXTRACTION = "extraction"
    TRANSCRIPTION = "transcription"
    GENERATION = "generation"
    EVALUATION = "evaluation"
    PERSISTENCE = "persistence"


class Candidate(BaseModel):
    """One generated description for a video."""

    ordinal: int = Field(..., ge=1, description="1-based, never reused")
    text: str


class ProcessingRecord(BaseModel):
    """Durable progress entry for one source video.

    Attributes:
        source_path: Slash-separated path relative to the scan root (identity key)
        audio_asset_path: Extracted audio path, NO_AUDIO, or "" before extraction
        transcript: Full transcript text, "" until transcription succeeds
        candidates: Generated descriptions in ordinal order
        best_candidate_ordinal: Ordinal picked by the evaluator over the current
            candidates, 0 until that evaluation succeeds
    """

    source_path: str
    audio_asset_path: str = ""
    transcript: str = ""
    candidates: list[Candidate] = Field(default_factory=list)
    best_candidate_ordinal: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_consistency(self) -> "ProcessingRecord":
        ordinals = [c.ordinal for c in self.candidates]
        if any(b <= a for a, b in zip(ordinals, ordinals[1:])):
            raise ValueError(
                f"{self.source_path}: candidate ordinals must be strictly increasing, got {ordinals}"
            )
        if self.audio_asset_path == NO_AUDIO and (self.transcript or self.candidates):
            raise ValueError(
                f"{self.source_path}: record without audio cannot have transcript or candidates"
            )
        if self.best_candidate_ordinal and self.best_candidate_ordinal not in ordinals:
            raise ValueError(
                f"{self.source_path}: best_candidate_ordinal {self.best_candidate_ordinal} "
                f"not in candidates {ordinals}"
            )
        return self

    @property
    def has_audio(self) -> bool:
        """False only when extraction classified the file as silent."""
        return self.audio_asset_path != NO_AUDIO

    @property
    def next_ordinal(self) -> int:
        """Ordinal for the next appended candidate."""
        return max((c.ordinal for c in self.candidates), default=0) + 1

    @property
    def candidate_texts(self) -> list[str]:
        return [c.text for c in self.candidates]

    @property
    def best_candidate(self) -> Candidate | None:
        for candidate in self.candidates:
            if candidate.ordinal == self.best_candidate_ordinal:
                return candidate
        return None

    @property
    def is_ranked(self) -> bool:
        return self.best_candidate_ordinal != 0

    def is_complete(self, target: int) -> bool:
        """Has at least `target` candidates and a best pick among them."""
        return self.has_audio and self.is_ranked and len(self.candidates) >= target

    def is_terminal(self, target: int) -> bool:
        """Whether no more work is needed for the given target count.

        Records without audio are terminal regardless of the target.
        """
        return not self.has_audio or self.is_complete(target)


class ProcessingStore(BaseModel):
    """All records for one scan root, in insertion order.

    Example:
        store = ProcessingStore()
        store.upsert(ProcessingRecord(source_path="a.mp4"))
        record = store.get("a.mp4")
    """

    version: int = STORE_FORMAT_VERSION
    records: list[ProcessingRecord] = Field(default_factory=list)

    _index: dict[str, int] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _check_unique_keys(self) -> "ProcessingStore":
        seen: set[str] = set()
        for record in self.records:
            if record.source_path in seen:
                raise ValueError(f"duplicate record for source_path '{record.source_path}'")
            seen.add(record.source_path)
        return self

    def model_post_init(self, __context) -> None:
        self._index = {record.source_path: i for i, record in enumerate(self.records)}

    def get(self, source_path: str) -> ProcessingRecord | None:
        """Return the record for a key, or None."""
        position = self._index.get(source_path)
        if position is None:
            return None
        return self.records[position]

    def upsert(self, record: ProcessingRecord) -> None:
        """Replace the record with the same key in place, or append it."""
        position = self._index.get(record.source_path)
        if position is None:
            self._index[record.source_path] = len(self.records)
            self.records.append(record)
        else:
            self.records[position] = record

    def __contains__(self, source_path: object) -> bool:
        return source_path in self._index

    def __len__(self) -> int:
        return len(self.records)


class StoreSummary(BaseModel):
    """Progress counts over a store for a given target."""

    target: int
    total: int
    complete: int
    no_audio: int
    pending: int

    @classmethod
    def from_store(cls, store: ProcessingStore, target: int) -> "StoreSummary":
        no_audio = sum(1 for r in store.records if not r.has_audio)
        complete = sum(1 for r in store.records if r.is_complete(target))
        return cls(
            target=target,
            total=len(store),
            complete=complete,
            no_audio=no_audio,
            pending=len(store) - complete - no_audio,
        )
