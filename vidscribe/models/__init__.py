"""
Pydantic models for the video description pipeline.
"""

from vidscribe.models.schemas import (
    NO_AUDIO,
    STORE_FORMAT_VERSION,
    Candidate,
    ProcessingRecord,
    ProcessingStage,
    ProcessingStore,
    StoreSummary,
)

__all__ = [
    "NO_AUDIO",
    "STORE_FORMAT_VERSION",
    "Candidate",
    "ProcessingRecord",
    "ProcessingStage",
    "ProcessingStore",
    "StoreSummary",
]
