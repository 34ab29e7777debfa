"""
Pipeline module for resumable directory processing.

This package contains the pipeline components:
- orchestrator: Directory walk, persistence after every file, scratch cleanup
- unit_of_work: Per-file stage selection and execution
- progress_store: Store load/save and key normalization
- discovery: Deterministic video file walk
- processing_strategy: Provider selection, health checks and default collaborators
- errors: FileProcessingError, PipelineError, ProgressStoreError

Example:
    from vidscribe.services.pipeline import DirectoryPipeline, ProcessingStrategy

    strategy = ProcessingStrategy(settings)
    async with strategy.open_collaborators() as collaborators:
        pipeline = DirectoryPipeline(collaborators, settings)
        store = await pipeline.run(Path("videos"), Path("descriptions.json"), target=3)
"""

from .discovery import iter_video_files
from .errors import FileProcessingError, PipelineError, ProgressStoreError
from .orchestrator import DirectoryPipeline, RunStats, cleanup_scratch_dir
from .processing_strategy import ProcessingStrategy, ProviderType, ServiceStatus
from .progress_store import load_store, normalize_key, relative_key, save_store
from .unit_of_work import FileProcessor

__all__ = [
    # Driver
    "DirectoryPipeline",
    "RunStats",
    "cleanup_scratch_dir",
    "FileProcessor",
    # Store and discovery
    "load_store",
    "save_store",
    "normalize_key",
    "relative_key",
    "iter_video_files",
    # Errors
    "FileProcessingError",
    "PipelineError",
    "ProgressStoreError",
    # Provider selection
    "ProcessingStrategy",
    "ProviderType",
    "ServiceStatus",
]
