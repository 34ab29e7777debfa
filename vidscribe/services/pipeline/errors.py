"""
Pipeline error types.

All carry the failing file and stage so callers can report
"[stage] source_path: message" without inspecting the cause.
"""

from vidscribe.models.schemas import ProcessingRecord, ProcessingStage, ProcessingStore


class FileProcessingError(Exception):
    """
    A stage collaborator failed while processing one file.

    Attributes:
        source_path: Store key of the failing file
        stage: Stage that failed
        message: Error description
        cause: Original exception
        partial: Record as advanced before the failure, None if nothing advanced
    """

    def __init__(
        self,
        source_path: str,
        stage: ProcessingStage,
        message: str,
        cause: BaseException | None = None,
        partial: ProcessingRecord | None = None,
    ):
        self.source_path = source_path
        self.stage = stage
        self.message = message
        self.cause = cause
        self.partial = partial
        super().__init__(f"[{stage.value}] {source_path}: {message}")


class PipelineError(Exception):
    """
    Directory run aborted on a file.

    Attributes:
        source_path: Store key of the failing file
        stage: Stage that failed
        message: Error description
        cause: Original exception (if any)
        store: Store exactly as persisted before aborting
    """

    def __init__(
        self,
        source_path: str,
        stage: ProcessingStage,
        message: str,
        cause: BaseException | None = None,
        store: ProcessingStore | None = None,
    ):
        self.source_path = source_path
        self.stage = stage
        self.message = message
        self.cause = cause
        self.store = store
        super().__init__(f"[{stage.value}] {source_path}: {message}")


class ProgressStoreError(Exception):
    """
    Store file is malformed or cannot be read or written.

    Attributes:
        location: Store file path
        message: Error description
        cause: Original exception (if any)
        store: For failed writes during a run, the store as it still is on disk
    """

    def __init__(
        self,
        location: str,
        message: str,
        cause: BaseException | None = None,
        store: ProcessingStore | None = None,
    ):
        self.location = location
        self.message = message
        self.cause = cause
        self.store = store
        super().__init__(f"{location}: {message}")
