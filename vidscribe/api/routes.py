"""
HTTP API routes for the progress store.

Provides endpoints for:
- Listing all records
- Looking up one record by source path
- Progress summary for a target candidate count
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from vidscribe.config import Settings, get_settings
from vidscribe.models.schemas import ProcessingRecord, ProcessingStore, StoreSummary
from vidscribe.services.pipeline import ProgressStoreError, load_store, normalize_key

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["records"])


def _load(settings: Settings) -> ProcessingStore:
    try:
        return load_store(settings.store_path)
    except ProgressStoreError as e:
        logger.error(f"Cannot load store: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/records", response_model=list[ProcessingRecord])
async def list_records(settings: Settings = Depends(get_settings)) -> list[ProcessingRecord]:
    """
    List all records in store order.

    Returns:
        Records of the configured store (empty if the store does not exist)
    """
    return _load(settings).records


@router.get("/records/{source_path:path}", response_model=ProcessingRecord)
async def get_record(
    source_path: str,
    settings: Settings = Depends(get_settings),
) -> ProcessingRecord:
    """
    Get one record.

    Args:
        source_path: Path relative to the scan root, any separator style

    Raises:
        HTTPException: 404 if no record has this key
    """
    key = normalize_key(source_path)
    record = _load(settings).get(key)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No record for {key}")
    return record


@router.get("/summary", response_model=StoreSummary)
async def get_summary(
    target: int | None = Query(default=None, ge=1),
    settings: Settings = Depends(get_settings),
) -> StoreSummary:
    """
    Count complete, silent and pending records.

    Args:
        target: Candidate count a record needs to be complete
            (defaults to candidate_count)
    """
    return StoreSummary.from_store(_load(settings), target or settings.candidate_count)
