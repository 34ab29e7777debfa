"""
Progress store persistence.

The store is one JSON document holding a record per source video. It is
loaded once per run and rewritten whole after every file, always through
a temporary sibling file and os.replace so a crash mid-write leaves the
previous version intact.

Example:
    store = load_store(Path("descriptions.json"))
    store.upsert(record)
    save_store(Path("descriptions.json"), store)
"""

import json
import logging
import os
import posixpath
from pathlib import Path

from pydantic import ValidationError

from vidscribe.models.schemas import NO_AUDIO, ProcessingStore

from .errors import ProgressStoreError

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


def normalize_key(path: str | os.PathLike) -> str:
    """
    Normalize a path into a store key.

    Backslashes become slashes, "." and ".." segments are collapsed and
    leading "./" and trailing "/" are dropped, so "a\\b\\c.mp4",
    "./a/b/c.mp4" and "a/b/c.mp4" all map to the same key.
    """
    text = os.fspath(path).replace("\\", "/")
    if not text:
        return ""
    key = posixpath.normpath(text)
    if key == ".":
        return ""
    while key.startswith("./"):
        key = key[2:]
    if len(key) > 1:
        key = key.rstrip("/")
    return key


def relative_key(path: Path, root: Path) -> str:
    """Key of path relative to the scan root."""
    return normalize_key(os.path.relpath(path, root))


def load_store(location: Path) -> ProcessingStore:
    """
    Load the store from disk.

    A missing file yields an empty store. Keys and audio paths are
    normalized on load.

    Raises:
        ProgressStoreError: If the file cannot be read or is not a valid store
    """
    location = Path(location)
    if not location.exists():
        logger.info(f"No store at {location}, starting empty")
        return ProcessingStore()

    try:
        with open(location, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProgressStoreError(str(location), f"invalid JSON: {e}", e) from e
    except OSError as e:
        raise ProgressStoreError(str(location), f"cannot read store: {e}", e) from e

    if isinstance(data, dict):
        for record in data.get("records") or []:
            if not isinstance(record, dict):
                continue
            if isinstance(record.get("source_path"), str):
                record["source_path"] = normalize_key(record["source_path"])
            audio = record.get("audio_asset_path")
            if isinstance(audio, str) and audio != NO_AUDIO:
                record["audio_asset_path"] = normalize_key(audio)

    try:
        store = ProcessingStore.model_validate(data)
    except ValidationError as e:
        raise ProgressStoreError(str(location), f"malformed store: {e}", e) from e

    logger.info(f"Loaded store {location}: {len(store)} record(s)")
    return store


def save_store(location: Path, store: ProcessingStore) -> None:
    """
    Write the store atomically (temporary sibling file, then os.replace).

    Raises:
        ProgressStoreError: If the store cannot be written
    """
    location = Path(location)
    tmp_path = location.with_name(location.name + TMP_SUFFIX)

    try:
        location.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(store.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, location)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise ProgressStoreError(str(location), f"cannot write store: {e}", e) from e

    logger.debug(f"Saved store {location}: {len(store)} record(s)")
