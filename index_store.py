"""
DrvIndex — Driver index persistence (JSON).

The index is a JSON array of record objects in build order. Saving goes
through a temporary file in the target directory and an atomic replace, so a
failed save never leaves a truncated index behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import List

from errors import FormatError, IndexStoreError
from models import DriverRecord


def save_index(records: List[DriverRecord], index_path: str) -> None:
    """Write the records to index_path, replacing any existing index."""
    try:
        payload = json.dumps([r.to_dict() for r in records], ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        # UnicodeEncodeError lands here for undecodable file names
        raise IndexStoreError("Failed to serialize driver index", str(exc)) from exc

    target_dir = os.path.dirname(os.path.abspath(index_path))
    tmp_path = ""
    replaced = False
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".drvindex-", suffix=".tmp", dir=target_dir)
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        # mkstemp creates 0600; give the index the same mode a plain open() would
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, index_path)
        replaced = True
    except OSError as exc:
        raise IndexStoreError(f"Failed to save index file {index_path}", str(exc)) from exc
    finally:
        if not replaced and tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def load_index(index_path: str) -> List[DriverRecord]:
    """Read an index written by save_index."""
    try:
        with open(index_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise IndexStoreError(f"Failed to read index file {index_path}", str(exc)) from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise IndexStoreError(f"Index file {index_path} is not valid JSON", str(exc)) from exc

    if not isinstance(data, list):
        raise IndexStoreError(f"Index file {index_path} must contain a list of records")

    records: List[DriverRecord] = []
    for idx, item in enumerate(data):
        try:
            records.append(DriverRecord.from_dict(item))
        except FormatError as exc:
            raise IndexStoreError(f"Invalid record #{idx} in {index_path}", str(exc)) from exc
    return records
