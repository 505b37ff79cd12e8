"""
DrvIndex — Index builder that walks a driver tree and records every INF.

The source is either a driver directory or a driver package archive; archives
are expanded (INF files only) into a scratch directory first.
"""

from __future__ import annotations

import fnmatch
import os
import tempfile
import time
from typing import Callable, List, Optional

from backends import ArchiveExtractor
from config import AppConfig
from errors import DrvIndexError, InfParseError
from index_store import save_index
from inf_parser import parse_inf
from models import IndexSummary, ParseOutcome
from ui import ConsoleType, write_console

INF_GLOB = "*.inf"

ProgressCallback = Optional[Callable[[str, int, int], None]]
# callback(label, current_index, total)


def find_files(root: str, pattern: str = INF_GLOB) -> List[str]:
    """Recursively list files under root whose name matches pattern (case-insensitive)."""
    matches: List[str] = []
    pattern = pattern.lower()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if fnmatch.fnmatch(name.lower(), pattern):
                matches.append(os.path.join(dirpath, name))
    return matches


def resolve_index_path(source_path: str, index_path: str) -> str:
    """Anchor a relative index path next to the source (the directory, or the archive's folder)."""
    if os.path.isabs(index_path):
        return index_path
    source_path = os.path.abspath(source_path)
    anchor = source_path if os.path.isdir(source_path) else os.path.dirname(source_path)
    return os.path.join(anchor, index_path)


def build_index(
    source_path: str,
    index_path: str,
    extractor: Optional[ArchiveExtractor] = None,
    config: Optional[AppConfig] = None,
    progress_cb: ProgressCallback = None,
) -> IndexSummary:
    """
    Build a driver index from a driver directory or archive and save it.

    Args:
        source_path: Driver directory, or a driver package archive.
        index_path: Where to save the index; relative paths are anchored
            next to the source.
        extractor: Archive backend, required when source_path is a file.
        config: App config (scratch directory for extraction).
        progress_cb: Optional callback for progress reporting.

    Returns:
        IndexSummary with the indexed records and per-outcome file lists.

    Raises:
        ExternalToolError if extraction fails, IndexStoreError if the index
        cannot be saved. Nothing is written in either case.
    """
    config = config or AppConfig()
    source_path = os.path.abspath(source_path)
    index_path = resolve_index_path(source_path, index_path)

    if os.path.isdir(source_path):
        return _index_tree(source_path, index_path, progress_cb)

    if not os.path.isfile(source_path):
        raise DrvIndexError(f"Driver source not found: {source_path}")
    if extractor is None:
        raise DrvIndexError(f"No archive extractor available for {source_path}")

    os.makedirs(config.temp_dir, exist_ok=True)
    stem = os.path.splitext(os.path.basename(source_path))[0]
    with tempfile.TemporaryDirectory(prefix=f"{stem}-", dir=config.temp_dir) as work_dir:
        write_console(ConsoleType.INFO, f"Extracting INF files from {source_path}")
        extractor.extract(source_path, INF_GLOB, work_dir)
        return _index_tree(work_dir, index_path, progress_cb)


def _index_tree(root: str, index_path: str, progress_cb: ProgressCallback) -> IndexSummary:
    write_console(ConsoleType.INFO, "Processing, please wait...")

    inf_files = find_files(root)
    total = len(inf_files)
    summary = IndexSummary(index_path=index_path)
    start = time.perf_counter()

    for idx, inf_path in enumerate(inf_files):
        if progress_cb:
            progress_cb(os.path.basename(inf_path), idx, total)

        try:
            record = parse_inf(root, inf_path)
        except InfParseError as exc:
            summary.record_outcome(inf_path, ParseOutcome.FAILED)
            write_console(ConsoleType.ERROR, f"INF parsing error ({exc.stage}): {inf_path}")
            continue

        if not record.hardware_ids:
            summary.record_outcome(inf_path, ParseOutcome.BLANK)
            write_console(ConsoleType.WARNING, f"The hardware id in this file is not detected: {inf_path}")
            continue

        summary.record_outcome(inf_path, ParseOutcome.SUCCEEDED, record)

    if progress_cb:
        progress_cb("Saving index", total, total)

    save_index(summary.records, index_path)
    summary.duration_s = time.perf_counter() - start

    write_console(
        ConsoleType.INFO,
        f"Total {summary.scanned} items, processed {summary.succeeded} items, "
        f"{summary.failed} items failed to process, "
        f"{summary.blank} items may not have hardware id information",
    )
    write_console(ConsoleType.SUCCESS, f'The driver index is saved in "{index_path}"')
    return summary
