"""
DrvIndex — External tool backends.

An archive extractor exposes:
    extract(archive_path, file_glob, dest_dir) -> None

A device enumerator exposes:
    rescan() -> None
    list_problem_devices() -> List[ProblemDevice]

Both raise ExternalToolError when the underlying tool fails.
"""

from __future__ import annotations

import subprocess
from typing import List, Protocol, Sequence

from models import ProblemDevice


class CommandRunner(Protocol):
    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:  # pragma: no cover - protocol
        ...


class SubprocessRunner:
    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.run(command, capture_output=True, text=True, check=False)


class ArchiveExtractor(Protocol):
    def extract(self, archive_path: str, file_glob: str, dest_dir: str) -> None:  # pragma: no cover - protocol
        ...


class DeviceEnumerator(Protocol):
    def rescan(self) -> None:  # pragma: no cover - protocol
        ...

    def list_problem_devices(self) -> List[ProblemDevice]:  # pragma: no cover - protocol
        ...
