"""
DrvIndex — Archive extraction backends.

SevenZipExtractor drives the 7-Zip command line and handles every format 7-Zip
knows (zip, 7z, cab, exe installers...). ZipExtractor is a pure-Python
fallback for plain .zip packages when 7-Zip is not installed.
"""

from __future__ import annotations

import fnmatch
import os
import shutil
import zipfile
from typing import Optional

from backends import ArchiveExtractor, CommandRunner, SubprocessRunner
from config import AppConfig
from errors import ExternalToolError


class SevenZipExtractor:
    """Extract matching files with ``7z x <archive> -o<dest> <glob> -r -y``."""

    def __init__(self, executable: str = "7z", runner: Optional[CommandRunner] = None) -> None:
        self.executable = executable
        self.runner = runner or SubprocessRunner()

    def extract(self, archive_path: str, file_glob: str, dest_dir: str) -> None:
        command = [self.executable, "x", archive_path, f"-o{dest_dir}", file_glob, "-r", "-y"]
        try:
            result = self.runner.run(command)
        except OSError as exc:
            raise ExternalToolError("7-Zip", f"Cannot run {self.executable}", root_cause=str(exc)) from exc

        if result.returncode != 0:
            raise ExternalToolError(
                "7-Zip",
                f"Extracting {archive_path} failed (exit code {result.returncode})",
                returncode=result.returncode,
                root_cause=(result.stderr or result.stdout or "").strip() or None,
            )


class ZipExtractor:
    """Extract matching members of a .zip archive, keeping their folders."""

    def extract(self, archive_path: str, file_glob: str, dest_dir: str) -> None:
        dest_root = os.path.abspath(dest_dir)
        pattern = file_glob.lower()
        try:
            with zipfile.ZipFile(archive_path) as archive:
                for member in archive.infolist():
                    if member.is_dir():
                        continue
                    parts = [p for p in member.filename.replace("\\", "/").split("/") if p]
                    if not parts or not fnmatch.fnmatch(parts[-1].lower(), pattern):
                        continue

                    target = os.path.abspath(os.path.join(dest_root, *parts))
                    if os.path.commonpath([dest_root, target]) != dest_root:
                        raise ExternalToolError("zip", f"Refusing to extract {member.filename} outside {dest_dir}")

                    os.makedirs(os.path.dirname(target), exist_ok=True)
                    with archive.open(member) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ExternalToolError("zip", f"Extracting {archive_path} failed", root_cause=str(exc)) from exc


def default_extractor(config: AppConfig, archive_path: str) -> ArchiveExtractor:
    """7-Zip when available, otherwise the zipfile fallback for .zip archives."""
    if shutil.which(config.seven_zip) is None and archive_path.lower().endswith(".zip"):
        return ZipExtractor()
    return SevenZipExtractor(config.seven_zip)
