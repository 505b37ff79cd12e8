"""
DrvIndex — Exception hierarchy.

Callers branch on the class: per-file parse errors are recoverable during an
index build, store and external tool errors abort the enclosing operation.
"""

from __future__ import annotations

from typing import Optional


class DrvIndexError(Exception):
    """Base exception for all DrvIndex errors."""

    def __init__(self, message: Optional[str] = None, root_cause: Optional[str] = None):
        super().__init__(message if message else "DrvIndex error occurred")
        self.root_cause = root_cause

    def __str__(self):
        base_msg = super().__str__()
        if self.root_cause and self.root_cause != base_msg:
            return f"{base_msg} | Root cause: {self.root_cause}"
        return base_msg


# ── INF parsing ──────────────────────────────────────────────────────────────

class InfParseError(DrvIndexError):
    """A single INF file could not be turned into a record."""

    stage = "parse"

    def __init__(self, path: str, message: Optional[str] = None, root_cause: Optional[str] = None):
        super().__init__(message or f"Failed to parse {path}", root_cause)
        self.path = path


class InfReadError(InfParseError):
    """The INF file could not be opened or read."""

    stage = "io"


class InfDecodeError(InfParseError):
    """The INF byte stream could not be decoded at all."""

    stage = "decode"


class InfPathError(InfParseError):
    """The INF file is not located under the driver tree root."""

    stage = "path"


# ── Data / storage ───────────────────────────────────────────────────────────

class FormatError(DrvIndexError):
    """A record field has an unexpected structure."""


class IndexStoreError(DrvIndexError):
    """The driver index could not be serialized, written or read."""


# ── External tools ───────────────────────────────────────────────────────────

class ExternalToolError(DrvIndexError):
    """An external tool (7-Zip, pnputil) failed or could not be started."""

    def __init__(
        self,
        tool: str,
        message: Optional[str] = None,
        returncode: Optional[int] = None,
        root_cause: Optional[str] = None,
    ):
        super().__init__(message or f"{tool} failed", root_cause)
        self.tool = tool
        self.returncode = returncode
