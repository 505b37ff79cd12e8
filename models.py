"""
DrvIndex — Data models for driver records, problem devices and match results.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from errors import FormatError


class ParseOutcome(enum.Enum):
    """How a single INF file ended up during an index build."""
    SUCCEEDED = "succeeded"     # Has hardware ids, kept in the index
    BLANK = "blank"             # Parsed, but no hardware ids found
    FAILED = "failed"           # Parse error


# Key names used in the index file
_RECORD_KEYS: Tuple[str, ...] = ("Path", "Inf", "Class", "Provider", "Date", "Version", "DriverList")


@dataclass(frozen=True)
class DriverRecord:
    """One parsed INF description file."""
    path: str                           # Directory of the INF, relative to the driver tree root
    inf: str                            # INF file name
    driver_class: str = ""              # [Version] Class=
    provider: str = ""                  # Cleaned provider name
    date: str = ""                      # DriverVer date part
    version: str = ""                   # DriverVer version part
    hardware_ids: Tuple[str, ...] = ()  # Uppercase, unique, first-seen order

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Path": self.path,
            "Inf": self.inf,
            "Class": self.driver_class,
            "Provider": self.provider,
            "Date": self.date,
            "Version": self.version,
            "DriverList": list(self.hardware_ids),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "DriverRecord":
        """Build a record from its index mapping, raising FormatError on bad structure."""
        if not isinstance(data, dict):
            raise FormatError(f"Expected an object, got {type(data).__name__}")

        missing = [key for key in _RECORD_KEYS if key not in data]
        if missing:
            raise FormatError(f"Missing fields: {', '.join(missing)}")

        for key in _RECORD_KEYS[:-1]:
            if not isinstance(data[key], str):
                raise FormatError(f"Field '{key}' must be a string")

        ids = data["DriverList"]
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise FormatError("Field 'DriverList' must be a list of strings")

        return cls(
            path=data["Path"],
            inf=data["Inf"],
            driver_class=data["Class"],
            provider=data["Provider"],
            date=data["Date"],
            version=data["Version"],
            hardware_ids=tuple(ids),
        )


@dataclass(frozen=True)
class ProblemDevice:
    """A device reported by the OS as lacking a working driver."""
    instance_id: str
    hardware_ids: Tuple[str, ...] = ()      # Most to least specific
    compatible_ids: Tuple[str, ...] = ()    # Looser match candidates
    description: str = ""
    class_name: str = ""
    problem_code: str = ""


@dataclass
class MatchResult:
    """A problem device with the driver records found for it.

    The same record may appear more than once in ``candidates`` when several
    of the device's ids hit it.
    """
    device: ProblemDevice
    candidates: List[DriverRecord] = field(default_factory=list)

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)


@dataclass
class IndexSummary:
    """Aggregated result of an index build."""
    index_path: str = ""
    scanned: int = 0
    failed_files: List[str] = field(default_factory=list)
    blank_files: List[str] = field(default_factory=list)
    records: List[DriverRecord] = field(default_factory=list)
    duration_s: float = 0.0

    @property
    def succeeded(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.failed_files)

    @property
    def blank(self) -> int:
        return len(self.blank_files)

    def record_outcome(self, inf_path: str, outcome: ParseOutcome,
                       record: Optional[DriverRecord] = None) -> None:
        self.scanned += 1
        if outcome is ParseOutcome.SUCCEEDED:
            self.records.append(record)
        elif outcome is ParseOutcome.BLANK:
            self.blank_files.append(inf_path)
        else:
            self.failed_files.append(inf_path)


def _format_duration(seconds: float) -> str:
    """Format seconds into a human-readable duration string."""
    if seconds < 0.001:
        return "<1ms"
    if seconds < 1.0:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60.0:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}m {secs:.0f}s"
