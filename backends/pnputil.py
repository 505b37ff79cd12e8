"""
DrvIndex — Problem device enumeration via pnputil.

``pnputil /scan-devices`` triggers a hardware rescan and
``pnputil /enum-devices /problem /ids`` lists the devices that have a problem
code, one block per device:

    Instance ID:                PCI\\VEN_8086&DEV_A370&SUBSYS_00348086&REV_10\\3&11583659&0&A3
    Device Description:         Network Controller
    Class Name:                 Net
    Problem Code:               28 (0x1C) [CM_PROB_FAILED_INSTALL]
    Hardware IDs:               PCI\\VEN_8086&DEV_A370&SUBSYS_00348086&REV_10
                                PCI\\VEN_8086&DEV_A370&SUBSYS_00348086
    Compatible IDs:             PCI\\VEN_8086&DEV_A370&REV_10
                                PCI\\VEN_8086&DEV_A370
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from backends import CommandRunner, SubprocessRunner
from errors import ExternalToolError
from models import ProblemDevice
from ui import ConsoleType, write_console

# pnputil field labels -> our keys
_FIELD_MAP = {
    "instance id": "instance_id",
    "device description": "description",
    "class name": "class_name",
    "problem code": "problem_code",
    "hardware ids": "hardware_ids",
    "compatible ids": "compatible_ids",
}

_LIST_FIELDS = ("hardware_ids", "compatible_ids")

# Labels start in column 0; continuation lines are indented
_LABEL_RE = re.compile(r"^([A-Za-z][A-Za-z ]*?)\s*:\s*(.*)$")


class PnpUtilEnumerator:
    """DeviceEnumerator backed by the Windows pnputil tool."""

    def __init__(self, executable: str = "pnputil", runner: Optional[CommandRunner] = None) -> None:
        self.executable = executable
        self.runner = runner or SubprocessRunner()

    def _run(self, *args: str) -> str:
        command = [self.executable, *args]
        try:
            result = self.runner.run(command)
        except OSError as exc:
            raise ExternalToolError("pnputil", f"Cannot run {self.executable}", root_cause=str(exc)) from exc
        if result.returncode != 0:
            raise ExternalToolError(
                "pnputil",
                f"'{' '.join(command)}' failed (exit code {result.returncode})",
                returncode=result.returncode,
                root_cause=(result.stderr or result.stdout or "").strip() or None,
            )
        return result.stdout or ""

    def rescan(self) -> None:
        self._run("/scan-devices")

    def list_problem_devices(self) -> List[ProblemDevice]:
        output = self._run("/enum-devices", "/problem", "/ids")
        devices = parse_enum_devices(output)
        if not devices and _has_field_lines(output):
            write_console(
                ConsoleType.WARNING,
                "pnputil printed device fields but none were recognised; "
                "only English pnputil output is supported",
            )
        return devices


def _has_field_lines(output: str) -> bool:
    """True if some unindented line looks like ``Label: value`` (either colon width)."""
    return any(
        line and not line[0].isspace() and (":" in line or "\uff1a" in line)
        for line in output.splitlines()
    )


def parse_enum_devices(output: str) -> List[ProblemDevice]:
    """Parse ``pnputil /enum-devices /ids`` output into ProblemDevice objects."""
    devices: List[ProblemDevice] = []
    current: Dict[str, object] = {}
    list_key: Optional[str] = None

    def flush() -> None:
        if current.get("instance_id"):
            devices.append(ProblemDevice(
                instance_id=str(current["instance_id"]),
                hardware_ids=tuple(current.get("hardware_ids", [])),
                compatible_ids=tuple(current.get("compatible_ids", [])),
                description=str(current.get("description", "")),
                class_name=str(current.get("class_name", "")),
                problem_code=str(current.get("problem_code", "")),
            ))
        current.clear()

    for line in output.splitlines():
        if not line.strip():
            list_key = None
            continue

        if line[0].isspace():
            # Continuation of a multi-value field
            if list_key:
                current[list_key].append(line.strip())
            continue

        match = _LABEL_RE.match(line)
        if not match:
            list_key = None
            continue

        key = _FIELD_MAP.get(match.group(1).strip().lower())
        value = match.group(2).strip()
        if key == "instance_id":
            flush()
        list_key = None
        if key in _LIST_FIELDS:
            current[key] = [value] if value else []
            list_key = key
        elif key:
            current[key] = value

    flush()
    return devices
