"""
DrvIndex — Match indexed drivers against the machine's problem devices.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from backends import DeviceEnumerator
from models import DriverRecord, MatchResult, ProblemDevice
from ui import ConsoleType, write_console

ProgressCallback = Optional[Callable[[str, int, int], None]]
# callback(device_label, current_index, total_devices)


def find_candidates(
    device_ids: Sequence[str],
    records: Sequence[DriverRecord],
    driver_class: Optional[str] = None,
) -> List[DriverRecord]:
    """
    Records whose hardware ids equal any of device_ids (case-insensitive).

    Order follows device_ids, then index order. A record hit by several ids
    is returned once per hit. With driver_class set, a hit on a record of
    another class skips the rest of that record for the current id.
    """
    wanted_class = driver_class.lower() if driver_class is not None else None
    candidates: List[DriverRecord] = []

    for device_id in device_ids:
        device_id = device_id.lower()
        for record in records:
            for record_id in record.hardware_ids:
                if record_id.lower() != device_id:
                    continue
                if wanted_class is not None and record.driver_class.lower() != wanted_class:
                    break
                candidates.append(record)

    return candidates


def match_devices(
    records: Sequence[DriverRecord],
    enumerator: DeviceEnumerator,
    driver_class: Optional[str] = None,
    accurate: bool = False,
    progress_cb: ProgressCallback = None,
) -> List[MatchResult]:
    """
    Rescan hardware, then find index candidates for every problem device.

    Args:
        records: Loaded driver index.
        enumerator: Device backend used to rescan and list problem devices.
        driver_class: Only accept drivers of this class (case-insensitive).
        accurate: Match hardware ids only; skip compatible ids.
        progress_cb: Optional callback for progress reporting.

    Returns:
        One MatchResult per device with at least one candidate, in device order.

    Raises:
        ExternalToolError if the rescan or the device listing fails.
    """
    enumerator.rescan()
    devices: List[ProblemDevice] = enumerator.list_problem_devices()
    write_console(ConsoleType.INFO, f"Found {len(devices)} problem devices")

    results: List[MatchResult] = []
    total = len(devices)

    for idx, device in enumerate(devices):
        if progress_cb:
            progress_cb(device.description or device.instance_id, idx, total)

        candidates = find_candidates(device.hardware_ids, records, driver_class)
        if not accurate:
            candidates.extend(find_candidates(device.compatible_ids, records, driver_class))

        if not candidates:
            continue

        results.append(MatchResult(device=device, candidates=candidates))

    if progress_cb:
        progress_cb("Done", total, total)

    return results
