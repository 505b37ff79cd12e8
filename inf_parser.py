"""
DrvIndex — INF description file parser.

Turns one driver INF file into a DriverRecord:
  - detects the file's text encoding (chardet) and decodes it lossily
  - extracts the hardware ids for every known device enumerator
  - pulls Class, DriverVer and the (possibly %token%-indirect) Provider

All spaces and tabs are removed before matching, so quoted values such as
"Intel Corporation" come out as "IntelCorporation" before cleanup.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

import chardet

from errors import InfDecodeError, InfPathError, InfReadError
from models import DriverRecord

# Top-level branches of HKLM\SYSTEM\CurrentControlSet\Enum
DEVICE_ENUMERATORS: Tuple[str, ...] = (
    "ACPI", "ACPI_HAL", "BTH", "BTHENUM", "BTHHFENUM", "DISPLAY", "HDAUDIO",
    "HID", "HTREE", "PCI", "ROOT", "SCSI", "SD", "STORAGE", "SW", "SWD",
    "TERMINPUT_BUS", "TS_USB_HUB_Enumerator", "UEFI", "UMB", "USB", "USBSTOR",
)

# Removed from provider names, in this order
PROVIDER_NOISE: Tuple[str, ...] = (
    "\r", '"', "Corporation", "SemiconductorCorp.", "TechnologyCorp.",
    ",Inc.", "®", "(R)",
)

# chardet labels that Python decodes better under a superset codec
_CODEC_OVERRIDES = {
    "gb2312": "gb18030",
    "gbk": "gb18030",
    "ascii": "utf-8",
}


@lru_cache(maxsize=None)
def hardware_id_patterns() -> Tuple[re.Pattern, ...]:
    """Compiled ``,<ENUMERATOR>\\<id>`` patterns, one per known enumerator."""
    return tuple(
        re.compile(r",%s\\[^,;\s\x00-\x1f\x7f]+" % re.escape(name), re.IGNORECASE)
        for name in DEVICE_ENUMERATORS
    )


# ── Encoding ─────────────────────────────────────────────────────────────────

def decode_bytes(raw: bytes, path: str = "<bytes>") -> str:
    """Decode INF bytes using the detected charset, dropping unmappable bytes."""
    detected = chardet.detect(raw)
    encoding = (detected.get("encoding") or "utf-8").lower()
    encoding = _CODEC_OVERRIDES.get(encoding, encoding)
    try:
        return raw.decode(encoding, errors="ignore")
    except LookupError as exc:
        raise InfDecodeError(path, f"Unsupported encoding '{encoding}' in {path}", str(exc)) from exc


def read_inf_text(inf_path: str) -> str:
    """Read and decode an INF file."""
    try:
        with open(inf_path, "rb") as f:
            raw = f.read()
    except OSError as exc:
        raise InfReadError(inf_path, f"Cannot read {inf_path}", str(exc)) from exc
    return decode_bytes(raw, inf_path)


# ── Field extraction ─────────────────────────────────────────────────────────

def strip_blanks(text: str) -> str:
    return text.replace(" ", "").replace("\t", "")


def extract_hardware_ids(content: str) -> List[str]:
    """Return the unique, uppercased hardware ids found in whitespace-stripped content."""
    ids: List[str] = []
    seen = set()
    for pattern in hardware_id_patterns():
        for match in pattern.finditer(content):
            hw_id = match.group(0)[1:].upper()
            if hw_id not in seen:
                seen.add(hw_id)
                ids.append(hw_id)
    return ids


def get_item(content: str, key: str) -> str:
    """First ``key=value`` in content, value up to the next whitespace."""
    match = re.search(r"(?<!\w)" + re.escape(key) + r"=(\S*)", content, re.IGNORECASE)
    return match.group(1) if match else ""


def get_line_item(content: str, key: str) -> Optional[str]:
    """First ``key=value`` in content, value up to the end of the line."""
    match = re.search(r"(?<!\w)" + re.escape(key) + r"=([^\r\n]*)", content, re.IGNORECASE)
    return match.group(1) if match else None


def split_driver_ver(driver_ver: str) -> Tuple[str, str]:
    """``10/01/2020,3.1.2`` -> (date, version); missing parts are empty."""
    parts = driver_ver.split(",")
    date = parts[0] if len(parts) > 0 else ""
    version = parts[1] if len(parts) > 1 else ""
    return date, version


def clean_provider(name: str) -> str:
    """Strip legal boilerplate from a provider name until nothing changes."""
    while True:
        cleaned = name
        for noise in PROVIDER_NOISE:
            cleaned = cleaned.replace(noise, "")
        if cleaned == name:
            return cleaned
        name = cleaned


def resolve_provider(content: str) -> str:
    """Provider name, following a %token% reference into [Strings]."""
    raw = get_line_item(content, "Provider")
    if raw is None:
        return ""
    raw = raw.replace("\r", "")
    token = raw.replace("%", "")

    provider = token
    if token and raw.startswith("%") and raw.endswith("%"):
        resolved = get_line_item(content, token)
        if resolved:
            provider = resolved
    return clean_provider(provider)


def relative_parent(base_path: str, inf_path: str) -> str:
    """Directory of inf_path relative to base_path ("" for the root itself)."""
    parent = Path(os.path.abspath(inf_path)).parent
    try:
        rel = parent.relative_to(os.path.abspath(base_path))
    except ValueError as exc:
        raise InfPathError(inf_path, f"{inf_path} is not under {base_path}", str(exc)) from exc
    rel_str = str(rel)
    return "" if rel_str == "." else rel_str


# ── Entry point ──────────────────────────────────────────────────────────────

def parse_inf(base_path: str, inf_path: str) -> DriverRecord:
    """
    Parse one INF file into a DriverRecord.

    Args:
        base_path: Root of the driver tree; the record path is relative to it.
        inf_path: The INF file to parse.

    Returns:
        DriverRecord, possibly with no hardware ids.

    Raises:
        InfReadError, InfDecodeError, InfPathError.
    """
    content = strip_blanks(read_inf_text(inf_path))

    hardware_ids = extract_hardware_ids(content)
    driver_class = get_item(content, "Class")
    date, version = split_driver_ver(get_item(content, "DriverVer"))
    provider = resolve_provider(content)
    rel_path = relative_parent(base_path, inf_path)

    return DriverRecord(
        path=rel_path,
        inf=os.path.basename(inf_path),
        driver_class=driver_class,
        provider=provider,
        date=date,
        version=version,
        hardware_ids=tuple(hardware_ids),
    )
