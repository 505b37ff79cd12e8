from __future__ import annotations

from pathlib import Path

import pytest

NET_INF = """\
; Sample network driver
[Version]
Signature   = "$WINDOWS NT$"
Class       = Net
ClassGuid   = {4d36e972-e325-11ce-bfc1-08002be10318}
Provider    = %INTEL%
DriverVer   = 10/01/2020,3.1.2

[Manufacturer]
%INTEL% = Intel, NTamd64

[Intel.NTamd64]
%NIC.DeviceDesc% = NIC_Install, PCI\\VEN_8086&DEV_15B8
%NIC.DeviceDesc% = NIC_Install, pci\\ven_8086&dev_15b8
%NIC.DeviceDesc% = NIC_Install, PCI\\VEN_8086&DEV_15BC&SUBSYS_00008086

[Strings]
INTEL = "Intel Corporation"
NIC.DeviceDesc = "Intel(R) Ethernet Connection"
"""


@pytest.fixture
def write_inf(tmp_path: Path):
    """Write an INF file under tmp_path and return its path as a string."""

    def _write(rel_path: str, content: str = NET_INF, encoding: str = "utf-8") -> str:
        target = tmp_path / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content.encode(encoding))
        return str(target)

    return _write


@pytest.fixture
def net_inf() -> str:
    return NET_INF
