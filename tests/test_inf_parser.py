from __future__ import annotations

import os

import pytest

from errors import InfDecodeError, InfPathError, InfReadError
from inf_parser import (
    DEVICE_ENUMERATORS,
    clean_provider,
    decode_bytes,
    extract_hardware_ids,
    get_item,
    hardware_id_patterns,
    parse_inf,
    resolve_provider,
    split_driver_ver,
    strip_blanks,
)


def test_parse_inf_extracts_fields(tmp_path, write_inf) -> None:
    inf_path = write_inf("LAN/Win10/e1d.inf")

    record = parse_inf(str(tmp_path), inf_path)

    assert record.path == os.path.join("LAN", "Win10")
    assert record.inf == "e1d.inf"
    assert record.driver_class == "Net"
    assert record.provider == "Intel"
    assert record.date == "10/01/2020"
    assert record.version == "3.1.2"
    assert record.hardware_ids == (
        "PCI\\VEN_8086&DEV_15B8",
        "PCI\\VEN_8086&DEV_15BC&SUBSYS_00008086",
    )


def test_parse_inf_at_root_has_empty_path(tmp_path, write_inf) -> None:
    record = parse_inf(str(tmp_path), write_inf("root.inf"))
    assert record.path == ""


def test_parse_inf_utf16_file(tmp_path, write_inf) -> None:
    content = "[Version]\r\nClass=Display\r\n[Models]\r\n%Dev%=Inst,PCI\\VEN_10DE&DEV_1C82\r\n"
    inf_path = write_inf("nv.inf", content, encoding="utf-16")

    record = parse_inf(str(tmp_path), inf_path)

    assert record.driver_class == "Display"
    assert record.hardware_ids == ("PCI\\VEN_10DE&DEV_1C82",)


def test_parse_inf_missing_fields_default_to_empty(tmp_path, write_inf) -> None:
    inf_path = write_inf("bare.inf", "[Models]\n%d%=i, USB\\VID_046D&PID_C52B\n")

    record = parse_inf(str(tmp_path), inf_path)

    assert record.driver_class == ""
    assert record.provider == ""
    assert record.date == ""
    assert record.version == ""
    assert record.hardware_ids == ("USB\\VID_046D&PID_C52B",)


def test_parse_inf_outside_base_raises_path_error(tmp_path, write_inf) -> None:
    inf_path = write_inf("drivers/a.inf")
    other_root = tmp_path / "elsewhere"
    other_root.mkdir()

    with pytest.raises(InfPathError) as excinfo:
        parse_inf(str(other_root), inf_path)
    assert excinfo.value.stage == "path"


def test_parse_inf_missing_file_raises_read_error(tmp_path) -> None:
    with pytest.raises(InfReadError) as excinfo:
        parse_inf(str(tmp_path), str(tmp_path / "missing.inf"))
    assert excinfo.value.stage == "io"


@pytest.mark.parametrize("enumerator", DEVICE_ENUMERATORS)
def test_every_known_enumerator_is_extracted(enumerator) -> None:
    content = strip_blanks(f"%Dev% = Install, {enumerator.lower()}\\Xx12&yy34\n")
    assert extract_hardware_ids(content) == [f"{enumerator.upper()}\\XX12&YY34"]


def test_unknown_enumerator_is_ignored() -> None:
    content = ",PCIE\\VEN_1&DEV_2\n,FOO\\BAR&BAZ\n,PCI_\\X\n"
    assert extract_hardware_ids(content) == []


def test_hardware_ids_require_leading_comma() -> None:
    assert extract_hardware_ids("ExcludeFromSelect=PCI\\VEN_1234\n") == []


def test_hardware_ids_dedupe_case_insensitively() -> None:
    content = ",USB\\VID_1&PID_2\n,usb\\vid_1&pid_2\n,Usb\\Vid_1&Pid_2;comment\n"
    assert extract_hardware_ids(content) == ["USB\\VID_1&PID_2"]


def test_hardware_id_stops_at_separators() -> None:
    content = ",HID\\VID_1&PID_2,HID\\VID_3&PID_4;note\r\n"
    assert extract_hardware_ids(content) == ["HID\\VID_1&PID_2", "HID\\VID_3&PID_4"]


def test_hardware_id_patterns_are_compiled_once() -> None:
    assert hardware_id_patterns() is hardware_id_patterns()
    assert len(hardware_id_patterns()) == 22


@pytest.mark.parametrize(
    "driver_ver, expected",
    [
        ("10/01/2020,3.1.2", ("10/01/2020", "3.1.2")),
        ("10/01/2020", ("10/01/2020", "")),
        ("", ("", "")),
        ("10/01/2020,3.1.2,extra", ("10/01/2020", "3.1.2")),
    ],
)
def test_split_driver_ver(driver_ver, expected) -> None:
    assert split_driver_ver(driver_ver) == expected


def test_get_item_takes_first_occurrence_and_whole_key() -> None:
    content = "SubClass=Wrong\nClass=Net\nClass=Display\n"
    assert get_item(content, "Class") == "Net"
    assert get_item(content, "DriverVer") == ""


def test_provider_literal_is_kept() -> None:
    assert resolve_provider("Provider=Realtek\r\n") == "Realtek"


def test_provider_unresolved_token_is_kept() -> None:
    assert resolve_provider("Provider=%MSFT%\n[Strings]\nOther=\"x\"\n") == "MSFT"


def test_provider_missing_is_empty() -> None:
    assert resolve_provider("[Version]\nClass=Net\n") == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('"IntelCorporation"\r', "Intel"),
        ("NVIDIA®", "NVIDIA"),
        ("Intel(R)", "Intel"),
        ("RealtekSemiconductorCorp.", "Realtek"),
        ("SiliconMotionTechnologyCorp.", "SiliconMotion"),
        ("Qualcomm,Inc.", "Qualcomm"),
        ("CorpCorporationoration", ""),
    ],
)
def test_clean_provider(raw, expected) -> None:
    assert clean_provider(raw) == expected


@pytest.mark.parametrize("raw", ['"IntelCorporation"', "CorpCorporationoration", "Qualcomm,Inc.(R)", "AMD"])
def test_clean_provider_is_idempotent(raw) -> None:
    once = clean_provider(raw)
    assert clean_provider(once) == once


def test_decode_bytes_tolerates_stray_high_bytes() -> None:
    text = decode_bytes(b"Class=Net\n,PCI\\VEN_1\xff\xfe&DEV_2\n" * 20)
    assert "Class=Net" in text
    assert "PCI\\VEN_1" in text


def test_decode_bytes_unknown_codec_raises(monkeypatch) -> None:
    import inf_parser

    monkeypatch.setattr(inf_parser.chardet, "detect", lambda raw: {"encoding": "x-no-such-codec"})
    with pytest.raises(InfDecodeError) as excinfo:
        decode_bytes(b"Class=Net", "a.inf")
    assert excinfo.value.stage == "decode"


def test_parse_inf_gbk_strings_provider(tmp_path, write_inf) -> None:
    content = (
        "[Version]\r\n"
        "Class=Net\r\n"
        "Provider=%Lenovo%\r\n"
        "DriverVer=03/15/2021,10.45.1\r\n"
        "[Models]\r\n"
        "%Dev%=Inst,PCI\\VEN_10EC&DEV_8168\r\n"
        "[Strings]\r\n"
        "Lenovo=\"联想电脑有限公司驱动程序\"\r\n"
        "Dev=\"联想千兆以太网控制器，适用于台式电脑和笔记本电脑\"\r\n"
    )
    inf_path = write_inf("lenovo.inf", content, encoding="gbk")

    record = parse_inf(str(tmp_path), inf_path)

    assert record.provider == "联想电脑有限公司驱动程序"
    assert record.hardware_ids == ("PCI\\VEN_10EC&DEV_8168",)
