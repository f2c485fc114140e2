"""Построители строк CIF фиксированной ширины для тестов."""

from __future__ import annotations

LINE_WIDTH = 80


def hd_line(
    update_indicator: str = "F",
    current_ref: str = "DFROC1A",
    last_ref: str = "DFROC1Z",
    mainframe_identity: str = "TPS.UDF1234.PD240101",
) -> str:
    line = (
        "HD"
        + mainframe_identity.ljust(20)
        + "010124"
        + "1230"
        + current_ref.ljust(7)
        + last_ref.ljust(7)
        + update_indicator
        + "A"
        + "010124"
        + "311224"
    )
    return line.ljust(LINE_WIDTH)


def _tiploc_body(tiploc: str, description: str, crs: str) -> str:
    return (
        tiploc.ljust(7)
        + "12"
        + "123456"
        + "1"
        + description.ljust(26)[:26]
        + "72410"
        + "0000"
        + crs.ljust(3)
        + description.ljust(16)[:16]
    )


def ti_line(tiploc: str = "PADTON", description: str = "LONDON PADDINGTON", crs: str = "PAD") -> str:
    return ("TI" + _tiploc_body(tiploc, description, crs)).ljust(LINE_WIDTH)


def ta_line(
    tiploc: str = "PADTON",
    description: str = "PADDINGTON LONDON",
    crs: str = "PAD",
    new_tiploc: str = "",
) -> str:
    return ("TA" + _tiploc_body(tiploc, description, crs) + new_tiploc.ljust(7)).ljust(LINE_WIDTH)


def td_line(tiploc: str = "PADTON") -> str:
    return ("TD" + tiploc.ljust(7)).ljust(LINE_WIDTH)


def aa_line(
    transaction_type: str = "N",
    main_uid: str = "A12345",
    assoc_uid: str = "B54321",
    start: str = "240101",
    end: str = "240102",
    days: str = "1111111",
    location: str = "PADTON",
    stp: str = "P",
) -> str:
    line = (
        "AA"
        + transaction_type
        + main_uid.ljust(6)
        + assoc_uid.ljust(6)
        + start.ljust(6)
        + end.ljust(6)
        + days.ljust(7)
        + "JJ"
        + "S"
        + location.ljust(7)
        + " "
        + " "
        + "T"
        + "P"
        + " " * 31
        + stp
    )
    return line.ljust(LINE_WIDTH)


def bs_line() -> str:
    return "BSNC123452401012412311111100 POO2N12    123456789 DMUE   090      S            P".ljust(LINE_WIDTH)


def zz_line() -> str:
    return "ZZ".ljust(LINE_WIDTH)


def as_file_lines(*lines: str) -> list[str]:
    return [line + "\n" for line in lines]
