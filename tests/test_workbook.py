import pytest

from qos_report.clients.s4_parsers import parse_complaints
from qos_report.core.quality import WorkbookReadError
from qos_report.core.workbook import read_first_sheet, read_workbook_file


def test_only_first_sheet_is_read(make_workbook):
    buffer = make_workbook(
        ["Plant", "Quantity"],
        [["101", 5]],
        extra_sheets={"Other": (["Ignored"], [["x"], ["y"]])},
    )

    rows = read_first_sheet(buffer)

    assert rows[0] == ["Plant", "Quantity"]
    assert len(rows) == 2
    assert rows[1][1] == 5


def test_corrupt_bytes_raise_workbook_read_error():
    with pytest.raises(WorkbookReadError):
        read_first_sheet(b"definitely not a workbook")


def test_parsers_propagate_unreadable_workbooks():
    with pytest.raises(WorkbookReadError):
        parse_complaints(b"\x00\x01\x02")


def test_read_workbook_file(tmp_path, make_workbook):
    path = tmp_path / "plants.xlsx"
    path.write_bytes(make_workbook(["Code"], [[106]]))

    assert read_workbook_file(path) == [["Code"], [106]]
