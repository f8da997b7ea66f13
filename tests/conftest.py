from io import BytesIO

import pandas as pd
import pytest


def workbook_bytes(header, rows=(), extra_sheets=None) -> bytes:
    """Build an .xlsx in memory; the first sheet holds header + rows."""
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(list(rows), columns=header).to_excel(writer, sheet_name="Data", index=False)
        for name, (sheet_header, sheet_rows) in (extra_sheets or {}).items():
            pd.DataFrame(list(sheet_rows), columns=sheet_header).to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    return workbook_bytes


@pytest.fixture
def write_workbook(tmp_path):
    data_dir = tmp_path / "attachments"
    data_dir.mkdir()

    def write(name, header, rows=()):
        path = data_dir / name
        path.write_bytes(workbook_bytes(header, rows))
        return path

    write.data_dir = data_dir
    return write
