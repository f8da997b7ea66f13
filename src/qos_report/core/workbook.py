"""Workbook reading: first worksheet as raw rows."""

import logging
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd

from .quality import WorkbookReadError

logger = logging.getLogger(__name__)


def read_first_sheet(buffer: bytes) -> list[list[Any]]:
    """
    Read the first worksheet of a workbook buffer into untyped rows.

    Row 0 is the header row. Cells keep their native types; blank cells
    come back as empty strings or None. Other sheets are ignored.

    Raises:
        WorkbookReadError: the buffer is not a readable workbook
    """
    try:
        frame = pd.read_excel(
            BytesIO(buffer),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,
            na_values=[],
        )
    except Exception as exc:
        raise WorkbookReadError(f"Could not read workbook: {exc}") from exc

    frame = frame.astype(object).where(pd.notna(frame), None)
    rows = frame.values.tolist()
    logger.debug("Read %d rows x %d columns from first sheet", len(rows), frame.shape[1])
    return rows


def read_workbook_file(path: Path | str) -> list[list[Any]]:
    """read_first_sheet() for a file on disk."""
    return read_first_sheet(Path(path).read_bytes())
