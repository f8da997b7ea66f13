"""
Parse outcomes and error types.

A parse either fails structurally (unreadable sheet, missing required
columns, no data rows) or succeeds with per-row errors. ParseResult
keeps both kinds of diagnostics next to the records so callers can tell
an empty source from an invalid one without catching exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class QosReportError(Exception):
    """Base class for errors raised by this package."""


class WorkbookReadError(QosReportError):
    """The byte buffer could not be read as a workbook."""


class MissingColumnsError(QosReportError):
    """Required columns could not be resolved from the header row."""

    def __init__(self, record_type: str, missing: list[str], available: list[str]):
        self.record_type = record_type
        self.missing = missing
        self.available = available
        super().__init__(
            f"{record_type}: missing required columns {', '.join(missing)} "
            f"(available: {', '.join(available) or 'none'})"
        )


class UnsupportedFileTypeError(QosReportError):
    """No parser exists for the detected or requested file type."""


class RowError(ValueError):
    """A single data row cannot become a record; the batch continues."""


class StructuralIssue(Enum):
    """Why a whole sheet produced no records."""

    NO_DATA_ROWS = "no_data_rows"
    MISSING_COLUMNS = "missing_columns"


@dataclass
class ParseResult(Generic[T]):
    """Records plus diagnostics for one parsed sheet."""

    record_type: str
    records: list[T] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    structural_issue: StructuralIssue | None = None
    missing_columns: list[str] = field(default_factory=list)
    available_headers: list[str] = field(default_factory=list)
    rows_read: int = 0
    rows_skipped: int = 0

    @property
    def is_structurally_valid(self) -> bool:
        return self.structural_issue != StructuralIssue.MISSING_COLUMNS

    @property
    def is_empty(self) -> bool:
        return len(self.records) == 0

    def raise_for_structure(self) -> "ParseResult[T]":
        """Raise MissingColumnsError for an invalid sheet. Returns self for chaining."""
        if self.structural_issue == StructuralIssue.MISSING_COLUMNS:
            raise MissingColumnsError(self.record_type, self.missing_columns, self.available_headers)
        return self

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "record_type": self.record_type,
            "records": len(self.records),
            "rows_read": self.rows_read,
            "rows_skipped": self.rows_skipped,
            "errors": len(self.errors),
            "structural_issue": self.structural_issue.value if self.structural_issue else None,
            "missing_columns": list(self.missing_columns),
        }
