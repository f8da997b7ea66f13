"""
Loader for a directory of SAP S/4 quality extracts.

THIS FILE CONTAINS SOURCE-SPECIFIC FILE CONVENTIONS:
- File types are recognised from export file names
  ("Outbound 235_PS4.xlsx", "Q Cockpit QOS ET_Complaints_Parts_PPM_PS4.xlsx",
  "PPAP P Notif_STATUS_PS4.XLSX", ...)
- PPAP and deviation exports ship their status in a separate *_STATUS_*
  file that is merged onto the base file by notification number
- Delivery files carry their plant and direction in the file name

To adapt for another export layout:
1. Adjust FILE_TYPE_RULES for the new file names
2. Pass column-mapping overrides for changed headers
3. The core parsers, merge and aggregation can be reused as-is
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from ..core.analysis import KpiAggregate, aggregate
from ..core.cache import ReferenceDataCache
from ..core.config import ColumnMapping, load_column_mappings
from ..core.models import Complaint, Delivery, DeliveryKind, Deviation, Inspection, PPAPNotification, Plant
from ..core.quality import ParseResult, UnsupportedFileTypeError
from ..core.reconciliation import StatusMerger
from . import s4_mappings
from .s4_parsers import (
    parse_complaints,
    parse_deliveries,
    parse_deviation_status,
    parse_deviations,
    parse_inspections,
    parse_plants,
    parse_ppap,
    parse_ppap_status,
    plant_from_file_name,
)

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xls", ".xlsm")


class FileType(Enum):
    PLANTS = "plants"
    DELIVERIES_OUTBOUND = "deliveries-outbound"
    DELIVERIES_INBOUND = "deliveries-inbound"
    COMPLAINTS = "complaints"
    DEVIATIONS = "deviations"
    DEVIATION_STATUS = "deviation-status"
    PPAP = "ppap"
    PPAP_STATUS = "ppap-status"
    INSPECTIONS = "inspections"
    UNKNOWN = "unknown"


# Ordered (file type, predicate on the lowercased file name); first match wins.
# Delivery rules run before complaints so "outbound" names never count as complaints.
FILE_TYPE_RULES: list[tuple[FileType, Callable[[str], bool]]] = [
    (FileType.PLANTS, lambda n: "plant" in n),
    (FileType.DELIVERIES_OUTBOUND, lambda n: "outbound" in n and "complaint" not in n),
    (FileType.DELIVERIES_INBOUND, lambda n: "inbound" in n and "complaint" not in n),
    (FileType.COMPLAINTS, lambda n: "complaint" in n or "q cockpit" in n),
    (FileType.DEVIATION_STATUS, lambda n: "deviation" in n and "status" in n),
    (FileType.DEVIATIONS, lambda n: "deviation" in n),
    (FileType.PPAP_STATUS, lambda n: ("ppap" in n or "p notif" in n) and "status" in n),
    (FileType.PPAP, lambda n: "ppap" in n or "p notif" in n),
    (FileType.INSPECTIONS, lambda n: "inspection" in n or "review" in n),
]

_COMPLAINT_FILE_PLANT = re.compile(r"-?\s*(\d{3})\s*\.", re.IGNORECASE)


@dataclass(frozen=True)
class DetectedFile:
    file_type: FileType
    file_name: str
    plant_code: str | None = None


def detect_file_type(file_name: str) -> DetectedFile:
    """Classify an export by its file name."""
    lower = file_name.lower()
    file_type = next((t for t, matches in FILE_TYPE_RULES if matches(lower)), FileType.UNKNOWN)

    plant_code = None
    if file_type in (FileType.DELIVERIES_OUTBOUND, FileType.DELIVERIES_INBOUND):
        plant_code = plant_from_file_name(file_name)
    elif file_type == FileType.COMPLAINTS:
        match = _COMPLAINT_FILE_PLANT.search(file_name)
        plant_code = match.group(1) if match else None

    return DetectedFile(file_type=file_type, file_name=file_name, plant_code=plant_code)


@dataclass
class DashboardKpis:
    """KPIs computed from every complaint and delivery file in the directory."""

    kpis: KpiAggregate
    complaints: int
    deliveries: int
    customer_delivery_quantity: float
    supplier_delivery_quantity: float
    files_used: dict[str, list[str]] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)

    def summary(self) -> dict:
        return {
            "total_complaints": self.complaints,
            "total_deliveries": self.deliveries,
            "total_delivery_quantity": self.customer_delivery_quantity + self.supplier_delivery_quantity,
            "customer_delivery_quantity": self.customer_delivery_quantity,
            "supplier_delivery_quantity": self.supplier_delivery_quantity,
            "site_month_combinations": len(self.kpis.rows),
            "files_used": self.files_used,
        }


class S4QualityLoader:
    """
    Loads S/4 quality extracts from a directory.

    Reference data (plants, PPAP, deviations, inspections) and dashboard
    KPIs are cached in the injected ReferenceDataCache and reloaded
    whenever any source file's size or modification time changes.

    Usage:
        loader = S4QualityLoader("attachments")
        plants = loader.load_plants()
        dashboard = loader.load_dashboard_kpis()
    """

    def __init__(
        self,
        data_dir: Path | str,
        cache: ReferenceDataCache | None = None,
        mappings: dict[str, ColumnMapping] | None = None,
    ):
        """
        Args:
            data_dir: Directory holding the exported workbooks
            cache: Shared reference cache; a private one is created when omitted
            mappings: Record type -> ColumnMapping overriding the defaults
        """
        self.data_dir = Path(data_dir)
        self.cache = cache if cache is not None else ReferenceDataCache()
        self.mappings = {**s4_mappings.DEFAULT_MAPPINGS, **(mappings or {})}

    @classmethod
    def from_preset(
        cls, data_dir: Path | str, preset_path: Path | str, cache: ReferenceDataCache | None = None
    ) -> "S4QualityLoader":
        """Loader whose column mappings come from a JSON preset file."""
        mappings = load_column_mappings(preset_path, s4_mappings.DEFAULT_MAPPINGS)
        return cls(data_dir, cache=cache, mappings=mappings)

    def list_files(self) -> list[DetectedFile]:
        """Workbooks in the data directory, skipping Office lock files."""
        if not self.data_dir.is_dir():
            logger.warning("Data directory %s does not exist", self.data_dir)
            return []
        return [
            detect_file_type(p.name)
            for p in sorted(self.data_dir.iterdir())
            if p.is_file() and p.suffix.lower() in EXCEL_SUFFIXES and not p.name.startswith("~$")
        ]

    def files_of_type(self, file_type: FileType) -> list[Path]:
        return [self.data_dir / f.file_name for f in self.list_files() if f.file_type == file_type]

    def parse_upload(
        self, buffer: bytes, file_name: str, file_type: FileType | str | None = None
    ) -> ParseResult:
        """
        Parse one uploaded workbook.

        The file type comes from the explicit tag when given, else from the
        file name.

        Raises:
            UnsupportedFileTypeError: no parser for the file type
            WorkbookReadError: the buffer is not a readable workbook
        """
        if file_type is None:
            file_type = detect_file_type(file_name).file_type
        elif isinstance(file_type, str):
            file_type = FileType(file_type)

        m = self.mappings
        if file_type == FileType.COMPLAINTS:
            return parse_complaints(buffer, m["complaints"])
        if file_type == FileType.DELIVERIES_OUTBOUND:
            return parse_deliveries(buffer, m["deliveries"], file_name, kind=DeliveryKind.CUSTOMER)
        if file_type == FileType.DELIVERIES_INBOUND:
            return parse_deliveries(buffer, m["deliveries"], file_name, kind=DeliveryKind.SUPPLIER)
        if file_type == FileType.DEVIATIONS:
            return parse_deviations(buffer, m["deviations"])
        if file_type == FileType.DEVIATION_STATUS:
            return parse_deviation_status(buffer, m["status"])
        if file_type == FileType.PPAP:
            return parse_ppap(buffer, m["ppap"])
        if file_type == FileType.PPAP_STATUS:
            return parse_ppap_status(buffer, m["status"])
        if file_type == FileType.PLANTS:
            return parse_plants(buffer, m["plants"])
        if file_type == FileType.INSPECTIONS:
            return parse_inspections(buffer, m["inspections"])

        raise UnsupportedFileTypeError(f"No parser for {file_type.value} file {file_name!r}")

    def _parse_file(self, path: Path, file_type: FileType) -> ParseResult:
        return self.parse_upload(path.read_bytes(), path.name, file_type)

    def load_plants(self) -> list[Plant]:
        """Plant reference table; empty when no plants file exists."""
        paths = self.files_of_type(FileType.PLANTS)

        def load() -> list[Plant]:
            if not paths:
                logger.warning("No plants file in %s", self.data_dir)
                return []
            return self._parse_file(paths[0], FileType.PLANTS).records

        return self.cache.get_or_load("plants", paths, load)

    def load_inspections(self) -> list[Inspection]:
        """Inspection rows from every inspection/review file."""
        paths = self.files_of_type(FileType.INSPECTIONS)

        def load() -> list[Inspection]:
            records = []
            for path in paths:
                records.extend(self._parse_file(path, FileType.INSPECTIONS).records)
            return records

        return self.cache.get_or_load("inspections", paths, load)

    def load_ppaps(self) -> list[PPAPNotification]:
        """PPAP notifications with status from the PPAP status file merged in."""
        return self._load_with_status("ppap", FileType.PPAP, FileType.PPAP_STATUS)

    def load_deviations(self) -> list[Deviation]:
        """Deviation notifications with status from the deviation status file merged in."""
        return self._load_with_status("deviations", FileType.DEVIATIONS, FileType.DEVIATION_STATUS)

    def _load_with_status(self, key: str, base_type: FileType, status_type: FileType) -> list[Any]:
        base_paths = self.files_of_type(base_type)
        status_paths = self.files_of_type(status_type)

        def load() -> list[Any]:
            records = []
            for path in base_paths:
                records.extend(self._parse_file(path, base_type).records)
            entries = []
            for path in status_paths:
                entries.extend(self._parse_file(path, status_type).records)
            if not entries:
                return records
            return StatusMerger(entries).merge(records).records

        return self.cache.get_or_load(key, base_paths + status_paths, load)

    def load_dashboard_kpis(self) -> DashboardKpis:
        """Aggregate every complaint and delivery file in the directory."""
        complaint_paths = self.files_of_type(FileType.COMPLAINTS)
        outbound_paths = self.files_of_type(FileType.DELIVERIES_OUTBOUND)
        inbound_paths = self.files_of_type(FileType.DELIVERIES_INBOUND)
        paths = complaint_paths + outbound_paths + inbound_paths

        def load() -> DashboardKpis:
            complaints: list[Complaint] = []
            deliveries: list[Delivery] = []
            errors: dict[str, list[str]] = {}

            for path in complaint_paths:
                result = self._parse_file(path, FileType.COMPLAINTS)
                complaints.extend(result.records)
                if result.errors:
                    errors[path.name] = result.errors
            for path, file_type in [(p, FileType.DELIVERIES_OUTBOUND) for p in outbound_paths] + [
                (p, FileType.DELIVERIES_INBOUND) for p in inbound_paths
            ]:
                result = self._parse_file(path, file_type)
                deliveries.extend(result.records)
                if result.errors:
                    errors[path.name] = result.errors

            return DashboardKpis(
                kpis=aggregate(complaints, deliveries),
                complaints=len(complaints),
                deliveries=len(deliveries),
                customer_delivery_quantity=sum(d.quantity for d in deliveries if d.kind == DeliveryKind.CUSTOMER),
                supplier_delivery_quantity=sum(d.quantity for d in deliveries if d.kind == DeliveryKind.SUPPLIER),
                files_used={
                    "complaints": [p.name for p in complaint_paths],
                    "outbound": [p.name for p in outbound_paths],
                    "inbound": [p.name for p in inbound_paths],
                },
                errors=errors,
            )

        return self.cache.get_or_load("dashboard_kpis", paths, load)
