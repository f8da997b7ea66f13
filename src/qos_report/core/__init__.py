# Core reusable components for quality-report ingestion
# Nothing here knows about a particular source system's column names

from .headers import HeaderResolver, HeaderMap, normalize_header
from .parsers import DateParser, parse_number, extract_value, is_empty_row, cell_to_text
from .units import UnitConverter, UnitConversion, is_piece_unit
from .models import (
    NotificationType,
    NotificationCategory,
    NotificationStatus,
    DeliveryKind,
    DataSource,
    QuantityBasis,
    Complaint,
    Deviation,
    PPAPNotification,
    StatusEntry,
    Delivery,
    Plant,
    Inspection,
    InspectionResult,
    MonthlySiteKpi,
    GlobalPpm,
    TrendResult,
)
from .quality import ParseResult, QosReportError, WorkbookReadError, MissingColumnsError
from .status import resolve_status
from .reconciliation import StatusMerger, MergeResult, merge_corrections
from .analysis import (
    aggregate,
    calculate_ppm,
    calculate_global_ppm,
    calculate_trend,
    calculate_period_trends,
    filter_kpis,
    kpis_to_frame,
)
from .cache import ReferenceDataCache
from .config import ColumnMapping, load_column_mappings

__all__ = [
    "HeaderResolver",
    "HeaderMap",
    "normalize_header",
    "DateParser",
    "parse_number",
    "extract_value",
    "is_empty_row",
    "cell_to_text",
    "UnitConverter",
    "UnitConversion",
    "is_piece_unit",
    "NotificationType",
    "NotificationCategory",
    "NotificationStatus",
    "DeliveryKind",
    "DataSource",
    "QuantityBasis",
    "Complaint",
    "Deviation",
    "PPAPNotification",
    "StatusEntry",
    "Delivery",
    "Plant",
    "Inspection",
    "InspectionResult",
    "MonthlySiteKpi",
    "GlobalPpm",
    "TrendResult",
    "ParseResult",
    "QosReportError",
    "WorkbookReadError",
    "MissingColumnsError",
    "resolve_status",
    "StatusMerger",
    "MergeResult",
    "merge_corrections",
    "aggregate",
    "calculate_ppm",
    "calculate_global_ppm",
    "calculate_trend",
    "calculate_period_trends",
    "filter_kpis",
    "kpis_to_frame",
    "ReferenceDataCache",
    "ColumnMapping",
    "load_column_mappings",
]
