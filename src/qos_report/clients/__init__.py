# Source-system adapters
# Each module holds the header vocabulary and file conventions of one export family

from .s4_client import S4QualityLoader, DashboardKpis, FileType, DetectedFile, detect_file_type
from .s4_parsers import (
    parse_complaints,
    parse_deliveries,
    parse_deviations,
    parse_deviation_status,
    parse_ppap,
    parse_ppap_status,
    parse_plants,
    parse_inspections,
)

__all__ = [
    "S4QualityLoader",
    "DashboardKpis",
    "FileType",
    "DetectedFile",
    "detect_file_type",
    "parse_complaints",
    "parse_deliveries",
    "parse_deviations",
    "parse_deviation_status",
    "parse_ppap",
    "parse_ppap_status",
    "parse_plants",
    "parse_inspections",
]
