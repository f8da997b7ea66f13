"""
Quality KPI ingestion for SAP S/4 spreadsheet extracts.

qos_report.core holds the reusable engine (header resolution, value
extraction, unit conversion, status merge, KPI aggregation);
qos_report.clients holds the S/4 export conventions.
"""

__version__ = "0.1.0"
