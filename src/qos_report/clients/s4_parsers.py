"""
Record parsers for the SAP S/4 quality extracts.

One parser per document shape. Every parser:
1. Reads the first worksheet only
2. Resolves headers against its column mapping
3. Fails structurally (empty records, diagnostics set) on a sheet
   without data rows or without its required columns
4. Skips blank rows silently
5. Collects per-row errors without aborting the batch

Client-specific business rules (Q1/Q2 defective column preference,
delivery direction from file names, PPAP/deviation subtype heuristics)
live here; the reusable pieces live in qos_report.core.
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Sequence, TypeVar

from ..core.config import ColumnMapping
from ..core.headers import HeaderMap, HeaderResolver
from ..core.models import (
    Complaint,
    DataSource,
    Delivery,
    DeliveryKind,
    Deviation,
    Inspection,
    InspectionResult,
    NotificationCategory,
    NotificationType,
    PPAPNotification,
    Plant,
    QuantityBasis,
    StatusEntry,
    category_for,
    notification_id,
)
from ..core.parsers import DateParser, cell_to_text, extract_value, is_empty_row, parse_number
from ..core.quality import ParseResult, RowError, StructuralIssue
from ..core.status import resolve_status
from ..core.units import UnitConversion, UnitConverter, is_piece_unit
from ..core.workbook import read_first_sheet
from . import s4_mappings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a malformed row may raise while being decoded
_ROW_FAILURES = (ValueError, TypeError, KeyError, AttributeError, OverflowError)


def _resolve_mapping(default: ColumnMapping, mapping: ColumnMapping | dict | None) -> ColumnMapping:
    if isinstance(mapping, ColumnMapping):
        return mapping
    return default.merged(mapping)


def _text(row: Sequence[Any], index: int | None) -> str:
    return cell_to_text(extract_value(row, index, ""))


def _optional_text(row: Sequence[Any], index: int | None) -> str | None:
    return _text(row, index) or None


def _open_sheet(
    buffer: bytes, record_type: str, mapping: ColumnMapping
) -> tuple[list[list[Any]], HeaderMap | None, ParseResult]:
    """Read rows and resolve headers; header_map is None on structural failure."""
    rows = read_first_sheet(buffer)
    result: ParseResult = ParseResult(record_type=record_type)

    if len(rows) < 2:
        result.structural_issue = StructuralIssue.NO_DATA_ROWS
        if rows:
            result.available_headers = [cell_to_text(h) for h in rows[0] if cell_to_text(h)]
        logger.warning("%s: sheet has no data rows (only header or empty)", record_type)
        return rows, None, result

    header_map = HeaderResolver(mapping.aliases, mapping.exclusions, mapping.must_contain).resolve(rows[0])
    result.available_headers = [h for h in header_map.headers if h]

    missing = header_map.missing(mapping.required)
    if missing:
        result.structural_issue = StructuralIssue.MISSING_COLUMNS
        result.missing_columns = missing
        logger.error(
            "%s: missing required columns: %s. Available columns: %s",
            record_type,
            ", ".join(missing),
            ", ".join(result.available_headers),
        )
        return rows, None, result

    return rows, header_map, result


def _parse_rows(
    rows: list[list[Any]],
    result: ParseResult,
    parse_row: Callable[..., T | None],
    numbered: bool = False,
) -> ParseResult:
    """
    Run parse_row over data rows. A None return skips the row silently.

    With numbered=True parse_row also receives the 1-based sheet row number.
    """
    for row_number, row in enumerate(rows[1:], start=2):
        result.rows_read += 1
        if is_empty_row(row):
            result.rows_skipped += 1
            continue
        try:
            record = parse_row(row, row_number) if numbered else parse_row(row)
        except _ROW_FAILURES as exc:
            result.errors.append(f"Row {row_number}: {exc}")
            continue
        if record is None:
            result.rows_skipped += 1
            continue
        result.records.append(record)
    return result


def _log_result(result: ParseResult) -> None:
    if result.errors:
        logger.warning("%s: %d rows with errors", result.record_type, len(result.errors))
        for error in result.errors[:10]:
            logger.warning("  %s", error)
        if len(result.errors) > 10:
            logger.warning("  ... and %d more", len(result.errors) - 10)
    logger.info(
        "%s: parsed %d records from %d rows (%d skipped)",
        result.record_type,
        len(result.records),
        result.rows_read,
        result.rows_skipped,
    )


# Complaints

# Q1 counts the internal defective column, Q2 the external one
_PREFERRED_DEFECTIVE_FIELD = {
    NotificationType.Q1: "defectiveInternal",
    NotificationType.Q2: "defectiveExternal",
}
_CONVERTIBLE_TYPES = {NotificationType.Q1, NotificationType.Q2}


def _defective_quantity(row: Sequence[Any], header_map: HeaderMap, notification_type: NotificationType) -> float:
    """Preferred column when present and non-blank (zero included), else the generic one."""
    preferred = _PREFERRED_DEFECTIVE_FIELD.get(notification_type)
    if preferred is not None:
        raw = extract_value(row, header_map[preferred])
        if raw is not None:
            return parse_number(raw)
    return parse_number(extract_value(row, header_map["defectiveParts"]))


def normalize_to_pieces(
    notification_type: NotificationType,
    quantity: float,
    unit: str | None,
    material_description: str | None,
    converter: UnitConverter,
    notification_number: str = "",
) -> tuple[float, UnitConversion | None, QuantityBasis]:
    """
    Piece count for a complaint quantity, with the conversion used and its basis.

    Only Q1/Q2 with a positive quantity in a non-piece unit are converted.
    A failed conversion keeps the raw value and logs a warning.
    """
    quantity = max(0.0, quantity)
    if notification_type not in _CONVERTIBLE_TYPES or quantity <= 0 or is_piece_unit(unit):
        return quantity, None, QuantityBasis.PIECES

    conversion = converter.convert(quantity, unit, material_description)
    if conversion is not None:
        return conversion.converted_value, conversion, QuantityBasis.CONVERTED

    logger.warning(
        "[%s complaint %s] Could not convert %s %s to pieces; using original value",
        notification_type.value,
        notification_number,
        quantity,
        unit,
    )
    return quantity, None, QuantityBasis.UNCONVERTED


def parse_complaints(
    buffer: bytes,
    mapping: ColumnMapping | dict | None = None,
    source: DataSource = DataSource.SAP_S4,
    converter: UnitConverter | None = None,
) -> ParseResult[Complaint]:
    """
    Parse a quality-notification (Q cockpit) extract into complaints.

    Args:
        buffer: Workbook bytes
        mapping: Full ColumnMapping, or an override dict merged onto the defaults
        source: Source tag stored on every record
        converter: Unit converter for ML/M/M2 quantities
    """
    mapping = _resolve_mapping(s4_mappings.COMPLAINTS, mapping)
    converter = converter or UnitConverter()
    dates = DateParser()

    rows, header_map, result = _open_sheet(buffer, "complaints", mapping)
    if header_map is None:
        return result

    def parse_row(row: list[Any]) -> Complaint:
        number = _text(row, header_map["notificationNumber"])
        type_text = _text(row, header_map["notificationType"])
        plant = _text(row, header_map["plant"])
        site_code = _text(row, header_map["siteCode"]) or plant
        created_on = dates.parse(extract_value(row, header_map["createdOn"]))

        if not number:
            raise RowError("Missing notification number")
        if not type_text:
            raise RowError("Missing notification type")
        if created_on is None:
            raise RowError("Missing or invalid creation date")

        notification_type = NotificationType.from_text(type_text)
        unit = _text(row, header_map["unitOfMeasure"]).upper() or None
        description = _optional_text(row, header_map["materialDescription"])

        defective, conversion, basis = normalize_to_pieces(
            notification_type,
            _defective_quantity(row, header_map, notification_type),
            unit,
            description,
            converter,
            number,
        )

        plant = plant or site_code
        return Complaint(
            id=notification_id(None, plant, number),
            notification_number=number,
            notification_type=notification_type,
            category=category_for(notification_type),
            plant=plant,
            site_code=site_code,
            site_name=_optional_text(row, header_map["siteName"]),
            created_on=created_on,
            defective_parts=defective,
            source=source,
            unit_of_measure=unit,
            material_description=description,
            material_number=_optional_text(row, header_map["materialNumber"]),
            conversion=conversion,
            quantity_basis=basis,
        )

    _parse_rows(rows, result, parse_row)
    _log_result(result)
    return result


# Deliveries

# Tried in order; "Outbound 235_PS4" -> "235"
_FILE_PLANT_PATTERNS = [
    re.compile(r"(?:outbound|inbound)[\s_]+(\d+)", re.IGNORECASE),
    re.compile(r"(?:outbound|inbound).*?(\d{3,})", re.IGNORECASE),
]

_CUSTOMER_WORDS = ("customer", "outbound")
_CUSTOMER_CODES = {"c", "cust", "out"}
_SUPPLIER_WORDS = ("supplier", "inbound")
_SUPPLIER_CODES = {"s", "supp", "in"}


def plant_from_file_name(file_name: str | None) -> str | None:
    """Plant number embedded in an outbound/inbound file name."""
    if not file_name:
        return None
    for pattern in _FILE_PLANT_PATTERNS:
        match = pattern.search(file_name)
        if match:
            return match.group(1)
    return None


def direction_from_file_name(file_name: str | None) -> DeliveryKind | None:
    name = (file_name or "").lower()
    if "outbound" in name:
        return DeliveryKind.CUSTOMER
    if "inbound" in name:
        return DeliveryKind.SUPPLIER
    return None


def parse_delivery_kind(value: Any) -> DeliveryKind | None:
    """Direction from a customer/supplier column cell; None when unrecognized."""
    text = cell_to_text(value).lower()
    if not text:
        return None
    if text in _CUSTOMER_CODES or any(word in text for word in _CUSTOMER_WORDS):
        return DeliveryKind.CUSTOMER
    if text in _SUPPLIER_CODES or any(word in text for word in _SUPPLIER_WORDS):
        return DeliveryKind.SUPPLIER
    return None


def delivery_id(plant: str, site_code: str, date: datetime, kind: DeliveryKind) -> str:
    return f"{plant}-{site_code}-{date.strftime('%Y-%m-%d')}-{kind.value}"


def consolidate_deliveries(deliveries: Sequence[Delivery]) -> list[Delivery]:
    """
    One delivery per (plant, month, kind) with summed quantity.

    The earliest date in the group is kept; output is sorted by key.
    """
    groups: dict[tuple[str, str, DeliveryKind], list[Delivery]] = {}
    for d in deliveries:
        groups.setdefault((d.plant, d.month, d.kind), []).append(d)

    consolidated = []
    for key in sorted(groups, key=lambda k: (k[0], k[1], k[2].value)):
        members = sorted(groups[key], key=lambda d: (d.date, d.site_code, d.quantity))
        first = members[0]
        site_name = next((d.site_name for d in members if d.site_name), None)
        consolidated.append(
            Delivery(
                id=delivery_id(first.plant, first.site_code, first.date, first.kind),
                plant=first.plant,
                site_code=first.site_code,
                site_name=site_name,
                date=first.date,
                quantity=sum(d.quantity for d in members),
                kind=first.kind,
            )
        )
    return consolidated


def parse_deliveries(
    buffer: bytes,
    mapping: ColumnMapping | dict | None = None,
    file_name: str | None = None,
    kind: DeliveryKind | None = None,
) -> ParseResult[Delivery]:
    """
    Parse an outbound (customer) or inbound (supplier) delivery log.

    Direction: explicit kind, else the row's direction column, else the
    file name, else Customer. For "Outbound <plant>"/"Inbound <plant>"
    files the plant in the file name overrides the plant column, and
    the actual goods issue/receipt date is required when that column
    exists. Rows with a non-positive quantity are skipped. The result
    holds one record per plant, month and direction.
    """
    mapping = _resolve_mapping(s4_mappings.DELIVERIES, mapping)
    dates = DateParser()

    rows, header_map, result = _open_sheet(buffer, "deliveries", mapping)
    if header_map is None:
        return result

    file_direction = direction_from_file_name(file_name)
    file_plant = plant_from_file_name(file_name) if file_direction else None

    if not header_map.resolved("plant") and not file_plant:
        result.structural_issue = StructuralIssue.MISSING_COLUMNS
        result.missing_columns = ["plant"]
        logger.error(
            "deliveries: no plant column and no plant in file name %r. Available columns: %s",
            file_name,
            ", ".join(result.available_headers),
        )
        return result

    # Outbound files date by goods issue, inbound files by goods receipt
    actual_date_field = {
        DeliveryKind.CUSTOMER: "actualGoodsIssueDate",
        DeliveryKind.SUPPLIER: "actualGoodsReceiptDate",
    }.get(file_direction)
    require_actual_date = actual_date_field is not None and header_map.resolved(actual_date_field)

    def row_date(row: list[Any]) -> tuple[datetime | None, bool]:
        """(date, include) for one row."""
        if require_actual_date:
            actual = dates.parse(extract_value(row, header_map[actual_date_field]))
            return actual, actual is not None
        if file_direction is not None:
            return dates.parse(extract_value(row, header_map["date"])), True
        for field_name in ("actualGoodsIssueDate", "actualGoodsReceiptDate", "date"):
            parsed = dates.parse(extract_value(row, header_map[field_name]))
            if parsed is not None:
                return parsed, True
        return None, True

    def parse_row(row: list[Any]) -> Delivery | None:
        plant = file_plant or _text(row, header_map["plant"])
        if not plant:
            raise RowError("Missing plant (no plant column value and none in file name)")
        site_code = file_plant or _text(row, header_map["siteCode"]) or plant

        date, include = row_date(row)
        if not include:
            return None
        if date is None:
            raise RowError("Missing or invalid date")

        quantity = parse_number(extract_value(row, header_map["quantity"]))
        if quantity <= 0:
            return None

        row_kind = (
            kind
            or parse_delivery_kind(extract_value(row, header_map["kind"]))
            or file_direction
            or DeliveryKind.CUSTOMER
        )
        return Delivery(
            id=delivery_id(plant, site_code, date, row_kind),
            plant=plant,
            site_code=site_code,
            site_name=_optional_text(row, header_map["siteName"]),
            date=date,
            quantity=quantity,
            kind=row_kind,
        )

    _parse_rows(rows, result, parse_row)
    result.records = consolidate_deliveries(result.records)
    _log_result(result)
    return result


# Deviations and PPAP


def deviation_type_from_text(value: str) -> NotificationType:
    """D2/D3 by substring or bare digit; anything else is D1."""
    text = value.strip().upper()
    if "D2" in text or text == "2":
        return NotificationType.D2
    if "D3" in text or text == "3":
        return NotificationType.D3
    return NotificationType.D1


def ppap_type_from_text(value: str) -> NotificationType:
    """P2 for P2/"2"/completed/approved, P3 for P3/"3", otherwise P1."""
    text = value.strip().upper()
    if "P2" in text or text == "2" or "COMPLETED" in text or "APPROVED" in text:
        return NotificationType.P2
    if "P3" in text or text == "3":
        return NotificationType.P3
    return NotificationType.P1


def _notification_fields(row: list[Any], header_map: HeaderMap, dates: DateParser) -> dict:
    """Fields shared by the deviation and PPAP extracts."""
    number = _text(row, header_map["notificationNumber"])
    if not number:
        raise RowError("Missing notification number")
    created_on = dates.parse(extract_value(row, header_map["createdOn"]))
    if created_on is None:
        raise RowError("Missing or invalid creation date")

    status_text = _optional_text(row, header_map["statusText"])
    plant = _text(row, header_map["plant"])
    return {
        "number": number,
        "type_text": _text(row, header_map["notificationType"]),
        "plant": plant,
        "site_name": _optional_text(row, header_map["siteName"]),
        "created_on": created_on,
        "status": resolve_status(status_text),
        "status_text": status_text,
    }


def parse_deviations(
    buffer: bytes,
    mapping: ColumnMapping | dict | None = None,
    source: DataSource = DataSource.IMPORT,
) -> ParseResult[Deviation]:
    """Parse a deviation (D notification) extract. Plant prefers "plant for material"."""
    mapping = _resolve_mapping(s4_mappings.DEVIATIONS, mapping)
    dates = DateParser()

    rows, header_map, result = _open_sheet(buffer, "deviations", mapping)
    if header_map is None:
        return result

    def parse_row(row: list[Any]) -> Deviation:
        fields = _notification_fields(row, header_map, dates)
        notification_type = deviation_type_from_text(fields["type_text"])
        return Deviation(
            id=notification_id("DEV", fields["plant"], fields["number"]),
            notification_number=fields["number"],
            notification_type=notification_type,
            category=NotificationCategory.DEVIATION,
            plant=fields["plant"],
            site_code=fields["plant"],
            site_name=fields["site_name"],
            created_on=fields["created_on"],
            source=source,
            status=fields["status"],
            status_text=fields["status_text"],
            deviation_type=_optional_text(row, header_map["deviationType"]),
            severity=_optional_text(row, header_map["severity"]),
        )

    _parse_rows(rows, result, parse_row)
    _log_result(result)
    return result


def parse_ppap(
    buffer: bytes,
    mapping: ColumnMapping | dict | None = None,
    source: DataSource = DataSource.IMPORT,
) -> ParseResult[PPAPNotification]:
    """Parse a PPAP (P notification) extract, reading any inline status column."""
    mapping = _resolve_mapping(s4_mappings.PPAP, mapping)
    dates = DateParser()

    rows, header_map, result = _open_sheet(buffer, "ppap", mapping)
    if header_map is None:
        return result

    def parse_row(row: list[Any]) -> PPAPNotification:
        fields = _notification_fields(row, header_map, dates)
        notification_type = ppap_type_from_text(fields["type_text"])
        return PPAPNotification(
            id=notification_id("PPAP", fields["plant"], fields["number"]),
            notification_number=fields["number"],
            notification_type=notification_type,
            category=NotificationCategory.PPAP,
            plant=fields["plant"],
            site_code=fields["plant"],
            site_name=fields["site_name"],
            created_on=fields["created_on"],
            source=source,
            status=fields["status"],
            status_text=fields["status_text"],
            part_number=_optional_text(row, header_map["partNumber"]),
        )

    _parse_rows(rows, result, parse_row)
    _log_result(result)
    return result


# Status extracts


def parse_status_extract(
    buffer: bytes,
    mapping: ColumnMapping | dict | None = None,
    record_type: str = "status",
) -> ParseResult[StatusEntry]:
    """Parse a notification-number/status extract into status entries."""
    mapping = _resolve_mapping(s4_mappings.NOTIFICATION_STATUS, mapping)

    rows, header_map, result = _open_sheet(buffer, record_type, mapping)
    if header_map is None:
        return result

    def parse_row(row: list[Any]) -> StatusEntry:
        number = _text(row, header_map["notificationNumber"])
        if not number:
            raise RowError("Missing notification number")
        status_text = _optional_text(row, header_map["statusText"])
        return StatusEntry(
            notification_number=number,
            status=resolve_status(status_text),
            status_text=status_text,
        )

    _parse_rows(rows, result, parse_row)
    _log_result(result)
    return result


def parse_deviation_status(buffer: bytes, mapping: ColumnMapping | dict | None = None) -> ParseResult[StatusEntry]:
    return parse_status_extract(buffer, mapping, record_type="deviation_status")


def parse_ppap_status(buffer: bytes, mapping: ColumnMapping | dict | None = None) -> ParseResult[StatusEntry]:
    return parse_status_extract(buffer, mapping, record_type="ppap_status")


# Plants


def parse_plants(buffer: bytes, mapping: ColumnMapping | dict | None = None) -> ParseResult[Plant]:
    """
    Parse the plant reference table.

    Numeric codes are stringified without a decimal part (106 -> "106").
    Name falls back to city, then code.
    """
    mapping = _resolve_mapping(s4_mappings.PLANTS, mapping)

    rows, header_map, result = _open_sheet(buffer, "plants", mapping)
    if header_map is None:
        return result

    def parse_row(row: list[Any]) -> Plant:
        code = _text(row, header_map["code"])
        if not code:
            raise RowError("Missing plant code")
        city = _optional_text(row, header_map["city"])
        return Plant(
            code=code,
            name=_text(row, header_map["name"]) or city or code,
            erp=_optional_text(row, header_map["erp"]),
            city=city,
            abbreviation=_optional_text(row, header_map["abbreviation"]),
            country=_optional_text(row, header_map["country"]),
        )

    _parse_rows(rows, result, parse_row)
    _log_result(result)
    return result


# Inspections

_PASS_TERMS = ("pass", "ok", "approved")
_FAIL_TERMS = ("fail", "reject", "non-conform")


def inspection_result_from_text(value: str | None) -> InspectionResult | None:
    """Pass/Fail by keyword, Pending for any other text, None when blank."""
    text = (value or "").strip().lower()
    if not text:
        return None
    if any(term in text for term in _PASS_TERMS):
        return InspectionResult.PASS
    if any(term in text for term in _FAIL_TERMS):
        return InspectionResult.FAIL
    return InspectionResult.PENDING


def parse_inspections(buffer: bytes, mapping: ColumnMapping | dict | None = None) -> ParseResult[Inspection]:
    """
    Parse an inspection/review log.

    Rows without a plant or a readable date are skipped. The id carries
    the sheet row number, so two inspections of one plant on one day
    stay distinct.
    """
    mapping = _resolve_mapping(s4_mappings.INSPECTIONS, mapping)
    dates = DateParser()

    rows, header_map, result = _open_sheet(buffer, "inspections", mapping)
    if header_map is None:
        return result

    def parse_row(row: list[Any], row_number: int) -> Inspection | None:
        plant = _text(row, header_map["plant"])
        date = dates.parse(extract_value(row, header_map["date"]))
        if not plant or date is None:
            return None
        return Inspection(
            id=notification_id("INSP", plant, f"{row_number}-{date:%Y%m%d}"),
            plant=plant,
            site_code=plant,
            site_name=_optional_text(row, header_map["siteName"]) or plant,
            date=date,
            inspection_type=_optional_text(row, header_map["inspectionType"]),
            result=inspection_result_from_text(_optional_text(row, header_map["result"])),
            findings=_optional_text(row, header_map["findings"]),
            warehouse=_optional_text(row, header_map["warehouse"]),
        )

    _parse_rows(rows, result, parse_row, numbered=True)
    _log_result(result)
    return result
