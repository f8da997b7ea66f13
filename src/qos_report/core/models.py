"""
Domain records produced by the parsers.

All records are plain value objects with closed schemas; none keep a
reference to the workbook they came from.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .units import UnitConversion


class NotificationType(Enum):
    """Source-system notification type codes."""

    Q1 = "Q1"  # Customer complaint
    Q2 = "Q2"  # Supplier complaint
    Q3 = "Q3"  # Internal complaint
    D1 = "D1"
    D2 = "D2"
    D3 = "D3"
    P1 = "P1"  # PPAP in progress
    P2 = "P2"  # PPAP approved
    P3 = "P3"
    OTHER = "OTHER"

    @classmethod
    def from_text(cls, value: str | None) -> "NotificationType":
        """Exact code lookup after trimming; unknown codes become OTHER."""
        code = (value or "").strip().upper()
        try:
            return cls(code)
        except ValueError:
            return cls.OTHER


class NotificationCategory(Enum):
    CUSTOMER = "Customer"
    SUPPLIER = "Supplier"
    INTERNAL = "Internal"
    DEVIATION = "Deviation"
    PPAP = "PPAP"


_CATEGORY_BY_TYPE = {
    NotificationType.Q1: NotificationCategory.CUSTOMER,
    NotificationType.Q2: NotificationCategory.SUPPLIER,
    NotificationType.Q3: NotificationCategory.INTERNAL,
    NotificationType.D1: NotificationCategory.DEVIATION,
    NotificationType.D2: NotificationCategory.DEVIATION,
    NotificationType.D3: NotificationCategory.DEVIATION,
    NotificationType.P1: NotificationCategory.PPAP,
    NotificationType.P2: NotificationCategory.PPAP,
    NotificationType.P3: NotificationCategory.PPAP,
}


def category_for(notification_type: NotificationType) -> NotificationCategory:
    """Category derived from type; unknown types count as internal."""
    return _CATEGORY_BY_TYPE.get(notification_type, NotificationCategory.INTERNAL)


class NotificationStatus(Enum):
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    PENDING = "Pending"


class DeliveryKind(Enum):
    CUSTOMER = "Customer"  # outbound
    SUPPLIER = "Supplier"  # inbound


class DataSource(Enum):
    SAP_S4 = "SAP S4"
    MANUAL = "Manual"
    IMPORT = "Import"


class QuantityBasis(Enum):
    """How a complaint's defective count was obtained."""

    PIECES = "pieces"  # used as booked; piece unit, zero quantity or not Q1/Q2
    CONVERTED = "converted"  # piece equivalent from the material description
    UNCONVERTED = "unconverted"  # raw non-piece value kept after failed conversion


def notification_id(prefix: str | None, plant: str, notification_number: str) -> str:
    """Deterministic record id from plant and notification number."""
    base = f"{plant}-{notification_number}"
    return f"{prefix}-{base}" if prefix else base


@dataclass
class Notification:
    """Fields shared by complaints, deviations and PPAP notifications."""

    id: str
    notification_number: str
    notification_type: NotificationType
    category: NotificationCategory
    plant: str
    site_code: str
    created_on: datetime
    site_name: str | None = None
    defective_parts: float = 0.0
    source: DataSource = DataSource.SAP_S4
    status: NotificationStatus | None = None
    status_text: str | None = None

    def __post_init__(self):
        if self.defective_parts < 0:
            self.defective_parts = 0.0
        if not self.site_code:
            self.site_code = self.plant

    @property
    def month(self) -> str:
        return self.created_on.strftime("%Y-%m")


@dataclass
class Complaint(Notification):
    unit_of_measure: str | None = None
    material_description: str | None = None
    material_number: str | None = None
    conversion: UnitConversion | None = None
    quantity_basis: QuantityBasis = QuantityBasis.PIECES


@dataclass
class Deviation(Notification):
    deviation_type: str | None = None
    severity: str | None = None


@dataclass
class PPAPNotification(Notification):
    part_number: str | None = None


@dataclass
class StatusEntry:
    """One row of a status extract."""

    notification_number: str
    status: NotificationStatus | None
    status_text: str | None = None


@dataclass
class Delivery:
    id: str
    plant: str
    site_code: str
    date: datetime
    quantity: float
    kind: DeliveryKind
    site_name: str | None = None

    @property
    def month(self) -> str:
        return self.date.strftime("%Y-%m")


class InspectionResult(Enum):
    PASS = "Pass"
    FAIL = "Fail"
    PENDING = "Pending"


@dataclass
class Inspection:
    """One inspection or review row."""

    id: str
    plant: str
    site_code: str
    date: datetime
    site_name: str | None = None
    inspection_type: str | None = None
    result: InspectionResult | None = None
    findings: str | None = None
    warehouse: str | None = None

    @property
    def month(self) -> str:
        return self.date.strftime("%Y-%m")


@dataclass
class Plant:
    code: str
    name: str
    erp: str | None = None
    city: str | None = None
    abbreviation: str | None = None
    country: str | None = None
    location: str = ""

    def __post_init__(self):
        if not self.location:
            self.location = plant_location(self.code, self.name, self.city, self.country)


def plant_location(code: str, name: str | None, city: str | None, country: str | None) -> str:
    """Location label: "City, Country" when a country is known, else city, name or code."""
    place = city or name or code
    if country:
        return f"{place}, {country}"
    return place


@dataclass
class ConversionSummary:
    """Conversion outcomes for one site-month and direction."""

    total_complaints: int = 0
    converted: int = 0
    unconverted: int = 0
    original_total: float = 0.0
    converted_total: float = 0.0
    units: list[str] = field(default_factory=list)


@dataclass
class MonthlySiteKpi:
    """KPI row keyed by (site_code, month)."""

    site_code: str
    month: str  # YYYY-MM
    site_name: str | None = None
    customer_complaints: int = 0
    supplier_complaints: int = 0
    internal_complaints: int = 0
    customer_defective_parts: float = 0.0
    supplier_defective_parts: float = 0.0
    internal_defective_parts: float = 0.0
    customer_deliveries: float = 0.0
    supplier_deliveries: float = 0.0
    ppaps_in_progress: int = 0
    ppaps_completed: int = 0
    deviations: int = 0
    customer_ppm: float | None = None
    supplier_ppm: float | None = None
    customer_conversion: ConversionSummary | None = None
    supplier_conversion: ConversionSummary | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.site_code, self.month)

    @property
    def total_complaints(self) -> int:
        return self.customer_complaints + self.supplier_complaints + self.internal_complaints


@dataclass(frozen=True)
class GlobalPpm:
    customer_ppm: float | None
    supplier_ppm: float | None


@dataclass(frozen=True)
class TrendResult:
    """Latest month against the cumulative window before it."""

    metric: str
    current: float
    previous: float
    change_percent: float

    @property
    def change(self) -> float:
        return self.current - self.previous

    @property
    def direction(self) -> str:
        if self.change_percent > 0:
            return "up"
        if self.change_percent < 0:
            return "down"
        return "flat"
