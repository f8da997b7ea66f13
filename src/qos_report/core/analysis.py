"""
Quality KPI analysis functions.

Computes:
- Monthly per-site KPI rows (complaints, defective parts, deliveries, PPM)
- Global customer/supplier PPM across the whole input
- Period trends (latest month against the cumulative window before it)
- Row filters for site and month ranges

All functions are pure. Inputs are sorted on a full record key before
any summing, so permuting the input never changes the output.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .models import (
    Complaint,
    ConversionSummary,
    Delivery,
    DeliveryKind,
    GlobalPpm,
    MonthlySiteKpi,
    Notification,
    NotificationCategory,
    NotificationStatus,
    NotificationType,
    QuantityBasis,
    TrendResult,
)
from .units import round_half_up

logger = logging.getLogger(__name__)

PPM_FACTOR = 1_000_000

_NOTIFICATION_COLUMNS = [
    "id",
    "site_code",
    "site_name",
    "month",
    "category",
    "notification_number",
    "defective_parts",
    "ppap_state",
    "quantity_basis",
    "original_value",
    "converted_value",
    "original_unit",
]
_DELIVERY_COLUMNS = ["id", "site_code", "site_name", "month", "kind", "quantity"]

_DIRECTION_CATEGORY = {
    DeliveryKind.CUSTOMER: NotificationCategory.CUSTOMER,
    DeliveryKind.SUPPLIER: NotificationCategory.SUPPLIER,
}


@dataclass
class KpiAggregate:
    """Result of aggregate(): monthly rows plus global PPM."""

    rows: list[MonthlySiteKpi] = field(default_factory=list)
    global_ppm: GlobalPpm = field(default_factory=lambda: GlobalPpm(None, None))

    def summary(self) -> dict:
        return {
            "rows": len(self.rows),
            "sites": len({r.site_code for r in self.rows}),
            "months": len({r.month for r in self.rows}),
            "customer_ppm": self.global_ppm.customer_ppm,
            "supplier_ppm": self.global_ppm.supplier_ppm,
        }


def calculate_ppm(defective: float, delivered: float) -> float | None:
    """PPM, or None when nothing was delivered."""
    if delivered == 0:
        return None
    return (defective / delivered) * PPM_FACTOR


def ppap_state(record: Notification) -> str:
    """
    "completed" or "in_progress" for a PPAP notification.

    An explicit status decides when present; otherwise P1 is in progress
    and P2/P3 are completed.
    """
    if record.status is not None:
        return "completed" if record.status == NotificationStatus.COMPLETED else "in_progress"
    if record.notification_type == NotificationType.P1:
        return "in_progress"
    return "completed"


def notifications_frame(records: Iterable[Notification]) -> pd.DataFrame:
    """One row per notification, sorted on a full key."""
    rows = []
    for r in records:
        conversion = getattr(r, "conversion", None)
        basis = getattr(r, "quantity_basis", QuantityBasis.PIECES)
        rows.append(
            {
                "id": r.id,
                "site_code": r.site_code,
                "site_name": r.site_name,
                "month": r.month,
                "category": r.category.value,
                "notification_number": r.notification_number,
                "defective_parts": float(r.defective_parts),
                "ppap_state": ppap_state(r) if r.category == NotificationCategory.PPAP else None,
                "quantity_basis": basis.value,
                "original_value": conversion.original_value if conversion else 0.0,
                "converted_value": conversion.converted_value if conversion else 0.0,
                "original_unit": conversion.original_unit if conversion else None,
            }
        )
    frame = pd.DataFrame(rows, columns=_NOTIFICATION_COLUMNS)
    return frame.sort_values(
        ["site_code", "month", "category", "id", "defective_parts"], kind="mergesort"
    ).reset_index(drop=True)


def deliveries_frame(deliveries: Iterable[Delivery]) -> pd.DataFrame:
    rows = [
        {
            "id": d.id,
            "site_code": d.site_code,
            "site_name": d.site_name,
            "month": d.month,
            "kind": d.kind.value,
            "quantity": float(d.quantity),
        }
        for d in deliveries
    ]
    frame = pd.DataFrame(rows, columns=_DELIVERY_COLUMNS)
    return frame.sort_values(
        ["site_code", "month", "kind", "id", "quantity"], kind="mergesort"
    ).reset_index(drop=True)


def _conversion_summary(group: pd.DataFrame) -> ConversionSummary | None:
    converted = group[group["quantity_basis"] == QuantityBasis.CONVERTED.value]
    unconverted = group[group["quantity_basis"] == QuantityBasis.UNCONVERTED.value]
    if len(converted) == 0 and len(unconverted) == 0:
        return None
    return ConversionSummary(
        total_complaints=len(group),
        converted=len(converted),
        unconverted=len(unconverted),
        original_total=float(converted["original_value"].sum()),
        converted_total=round_half_up(float(converted["converted_value"].sum())),
        units=sorted(converted["original_unit"].dropna().unique().tolist()),
    )


def _first_name(*frames: pd.DataFrame) -> str | None:
    for frame in frames:
        names = frame["site_name"].dropna()
        names = names[names != ""]
        if len(names) > 0:
            return names.iloc[0]
    return None


def aggregate(
    complaints: Sequence[Complaint],
    deliveries: Sequence[Delivery],
    *,
    deviations: Sequence[Notification] = (),
    ppaps: Sequence[Notification] = (),
) -> KpiAggregate:
    """
    Fold records into monthly per-site KPI rows and global PPM.

    Exactly one row per (site_code, month) present in any input. Rows
    are sorted by month, then site. Deviation and PPAP notifications may
    be passed separately or mixed into complaints; they are counted by
    category either way.
    """
    notifications = notifications_frame([*complaints, *deviations, *ppaps])
    shipments = deliveries_frame(deliveries)

    keys = set(zip(notifications["site_code"], notifications["month"]))
    keys |= set(zip(shipments["site_code"], shipments["month"]))

    notif_groups = dict(list(notifications.groupby(["site_code", "month"], sort=True)))
    ship_groups = dict(list(shipments.groupby(["site_code", "month"], sort=True)))
    empty_notif = notifications.iloc[0:0]
    empty_ship = shipments.iloc[0:0]

    rows = []
    for site_code, month in sorted(keys, key=lambda k: (k[1], k[0])):
        notif = notif_groups.get((site_code, month), empty_notif)
        ship = ship_groups.get((site_code, month), empty_ship)

        by_category = {cat: notif[notif["category"] == cat.value] for cat in NotificationCategory}
        customer = by_category[NotificationCategory.CUSTOMER]
        supplier = by_category[NotificationCategory.SUPPLIER]
        internal = by_category[NotificationCategory.INTERNAL]
        ppap = by_category[NotificationCategory.PPAP]

        customer_deliveries = float(ship.loc[ship["kind"] == DeliveryKind.CUSTOMER.value, "quantity"].sum())
        supplier_deliveries = float(ship.loc[ship["kind"] == DeliveryKind.SUPPLIER.value, "quantity"].sum())
        customer_defective = float(customer["defective_parts"].sum())
        supplier_defective = float(supplier["defective_parts"].sum())

        rows.append(
            MonthlySiteKpi(
                site_code=site_code,
                month=month,
                site_name=_first_name(notif, ship),
                customer_complaints=len(customer),
                supplier_complaints=len(supplier),
                internal_complaints=len(internal),
                customer_defective_parts=customer_defective,
                supplier_defective_parts=supplier_defective,
                internal_defective_parts=float(internal["defective_parts"].sum()),
                customer_deliveries=customer_deliveries,
                supplier_deliveries=supplier_deliveries,
                ppaps_in_progress=int((ppap["ppap_state"] == "in_progress").sum()),
                ppaps_completed=int((ppap["ppap_state"] == "completed").sum()),
                deviations=len(by_category[NotificationCategory.DEVIATION]),
                customer_ppm=calculate_ppm(customer_defective, customer_deliveries),
                supplier_ppm=calculate_ppm(supplier_defective, supplier_deliveries),
                customer_conversion=_conversion_summary(customer),
                supplier_conversion=_conversion_summary(supplier),
            )
        )

    result = KpiAggregate(rows=rows, global_ppm=_global_ppm(notifications, shipments))
    logger.info("Aggregated KPIs: %s", result.summary())
    return result


def _global_ppm(notifications: pd.DataFrame, shipments: pd.DataFrame) -> GlobalPpm:
    values = {}
    for kind, category in _DIRECTION_CATEGORY.items():
        defective = notifications.loc[notifications["category"] == category.value, "defective_parts"].sum()
        delivered = shipments.loc[shipments["kind"] == kind.value, "quantity"].sum()
        values[kind] = calculate_ppm(float(defective), float(delivered))
    return GlobalPpm(
        customer_ppm=values[DeliveryKind.CUSTOMER],
        supplier_ppm=values[DeliveryKind.SUPPLIER],
    )


def calculate_global_ppm(
    complaints: Sequence[Complaint], deliveries: Sequence[Delivery]
) -> GlobalPpm:
    """Customer and supplier PPM over every site and month in the input."""
    return _global_ppm(notifications_frame(complaints), deliveries_frame(deliveries))


def kpis_to_frame(rows: Sequence[MonthlySiteKpi]) -> pd.DataFrame:
    """Flatten KPI rows into a DataFrame (one column per numeric field)."""
    records = [
        {
            "site_code": r.site_code,
            "site_name": r.site_name,
            "month": r.month,
            "customer_complaints": r.customer_complaints,
            "supplier_complaints": r.supplier_complaints,
            "internal_complaints": r.internal_complaints,
            "customer_defective_parts": r.customer_defective_parts,
            "supplier_defective_parts": r.supplier_defective_parts,
            "internal_defective_parts": r.internal_defective_parts,
            "customer_deliveries": r.customer_deliveries,
            "supplier_deliveries": r.supplier_deliveries,
            "ppaps_in_progress": r.ppaps_in_progress,
            "ppaps_completed": r.ppaps_completed,
            "deviations": r.deviations,
        }
        for r in rows
    ]
    frame = pd.DataFrame(records)
    if len(frame) == 0:
        return frame

    # Vectorised PPM; NaN where nothing was delivered
    for direction in ("customer", "supplier"):
        delivered = frame[f"{direction}_deliveries"]
        frame[f"{direction}_ppm"] = np.where(
            delivered > 0,
            frame[f"{direction}_defective_parts"] / delivered.where(delivered > 0, 1) * PPM_FACTOR,
            np.nan,
        )
    return frame


def calculate_trend(current: float, previous: float) -> float:
    """
    Percent change from previous to current.

    previous == 0 gives 100 when current > 0, else 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def previous_month(month: str) -> str:
    """Calendar month before a YYYY-MM key."""
    period = pd.Period(month, freq="M") - 1
    return period.strftime("%Y-%m")


def calculate_period_trends(
    rows: Sequence[MonthlySiteKpi], direction: DeliveryKind = DeliveryKind.CUSTOMER
) -> dict[str, TrendResult]:
    """
    Trends for complaints, defective parts, deliveries and PPM.

    Current is the single latest month present. Previous accumulates
    every row up to and including the calendar month before it.
    PPM with no deliveries counts as 0 here.
    """
    if not rows:
        return {}

    prefix = direction.value.lower()
    latest = max(r.month for r in rows)
    cutoff = previous_month(latest)

    def totals(window: list[MonthlySiteKpi]) -> dict[str, float]:
        complaints = sum(getattr(r, f"{prefix}_complaints") for r in window)
        defective = sum(getattr(r, f"{prefix}_defective_parts") for r in window)
        delivered = sum(getattr(r, f"{prefix}_deliveries") for r in window)
        return {
            "complaints": float(complaints),
            "defective": float(defective),
            "deliveries": float(delivered),
            "ppm": calculate_ppm(defective, delivered) or 0.0,
        }

    current = totals([r for r in rows if r.month == latest])
    previous = totals([r for r in rows if r.month <= cutoff])

    return {
        metric: TrendResult(
            metric=metric,
            current=current[metric],
            previous=previous[metric],
            change_percent=calculate_trend(current[metric], previous[metric]),
        )
        for metric in current
    }


def filter_kpis(
    rows: Sequence[MonthlySiteKpi],
    sites: Iterable[str] | None = None,
    start_month: str | None = None,
    end_month: str | None = None,
) -> list[MonthlySiteKpi]:
    """Keep rows for the given sites and inclusive YYYY-MM range. None means no limit."""
    site_set = set(sites) if sites else None
    return [
        r
        for r in rows
        if (site_set is None or r.site_code in site_set)
        and (start_month is None or r.month >= start_month)
        and (end_month is None or r.month <= end_month)
    ]
