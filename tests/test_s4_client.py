import json
from datetime import datetime

import pytest

from qos_report.clients.s4_client import FileType, S4QualityLoader, detect_file_type
from qos_report.core.cache import ReferenceDataCache
from qos_report.core.models import NotificationStatus
from qos_report.core.quality import StructuralIssue, UnsupportedFileTypeError

COMPLAINTS_FILE = "Q Cockpit QOS ET_Complaints_Parts_PPM_PS4.xlsx"
COMPLAINT_HEADER = ["Notification", "Notification Type", "Plant", "Created On", "Defective Parts"]
COMPLAINT_ROWS = [
    ["300001", "Q1", "101", datetime(2024, 1, 5), 10],
    ["300002", "Q2", "101", datetime(2024, 1, 8), 2],
]


@pytest.mark.parametrize(
    "file_name, file_type, plant_code",
    [
        ("Webasto ET Plants.xlsx", FileType.PLANTS, None),
        ("Outbound 235_PS4.xlsx", FileType.DELIVERIES_OUTBOUND, "235"),
        ("Inbound 410_PS4.XLSX", FileType.DELIVERIES_INBOUND, "410"),
        (COMPLAINTS_FILE, FileType.COMPLAINTS, None),
        ("Complaints - 101.xlsx", FileType.COMPLAINTS, "101"),
        ("Deviations Notifications_STATUS_PS4.xlsx", FileType.DEVIATION_STATUS, None),
        ("Deviations Notifications_PS4.xlsx", FileType.DEVIATIONS, None),
        ("PPAP P Notif_STATUS_PS4.XLSX", FileType.PPAP_STATUS, None),
        ("PPAP P Notif_PS4.XLSX", FileType.PPAP, None),
        ("Inspection plan.xlsx", FileType.INSPECTIONS, None),
        ("random.xlsx", FileType.UNKNOWN, None),
    ],
)
def test_detect_file_type(file_name, file_type, plant_code):
    detected = detect_file_type(file_name)
    assert detected.file_type == file_type
    assert detected.plant_code == plant_code


def _write_dashboard_files(write_workbook):
    write_workbook(COMPLAINTS_FILE, COMPLAINT_HEADER, COMPLAINT_ROWS)
    write_workbook(
        "Outbound 101_PS4.xlsx",
        ["Plant", "Actual Goods Issue Date", "Quantity"],
        [["101", datetime(2024, 1, 15), 10_000]],
    )
    write_workbook(
        "Inbound 101_PS4.xlsx",
        ["Plant", "Actual Goods Receipt Date", "Quantity"],
        [["101", datetime(2024, 1, 20), 4_000]],
    )


def test_dashboard_kpis_end_to_end(write_workbook):
    _write_dashboard_files(write_workbook)
    (write_workbook.data_dir / "~$Outbound 101_PS4.xlsx").write_bytes(b"lock")

    dashboard = S4QualityLoader(write_workbook.data_dir).load_dashboard_kpis()

    assert dashboard.complaints == 2
    assert dashboard.deliveries == 2
    assert dashboard.errors == {}
    assert dashboard.files_used["outbound"] == ["Outbound 101_PS4.xlsx"]

    [row] = dashboard.kpis.rows
    assert row.key == ("101", "2024-01")
    assert row.customer_complaints == 1
    assert row.supplier_complaints == 1
    assert row.customer_ppm == pytest.approx(1000.0)
    assert row.supplier_ppm == pytest.approx(500.0)
    assert dashboard.kpis.global_ppm.customer_ppm == pytest.approx(1000.0)

    summary = dashboard.summary()
    assert summary["total_delivery_quantity"] == 14_000
    assert summary["site_month_combinations"] == 1


def test_dashboard_kpis_are_cached_until_a_file_changes(write_workbook):
    _write_dashboard_files(write_workbook)
    loader = S4QualityLoader(write_workbook.data_dir, cache=ReferenceDataCache())

    first = loader.load_dashboard_kpis()
    assert loader.load_dashboard_kpis() is first

    write_workbook(
        COMPLAINTS_FILE,
        COMPLAINT_HEADER,
        COMPLAINT_ROWS + [["300003", "Q1", "101", datetime(2024, 1, 9), 1]],
    )
    refreshed = loader.load_dashboard_kpis()

    assert refreshed is not first
    assert refreshed.complaints == 3


def test_ppap_status_file_is_merged(write_workbook):
    write_workbook(
        "PPAP P Notif_PS4.xlsx",
        ["Notification", "Notification Type", "Plant", "Created On"],
        [["700", "P1", "101", datetime(2024, 1, 3)], ["701", "P1", "101", datetime(2024, 1, 4)]],
    )
    write_workbook("PPAP P Notif_STATUS_PS4.xlsx", ["Notification", "Status"], [["700", "NOCO"]])

    ppaps = S4QualityLoader(write_workbook.data_dir).load_ppaps()

    assert [(p.notification_number, p.status) for p in ppaps] == [
        ("700", NotificationStatus.COMPLETED),
        ("701", None),
    ]


def test_deviations_without_status_file(write_workbook):
    write_workbook(
        "Deviations Notifications_PS4.xlsx",
        ["Notification", "Notification Type", "Plant for Material", "Created On"],
        [["500", "D2", "101", datetime(2024, 1, 3)]],
    )

    [deviation] = S4QualityLoader(write_workbook.data_dir).load_deviations()

    assert deviation.id == "DEV-101-500"
    assert deviation.status is None


def test_plants_default_to_empty(write_workbook):
    assert S4QualityLoader(write_workbook.data_dir).load_plants() == []


def test_missing_data_directory(tmp_path):
    loader = S4QualityLoader(tmp_path / "nowhere")
    assert loader.list_files() == []
    assert loader.load_dashboard_kpis().complaints == 0


def test_parse_upload_dispatch(make_workbook, tmp_path):
    loader = S4QualityLoader(tmp_path)
    buffer = make_workbook(["Plant Code", "Plant Name"], [[106, "Neubrandenburg"]])

    result = loader.parse_upload(buffer, "upload.xlsx", "plants")

    assert result.records[0].code == "106"
    with pytest.raises(UnsupportedFileTypeError):
        loader.parse_upload(buffer, "random.xlsx")


def test_inspection_upload_is_parsed(make_workbook, tmp_path):
    buffer = make_workbook(["Plant", "Inspection Date", "Result"], [["101", datetime(2024, 3, 5), "OK"]])

    result = S4QualityLoader(tmp_path).parse_upload(buffer, "Inspection plan.xlsx")

    assert result.record_type == "inspections"
    assert result.records[0].id == "INSP-101-2-20240305"


def test_inspections_are_cached_until_a_file_changes(write_workbook):
    write_workbook("Site review log.xlsx", ["Plant", "Review Date", "Result"], [["101", datetime(2024, 3, 5), "Pass"]])
    loader = S4QualityLoader(write_workbook.data_dir, cache=ReferenceDataCache())

    first = loader.load_inspections()
    assert [i.plant for i in first] == ["101"]
    assert loader.load_inspections() is first

    write_workbook(
        "Site review log.xlsx",
        ["Plant", "Review Date", "Result"],
        [["101", datetime(2024, 3, 5), "Pass"], ["102", datetime(2024, 3, 6), "Fail"]],
    )
    assert [i.plant for i in loader.load_inspections()] == ["101", "102"]


def test_loader_from_preset(write_workbook, tmp_path):
    write_workbook(
        COMPLAINTS_FILE,
        ["Notification", "Notification Type", "Plant", "Erfasst", "Defective Parts"],
        [["1", "Q1", "101", datetime(2024, 1, 5), 3]],
    )
    preset = tmp_path / "preset.json"
    preset.write_text(json.dumps({"complaints": {"aliases": {"createdOn": ["erfasst"]}}}), encoding="utf-8")
    path = write_workbook.data_dir / COMPLAINTS_FILE

    default_result = S4QualityLoader(write_workbook.data_dir).parse_upload(path.read_bytes(), path.name)
    assert default_result.structural_issue == StructuralIssue.MISSING_COLUMNS

    loader = S4QualityLoader.from_preset(write_workbook.data_dir, preset)
    assert loader.load_dashboard_kpis().complaints == 1
