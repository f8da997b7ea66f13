from itertools import permutations

from qos_report.clients import s4_mappings
from qos_report.core.headers import HeaderResolver, normalize_header


def _complaint_resolver():
    mapping = s4_mappings.COMPLAINTS
    return HeaderResolver(mapping.aliases, mapping.exclusions, mapping.must_contain)


def test_normalize_header_strips_punctuation_and_whitespace():
    assert normalize_header("  Defective (Internal) ") == "defective internal"
    assert normalize_header("Notif.\t  No") == "notif no"
    assert normalize_header(None) == ""


def test_resolution_ignores_column_order_and_case():
    headers = ["Notification", "NOTIFICATION TYPE", "created on", "Plant", "Defective Parts"]
    resolver = _complaint_resolver()

    for order in permutations(headers):
        header_map = resolver.resolve(list(order))
        assert order[header_map["notificationNumber"]] == "Notification"
        assert order[header_map["notificationType"]] == "NOTIFICATION TYPE"
        assert order[header_map["createdOn"]] == "created on"
        assert order[header_map["plant"]] == "Plant"
        assert order[header_map["defectiveParts"]] == "Defective Parts"


def test_earlier_alias_wins_over_earlier_column():
    resolver = HeaderResolver({"notificationType": ["notification type", "type"]})
    header_map = resolver.resolve(["Type", "Notification Type"])
    assert header_map["notificationType"] == 1


def test_exact_match_beats_containment_for_same_alias():
    resolver = HeaderResolver({"notificationNumber": ["notification number"]})
    header_map = resolver.resolve(["Notification Number (old)", "Notification Number"])
    assert header_map["notificationNumber"] == 1


def test_exclusion_terms_keep_generic_alias_off_neighbouring_columns():
    header_map = _complaint_resolver().resolve(["Notification Type", "Notification Status", "Notif No"])
    assert header_map["notificationNumber"] == 2
    assert header_map["notificationType"] == 0


def test_defective_columns_resolve_separately():
    header_map = _complaint_resolver().resolve(
        ["Defective (Internal)", "Defective (External)", "Defective Parts"]
    )
    assert header_map["defectiveInternal"] == 0
    assert header_map["defectiveExternal"] == 1
    assert header_map["defectiveParts"] == 2


def test_blank_headers_never_match():
    resolver = HeaderResolver({"plant": ["plant"]})
    assert resolver.resolve(["", None, "Plant"])["plant"] == 2


def test_unresolved_fields_are_reported_missing():
    header_map = _complaint_resolver().resolve(["Plant", "Quantity"])
    assert header_map["notificationNumber"] is None
    assert header_map.missing(s4_mappings.COMPLAINTS.required) == [
        "notificationNumber",
        "notificationType",
        "createdOn",
    ]
    assert header_map.header_for("plant") == "Plant"


def test_short_headers_stay_off_longer_aliases():
    """A bare Notification or Plant header sits inside longer date and name aliases."""
    header_map = _complaint_resolver().resolve(
        ["Notification", "Notification Type", "Plant", "Erfasst", "Defective Parts"]
    )

    assert header_map["notificationNumber"] == 0
    assert header_map["createdOn"] is None
    assert header_map["siteName"] is None
    assert header_map["plant"] == 2


def test_plain_delivery_date_is_not_an_actual_goods_issue_date():
    mapping = s4_mappings.DELIVERIES
    resolver = HeaderResolver(mapping.aliases, mapping.exclusions, mapping.must_contain)

    header_map = resolver.resolve(["Plant", "Date", "Delivery Quantity"])

    assert header_map["date"] == 1
    assert header_map["quantity"] == 2
    assert header_map["actualGoodsIssueDate"] is None
    assert header_map["actualGoodsReceiptDate"] is None


def test_must_contain_terms_filter_candidates():
    resolver = HeaderResolver({"createdOn": ["notification date"]}, must_contain={"createdOn": ["date"]})
    assert resolver.resolve(["Notification", "Notif Date"])["createdOn"] is None
    assert resolver.resolve(["Notification", "Notification Date"])["createdOn"] == 1
