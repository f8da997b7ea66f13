"""
Default column mappings for the SAP S/4 quality extracts.

THIS FILE CONTAINS SOURCE-SPECIFIC HEADER VOCABULARY:
- English and German header variants seen in the plant exports
- Exclusion terms that keep generic aliases ("notification", "plant",
  "created") off neighbouring columns
- must_contain terms that keep short headers ("Notification", "Plant")
  off fields whose longer aliases happen to contain them

Aliases are lowercase and ordered most-specific first. To support a new
export variant, add aliases here or pass an override to the loader.
"""

from ..core.config import ColumnMapping

_SITE_CODE = ["site", "site code", "site id", "site number", "werk", "plant", "plant code"]
_SITE_NAME = ["site name", "plant name", "site description", "name", "description"]

COMPLAINTS = ColumnMapping(
    aliases={
        "notificationNumber": [
            "notification number", "notification no", "notification", "notif no",
            "notif number", "notif", "complaint number", "complaint no", "notif.",
            "notification nr", "notif nr", "nr", "number",
        ],
        "notificationType": [
            "notification type", "type", "notif type", "complaint type", "category",
            "type of notification", "notification category", "q type",
        ],
        "plant": [
            "plant", "plant code", "plant id", "plant number", "werk",
            "plant for material", "plant/material",
        ],
        "siteCode": _SITE_CODE,
        "siteName": _SITE_NAME,
        "createdOn": [
            "created on", "created date", "date", "creation date", "created",
            "notification date", "notif date", "erstellt am", "erstellt", "datum",
            "date created", "creation",
        ],
        "defectiveParts": [
            "defective parts", "defective quantity", "defective qty", "defective",
            "quantity defective", "qty defective", "parts defective", "def qty",
            "defective parts qty", "def parts", "fehlmenge", "defect qty",
        ],
        "defectiveInternal": [
            "defective (internal)", "defective internal", "defective internal qty",
            "internal defective", "internal defective qty", "defective internal quantity",
            "defective internal parts", "internal", "def int", "defective int",
        ],
        "defectiveExternal": [
            "defective (external)", "defective external", "defective external qty",
            "external defective", "external defective qty", "defective external quantity",
            "defective external parts", "external", "def ext", "defective ext",
        ],
        "unitOfMeasure": [
            "unit of measure", "unit", "uom", "unit of measurement", "measurement unit",
            "unit measure",
        ],
        "materialDescription": [
            "material description", "material desc", "material", "description",
            "material text", "material name", "part description",
        ],
        "materialNumber": [
            "material number", "material no", "material nr", "material", "matnr",
            "material code", "part number", "part no", "material id",
        ],
    },
    required=["notificationNumber", "notificationType", "createdOn"],
    exclusions={
        "notificationNumber": ["type", "status", "date", "material", "part"],
        "notificationType": ["status"],
        "plant": ["name", "description"],
        "siteCode": ["name", "description"],
        "siteName": ["material", "part"],
        "createdOn": ["created by"],
        "defectiveParts": ["internal", "external"],
        "materialDescription": ["number", "code"],
        "materialNumber": ["description", "desc", "text", "name"],
    },
    must_contain={
        "notificationType": ["type", "category"],
        "siteName": ["name", "description"],
        "createdOn": ["date", "created", "creation", "erstellt", "datum"],
    },
)

DELIVERIES = ColumnMapping(
    aliases={
        "plant": [
            "plant", "plant code", "plant id", "plant number", "werk", "werk code",
            "plant for material", "plant/material",
        ],
        "siteCode": _SITE_CODE,
        "siteName": _SITE_NAME,
        "quantity": [
            "quantity", "quantities", "qty", "delivered quantity", "delivered qty",
            "delivery quantity", "delivery qty", "parts", "units", "menge",
            "quantity delivered", "qty delivered", "delivered", "outbound qty",
            "inbound qty", "outbound quantity", "inbound quantity",
        ],
        "actualGoodsIssueDate": [
            "actual goods issue date", "actual goods issue", "goods issue date",
            "issue date", "actual issue", "goods issue", "actual delivery date",
            "delivery date actual", "actualgidate", "actual gi date", "gi date actual",
        ],
        "actualGoodsReceiptDate": [
            "actual goods receipt date", "actual goods receipt", "goods receipt date",
            "receipt date", "actual receipt", "goods receipt", "actual gr date",
            "gr date actual",
        ],
        "date": [
            "date", "delivery date", "delivered date", "shipment date", "delivery",
            "created on", "created date", "datum", "ship date", "date delivered",
        ],
        "kind": [
            "customer or supplier", "customer/supplier", "c/s", "direction", "source",
            "origin", "type", "inbound outbound", "in/out", "outbound", "inbound", "kind",
        ],
    },
    required=["date", "quantity"],
    exclusions={
        "plant": ["name", "description"],
        "siteCode": ["name", "description"],
        "quantity": ["date"],
        "date": ["created by", "qty", "quantity"],
        "kind": ["date", "qty", "quantity"],
    },
    must_contain={
        "siteName": ["name", "description"],
        "date": ["date", "delivery", "datum", "created"],
        "actualGoodsIssueDate": ["issue", "gi", "delivery"],
        "actualGoodsReceiptDate": ["receipt", "gr"],
    },
)

_NOTIFICATION_NUMBER = ["notification number", "notification", "notif no", "notif number", "notification no", "number", "nr"]
_NOTIFICATION_NUMBER_EXCLUSIONS = ["type", "status", "date", "part", "material"]
_CREATED_ON = ["created on", "created date", "created", "erstellt am", "erstellt"]

DEVIATIONS = ColumnMapping(
    aliases={
        "notificationNumber": _NOTIFICATION_NUMBER,
        "notificationType": ["notification type", "notif type", "type"],
        "plant": ["plant for material", "plant code", "site code", "plant", "site", "werk"],
        "siteName": ["site name", "plant name", "location", "city", "list name"],
        "createdOn": _CREATED_ON,
        "deviationType": ["deviation type", "code group text", "coding code text", "code group"],
        "severity": ["priority text", "severity", "priority", "level"],
        "statusText": ["status", "state", "phase"],
    },
    required=["notificationNumber", "createdOn"],
    exclusions={
        "notificationNumber": _NOTIFICATION_NUMBER_EXCLUSIONS,
        "notificationType": ["status", "deviation"],
        "plant": ["name"],
        "createdOn": ["created by"],
        "statusText": ["type"],
    },
    must_contain={
        "notificationType": ["type"],
        "siteName": ["name", "location", "city"],
        "createdOn": ["created", "erstellt"],
    },
)

PPAP = ColumnMapping(
    aliases={
        "notificationNumber": _NOTIFICATION_NUMBER,
        "notificationType": ["notification type", "notif type", "type"],
        "plant": ["plant for material", "plant code", "site code", "plant", "site", "werk"],
        "siteName": ["site name", "plant name", "location", "city", "list name"],
        "createdOn": _CREATED_ON,
        "partNumber": ["part number", "part no", "material number", "material", "part"],
        "statusText": ["status", "state", "phase"],
    },
    required=["notificationNumber", "createdOn"],
    exclusions={
        "notificationNumber": _NOTIFICATION_NUMBER_EXCLUSIONS,
        "notificationType": ["status"],
        "plant": ["name"],
        "createdOn": ["created by"],
        "partNumber": ["description", "desc", "text"],
        "statusText": ["type"],
    },
    must_contain={
        "notificationType": ["type"],
        "siteName": ["name", "location", "city"],
        "createdOn": ["created", "erstellt"],
    },
)

# Deviation and PPAP status extracts share one shape
NOTIFICATION_STATUS = ColumnMapping(
    aliases={
        "notificationNumber": _NOTIFICATION_NUMBER,
        "statusText": ["status", "state", "phase"],
    },
    required=["notificationNumber"],
    exclusions={
        "notificationNumber": _NOTIFICATION_NUMBER_EXCLUSIONS,
        "statusText": ["type"],
    },
)

PLANTS = ColumnMapping(
    aliases={
        "code": ["code", "plant code", "site code", "id", "plant id", "site id", "plant"],
        "erp": ["erp", "system", "sap"],
        "name": ["name", "plant name", "site name", "description"],
        "city": ["city", "location", "plant city"],
        "abbreviation": ["abbreviation", "abbr", "short"],
        "country": ["country", "nation"],
    },
    required=["code"],
    exclusions={
        "code": ["country", "name"],
        "abbreviation": ["plant", "site"],
        "name": ["short"],
    },
)

INSPECTIONS = ColumnMapping(
    aliases={
        "plant": ["plant", "plant code", "site code", "site", "werk"],
        "siteName": ["site name", "plant name", "location", "city"],
        "date": ["inspection date", "review date", "date", "datum"],
        "inspectionType": ["inspection type", "review type", "type", "category"],
        "result": ["result", "outcome", "status"],
        "findings": ["findings", "notes", "comments", "remarks"],
        "warehouse": ["warehouse", "warehouse code", "storage"],
    },
    required=["plant", "date"],
    exclusions={
        "plant": ["name", "location"],
        "result": ["type"],
    },
    must_contain={
        "siteName": ["name", "location", "city"],
        "date": ["date", "datum"],
        "inspectionType": ["type", "category"],
    },
)

DEFAULT_MAPPINGS: dict[str, ColumnMapping] = {
    "complaints": COMPLAINTS,
    "deliveries": DELIVERIES,
    "deviations": DEVIATIONS,
    "ppap": PPAP,
    "status": NOTIFICATION_STATUS,
    "plants": PLANTS,
    "inspections": INSPECTIONS,
}
