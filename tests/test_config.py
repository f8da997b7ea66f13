import json

import pytest
from pydantic import ValidationError

from qos_report.clients import s4_mappings
from qos_report.core.config import ColumnMapping, ColumnMappingOverride, load_column_mappings


def test_merged_replaces_alias_lists_without_touching_defaults():
    defaults = s4_mappings.COMPLAINTS
    original = list(defaults.aliases["createdOn"])

    merged = defaults.merged(ColumnMappingOverride(aliases={"createdOn": ["erfasst am"]}))

    assert merged.aliases["createdOn"] == ["erfasst am"]
    assert merged.aliases["plant"] == defaults.aliases["plant"]
    assert merged.required == defaults.required
    assert defaults.aliases["createdOn"] == original


def test_merged_accepts_plain_dict_and_none():
    mapping = ColumnMapping(aliases={"code": ["code"], "name": ["name"]}, required=["code"])

    assert mapping.merged(None) is mapping
    merged = mapping.merged({"required": ["code", "name"], "exclusions": {"code": ["country"]}})
    assert merged.required == ["code", "name"]
    assert merged.exclusions == {"code": ["country"]}


def test_mapping_validation():
    with pytest.raises(ValidationError):
        ColumnMapping(aliases={"code": []})
    with pytest.raises(ValidationError):
        ColumnMapping(aliases={"code": ["code"]}, required=["name"])


def test_load_column_mappings_from_preset(tmp_path):
    preset = tmp_path / "preset.json"
    preset.write_text(json.dumps({"complaints": {"aliases": {"createdOn": ["erfasst"]}}}), encoding="utf-8")

    mappings = load_column_mappings(preset, s4_mappings.DEFAULT_MAPPINGS)

    assert mappings["complaints"].aliases["createdOn"] == ["erfasst"]
    assert mappings["plants"] is s4_mappings.PLANTS


def test_load_column_mappings_rejects_unknown_record_type(tmp_path):
    preset = tmp_path / "preset.json"
    preset.write_text(json.dumps({"invoices": {"aliases": {}}}), encoding="utf-8")

    with pytest.raises(ValueError, match="invoices"):
        load_column_mappings(preset, s4_mappings.DEFAULT_MAPPINGS)


def test_alias_override_drops_default_header_terms_for_that_field():
    merged = s4_mappings.COMPLAINTS.merged({"aliases": {"createdOn": ["erfasst"]}})

    assert "createdOn" not in merged.must_contain
    assert merged.must_contain["notificationType"] == ["type", "category"]
    assert "createdOn" in s4_mappings.COMPLAINTS.must_contain
