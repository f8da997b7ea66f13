"""
Column-mapping configuration.

A ColumnMapping is pure configuration: canonical field -> ordered alias
list, plus the fields a sheet must resolve, optional per-field
exclusion terms and optional per-field header terms of which a
candidate header must contain at least one. Defaults are built once at import time and never
mutated; overrides produce a new mapping via merged().
"""

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ColumnMapping(BaseModel):
    """Alias table for one record type."""

    model_config = ConfigDict(frozen=True)

    aliases: dict[str, list[str]] = Field(description="Field name -> ordered header aliases")
    required: list[str] = Field(default_factory=list, description="Fields every sheet must resolve")
    exclusions: dict[str, list[str]] = Field(
        default_factory=dict, description="Field name -> header terms that disqualify a match"
    )
    must_contain: dict[str, list[str]] = Field(
        default_factory=dict, description="Field name -> header terms of which a match needs at least one"
    )

    @field_validator("aliases")
    @classmethod
    def _aliases_not_empty(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        empty = [name for name, candidates in value.items() if not candidates]
        if empty:
            raise ValueError(f"fields without aliases: {', '.join(empty)}")
        return value

    @model_validator(mode="after")
    def _required_are_mapped(self) -> "ColumnMapping":
        unknown = [name for name in self.required if name not in self.aliases]
        if unknown:
            raise ValueError(f"required fields without aliases: {', '.join(unknown)}")
        return self

    def merged(self, overrides: "ColumnMappingOverride | dict | None") -> "ColumnMapping":
        """
        Return a new mapping with overrides applied.

        Override aliases replace the default list for that field and drop
        its default must_contain terms, since those were written for the
        default aliases. Required, exclusions and must_contain are
        replaced only when given.
        """
        if overrides is None:
            return self
        if isinstance(overrides, dict):
            overrides = ColumnMappingOverride.model_validate(overrides)

        aliases = {**self.aliases, **overrides.aliases}
        exclusions = {**self.exclusions, **overrides.exclusions}
        must_contain = {
            name: terms for name, terms in self.must_contain.items() if name not in overrides.aliases
        }
        must_contain.update(overrides.must_contain)
        required = overrides.required if overrides.required is not None else self.required
        return ColumnMapping(
            aliases=aliases, required=required, exclusions=exclusions, must_contain=must_contain
        )


class ColumnMappingOverride(BaseModel):
    """Partial mapping as supplied by a caller or a JSON preset."""

    aliases: dict[str, list[str]] = Field(default_factory=dict)
    required: list[str] | None = None
    exclusions: dict[str, list[str]] = Field(default_factory=dict)
    must_contain: dict[str, list[str]] = Field(default_factory=dict)


def load_column_mappings(
    path: Path | str, defaults: dict[str, ColumnMapping]
) -> dict[str, ColumnMapping]:
    """
    Load a JSON preset of per-record-type overrides onto defaults.

    Preset shape:
        {"complaints": {"aliases": {"createdOn": ["erfasst am"]}}, ...}

    Unknown record types are rejected.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    unknown = sorted(set(raw) - set(defaults))
    if unknown:
        raise ValueError(f"Unknown record types in {path}: {', '.join(unknown)}")

    result = dict(defaults)
    for record_type, override in raw.items():
        result[record_type] = defaults[record_type].merged(override)
    return result
