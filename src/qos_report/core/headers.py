"""
Header resolution against configurable alias lists.

Exports are maintained by hand in several plants, so the same column
shows up as "Notification No.", "notif nr" or "NOTIFICATION NUMBER".
HeaderResolver maps each canonical field to a column index:

1. Normalize headers and aliases (lowercase, trim, drop punctuation,
   collapse whitespace)
2. For each field, walk its aliases in order; per alias try an exact
   match over the headers first, then a containment match
3. The first alias with any hit wins, and within it the first header
   in sheet order

Earlier aliases win, so list the most specific ones first. A header
carrying one of the field's exclusion terms is never considered, and
when the field lists must_contain terms a header needs one of them.
Containment runs both ways, so a short header like "Notification" sits
inside "notification date"; must_contain keeps it off the date field.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_header(value: Any) -> str:
    """Lowercase, trim, strip punctuation and collapse whitespace."""
    if value is None:
        return ""
    text = _PUNCTUATION.sub("", str(value).lower().strip())
    return _WHITESPACE.sub(" ", text).strip()


@dataclass
class HeaderMap:
    """Resolved field -> column index, None where unresolved."""

    indexes: dict[str, int | None]
    headers: list[str] = field(default_factory=list)

    def __getitem__(self, field_name: str) -> int | None:
        return self.indexes.get(field_name)

    def resolved(self, field_name: str) -> bool:
        return self.indexes.get(field_name) is not None

    def missing(self, fields: Iterable[str]) -> list[str]:
        return [f for f in fields if not self.resolved(f)]

    def header_for(self, field_name: str) -> str | None:
        index = self.indexes.get(field_name)
        return self.headers[index] if index is not None else None


class HeaderResolver:
    """
    Matches sheet headers to canonical fields.

    Usage:
        resolver = HeaderResolver(aliases, exclusions={"notificationNumber": ["type"]})
        header_map = resolver.resolve(rows[0])
        number_idx = header_map["notificationNumber"]
    """

    def __init__(
        self,
        aliases: Mapping[str, Sequence[str]],
        exclusions: Mapping[str, Sequence[str]] | None = None,
        must_contain: Mapping[str, Sequence[str]] | None = None,
    ):
        """
        Args:
            aliases: Field name -> ordered candidate header strings
            exclusions: Field name -> terms that disqualify a header for that field
            must_contain: Field name -> terms of which a header needs at least one
        """
        self.aliases = {
            name: [normalize_header(a) for a in candidates]
            for name, candidates in aliases.items()
        }
        self.exclusions = {
            name: [normalize_header(t) for t in terms]
            for name, terms in (exclusions or {}).items()
        }
        self.must_contain = {
            name: [normalize_header(t) for t in terms]
            for name, terms in (must_contain or {}).items()
        }

    def resolve(self, headers: Sequence[Any]) -> HeaderMap:
        """Resolve every configured field against one header row."""
        raw = ["" if h is None else str(h).strip() for h in headers]
        normalized = [normalize_header(h) for h in raw]
        indexes = {
            name: self._resolve_field(name, candidates, normalized)
            for name, candidates in self.aliases.items()
        }
        return HeaderMap(indexes=indexes, headers=raw)

    def _resolve_field(
        self, name: str, candidates: list[str], normalized: list[str]
    ) -> int | None:
        excluded = self.exclusions.get(name, [])
        needed = [t for t in self.must_contain.get(name, []) if t]

        def eligible(header: str) -> bool:
            # Blank headers contain nothing and would match every alias
            if not header:
                return False
            if any(term and term in header for term in excluded):
                return False
            return not needed or any(term in header for term in needed)

        for alias in candidates:
            if not alias:
                continue
            for idx, header in enumerate(normalized):
                if eligible(header) and header == alias:
                    return idx
            for idx, header in enumerate(normalized):
                if eligible(header) and (alias in header or header in alias):
                    return idx
        return None
