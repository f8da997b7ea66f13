"""
Piece-equivalent conversion for volume, length and area quantities.

Complaints are sometimes booked in ML, M or M2 instead of pieces. The
per-piece dimension is only available in the free-text material
description ("BOTTLE 600 ML", "PROFILE L1200MM", "W500MM H300MM"), so
the converter mines it with ordered regex rules and divides.

Rules are data: UNIT_RULES maps unit synonyms to an ordered list of
description patterns. The first pattern that matches wins.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

PIECE_UNITS = {"", "PC", "PCS", "PIECE", "PIECES", "ST", "EA"}


def is_piece_unit(unit: str | None) -> bool:
    """True when the unit is blank or a piece synonym."""
    return (unit or "").strip().upper() in PIECE_UNITS


@dataclass(frozen=True)
class UnitConversion:
    """Outcome of converting a non-piece quantity into pieces."""

    original_value: float
    original_unit: str
    converted_value: float  # pieces, rounded half-up to 2 decimals
    dimension_per_piece: float  # ml, meters or square meters
    dimension_kind: str  # "bottle_ml", "length_m" or "area_m2"
    material_description: str
    was_converted: bool = True


@dataclass(frozen=True)
class DimensionPattern:
    """A description regex plus how to turn its groups into a dimension."""

    pattern: re.Pattern
    to_dimension: Callable[[re.Match], float]


def _mm_to_m(match: re.Match) -> float:
    return float(match.group(1)) / 1000


def _as_is(match: re.Match) -> float:
    return float(match.group(1))


def _mm_area(match: re.Match) -> float:
    return (float(match.group(1)) / 1000) * (float(match.group(2)) / 1000)


_NUM = r"(\d+(?:\.\d+)?)"

BOTTLE_PATTERNS = [
    DimensionPattern(re.compile(_NUM + r"\s*ML", re.IGNORECASE), _as_is),
]

LENGTH_PATTERNS = [
    DimensionPattern(re.compile(r"\bL\s*" + _NUM + r"\s*MM", re.IGNORECASE), _mm_to_m),
    DimensionPattern(re.compile(r"\bL\s*" + _NUM + r"\s*M\b", re.IGNORECASE), _as_is),
    DimensionPattern(re.compile(r"LENGTH\s*" + _NUM + r"\s*MM", re.IGNORECASE), _mm_to_m),
    DimensionPattern(re.compile(r"LEN\s*" + _NUM + r"\s*MM", re.IGNORECASE), _mm_to_m),
    # Bare L1200 is read as millimeters
    DimensionPattern(re.compile(r"\bL\s*(\d{3,})\b", re.IGNORECASE), _mm_to_m),
]

AREA_PATTERNS = [
    DimensionPattern(
        re.compile(r"W\s*" + _NUM + r"\s*MM\s*H\s*" + _NUM + r"\s*MM", re.IGNORECASE), _mm_area
    ),
    DimensionPattern(
        re.compile(r"WIDTH\s*" + _NUM + r"\s*MM\s*HEIGHT\s*" + _NUM + r"\s*MM", re.IGNORECASE),
        _mm_area,
    ),
    DimensionPattern(re.compile(_NUM + r"\s*MM\s*[xX×]\s*" + _NUM + r"\s*MM", re.IGNORECASE), _mm_area),
    DimensionPattern(re.compile(_NUM + r"\s*[xX×]\s*" + _NUM + r"\s*MM", re.IGNORECASE), _mm_area),
]

UnitRule = tuple[set[str], str, str, list[DimensionPattern]]

# Ordered (unit synonyms, canonical unit, dimension kind, patterns)
UNIT_RULES: list[UnitRule] = [
    ({"ML"}, "ML", "bottle_ml", BOTTLE_PATTERNS),
    ({"M", "METER", "METERS"}, "M", "length_m", LENGTH_PATTERNS),
    ({"M2", "M²", "SQ M", "SQ M2", "SQM"}, "M2", "area_m2", AREA_PATTERNS),
]


def round_half_up(value: float, places: int = 2) -> float:
    """Round with ties away from zero (0.125 -> 0.13), unlike round()."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class UnitConverter:
    """
    Converts ML/M/M2 quantities into piece equivalents.

    Pure and stateless; the same (quantity, unit, description) always
    yields an equal result.

    Usage:
        converter = UnitConverter()
        conversion = converter.convert(1200, "ML", "BOTTLE 600 ML")
        conversion.converted_value  # 2.0
    """

    def __init__(self, rules: list[UnitRule] | None = None):
        self.rules = rules if rules is not None else UNIT_RULES

    def convert(
        self, quantity: float, unit: str | None, material_description: str | None
    ) -> UnitConversion | None:
        """Return the conversion, or None when it does not apply."""
        if quantity is None or quantity <= 0:
            return None

        unit_key = " ".join((unit or "").strip().upper().split())
        description = (material_description or "").strip()
        if not unit_key or not description:
            return None

        for synonyms, canonical, kind, patterns in self.rules:
            if unit_key not in synonyms:
                continue
            dimension = self.extract_dimension(description, patterns)
            if dimension is None or dimension <= 0:
                return None
            return UnitConversion(
                original_value=quantity,
                original_unit=canonical,
                converted_value=round_half_up(quantity / dimension),
                dimension_per_piece=dimension,
                dimension_kind=kind,
                material_description=description,
            )
        return None

    @staticmethod
    def extract_dimension(description: str, patterns: list[DimensionPattern]) -> float | None:
        """First matching pattern's dimension, in base units."""
        for rule in patterns:
            match = rule.pattern.search(description)
            if match:
                return rule.to_dimension(match)
        return None
