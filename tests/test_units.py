import pytest

from qos_report.core.units import UnitConverter, is_piece_unit, round_half_up


def test_bottle_ml_converts_to_pieces():
    conversion = UnitConverter().convert(1200, "ML", "BOTTLE 600 ML")

    assert conversion.converted_value == 2.0
    assert conversion.dimension_per_piece == 600
    assert conversion.dimension_kind == "bottle_ml"
    assert conversion.original_unit == "ML"
    assert conversion.was_converted
    assert conversion.converted_value * conversion.dimension_per_piece == pytest.approx(1200)


def test_conversion_is_deterministic():
    converter = UnitConverter()
    assert converter.convert(1200, " ml ", "BOTTLE 600 ML") == converter.convert(1200, "ML", "BOTTLE 600 ML")


@pytest.mark.parametrize(
    "unit, description, quantity, expected",
    [
        ("M", "PROFILE L1200MM", 12, 10.0),
        ("METERS", "HOSE L2.5M", 10, 4.0),
        ("M", "TUBE LENGTH 500MM", 5, 10.0),
        ("M", "SEAL L1500", 3, 2.0),
    ],
)
def test_length_patterns(unit, description, quantity, expected):
    conversion = UnitConverter().convert(quantity, unit, description)
    assert conversion.dimension_kind == "length_m"
    assert conversion.original_unit == "M"
    assert conversion.converted_value == expected


def test_area_patterns():
    converter = UnitConverter()
    assert converter.convert(1.5, "M2", "PANEL W500MM H300MM").converted_value == 10.0
    assert converter.convert(0.6, "SQ M", "MAT 200MM x 300MM").converted_value == 10.0


def test_converted_value_rounds_to_two_decimals():
    assert UnitConverter().convert(1000, "ML", "BOTTLE 300 ML").converted_value == 3.33


@pytest.mark.parametrize(
    "quantity, unit, description",
    [
        (5, "KG", "STEEL 5 KG"),
        (5, "ML", "BOTTLE"),
        (0, "ML", "BOTTLE 600 ML"),
        (-5, "ML", "BOTTLE 600 ML"),
        (5, "", "BOTTLE 600 ML"),
        (5, "ML", None),
    ],
)
def test_conversion_not_applicable(quantity, unit, description):
    assert UnitConverter().convert(quantity, unit, description) is None


def test_piece_units():
    assert is_piece_unit("pcs")
    assert is_piece_unit("")
    assert is_piece_unit(None)
    assert not is_piece_unit("ML")


def test_ties_round_half_up():
    converter = UnitConverter()
    assert converter.convert(1, "ML", "BOTTLE 8 ML").converted_value == 0.13
    assert converter.convert(5, "M", "PROFILE L8000MM").converted_value == 0.63
    assert round_half_up(2.675) == 2.68
    assert round_half_up(0.125) == 0.13
