from datetime import date, datetime

import numpy as np
import pandas as pd

from qos_report.core.parsers import DateParser, cell_to_text, extract_value, is_empty_row, parse_number


def test_native_dates_pass_through():
    parser = DateParser()
    assert parser.parse(datetime(2024, 3, 5, 10, 30)) == datetime(2024, 3, 5, 10, 30)
    assert parser.parse(date(2024, 3, 5)) == datetime(2024, 3, 5)
    assert parser.parse(pd.Timestamp("2024-03-05 08:00", tz="UTC")) == datetime(2024, 3, 5, 8, 0)
    assert parser.parse(pd.NaT) is None


def test_serial_day_numbers():
    parser = DateParser()
    assert parser.parse(45292) == datetime(2024, 1, 1)
    assert parser.parse(45292.5) == datetime(2024, 1, 1, 12, 0)
    assert parser.parse(np.float64(45292)) == datetime(2024, 1, 1)
    assert parser.parse(0) is None
    assert parser.parse(float("nan")) is None
    assert parser.parse(True) is None


def test_text_date_formats_in_priority_order():
    parser = DateParser()
    assert parser.parse("2024-03-05") == datetime(2024, 3, 5)
    assert parser.parse("2024-03-05T14:00:00Z") == datetime(2024, 3, 5, 14, 0)
    assert parser.parse("03/05/2024") == datetime(2024, 3, 5)  # month first
    assert parser.parse("05.03.2024") == datetime(2024, 3, 5)  # day first
    assert parser.parse("20240305") == datetime(2024, 3, 5)
    assert parser.parse("Created 2024-03-05 by QM") == datetime(2024, 3, 5)


def test_unparseable_text_gives_none():
    parser = DateParser()
    assert parser.parse("13/45/2024") is None
    assert parser.parse("next week") is None
    assert parser.parse("   ") is None
    assert parser.parse(None) is None


def test_parse_series():
    parsed = DateParser().parse_series(pd.Series(["2024-01-02", None, "bogus"]))
    assert parsed.iloc[0] == datetime(2024, 1, 2)
    assert parsed.iloc[1:].isna().all()


def test_parse_number_is_lossy_but_total():
    assert parse_number(12) == 12.0
    assert parse_number(np.int64(7)) == 7.0
    assert parse_number("1,200 PC") == 1200.0
    assert parse_number(" -3.5 ") == -3.5
    assert parse_number("12.5.3") == 12.5
    assert parse_number("abc") == 0.0
    assert parse_number(float("nan")) == 0.0
    assert parse_number(None) == 0.0
    assert parse_number(True) == 0.0


def test_extract_value_defaults():
    row = [1, "", None, "  ", 0]
    assert extract_value(row, 0) == 1
    assert extract_value(row, 1, "x") == "x"
    assert extract_value(row, 2, "x") == "x"
    assert extract_value(row, 3, "x") == "x"
    assert extract_value(row, 4, "x") == 0
    assert extract_value(row, None, "x") == "x"
    assert extract_value(row, 10, "x") == "x"


def test_is_empty_row():
    assert is_empty_row(["", None, float("nan"), "  "])
    assert not is_empty_row(["", 0])


def test_cell_to_text_drops_integral_decimal():
    """Plant codes stored as floats compare as the plain code."""
    assert cell_to_text(106.0) == "106"
    assert cell_to_text(106) == "106"
    assert cell_to_text(1.5) == "1.5"
    assert cell_to_text(" abc ") == "abc"
    assert cell_to_text(None) == ""
