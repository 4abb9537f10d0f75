"""
Tests for workbook parsing and key normalization.
"""
import logging
from datetime import datetime

import pytest

from conftest import make_workbook
from trips.sheets import find_sheet, normalize_key, read_workbook, standardize_keys


class TestNormalizeKey:
    @pytest.mark.parametrize(
        "raw",
        ["Trip ID", " Trip ID", "Trip  ID", " Trip \t ID  ", "Trip_ID", "\nTrip\nID\n"],
    )
    def test_whitespace_variants_collapse(self, raw):
        assert normalize_key(raw) == "Trip_ID"

    def test_idempotent(self):
        for raw in ["  Pick Up   Address ", "Age", "Trip Date and Time"]:
            once = normalize_key(raw)
            assert normalize_key(once) == once

    def test_non_string_header(self):
        assert normalize_key(2023) == "2023"


def test_standardize_keys_per_row():
    rows = [{" User ID ": "U1", "Age": 30}, {"User  ID": "U2"}]
    assert standardize_keys(rows) == [{"User_ID": "U1", "Age": 30}, {"User_ID": "U2"}]


def test_standardize_keys_none_is_empty():
    assert standardize_keys(None) == []


class TestReadWorkbook:
    def test_reads_every_sheet(self):
        content = make_workbook(
            {
                "Trip Data": [{"Trip ID": "T1", "Total Passengers": 3}],
                "Other": [{"x": 1}],
            }
        )
        workbook = read_workbook(content)
        assert set(workbook) == {"Trip Data", "Other"}
        assert workbook["Trip Data"] == [{"Trip ID": "T1", "Total Passengers": 3}]

    def test_empty_cells_are_omitted(self):
        content = make_workbook(
            {"Customer Demographics": [{"User ID": "U1", "Age": 30}, {"User ID": "U2", "Age": None}]}
        )
        rows = read_workbook(content)["Customer Demographics"]
        assert rows[0] == {"User ID": "U1", "Age": 30}
        assert rows[1] == {"User ID": "U2"}
        # whole-number column with a blank comes back as int, not 30.0
        assert isinstance(rows[0]["Age"], int)

    def test_date_cells_become_datetimes(self):
        content = make_workbook({"Trip Data": [{"Trip ID": "T1", "When": datetime(2023, 5, 6, 22, 15)}]})
        row = read_workbook(content)["Trip Data"][0]
        assert row["When"] == datetime(2023, 5, 6, 22, 15)

    def test_garbage_bytes_raise_value_error(self):
        with pytest.raises(ValueError):
            read_workbook(b"this is not a workbook")

    def test_empty_bytes_raise_value_error(self):
        with pytest.raises(ValueError):
            read_workbook(b"")


class TestFindSheet:
    def test_case_insensitive(self):
        workbook = {"TRIP DATA": [{"a": 1}]}
        assert find_sheet(workbook, "Trip Data") == [{"a": 1}]

    def test_missing_sheet_returns_none_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="trips.sheets"):
            assert find_sheet({"Trip Data": []}, "Customer Demographics") is None
        records = [r for r in caplog.records if getattr(r, "sheet", None) == "Customer Demographics"]
        assert records and records[0].levelno == logging.WARNING
