"""Tests for attribute cleaning, the case-count table and the join.

These tests validate the cleaning, transformation, and join logic without
touching the network.
"""

from __future__ import annotations

import json
import unicodedata

import pandas as pd
import pytest

from vnmap.ingestion.case_counts import (
    DEFAULT_CASE_COUNTS,
    CaseCountTable,
    default_case_counts,
    load_case_counts,
)
from vnmap.models import ProvinceRecord
from vnmap.processing.cleaner import (
    clean_dataframe,
    coerce_numeric,
    drop_blank_rows,
    fill_missing_numeric,
    normalize_columns,
    strip_strings,
)
from vnmap.processing.transformer import (
    drop_duplicate_codes,
    features_from_geojson,
    join_records,
    join_summary,
    normalize_attributes,
    transform_attributes,
)


# ── Fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture
def raw_attributes_df() -> pd.DataFrame:
    """Simulates the province attribute CSV as read from disk (all text)."""
    return pd.DataFrame({
        "Ma": ["01", "79", "31", "44"],
        " Province ": ["Hà Nội", "Hồ Chí Minh", "Hải Phòng", "Quảng Bình "],
        "Area": ["3359.8", "2095.4", "1526.5", ""],
        "Population": ["8435700", "9389700", "2088000", "913900"],
    })


# ── Cleaner tests ─────────────────────────────────────────────────────────

class TestCleaner:
    def test_normalize_columns(self):
        df = pd.DataFrame({"  Col Name  ": [1], "Another-Col!": [2]})
        result = normalize_columns(df)
        assert list(result.columns) == ["col_name", "another_col"]

    def test_strip_strings(self):
        df = pd.DataFrame({"name": ["  Hà Nội  ", " Huế"], "code": ["01", "46"]})
        result = strip_strings(df)
        assert result["name"].tolist() == ["Hà Nội", "Huế"]

    def test_drop_blank_rows(self):
        df = pd.DataFrame({"a": ["1", "", "3"], "b": ["x", "", ""]})
        result = drop_blank_rows(df)
        assert len(result) == 2

    def test_coerce_numeric(self):
        df = pd.DataFrame({"area": ["100", "N/A", "300"]})
        result = coerce_numeric(df, ["area"])
        assert result["area"].tolist()[0] == 100.0
        assert pd.isna(result["area"].tolist()[1])

    def test_fill_missing_numeric(self):
        df = pd.DataFrame({"val": [1.0, None, 3.0], "name": ["a", "b", "c"]})
        result = fill_missing_numeric(df)
        assert result["val"].tolist() == [1.0, 0.0, 3.0]
        assert result["name"].tolist() == ["a", "b", "c"]

    def test_clean_dataframe_keeps_codes_as_text(self, raw_attributes_df):
        result = clean_dataframe(raw_attributes_df)
        assert list(result.columns) == ["ma", "province", "area", "population"]
        assert result["ma"].tolist() == ["01", "79", "31", "44"]
        assert result["province"].tolist()[-1] == "Quảng Bình"


# ── Transformer tests ─────────────────────────────────────────────────────

class TestTransformAttributes:
    def test_columns_renamed(self, raw_attributes_df):
        result = transform_attributes(clean_dataframe(raw_attributes_df))
        assert list(result.columns) == ["code", "name", "area", "population"]
        assert len(result) == 4

    def test_numeric_coercion_and_fill(self, raw_attributes_df):
        result = transform_attributes(clean_dataframe(raw_attributes_df))
        assert result.loc[0, "area"] == pytest.approx(3359.8)
        # Empty area becomes 0
        assert result.loc[3, "area"] == 0.0

    def test_missing_column_raises(self):
        df = pd.DataFrame({"ma": ["01"], "province": ["Hà Nội"]})
        with pytest.raises(KeyError):
            transform_attributes(df)

    def test_duplicate_codes_keep_last(self):
        df = pd.DataFrame({
            "code": ["01", "01", "02"],
            "name": ["Hà Nội", "Hà Nội", "Hà Giang"],
            "area": [1.0, 2.0, 3.0],
            "population": [10, 20, 30],
        })
        result = transform_attributes(df)
        assert result["code"].tolist() == ["01", "02"]
        assert result.loc[0, "area"] == 2.0

    def test_normalize_keeps_duplicates(self):
        df = pd.DataFrame({
            "ma": ["01", "01"],
            "dien_tich": ["5", "2"],
            "dan_so": ["10", "20"],
        })
        rows = normalize_attributes(df)
        assert rows["area"].tolist() == [5.0, 2.0]
        assert drop_duplicate_codes(rows)["area"].tolist() == [2.0]

    def test_missing_name_column_allowed(self):
        df = pd.DataFrame({"code": ["01"], "area": [1.0], "population": [2.0]})
        result = transform_attributes(df)
        assert result.loc[0, "name"] == ""


class TestFeatures:
    def test_extract_code_and_name(self, geojson):
        features = features_from_geojson(geojson)
        assert [(f.code, f.display_name) for f in features] == [
            ("01", "Hà Nội"),
            ("02", "Unknown"),
        ]

    def test_numeric_code_becomes_text(self, geojson):
        geojson["features"][0]["properties"]["Ma"] = 1
        features = features_from_geojson(geojson)
        assert features[0].code == "1"

    def test_feature_without_geometry_skipped(self, geojson):
        geojson["features"][1]["geometry"] = None
        assert len(features_from_geojson(geojson)) == 1


# ── Case counts ───────────────────────────────────────────────────────────

class TestCaseCountTable:
    def test_default_table(self):
        table = default_case_counts()
        assert len(DEFAULT_CASE_COUNTS) == 63
        assert table.lookup(None, "Hà Nội") == 1646923
        assert table.lookup(None, "Ninh Thuận") == 9001

    def test_unknown_name_is_zero(self, case_counts):
        assert case_counts.lookup("99", "Atlantis") == 0
        assert case_counts.lookup(None, None) == 0

    def test_decomposed_unicode_matches(self, case_counts):
        decomposed = unicodedata.normalize("NFD", "Hà Nội")
        assert decomposed != "Hà Nội"
        assert case_counts.lookup(None, decomposed) == 1646923

    def test_code_entry_wins(self):
        table = CaseCountTable(by_name={"Hà Nội": 1}, by_code={"01": 2})
        assert table.lookup("01", "Hà Nội") == 2
        assert table.lookup("02", "Hà Nội") == 1

    def test_load_json(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({"Huế": 5}, ensure_ascii=False), encoding="utf-8")
        table = load_case_counts(path)
        assert table.lookup(None, "Huế") == 5

    def test_load_csv_by_code(self, tmp_path):
        path = tmp_path / "cases.csv"
        path.write_text("code,count\n01,7\n02,not-a-number\n", encoding="utf-8")
        table = load_case_counts(path)
        assert table.lookup("01", None) == 7
        assert table.lookup("02", None) == 0

    def test_load_csv_without_key_column(self, tmp_path):
        path = tmp_path / "cases.csv"
        path.write_text("province_id,count\n01,7\n", encoding="utf-8")
        with pytest.raises(KeyError):
            load_case_counts(path)


# ── Join ──────────────────────────────────────────────────────────────────

class TestJoinRecords:
    def test_record_from_attributes_and_cases(self, attributes_df, case_counts):
        records = join_records(transform_attributes(attributes_df), case_counts)
        assert records == {
            "01": ProvinceRecord(area=100.0, population=200.0, case_count=1646923),
        }

    def test_missing_case_count_defaults_to_zero(self, case_counts):
        df = pd.DataFrame({
            "code": ["02"], "name": ["Unknown"], "area": [5.0], "population": [6.0],
        })
        records = join_records(transform_attributes(df), case_counts)
        assert records["02"].case_count == 0

    def test_one_record_per_code(self, case_counts):
        df = pd.DataFrame({
            "code": ["01", "01"],
            "name": ["Hà Nội", "Hà Nội"],
            "area": [1.0, 2.0],
            "population": [1.0, 2.0],
        })
        records = join_records(transform_attributes(df), case_counts)
        assert list(records) == ["01"]

    def test_summary(self, geojson, attributes_df, case_counts):
        features = features_from_geojson(geojson)
        attributes = transform_attributes(attributes_df)
        summary = join_summary(features, attributes, case_counts)
        assert summary.as_counts() == {
            "matched": 1,
            "features_without_data": 1,
            "rows_without_feature": 0,
            "names_without_case_count": 0,
        }
        assert summary.features_without_data == ["Unknown"]
