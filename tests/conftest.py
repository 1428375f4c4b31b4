"""Shared fixtures: a two-province map around the Red River delta."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from vnmap.config import MapConfig
from vnmap.ingestion.case_counts import CaseCountTable
from vnmap.processing.transformer import features_from_geojson, join_records, transform_attributes
from vnmap.render.surface import RenderContext


def _square(lon: float, lat: float, size: float = 1.0) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[
            [lon, lat],
            [lon + size, lat],
            [lon + size, lat + size],
            [lon, lat + size],
            [lon, lat],
        ]],
    }


@pytest.fixture
def geojson() -> dict:
    """Province 01 (Hà Nội) has data; province 02 (Unknown) does not."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"Ma": "01", "Ten": "Hà Nội"},
                "geometry": _square(105.0, 20.0),
            },
            {
                "type": "Feature",
                "properties": {"Ma": "02", "Ten": "Unknown"},
                "geometry": _square(106.0, 20.0),
            },
        ],
    }


@pytest.fixture
def attributes_df() -> pd.DataFrame:
    return pd.DataFrame({
        "code": ["01"],
        "name": ["Hà Nội"],
        "area": [100.0],
        "population": [200.0],
    })


@pytest.fixture
def case_counts() -> CaseCountTable:
    return CaseCountTable(by_name={"Hà Nội": 1646923})


@pytest.fixture
def ctx(geojson, attributes_df, case_counts) -> RenderContext:
    features = features_from_geojson(geojson)
    records = join_records(transform_attributes(attributes_df), case_counts)
    return RenderContext.create(MapConfig(), features, records)


@pytest.fixture
def source_files(tmp_path, geojson):
    """The two-province map written to disk as GeoJSON + CSV."""
    geo_path = tmp_path / "vn-provinces.json"
    geo_path.write_text(json.dumps(geojson, ensure_ascii=False), encoding="utf-8")
    csv_path = tmp_path / "vn-provinces-data.csv"
    csv_path.write_text("ma,province,area,population\n01,Hà Nội,100,200\n", encoding="utf-8")
    return geo_path, csv_path
