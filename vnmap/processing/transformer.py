"""Data transformation: feature extraction and the attribute / case-count join."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from vnmap.ingestion.case_counts import CaseCountTable
from vnmap.models import ProvinceAttributes, ProvinceFeature, ProvinceRecord
from vnmap.processing.cleaner import coerce_numeric, fill_missing_numeric

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Boundary features
# ---------------------------------------------------------------------------

# Property names seen in Vietnamese province GeoJSON files ("Ma" = code,
# "Ten" = name), followed by generic fallbacks.
FEATURE_CODE_PROPS = ["Ma", "ma", "code", "id"]
FEATURE_NAME_PROPS = ["Ten", "ten", "name", "NAME_1"]


def _first_prop(props: dict[str, Any], candidates: list[str]) -> Any:
    for c in candidates:
        if props.get(c) is not None:
            return props[c]
    return None


def features_from_geojson(geojson: dict[str, Any]) -> list[ProvinceFeature]:
    """Extract one ProvinceFeature per GeoJSON feature with a geometry."""
    features = []
    skipped = 0
    for raw in geojson.get("features", []):
        geometry = raw.get("geometry")
        if not geometry:
            skipped += 1
            continue
        props = raw.get("properties") or {}
        code = _first_prop(props, FEATURE_CODE_PROPS)
        name = _first_prop(props, FEATURE_NAME_PROPS)
        features.append(ProvinceFeature(
            code=str(code).strip() if code is not None else "",
            display_name=str(name).strip() if name is not None else "",
            geometry=geometry,
        ))
    if skipped:
        logger.warning("Skipped %d features without geometry", skipped)
    logger.info("Extracted %d province features", len(features))
    return features


# ---------------------------------------------------------------------------
# Attribute table
# ---------------------------------------------------------------------------

# The raw CSV may use Vietnamese column names; map them to English.
ATTRIBUTE_COLUMN_MAP = {
    "ma": "code",
    "ma_tinh": "code",
    "province": "name",
    "ten": "name",
    "ten_tinh": "name",
    "dien_tich": "area",
    "area_km2": "area",
    "dan_so": "population",
    "pop": "population",
}


def normalize_attributes(df: pd.DataFrame) -> pd.DataFrame:
    """Rename, type and filter the cleaned attribute table.

    Every row with a code is kept, duplicates included. Raises KeyError
    when ``code``, ``area`` or ``population`` cannot be found.
    """
    df = df.copy()

    # Rename known columns, first match wins
    rename: dict[str, str] = {}
    for src, dst in ATTRIBUTE_COLUMN_MAP.items():
        if src in df.columns and dst not in df.columns and dst not in rename.values():
            rename[src] = dst
    df = df.rename(columns=rename)

    for col in ["code", "area", "population"]:
        if col not in df.columns:
            raise KeyError(f"Missing required column after rename: {col}")
    if "name" not in df.columns:
        df["name"] = ""

    df["code"] = df["code"].astype(str).str.strip()
    df["name"] = df["name"].fillna("").astype(str).str.strip()
    df = coerce_numeric(df, ["area", "population"])
    df = fill_missing_numeric(df)

    df = df[df["code"] != ""]
    return df[["code", "name", "area", "population"]].reset_index(drop=True)


def drop_duplicate_codes(df: pd.DataFrame) -> pd.DataFrame:
    """Keep the last row for each province code."""
    duplicated = df["code"].duplicated(keep="last")
    if duplicated.any():
        logger.warning(
            "Dropping %d duplicate province codes (keeping last): %s",
            int(duplicated.sum()),
            sorted(df.loc[duplicated, "code"].unique()),
        )
        df = df[~duplicated]
    return df.reset_index(drop=True)


def transform_attributes(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize the cleaned attribute table.

    Returns a DataFrame with one row per province code and columns
    ``code``, ``name``, ``area``, ``population``.
    """
    df = drop_duplicate_codes(normalize_attributes(df))
    logger.info("Transformed province attributes: %d rows", len(df))
    return df


def iter_attributes(df: pd.DataFrame) -> list[ProvinceAttributes]:
    return [
        ProvinceAttributes(
            code=row.code,
            name=row.name,
            area=float(row.area),
            population=float(row.population),
        )
        for row in df.itertuples(index=False)
    ]


# ---------------------------------------------------------------------------
# Join: attributes + case counts → per-province records
# ---------------------------------------------------------------------------


def join_records(
    attributes: pd.DataFrame,
    case_counts: CaseCountTable,
) -> dict[str, ProvinceRecord]:
    """Build the per-province record set keyed by province code.

    ``attributes`` must be the output of :func:`transform_attributes`.
    Provinces whose name has no case count get a count of 0.
    """
    records: dict[str, ProvinceRecord] = {}
    for attrs in iter_attributes(attributes):
        records[attrs.code] = ProvinceRecord(
            area=attrs.area,
            population=attrs.population,
            case_count=case_counts.lookup(attrs.code, attrs.name),
        )
    logger.info("Joined %d province records", len(records))
    return records


@dataclass
class JoinSummary:
    matched: int = 0
    features_without_data: list[str] = field(default_factory=list)
    rows_without_feature: list[str] = field(default_factory=list)
    names_without_case_count: list[str] = field(default_factory=list)

    def as_counts(self) -> dict[str, int]:
        return {
            "matched": self.matched,
            "features_without_data": len(self.features_without_data),
            "rows_without_feature": len(self.rows_without_feature),
            "names_without_case_count": len(self.names_without_case_count),
        }


def join_summary(
    features: list[ProvinceFeature],
    attributes: pd.DataFrame,
    case_counts: CaseCountTable,
) -> JoinSummary:
    """Report how well the boundary, attribute and case-count keys line up."""
    feature_codes = {f.code for f in features}
    row_codes = set(attributes["code"])
    summary = JoinSummary(
        matched=sum(1 for f in features if f.code in row_codes),
        features_without_data=sorted(
            f.display_name or f.code for f in features if f.code not in row_codes
        ),
        rows_without_feature=sorted(row_codes - feature_codes),
        names_without_case_count=sorted(
            attrs.name for attrs in iter_attributes(attributes)
            if not case_counts.has(attrs.code, attrs.name)
        ),
    )

    if summary.features_without_data:
        logger.warning(
            "%d features have no attribute row: %s",
            len(summary.features_without_data),
            summary.features_without_data,
        )
    if summary.names_without_case_count:
        logger.warning(
            "%d provinces have no case count (defaulting to 0): %s",
            len(summary.names_without_case_count),
            summary.names_without_case_count,
        )
    return summary
