"""Data cleaning and normalization utilities for the attribute table."""

from __future__ import annotations

import logging
import re

import pandas as pd

logger = logging.getLogger(__name__)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase, strip, and snake_case column names."""
    df = df.copy()
    df.columns = [
        re.sub(r"[^a-z0-9]+", "_", str(col).strip().lower()).strip("_") for col in df.columns
    ]
    return df


def strip_strings(df: pd.DataFrame) -> pd.DataFrame:
    """Strip leading/trailing whitespace from string columns."""
    df = df.copy()
    str_cols = df.select_dtypes(include=["object", "string"]).columns
    for col in str_cols:
        df[col] = df[col].str.strip()
    return df


def drop_blank_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Remove rows where every cell is empty."""
    before = len(df)
    blank = df.replace("", pd.NA).isna().all(axis=1)
    df = df[~blank]
    removed = before - len(df)
    if removed:
        logger.info("Removed %d blank rows", removed)
    return df


def coerce_numeric(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Force columns to numeric, coercing errors to NaN."""
    df = df.copy()
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def fill_missing_numeric(df: pd.DataFrame, value: float = 0.0) -> pd.DataFrame:
    """Fill NaN in numeric columns with a default value."""
    numeric_cols = df.select_dtypes(include="number").columns
    df = df.copy()
    if len(numeric_cols):
        df[numeric_cols] = df[numeric_cols].fillna(value)
    return df


def clean_dataframe(
    df: pd.DataFrame,
    numeric_columns: list[str] | None = None,
    numeric_fill: float = 0.0,
) -> pd.DataFrame:
    """Run the full cleaning pipeline on a DataFrame."""
    df = normalize_columns(df)
    df = strip_strings(df)
    df = drop_blank_rows(df)
    if numeric_columns:
        df = coerce_numeric(df, numeric_columns)
    df = fill_missing_numeric(df, value=numeric_fill)
    logger.info("Cleaning complete: %d rows x %d cols", len(df), len(df.columns))
    return df
