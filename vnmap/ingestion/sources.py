"""Loading of the two static inputs: province boundaries and attributes.

Both sources may be a local path or an ``http(s)://`` URL.
"""

from __future__ import annotations

import io
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import httpx
import pandas as pd

logger = logging.getLogger(__name__)

# Timeouts (connect, read) in seconds
TIMEOUT = httpx.Timeout(15.0, read=60.0)


class SourceLoadError(RuntimeError):
    """One of the input sources could not be read."""

    def __init__(self, source: str, location: str, reason: str):
        super().__init__(f"Could not load {source} from {location}: {reason}")
        self.source = source
        self.location = location
        self.reason = reason


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def _read_text(location: str) -> str:
    if _is_url(location):
        logger.info("Downloading %s", location)
        resp = httpx.get(location, follow_redirects=True, timeout=TIMEOUT)
        resp.raise_for_status()
        return resp.text
    return Path(location).read_text(encoding="utf-8")


def read_geojson(location: str) -> dict[str, Any]:
    """Read a GeoJSON FeatureCollection."""
    try:
        payload = json.loads(_read_text(location))
    except (OSError, httpx.HTTPError, ValueError) as exc:
        raise SourceLoadError("province boundaries", location, str(exc)) from exc

    if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
        raise SourceLoadError(
            "province boundaries", location, "not a GeoJSON FeatureCollection"
        )
    logger.info("Loaded %d features from %s", len(payload.get("features", [])), location)
    return payload


def read_attribute_csv(location: str, sep: str | None = None) -> pd.DataFrame:
    """Read the province attribute table, keeping every column as text.

    Automatically detects the separator if not provided.
    """
    try:
        raw = _read_text(location)
        if sep is None:
            first_line = raw.split("\n", maxsplit=1)[0]
            sep = ";" if first_line.count(";") > first_line.count(",") else ","
        df = pd.read_csv(io.StringIO(raw), sep=sep, dtype=str, keep_default_na=False)
    except (OSError, httpx.HTTPError, ValueError) as exc:
        raise SourceLoadError("province attributes", location, str(exc)) from exc

    logger.info("Loaded %d rows x %d columns from %s", len(df), len(df.columns), location)
    return df


def load_sources(
    geojson_location: str,
    attributes_location: str,
) -> tuple[dict[str, Any], pd.DataFrame]:
    """Load both sources concurrently and return them once both are ready."""
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="vnmap-load") as pool:
        geo_future = pool.submit(read_geojson, geojson_location)
        csv_future = pool.submit(read_attribute_csv, attributes_location)
        return geo_future.result(), csv_future.result()
