"""Province data records shared by the ingestion, join and render layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ProvinceFeature:
    """One boundary polygon from the GeoJSON feature collection."""

    code: str
    display_name: str
    geometry: dict[str, Any]


@dataclass(frozen=True)
class ProvinceAttributes:
    code: str
    name: str
    area: float
    population: float


@dataclass(frozen=True)
class ProvinceRecord:
    """Joined per-province values, keyed by province code."""

    area: float
    population: float
    case_count: int = 0
