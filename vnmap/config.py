"""Runtime configuration for the province map."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

GEOJSON_SOURCE = os.getenv("VNMAP_GEOJSON", "data/vn-provinces.json")
ATTRIBUTES_SOURCE = os.getenv("VNMAP_ATTRIBUTES", "data/vn-provinces-data.csv")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class Margin:
    top: int = 20
    right: int = 20
    bottom: int = 20
    left: int = 20


@dataclass(frozen=True)
class MapConfig:
    geojson_source: str = GEOJSON_SOURCE
    attributes_source: str = ATTRIBUTES_SOURCE
    case_counts_source: str | None = None
    colorscale: str = "Blues"
    html_output: str | None = None

    width: int = 800
    height: int = 600
    margin: Margin = field(default_factory=Margin)
    projection_scale: float = 1500.0
    zoom_fill: float = 0.9
    transition_ms: int = 750
    tooltip_offset: int = 10

    @classmethod
    def from_env(cls) -> MapConfig:
        """Build a config from ``VNMAP_*`` environment variables."""
        return cls(
            geojson_source=os.getenv("VNMAP_GEOJSON", GEOJSON_SOURCE),
            attributes_source=os.getenv("VNMAP_ATTRIBUTES", ATTRIBUTES_SOURCE),
            case_counts_source=os.getenv("VNMAP_CASE_COUNTS") or None,
            colorscale=os.getenv("VNMAP_COLORSCALE", "Blues"),
            html_output=os.getenv("VNMAP_HTML_OUTPUT") or None,
        )


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
