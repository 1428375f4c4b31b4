"""Mercator projection from lon/lat degrees to screen pixels (y grows downward)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from shapely.geometry import shape

from vnmap.models import ProvinceFeature

Point = tuple[float, float]
Bounds = tuple[Point, Point]

# Latitude limit of the square Web Mercator world
MAX_LATITUDE = 85.05112878


def _mercator_raw(lon: float, lat: float) -> Point:
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    lam = math.radians(lon)
    phi = math.radians(lat)
    return lam, math.log(math.tan(math.pi / 4 + phi / 2))


@dataclass(frozen=True)
class Mercator:
    """Spherical Mercator scaled by ``scale`` with ``center`` placed at ``translate``."""

    scale: float
    translate: Point
    center: Point = (0.0, 0.0)

    def project(self, lon: float, lat: float) -> Point:
        x, y = _mercator_raw(lon, lat)
        cx, cy = _mercator_raw(*self.center)
        tx, ty = self.translate
        return tx + self.scale * (x - cx), ty - self.scale * (y - cy)

    def project_ring(self, ring: Iterable[Iterable[float]]) -> list[Point]:
        return [self.project(c[0], c[1]) for c in ring]

    def bounds(self, geometry: dict[str, Any]) -> Bounds:
        """Screen-space bounding box ``((x0, y0), (x1, y1))`` of a GeoJSON geometry.

        Mercator is monotonic in both axes, so the box is the projection of
        the geographic bounds with the latitude axis flipped.
        """
        min_lon, min_lat, max_lon, max_lat = shape(geometry).bounds
        x0, y0 = self.project(min_lon, max_lat)
        x1, y1 = self.project(max_lon, min_lat)
        return (x0, y0), (x1, y1)


def collection_centroid(features: list[ProvinceFeature]) -> Point:
    """Area-weighted centroid (lon, lat) of all feature geometries."""
    total = 0.0
    sx = sy = 0.0
    for feature in features:
        geom = shape(feature.geometry)
        weight = geom.area
        if weight <= 0:
            continue
        c = geom.centroid
        sx += c.x * weight
        sy += c.y * weight
        total += weight
    if total == 0:
        return 0.0, 0.0
    return sx / total, sy / total


def polygon_rings(geometry: dict[str, Any]) -> list[list[list[float]]]:
    """All rings (exterior and holes) of a Polygon or MultiPolygon geometry."""
    gtype = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if gtype == "Polygon":
        return list(coords)
    if gtype == "MultiPolygon":
        return [ring for polygon in coords for ring in polygon]
    raise ValueError(f"Unsupported geometry type: {gtype}")


def anchor_point(geometry: dict[str, Any]) -> Point:
    """A lon/lat point guaranteed to fall inside the geometry."""
    p = shape(geometry).representative_point()
    return p.x, p.y
