"""Sequential color scale over province area."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

import plotly.colors as pc

# Fill for provinces with no attribute row
FALLBACK_COLOR = "#cccccc"


def _to_hex(color: str) -> str:
    r, g, b = (int(round(c)) for c in pc.unlabel_rgb(color))
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class ColorScale:
    """Maps a value in ``[domain_min, domain_max]`` to a light-to-dark color."""

    domain_min: float
    domain_max: float
    colorscale: str = "Blues"

    @classmethod
    def fit(cls, values: Iterable[float], colorscale: str = "Blues") -> ColorScale:
        """Fit the domain to ``[0, max(values)]``, ignoring NaNs."""
        finite = [float(v) for v in values if v is not None and not math.isnan(float(v))]
        return cls(domain_min=0.0, domain_max=max(finite, default=0.0), colorscale=colorscale)

    def normalize(self, value: float) -> float:
        span = self.domain_max - self.domain_min
        if span <= 0 or value is None or math.isnan(value):
            return 0.0
        return min(1.0, max(0.0, (value - self.domain_min) / span))

    def __call__(self, value: float) -> str:
        (color,) = pc.sample_colorscale(self.colorscale, [self.normalize(value)])
        return _to_hex(color)

    @property
    def lightest(self) -> str:
        return self(self.domain_min)

    @property
    def darkest(self) -> str:
        return _to_hex(pc.sample_colorscale(self.colorscale, [1.0])[0])
