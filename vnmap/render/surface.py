"""Render surface: projected province shapes and the Plotly figure built from them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import plotly.graph_objects as go

from vnmap.config import MapConfig
from vnmap.interaction import IDENTITY, ZoomTransform, tooltip_content
from vnmap.models import ProvinceFeature, ProvinceRecord
from vnmap.render.colors import FALLBACK_COLOR, ColorScale
from vnmap.render.projection import (
    Bounds,
    Mercator,
    Point,
    anchor_point,
    collection_centroid,
    polygon_rings,
)

logger = logging.getLogger(__name__)

OUTLINE_COLOR = "#ffffff"


@dataclass(frozen=True)
class ProvinceShape:
    code: str
    name: str
    fill: str
    rings: list[list[Point]]
    bounds: Bounds
    anchor: Point
    tooltip: str


@dataclass
class RenderContext:
    """Everything the map needs after load, built once and handed to every handler."""

    config: MapConfig
    features: list[ProvinceFeature]
    records: dict[str, ProvinceRecord]
    color_scale: ColorScale
    projection: Mercator
    shapes: list[ProvinceShape] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        config: MapConfig,
        features: list[ProvinceFeature],
        records: dict[str, ProvinceRecord],
        color_scale: ColorScale | None = None,
    ) -> RenderContext:
        """Project and color every feature.

        ``color_scale`` defaults to one fitted over ``records``; pass one
        fitted over every loaded attribute row to keep dropped duplicate
        rows in the domain.
        """
        if color_scale is None:
            color_scale = ColorScale.fit(
                (r.area for r in records.values()), colorscale=config.colorscale
            )
        center = collection_centroid(features)
        projection = Mercator(
            scale=config.projection_scale,
            translate=(config.width / 2, config.height / 2),
            center=center,
        )
        logger.info(
            "Projection centered on (%.3f, %.3f); area domain [0, %.1f]",
            center[0], center[1], color_scale.domain_max,
        )
        ctx = cls(config, features, records, color_scale, projection)
        ctx.shapes = draw_shapes(ctx)
        return ctx

    def shape_for(self, code: str | None) -> ProvinceShape | None:
        for shape in self.shapes:
            if shape.code == code:
                return shape
        return None

    def fill_for(self, code: str) -> str:
        record = self.records.get(code)
        return self.color_scale(record.area) if record is not None else FALLBACK_COLOR


def draw_shapes(ctx: RenderContext) -> list[ProvinceShape]:
    """Project every feature into one colored screen-space shape."""
    shapes = []
    for feature in ctx.features:
        try:
            rings = polygon_rings(feature.geometry)
        except ValueError:
            logger.warning("Skipping %s: unsupported geometry", feature.display_name)
            continue
        shapes.append(ProvinceShape(
            code=feature.code,
            name=feature.display_name,
            fill=ctx.fill_for(feature.code),
            rings=[ctx.projection.project_ring(ring) for ring in rings],
            bounds=ctx.projection.bounds(feature.geometry),
            anchor=ctx.projection.project(*anchor_point(feature.geometry)),
            tooltip=tooltip_content(feature.display_name, ctx.records.get(feature.code)),
        ))
    logger.info("Drew %d province shapes", len(shapes))
    return shapes


def _ring_xy(rings: list[list[Point]]) -> tuple[list[float | None], list[float | None]]:
    # Rings are separated by None so one trace draws a whole multipolygon.
    xs: list[float | None] = []
    ys: list[float | None] = []
    for ring in rings:
        if xs:
            xs.append(None)
            ys.append(None)
        xs.extend(p[0] for p in ring)
        ys.extend(p[1] for p in ring)
    return xs, ys


def build_figure(
    ctx: RenderContext,
    transform: ZoomTransform = IDENTITY,
    duration_ms: int | None = None,
) -> go.Figure:
    """Plotly figure of all shapes, framed by ``transform``."""
    config = ctx.config
    fig = go.Figure()

    for shape in ctx.shapes:
        xs, ys = _ring_xy(shape.rings)
        # Invisible vertex markers make the outline selectable by click
        fig.add_trace(go.Scatter(
            x=xs,
            y=ys,
            mode="lines+markers",
            fill="toself",
            fillcolor=shape.fill,
            line=dict(color=OUTLINE_COLOR, width=0.5),
            marker=dict(size=6, color="rgba(0,0,0,0)"),
            unselected=dict(marker=dict(opacity=0)),
            customdata=[shape.code] * len(xs),
            hoveron="points+fills",
            hoverinfo="text",
            text=shape.tooltip,
            name=shape.name,
            showlegend=False,
        ))

    # Hit targets: one marker per province carrying its code for click events
    fig.add_trace(go.Scatter(
        x=[s.anchor[0] for s in ctx.shapes],
        y=[s.anchor[1] for s in ctx.shapes],
        mode="markers",
        marker=dict(size=7, color="rgba(255,255,255,0.6)", line=dict(color="#334155", width=0.5)),
        unselected=dict(marker=dict(opacity=1)),
        customdata=[s.code for s in ctx.shapes],
        text=[s.tooltip for s in ctx.shapes],
        hovertemplate="%{text}<extra></extra>",
        name="provinces",
        showlegend=False,
    ))

    # Color bar for the area scale
    fig.add_trace(go.Scatter(
        x=[None],
        y=[None],
        mode="markers",
        marker=dict(
            colorscale=ctx.color_scale.colorscale,
            cmin=ctx.color_scale.domain_min,
            cmax=ctx.color_scale.domain_max,
            color=[ctx.color_scale.domain_min],
            showscale=True,
            colorbar=dict(title=dict(text="Area (km²)"), thickness=12),
        ),
        hoverinfo="skip",
        showlegend=False,
    ))

    (x0, y0), (x1, y1) = transform.viewport(config.width, config.height)
    m = config.margin
    fig.update_layout(
        width=config.width,
        height=config.height,
        margin=dict(l=m.left, r=m.right, t=m.top, b=m.bottom),
        xaxis=dict(range=[x0, x1], visible=False),
        # Screen y grows downward
        yaxis=dict(range=[y1, y0], visible=False, scaleanchor="x", scaleratio=1),
        plot_bgcolor="rgba(0,0,0,0)",
        clickmode="event+select",
        dragmode=False,
        hoverlabel=dict(bgcolor="white", font_size=12),
        transition=dict(
            duration=config.transition_ms if duration_ms is None else duration_ms,
            easing="cubic-in-out",
        ),
        template="plotly_white",
    )
    return fig
