"""Full map pipeline: load → clean → join → project → draw.

Run with:  python -m vnmap.pipeline
"""

from __future__ import annotations

import logging

from vnmap.config import MapConfig, configure_logging
from vnmap.ingestion.case_counts import CaseCountTable, default_case_counts, load_case_counts
from vnmap.ingestion.sources import SourceLoadError, load_sources
from vnmap.processing.cleaner import clean_dataframe
from vnmap.processing.transformer import (
    drop_duplicate_codes,
    features_from_geojson,
    join_records,
    join_summary,
    normalize_attributes,
)
from vnmap.render.colors import ColorScale
from vnmap.render.surface import RenderContext, build_figure

logger = logging.getLogger(__name__)


def _reason(exc: Exception) -> str:
    # str(KeyError) wraps the message in quotes
    return str(exc.args[0]) if isinstance(exc, KeyError) and exc.args else str(exc)


def resolve_case_counts(config: MapConfig) -> CaseCountTable:
    if not config.case_counts_source:
        return default_case_counts()
    try:
        return load_case_counts(config.case_counts_source)
    except (OSError, KeyError, ValueError) as exc:
        raise SourceLoadError("case counts", config.case_counts_source, _reason(exc)) from exc


def build_context(
    config: MapConfig,
    case_counts: CaseCountTable | None = None,
) -> RenderContext:
    """Load both sources and build the render context.

    Raises SourceLoadError if either source cannot be read or the
    attribute table lacks a required column; nothing is joined or drawn
    in that case.
    """
    if case_counts is None:
        case_counts = resolve_case_counts(config)

    logger.info("=== STEP 1: Loading sources ===")
    geojson, raw_attributes = load_sources(config.geojson_source, config.attributes_source)

    logger.info("=== STEP 2: Cleaning attributes ===")
    try:
        rows = normalize_attributes(clean_dataframe(raw_attributes))
    except KeyError as exc:
        raise SourceLoadError("province attributes", config.attributes_source, _reason(exc)) from exc
    # The color domain covers every loaded row, including duplicates dropped below
    color_scale = ColorScale.fit(rows["area"], colorscale=config.colorscale)
    attributes = drop_duplicate_codes(rows)
    logger.info("Transformed province attributes: %d rows", len(attributes))
    features = features_from_geojson(geojson)

    logger.info("=== STEP 3: Joining ===")
    records = join_records(attributes, case_counts)
    summary = join_summary(features, attributes, case_counts)
    logger.info("Join coverage: %s", summary.as_counts())

    logger.info("=== STEP 4: Drawing ===")
    return RenderContext.create(config, features, records, color_scale=color_scale)


def run_pipeline(config: MapConfig | None = None) -> dict[str, int]:
    """Build the map once and optionally export it as standalone HTML."""
    config = config or MapConfig.from_env()
    ctx = build_context(config)

    counts = {
        "features": len(ctx.features),
        "records": len(ctx.records),
        "shapes": len(ctx.shapes),
    }
    if config.html_output:
        build_figure(ctx).write_html(config.html_output, include_plotlyjs="cdn")
        logger.info("Wrote %s", config.html_output)

    logger.info("=== Pipeline complete ===")
    logger.info("Built: %s", counts)
    return counts


if __name__ == "__main__":
    configure_logging()
    run_pipeline()
