"""Vietnam province map: Streamlit interactive dashboard."""

from __future__ import annotations

import io

import pandas as pd
import streamlit as st

from vnmap.config import MapConfig
from vnmap.ingestion.sources import SourceLoadError
from vnmap.interaction import InteractionController
from vnmap.pipeline import build_context
from vnmap.render.surface import RenderContext, build_figure

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

CONFIG = MapConfig.from_env()

st.set_page_config(
    page_title="Vietnam — Province Map",
    page_icon="🗺️",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_context() -> RenderContext:
    return build_context(CONFIG)


def get_controller(ctx: RenderContext) -> InteractionController:
    controller = st.session_state.get("controller")
    if controller is None or controller.ctx is not ctx:
        controller = InteractionController(ctx)
        controller.attach()
        st.session_state["controller"] = controller
    return controller


def records_frame(ctx: RenderContext) -> pd.DataFrame:
    names = {f.code: f.display_name for f in ctx.features}
    rows = [
        {
            "code": code,
            "name": names.get(code, ""),
            "area": rec.area,
            "population": rec.population,
            "cases": rec.case_count,
            "on_map": code in names,
        }
        for code, rec in ctx.records.items()
    ]
    return pd.DataFrame(rows, columns=["code", "name", "area", "population", "cases", "on_map"])


def download_button_csv(df: pd.DataFrame, filename: str, label: str = "Download CSV"):
    """Render a CSV download button."""
    buf = io.BytesIO()
    df.to_csv(buf, index=False)
    st.download_button(label, buf.getvalue(), file_name=filename, mime="text/csv")


def download_button_excel(df: pd.DataFrame, filename: str, label: str = "Download Excel"):
    """Render an Excel download button."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="xlsxwriter") as writer:
        df.to_excel(writer, index=False, sheet_name="data")
    st.download_button(label, buf.getvalue(), file_name=filename, mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------

try:
    ctx = get_context()
except SourceLoadError as exc:
    st.title("🗺️ Vietnam — Province Map")
    st.error(f"Could not load the {exc.source} from `{exc.location}`.")
    st.caption(exc.reason)
    st.stop()

controller = get_controller(ctx)


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

st.sidebar.title("🗺️ Province Map")
st.sidebar.markdown("**Area by province**  \nHover for case counts, click to zoom.")
st.sidebar.markdown("---")

if st.sidebar.button("Reset zoom", disabled=not controller.zoom.focused):
    controller.click_background()

scale = ctx.color_scale
st.sidebar.markdown(
    f"<span style='color:{scale.lightest}'>■</span> {scale.domain_min:,.0f} km² "
    f"→ <span style='color:{scale.darkest}'>■</span> {scale.domain_max:,.0f} km²",
    unsafe_allow_html=True,
)

st.sidebar.markdown("---")
st.sidebar.caption(
    f"Boundaries: `{CONFIG.geojson_source}`  \n"
    f"Attributes: `{CONFIG.attributes_source}`"
)


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

def _on_map_select():
    event = st.session_state.get("province_map") or {}
    controller.select(event.get("selection", {}).get("points", []))


def page_map():
    st.title("🗺️ Vietnam — Province Map")

    fig = build_figure(ctx, controller.transform)
    st.plotly_chart(
        fig,
        use_container_width=False,
        key="province_map",
        on_select=_on_map_select,
        selection_mode="points",
    )

    if controller.zoom.focused:
        shape = ctx.shape_for(controller.zoom.code)
        record = ctx.records.get(controller.zoom.code)
        st.subheader(shape.name if shape else controller.zoom.code)
        if record is None:
            st.info("No data for this province.")
        else:
            c1, c2, c3 = st.columns(3)
            c1.metric("Area (km²)", f"{record.area:,.1f}")
            c2.metric("Population", f"{record.population:,.0f}")
            c3.metric("Cases", f"{record.case_count:,}")
        st.caption(f"Transform: `{controller.transform.svg()}`")

    st.markdown("---")
    st.subheader("Data")
    data = records_frame(ctx)
    st.dataframe(data, use_container_width=True, hide_index=True)
    col1, col2 = st.columns(2)
    with col1:
        download_button_csv(data, "vn_provinces.csv")
    with col2:
        download_button_excel(data, "vn_provinces.xlsx")


page_map()
