"""Hover tooltips and click-to-zoom state for the province map.

All state lives in an :class:`InteractionController`; events are delivered
through an :class:`EventQueue` on a single thread, one handler at a time.
"""

from __future__ import annotations

import html
import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable

from vnmap.models import ProvinceRecord
from vnmap.render.projection import Bounds

if TYPE_CHECKING:
    from vnmap.render.surface import RenderContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ZoomState:
    """``Overview`` when ``code`` is None, otherwise focused on one province."""

    code: str | None = None

    @property
    def focused(self) -> bool:
        return self.code is not None


OVERVIEW = ZoomState()


def focused(code: str) -> ZoomState:
    return ZoomState(code=code)


@dataclass(frozen=True)
class TooltipState:
    visible: bool = False
    content: str = ""
    position: tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class ZoomTransform:
    """``translate(tx, ty) scale(k)``: a point p is drawn at ``k * p + t``."""

    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    def viewport(self, width: float, height: float) -> Bounds:
        """The region of the untransformed map visible in a width x height view."""
        k = self.scale
        return (
            (-self.translate_x / k, -self.translate_y / k),
            ((width - self.translate_x) / k, (height - self.translate_y) / k),
        )

    def svg(self) -> str:
        return f"translate({self.translate_x:g},{self.translate_y:g}) scale({self.scale:g})"


IDENTITY = ZoomTransform()


@dataclass(frozen=True)
class ZoomTransition:
    target: ZoomTransform
    duration_ms: int


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def zoom_to_bounds(bounds: Bounds, width: float, height: float, fill: float = 0.9) -> ZoomTransform:
    """Transform that fits ``bounds`` into ``fill`` of the viewport and centers it."""
    (x0, y0), (x1, y1) = bounds
    dx, dy = x1 - x0, y1 - y0
    ratio = max(dx / width, dy / height)
    if ratio <= 0:
        raise ValueError(f"Cannot zoom to an empty bounding box: {bounds}")
    x, y = (x0 + x1) / 2, (y0 + y1) / 2
    scale = fill / ratio
    return ZoomTransform(
        translate_x=width / 2 - scale * x,
        translate_y=height / 2 - scale * y,
        scale=scale,
    )


def tooltip_content(name: str, record: ProvinceRecord | None) -> str:
    # Plotly hover labels only understand a small tag set (<b>, <br>, ...)
    cases = record.case_count if record is not None else "N/A"
    return f"<b>{html.escape(name)}</b><br>Cases: {cases}"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

HOVER_ENTER = "mouseover"
POINTER_MOVE = "mousemove"
HOVER_LEAVE = "mouseout"
CLICK = "click"


@dataclass(frozen=True)
class PointerEvent:
    kind: str
    target: str | None = None  # province code, None for the bare surface
    x: float = 0.0
    y: float = 0.0


Handler = Callable[["RenderContext", PointerEvent], None]


def point_code(ctx: RenderContext, point: dict) -> str | None:
    """Province code of a selected plotly point (outline vertex or hit marker)."""
    code = point.get("customdata")
    if isinstance(code, (list, tuple)):
        code = code[0] if code else None
    if code:
        return str(code)
    curve = point.get("curve_number")
    if curve is not None and 0 <= curve < len(ctx.shapes):
        return ctx.shapes[curve].code
    return None


def selected_codes(ctx: RenderContext, points: list[dict]) -> list[str]:
    return [c for c in (point_code(ctx, p) for p in points) if c]


def selection_event(codes: list[str], zoom: ZoomState, previous: str | None) -> PointerEvent:
    """Click event for a change of the map selection.

    A selection holding provinces is a click on the last of them. An
    emptied selection is a click outside every province, except when the
    point it lost is the focused province: plotly deselects a selected
    point when it is clicked again, and that is a second click on the
    same province.
    """
    if codes:
        return PointerEvent(CLICK, target=codes[-1])
    if previous is not None and previous == zoom.code:
        return PointerEvent(CLICK, target=previous)
    return PointerEvent(CLICK, target=None)


class EventQueue:
    """FIFO dispatch of pointer events to per-element handlers.

    Handlers are registered for a ``(target, kind)`` pair. A click posted on
    a province is delivered to that province's handler and then to the
    surface (``target=None``) handler, the way a click bubbles up to the
    drawing surface. A click on an unknown target only reaches the surface.
    """

    def __init__(self, ctx: RenderContext):
        self.ctx = ctx
        self._handlers: dict[tuple[str | None, str], list[Handler]] = {}
        self._pending: deque[PointerEvent] = deque()

    def register(self, target: str | None, kind: str, handler: Handler) -> None:
        self._handlers.setdefault((target, kind), []).append(handler)

    def post(self, event: PointerEvent) -> None:
        self._pending.append(event)

    def drain(self) -> int:
        """Dispatch every pending event. Returns the number dispatched."""
        count = 0
        while self._pending:
            event = self._pending.popleft()
            handlers = list(self._handlers.get((event.target, event.kind), []))
            if event.target is not None and event.kind == CLICK:
                handlers += self._handlers.get((None, CLICK), [])
            for handler in handlers:
                handler(self.ctx, event)
            count += 1
        return count

    def dispatch(self, event: PointerEvent) -> None:
        self.post(event)
        self.drain()


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class InteractionController:
    """Owns ZoomState, the current zoom transform and TooltipState."""

    def __init__(self, ctx: RenderContext):
        self.ctx = ctx
        self.zoom = OVERVIEW
        self.transform = IDENTITY
        self.tooltip = TooltipState()
        self.last_transition: ZoomTransition | None = None
        self.listening_for_outside_click = False
        self.selected: str | None = None
        self.events = EventQueue(ctx)

    # -- wiring -------------------------------------------------------------

    def attach(self) -> EventQueue:
        """Register handlers for every drawn province shape."""
        for shape in self.ctx.shapes:
            self.events.register(shape.code, HOVER_ENTER, self._on_hover)
            self.events.register(shape.code, POINTER_MOVE, self._on_move)
            self.events.register(shape.code, HOVER_LEAVE, self._on_leave)
            self.events.register(shape.code, CLICK, self._on_click)
        logger.debug("Attached handlers to %d shapes", len(self.ctx.shapes))
        return self.events

    def _on_hover(self, ctx: RenderContext, event: PointerEvent) -> None:
        self.hover_enter(event.target, event.x, event.y)

    def _on_move(self, ctx: RenderContext, event: PointerEvent) -> None:
        self.pointer_move(event.x, event.y)

    def _on_leave(self, ctx: RenderContext, event: PointerEvent) -> None:
        self.hover_leave()

    def _on_click(self, ctx: RenderContext, event: PointerEvent) -> None:
        self.click_province(event.target)

    def _on_surface_click(self, ctx: RenderContext, event: PointerEvent) -> None:
        if event.target is None or ctx.shape_for(event.target) is None:
            self.click_background()

    def select(self, points: list[dict]) -> PointerEvent:
        """Turn the map's selected points into a click and dispatch it."""
        codes = selected_codes(self.ctx, points)
        event = selection_event(codes, self.zoom, self.selected)
        self.selected = codes[-1] if codes else None
        self.events.dispatch(event)
        return event

    # -- tooltip ------------------------------------------------------------

    def _offset(self, x: float, y: float) -> tuple[float, float]:
        offset = self.ctx.config.tooltip_offset
        return x + offset, y + offset

    def hover_enter(self, code: str, x: float = 0.0, y: float = 0.0) -> TooltipState:
        shape = self.ctx.shape_for(code)
        name = shape.name if shape is not None else code
        self.tooltip = TooltipState(
            visible=True,
            content=tooltip_content(name, self.ctx.records.get(code)),
            position=self._offset(x, y),
        )
        return self.tooltip

    def pointer_move(self, x: float, y: float) -> TooltipState:
        if self.tooltip.visible:
            self.tooltip = replace(self.tooltip, position=self._offset(x, y))
        return self.tooltip

    def hover_leave(self) -> TooltipState:
        self.tooltip = replace(self.tooltip, visible=False)
        return self.tooltip

    # -- zoom ---------------------------------------------------------------

    def _transition(self, target: ZoomTransform) -> ZoomTransition:
        self.transform = target
        self.last_transition = ZoomTransition(target, self.ctx.config.transition_ms)
        return self.last_transition

    def click_province(self, code: str) -> ZoomTransition | None:
        """Zoom so the clicked province fills 90% of the viewport."""
        shape = self.ctx.shape_for(code)
        if shape is None:
            return self.click_background()

        config = self.ctx.config
        try:
            target = zoom_to_bounds(shape.bounds, config.width, config.height, config.zoom_fill)
        except ValueError:
            logger.warning("Ignoring click on province %s with an empty outline", code)
            return None

        self.zoom = focused(code)
        if not self.listening_for_outside_click:
            self.events.register(None, CLICK, self._on_surface_click)
            self.listening_for_outside_click = True
        logger.info("Zooming to province %s (scale %.2f)", code, target.scale)
        return self._transition(target)

    def click_background(self) -> ZoomTransition | None:
        """Reset to the identity transform when a province is focused."""
        if not self.zoom.focused:
            return None
        logger.info("Zooming out from province %s", self.zoom.code)
        self.zoom = OVERVIEW
        return self._transition(IDENTITY)
