from __future__ import annotations

from typing import Iterable, List

from docstamp.models import Coordinates, WatermarkPosition, WatermarkSpec

DEFAULT_MARGIN = 10.0
DEFAULT_SPACING = 40.0


def resolve(
    position: WatermarkPosition,
    container_width: float,
    container_height: float,
    item_width: float,
    item_height: float,
    margin: float = DEFAULT_MARGIN,
) -> Coordinates:
    """
    Return the top-left anchor of an item placed at ``position`` inside a container.

    Both extents use a y-down coordinate system. Each axis is clamped to
    ``[0, container - item]`` so a fitting item never leaves the container and
    an oversized one is anchored at the origin. ``TILED`` resolves to the
    origin; use :func:`tile` for the repeated grid.
    """
    free_x = container_width - item_width
    free_y = container_height - item_height

    start_x, center_x, end_x = margin, free_x / 2, free_x - margin
    start_y, center_y, end_y = margin, free_y / 2, free_y - margin

    anchors = {
        WatermarkPosition.TOP_LEFT: (start_x, start_y),
        WatermarkPosition.TOP_CENTER: (center_x, start_y),
        WatermarkPosition.TOP_RIGHT: (end_x, start_y),
        WatermarkPosition.CENTER: (center_x, center_y),
        WatermarkPosition.BOTTOM_LEFT: (start_x, end_y),
        WatermarkPosition.BOTTOM_CENTER: (center_x, end_y),
        WatermarkPosition.BOTTOM_RIGHT: (end_x, end_y),
        WatermarkPosition.TILED: (0.0, 0.0),
    }
    x, y = anchors[WatermarkPosition(position)]
    return Coordinates(x=_clamp(x, free_x), y=_clamp(y, free_y))


def tile(
    container_width: float,
    container_height: float,
    item_width: float,
    item_height: float,
    spacing: float = DEFAULT_SPACING,
) -> List[Coordinates]:
    """Anchors of a grid of items covering the container, starting at the origin."""
    step_x = max(item_width + spacing, 1.0)
    step_y = max(item_height + spacing, 1.0)
    return [
        Coordinates(x=x, y=y)
        for y in _frange(0.0, container_height, step_y)
        for x in _frange(0.0, container_width, step_x)
    ]


def is_tiled(spec: WatermarkSpec) -> bool:
    return spec.is_trademark or spec.position is WatermarkPosition.TILED


def anchors_for(
    spec: WatermarkSpec,
    container_width: float,
    container_height: float,
    item_width: float,
    item_height: float,
    margin: float = DEFAULT_MARGIN,
    spacing: float = DEFAULT_SPACING,
) -> List[Coordinates]:
    """Every anchor at which ``spec`` must be stamped: the tile grid or a single point."""
    if is_tiled(spec):
        return tile(container_width, container_height, item_width, item_height, spacing)
    return [resolve(spec.position, container_width, container_height, item_width, item_height, margin)]


def _clamp(value: float, free: float) -> float:
    if free <= 0:
        return 0.0
    return min(max(value, 0.0), free)


def _frange(start: float, stop: float, step: float) -> Iterable[float]:
    # always yields at least ``start`` so an empty container still gets one stamp
    value = start
    yield value
    value += step
    while value < stop:
        yield value
        value += step
