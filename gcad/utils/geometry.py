"""
Utility functions for toolpath geometry: depth staging, pocket rings,
rectangular loops and arc subdivision.
"""
import math
from typing import List, Tuple

TINY = 1e-9


def split_evenly(total: float, max_step: float) -> List[float]:
    """
    Split [0, total] into the fewest equal steps no larger than max_step.

    Returns the cumulative stop values; the last one is exactly total.
    """
    count = max(1, math.ceil(total / max_step - TINY))
    return [total if i == count else total * i / count for i in range(1, count + 1)]


def depth_passes(depth: float, stepdown: float) -> List[float]:
    """Cumulative pass depths, each step at most stepdown, ending at depth."""
    return split_evenly(depth, stepdown)


def peck_depths(depth: float, peck: float) -> List[float]:
    """Strictly increasing peck depths ending at depth."""
    return split_evenly(depth, peck)


def ring_radii(pocket_radius: float, cutter_radius: float, stepover: float) -> List[float]:
    """Tool-centre radii of concentric clearing rings, inner to outer."""
    return split_evenly(pocket_radius - cutter_radius, stepover)


def rectangle_loops(x: float, y: float, width: float, height: float,
                    cutter_diameter: float, stepover: float) -> List[Tuple[float, float, float, float]]:
    """
    Tool-centre rectangles clearing a pocket, inner to outer.

    Args:
        x, y: Lower-left corner of the pocket
        width, height: Pocket size
        cutter_diameter: Tool diameter
        stepover: Maximum spacing between adjacent loops

    Returns:
        List of (x_min, y_min, x_max, y_max). The first loop may be degenerate
        (a line or a point); the last one touches the pocket walls.
    """
    center_x = x + width / 2.0
    center_y = y + height / 2.0
    half_w = (width - cutter_diameter) / 2.0
    half_h = (height - cutter_diameter) / 2.0
    inset = min(half_w, half_h)

    offsets = [0.0] + split_evenly(inset, stepover)
    loops = []
    for offset in offsets:
        hw = half_w - inset + offset
        hh = half_h - inset + offset
        loops.append((center_x - hw, center_y - hh, center_x + hw, center_y + hh))
    return loops


def arc_pieces(start_angle: float, end_angle: float) -> List[Tuple[float, float]]:
    """Split a sweep in degrees into consecutive pieces of at most 180 degrees."""
    sweep = end_angle - start_angle
    count = max(1, math.ceil(abs(sweep) / 180.0 - TINY))
    angles = [start_angle + sweep * i / count for i in range(count + 1)]
    angles[-1] = end_angle
    return list(zip(angles[:-1], angles[1:]))


def point_on_circle(cx: float, cy: float, radius: float, angle: float) -> Tuple[float, float]:
    """Point at angle degrees on a circle, counter-clockwise from +X."""
    theta = math.radians(angle)
    return cx + radius * math.cos(theta), cy + radius * math.sin(theta)
