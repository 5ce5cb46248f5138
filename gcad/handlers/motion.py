"""
Motion primitives shared by the machining operations.

Every primitive takes XY in work coordinates, applies the work transform,
appends the resulting segment to the buffer and updates the tool position.
"""
import math
from typing import Optional

from gcad.core.canonical import ArcFeed, LinearFeed, RapidMove, SpindleControl
from gcad.core.machine_state import MachiningState, Position, TOLERANCE
from gcad.core.toolpath import ToolpathBuffer


def _target(state: MachiningState, x: Optional[float], y: Optional[float],
            z: Optional[float]) -> Position:
    target = state.position.copy()
    if x is not None or y is not None:
        if x is None or y is None:
            raise ValueError("x and y must be given together")
        target.x, target.y = state.transform_point(x, y)
    if z is not None:
        target.z = z
    return target


def _distance(a: Position, b: Position) -> float:
    return math.dist(a.to_list(), b.to_list())


def ensure_spindle(state: MachiningState, buffer: ToolpathBuffer):
    """Start the spindle at the requested speed if it is not already running at it."""
    if state.spindle_rpm != state.requested_rpm:
        buffer.append(SpindleControl(state.current_line, 'CW', state.requested_rpm))
        state.spindle_rpm = state.requested_rpm


def stop_spindle(state: MachiningState, buffer: ToolpathBuffer):
    if state.spindle_running:
        buffer.append(SpindleControl(state.current_line, 'OFF'))
        state.spindle_rpm = None


def rapid_to(state: MachiningState, buffer: ToolpathBuffer,
             x: Optional[float] = None, y: Optional[float] = None,
             z: Optional[float] = None):
    target = _target(state, x, y, z)
    buffer.append(RapidMove(state.current_line, state.position.to_dict(), target.to_dict()))
    state.update_position(target)


def feed_to(state: MachiningState, buffer: ToolpathBuffer, feed_rate: float,
            x: Optional[float] = None, y: Optional[float] = None,
            z: Optional[float] = None):
    """Linear cutting move. Zero-length moves are skipped."""
    target = _target(state, x, y, z)
    if _distance(state.position, target) < TOLERANCE:
        return
    buffer.append(LinearFeed(state.current_line, state.position.to_dict(),
                             target.to_dict(), feed_rate))
    state.update_position(target)


def plunge_to(state: MachiningState, buffer: ToolpathBuffer, z: float):
    feed_to(state, buffer, state.material.plunge_rate, z=z)


def arc_to(state: MachiningState, buffer: ToolpathBuffer, x: float, y: float,
           cx: float, cy: float, direction: int, feed_rate: float):
    """Arc in the XY plane at the current Z, ending at (x, y) about (cx, cy)."""
    state.require_uniform_scale()
    target = _target(state, x, y, None)
    center_x, center_y = state.transform_point(cx, cy)
    buffer.append(ArcFeed(state.current_line, state.position.to_dict(), target.to_dict(),
                          {'x': center_x, 'y': center_y, 'z': target.z},
                          state.transform_direction(direction), feed_rate))
    state.update_position(target)


def retract_to_safe(state: MachiningState, buffer: ToolpathBuffer):
    if not state.is_at_safe_height():
        rapid_to(state, buffer, z=state.config.safe_height)


def move_above(state: MachiningState, buffer: ToolpathBuffer, x: float, y: float):
    """Travel at safe height to above (x, y)."""
    retract_to_safe(state, buffer)
    rapid_to(state, buffer, x, y, state.config.safe_height)
