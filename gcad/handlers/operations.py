"""
Built-in function handlers for the interpreter.

Each handler receives its bound arguments (lengths already in mm), the
machining state and the toolpath buffer, and returns a script Value.
"""
import logging
from typing import Any, Callable, Dict

import numpy as np

from gcad.config.materials import MaterialProfile, material_key
from gcad.core.canonical import CCW, Comment, Dwell
from gcad.core.machine_state import MachiningState
from gcad.core.toolpath import ToolpathBuffer
from gcad.core.values import NULL, Sequence, Value
from gcad.handlers.builtins import Builtin
from gcad.handlers.motion import (arc_to, ensure_spindle, feed_to, move_above,
                                  plunge_to, rapid_to, retract_to_safe)
from gcad.utils.errors import ScriptRuntimeError, ScriptTypeError
from gcad.utils.geometry import (arc_pieces, depth_passes, peck_depths,
                                 point_on_circle, rectangle_loops, ring_radii)
from gcad.utils.units import Number

logger = logging.getLogger(__name__)

Args = Dict[str, Any]


def _require_positive(operation: str, name: str, value: float):
    if value <= 0:
        raise ScriptRuntimeError(f"{operation}(): {name} must be positive, got {value:g}mm")


class OperationHandlers:
    """Handles execution of built-in functions."""

    def __init__(self):
        # Built-in handler mapping
        self.handlers: Dict[Builtin, Callable[[Args, MachiningState, ToolpathBuffer], Value]] = {
            Builtin.CUTTER_DIAMETER: self.handle_cutter_diameter,
            Builtin.MATERIAL: self.handle_material,
            Builtin.DEFINE_MATERIAL: self.handle_define_material,
            Builtin.RPM: self.handle_rpm,
            Builtin.COMMENT: self.handle_comment,
            Builtin.DWELL: self.handle_dwell,
            Builtin.CIRCLE_POCKET: self.handle_circle_pocket,
            Builtin.DRILL: self.handle_drill,
            Builtin.GROOVE: self.handle_groove,
            Builtin.CONTOUR_LINE: self.handle_groove,
            Builtin.ARC_GROOVE: self.handle_arc_groove,
            Builtin.GROOVE_POCKET: self.handle_groove_pocket,
            Builtin.LINSPACE: self.handle_linspace,
            Builtin.SCALE: self.handle_scale,
            Builtin.TRANSLATE: self.handle_translate,
            Builtin.RESET_TRANSFORM: self.handle_reset_transform,
        }

    def execute(self, builtin: Builtin, args: Args, state: MachiningState,
                buffer: ToolpathBuffer) -> Value:
        """Execute a bound built-in call against the machining state."""
        handler = self.handlers[builtin]
        logger.debug("Line %d: %s(%s)", state.current_line, builtin.schema.name,
                     ", ".join(f"{k}={v}" for k, v in args.items() if v is not None))
        return handler(args, state, buffer)

    # Machining state

    def handle_cutter_diameter(self, args: Args, state: MachiningState,
                               buffer: ToolpathBuffer) -> Value:
        state.set_cutter_diameter(args['diameter'])
        return NULL

    def handle_material(self, args: Args, state: MachiningState,
                        buffer: ToolpathBuffer) -> Value:
        state.select_material(args['name'])
        return NULL

    def handle_define_material(self, args: Args, state: MachiningState,
                               buffer: ToolpathBuffer) -> Value:
        profile = MaterialProfile(
            name=material_key(args['name']),
            stepover=float(args['stepover']),
            stepdown=args['stepdown'],
            feed_rate=float(args['feed_rate']),
            plunge_rate=float(args['plunge_rate']),
            rpm=float(args['rpm']),
        )
        state.define_material(profile)
        return NULL

    def handle_rpm(self, args: Args, state: MachiningState,
                   buffer: ToolpathBuffer) -> Value:
        state.request_rpm(float(args['speed']))
        return NULL

    # Program annotations

    def handle_comment(self, args: Args, state: MachiningState,
                       buffer: ToolpathBuffer) -> Value:
        buffer.append(Comment(state.current_line, args['text']))
        return NULL

    def handle_dwell(self, args: Args, state: MachiningState,
                     buffer: ToolpathBuffer) -> Value:
        seconds = float(args['seconds'])
        if seconds < 0:
            raise ScriptRuntimeError(f"dwell(): seconds must not be negative, got {seconds:g}")
        buffer.append(Dwell(state.current_line, seconds))
        return NULL

    # Machining operations

    def handle_circle_pocket(self, args: Args, state: MachiningState,
                             buffer: ToolpathBuffer) -> Value:
        """
        Clear a circular pocket with concentric rings.

        Each depth pass plunges at the centre, steps out ring by ring and cuts
        every ring as two counter-clockwise half circles.
        """
        x, y, depth = args['x'], args['y'], args['depth']
        radius, diameter = args['radius'], args['diameter']
        if (radius is None) == (diameter is None):
            raise ScriptRuntimeError("circle_pocket(): give exactly one of radius or diameter")
        if radius is None:
            radius = diameter / 2.0
        _require_positive('circle_pocket', 'radius', radius)
        _require_positive('circle_pocket', 'depth', depth)
        if 2 * radius <= state.cutter_diameter:
            raise ScriptRuntimeError(
                f"circle_pocket(): pocket diameter {2 * radius:g}mm must exceed "
                f"cutter diameter {state.cutter_diameter:g}mm")

        rings = ring_radii(radius, state.cutter_radius, state.stepover)
        passes = depth_passes(depth, state.material.stepdown)
        feed = state.material.feed_rate
        clearance = state.config.clearance

        ensure_spindle(state, buffer)
        move_above(state, buffer, x, y)
        rapid_to(state, buffer, z=clearance)
        for index, pass_depth in enumerate(passes):
            plunge_to(state, buffer, -pass_depth)
            for ring in rings:
                feed_to(state, buffer, feed, x + ring, y)
                arc_to(state, buffer, x - ring, y, x, y, CCW, feed)
                arc_to(state, buffer, x + ring, y, x, y, CCW, feed)
            if index < len(passes) - 1:
                rapid_to(state, buffer, z=-pass_depth + clearance)
                rapid_to(state, buffer, x, y)
        retract_to_safe(state, buffer)
        return NULL

    def handle_drill(self, args: Args, state: MachiningState,
                     buffer: ToolpathBuffer) -> Value:
        """Peck drill, clearing chips at the clearance plane between pecks."""
        x, y, depth, peck = args['x'], args['y'], args['depth'], args['peck']
        _require_positive('drill', 'depth', depth)
        max_peck = state.config.max_peck_depth
        if peck is None:
            peck = max_peck
        _require_positive('drill', 'peck', peck)
        peck = min(peck, max_peck)

        clearance = state.config.clearance
        ensure_spindle(state, buffer)
        move_above(state, buffer, x, y)
        rapid_to(state, buffer, z=clearance)
        previous = 0.0
        for peck_depth in peck_depths(depth, peck):
            if previous > 0:
                rapid_to(state, buffer, z=clearance)
                rapid_to(state, buffer, z=-previous + clearance)
            plunge_to(state, buffer, -peck_depth)
            previous = peck_depth
        retract_to_safe(state, buffer)
        return NULL

    def handle_groove(self, args: Args, state: MachiningState,
                      buffer: ToolpathBuffer) -> Value:
        """Straight slot, cut back and forth one depth pass at a time."""
        x1, y1, x2, y2 = args['x1'], args['y1'], args['x2'], args['y2']
        depth, up = args['depth'], args['up']
        if up is not None:
            if x2 is not None or y2 is not None:
                raise ScriptRuntimeError("groove(): give either x2 and y2 or up, not both")
            x2, y2 = x1, y1 + up
        elif x2 is None or y2 is None:
            raise ScriptRuntimeError("groove(): needs both x2 and y2, or up")
        _require_positive('groove', 'depth', depth)
        if abs(x2 - x1) < 1e-9 and abs(y2 - y1) < 1e-9:
            raise ScriptRuntimeError("groove(): start and end points coincide")

        feed = state.material.feed_rate
        start, end = (x1, y1), (x2, y2)
        ensure_spindle(state, buffer)
        move_above(state, buffer, *start)
        rapid_to(state, buffer, z=state.config.clearance)
        for pass_depth in depth_passes(depth, state.material.stepdown):
            plunge_to(state, buffer, -pass_depth)
            feed_to(state, buffer, feed, *end)
            start, end = end, start
        retract_to_safe(state, buffer)
        return NULL

    def handle_arc_groove(self, args: Args, state: MachiningState,
                          buffer: ToolpathBuffer) -> Value:
        """Arc slot about (x, y), alternating direction on each depth pass."""
        x, y, radius, depth = args['x'], args['y'], args['radius'], args['depth']
        start_angle, end_angle = float(args['start_angle']), float(args['end_angle'])
        _require_positive('arc_groove', 'radius', radius)
        _require_positive('arc_groove', 'depth', depth)
        sweep = end_angle - start_angle
        if sweep == 0 or abs(sweep) > 360:
            raise ScriptRuntimeError(
                f"arc_groove(): sweep must be non-zero and at most 360 degrees, got {sweep:g}")

        direction = CCW if sweep > 0 else -CCW
        pieces = arc_pieces(start_angle, end_angle)
        feed = state.material.feed_rate

        ensure_spindle(state, buffer)
        move_above(state, buffer, *point_on_circle(x, y, radius, start_angle))
        rapid_to(state, buffer, z=state.config.clearance)
        for index, pass_depth in enumerate(depth_passes(depth, state.material.stepdown)):
            plunge_to(state, buffer, -pass_depth)
            if index % 2 == 0:
                for _, angle in pieces:
                    arc_to(state, buffer, *point_on_circle(x, y, radius, angle),
                           x, y, direction, feed)
            else:
                for angle, _ in reversed(pieces):
                    arc_to(state, buffer, *point_on_circle(x, y, radius, angle),
                           x, y, -direction, feed)
        retract_to_safe(state, buffer)
        return NULL

    def handle_groove_pocket(self, args: Args, state: MachiningState,
                             buffer: ToolpathBuffer) -> Value:
        """Rectangular pocket cleared with loops from the centre outwards."""
        x, y, depth = args['x'], args['y'], args['depth']
        width, height = args['width'], args['height']
        _require_positive('groove_pocket', 'depth', depth)
        if width <= state.cutter_diameter or height <= state.cutter_diameter:
            raise ScriptRuntimeError(
                f"groove_pocket(): pocket {width:g}mm x {height:g}mm must exceed "
                f"cutter diameter {state.cutter_diameter:g}mm on both sides")

        loops = rectangle_loops(x, y, width, height, state.cutter_diameter, state.stepover)
        passes = depth_passes(depth, state.material.stepdown)
        feed = state.material.feed_rate
        clearance = state.config.clearance
        start = loops[0][:2]

        ensure_spindle(state, buffer)
        move_above(state, buffer, *start)
        rapid_to(state, buffer, z=clearance)
        for index, pass_depth in enumerate(passes):
            plunge_to(state, buffer, -pass_depth)
            for x_min, y_min, x_max, y_max in loops:
                feed_to(state, buffer, feed, x_min, y_min)
                feed_to(state, buffer, feed, x_max, y_min)
                feed_to(state, buffer, feed, x_max, y_max)
                feed_to(state, buffer, feed, x_min, y_max)
                feed_to(state, buffer, feed, x_min, y_min)
            if index < len(passes) - 1:
                rapid_to(state, buffer, z=-pass_depth + clearance)
                rapid_to(state, buffer, *start)
        retract_to_safe(state, buffer)
        return NULL

    # Pure utilities

    def handle_linspace(self, args: Args, state: MachiningState,
                        buffer: ToolpathBuffer) -> Value:
        """Evenly spaced values from start to stop inclusive."""
        start, stop, count = args['start'], args['stop'], args['count']
        if start.is_length != stop.is_length:
            raise ScriptTypeError(
                f"linspace(): start and stop must have the same kind, "
                f"got {start.kind} and {stop.kind}")
        if not Number(count).is_integral() or count < 1:
            raise ScriptRuntimeError(f"linspace(): count must be a positive integer, got {count}")
        count = int(count)
        limit = state.config.max_sequence_length
        if count > limit:
            raise ScriptRuntimeError(f"linspace(): count {count} exceeds the limit of {limit}")

        values = np.linspace(start.value, stop.value, count)
        items = [Number(float(v), start.unit) for v in values]
        items[0] = Number(float(start.value), start.unit)
        if count > 1:
            items[-1] = Number(float(stop.value), stop.unit)
        return Sequence(tuple(items))

    # Work transformation

    def handle_scale(self, args: Args, state: MachiningState,
                     buffer: ToolpathBuffer) -> Value:
        sx = float(args['x'])
        sy = sx if args['y'] is None else float(args['y'])
        state.scale(sx, sy)
        return NULL

    def handle_translate(self, args: Args, state: MachiningState,
                         buffer: ToolpathBuffer) -> Value:
        state.translate(args['x'], args['y'])
        return NULL

    def handle_reset_transform(self, args: Args, state: MachiningState,
                               buffer: ToolpathBuffer) -> Value:
        state.reset_transform()
        return NULL
