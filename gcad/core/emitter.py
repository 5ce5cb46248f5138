"""
Serializes the toolpath buffer into G-code text.

One canonical, LinuxCNC-style syntax. The emitter walks the buffer once and
suppresses modal words that would repeat the machine's current state.
"""
from typing import Dict, Iterable, List, Optional

from gcad.core.canonical import (AbsoluteDistanceMode, ArcFeed, CanonicalCommand, Comment,
                                 Dwell, LinearFeed, MachineCoordinateMove, MetricUnits,
                                 ProgramEnd, RapidMove, SpindleControl)
from gcad.utils.errors import ScriptRuntimeError

AXES = ('x', 'y', 'z')


def format_number(value: float, precision: int = 3) -> str:
    """Fixed precision with trailing zeros and a trailing point stripped."""
    text = f"{value:.{precision}f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    if text == '-0':
        text = '0'
    return text


class GCodeEmitter:
    """Turns canonical segments into G-code lines."""

    def __init__(self, precision: int = 3):
        self.precision = precision
        self.handlers = {
            Comment: self._emit_comment,
            RapidMove: self._emit_rapid,
            LinearFeed: self._emit_linear,
            ArcFeed: self._emit_arc,
            Dwell: self._emit_dwell,
            SpindleControl: self._emit_spindle,
            MetricUnits: lambda segment: "G21",
            AbsoluteDistanceMode: lambda segment: "G90",
            MachineCoordinateMove: self._emit_machine_move,
            ProgramEnd: lambda segment: "M02",
        }
        self.reset()

    def reset(self):
        self.motion_mode: Optional[str] = None
        self.axis_words: Dict[str, str] = {}
        self.position: Dict[str, float] = {}
        self.feed_word: Optional[str] = None

    def emit(self, segments: Iterable[CanonicalCommand]) -> str:
        """Render a whole program, newline-terminated."""
        return "".join(line + "\n" for line in self.emit_lines(segments))

    def emit_lines(self, segments: Iterable[CanonicalCommand]) -> List[str]:
        self.reset()
        lines = []
        for segment in segments:
            line = self.handlers[type(segment)](segment)
            if line:
                lines.append(line)
        return lines

    def _format(self, value: float) -> str:
        return format_number(value, self.precision)

    def _changed_axes(self, end_pos: Dict[str, float]) -> List[str]:
        words = []
        for axis in AXES:
            text = self._format(end_pos[axis])
            if self.axis_words.get(axis) != text:
                words.append(f"{axis.upper()}{text}")
                self.axis_words[axis] = text
            self.position[axis] = end_pos[axis]
        return words

    def _motion(self, code: str, words: List[str]) -> str:
        if self.motion_mode != code:
            words.insert(0, code)
            self.motion_mode = code
        return " ".join(words)

    def _feed(self, feed_rate: float) -> List[str]:
        text = self._format(feed_rate)
        if text == self.feed_word:
            return []
        self.feed_word = text
        return [f"F{text}"]

    def _emit_comment(self, segment: Comment) -> str:
        text = segment.text.replace('(', '[').replace(')', ']')
        return f"({text})"

    def _emit_rapid(self, segment: RapidMove) -> Optional[str]:
        words = self._changed_axes(segment.end_pos)
        if not words:
            return None
        return self._motion("G0", words)

    def _emit_linear(self, segment: LinearFeed) -> Optional[str]:
        words = self._changed_axes(segment.end_pos)
        if not words:
            return None
        return self._motion("G1", words + self._feed(segment.feed_rate))

    def _emit_arc(self, segment: ArcFeed) -> str:
        if 'x' not in self.position or 'y' not in self.position:
            raise ScriptRuntimeError("arc has no known start position",
                                     segment.source_line_number)
        i = segment.center['x'] - self.position['x']
        j = segment.center['y'] - self.position['y']

        words = self._changed_axes(segment.end_pos)
        words += [f"I{self._format(i)}", f"J{self._format(j)}"]
        code = "G3" if segment.direction > 0 else "G2"
        return self._motion(code, words + self._feed(segment.feed_rate))

    def _emit_dwell(self, segment: Dwell) -> str:
        return f"G4 P{self._format(segment.duration)}"

    def _emit_spindle(self, segment: SpindleControl) -> str:
        if segment.state == 'OFF':
            return "M05"
        return f"M03 S{self._format(segment.speed)}"

    def _emit_machine_move(self, segment: MachineCoordinateMove) -> str:
        words = ["G53", "G0"]
        for axis in AXES:
            if axis in segment.axes:
                words.append(f"{axis.upper()}{self._format(segment.axes[axis])}")
                self.axis_words.pop(axis, None)
                self.position.pop(axis, None)
        self.motion_mode = None
        return " ".join(words)
