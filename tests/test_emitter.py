"""
Tests for G-code serialization and modal suppression.
"""

import pytest

from gcad.core.canonical import (AbsoluteDistanceMode, ArcFeed, CCW, CW, Comment, Dwell,
                                 LinearFeed, MachineCoordinateMove, MetricUnits,
                                 ProgramEnd, RapidMove, SpindleControl)
from gcad.core.emitter import GCodeEmitter, format_number
from gcad.utils.errors import ScriptRuntimeError


def pos(x, y, z):
    return {'x': x, 'y': y, 'z': z}


def emit(*segments, precision=3):
    return GCodeEmitter(precision).emit_lines(segments)


class TestFormatNumber:
    """Tests for numeric formatting."""

    @pytest.mark.parametrize("value,text", [
        (10.0, "10"),
        (1.5, "1.5"),
        (1.66666, "1.667"),
        (-0.0001, "0"),
        (-0.0, "0"),
        (0.1 + 0.2, "0.3"),
        (-2.5, "-2.5"),
        (100, "100"),
    ])
    def test_format(self, value, text):
        assert format_number(value) == text

    def test_precision(self):
        assert format_number(1.23456, 1) == "1.2"
        assert format_number(2.0, 0) == "2"


class TestModalSuppression:
    """Tests for omitting words that repeat the current state."""

    def test_first_rapid_writes_all_axes(self):
        lines = emit(RapidMove(1, pos(0, 0, 5), pos(10, 10, 5)))
        assert lines == ["G0 X10 Y10 Z5"]

    def test_unchanged_axes_and_mode_omitted(self):
        lines = emit(
            RapidMove(1, pos(0, 0, 5), pos(10, 10, 5)),
            RapidMove(1, pos(10, 10, 5), pos(10, 10, 0.5)),
            LinearFeed(1, pos(10, 10, 0.5), pos(10, 10, -1), 150),
            LinearFeed(1, pos(10, 10, -1), pos(20, 10, -1), 600),
            LinearFeed(1, pos(20, 10, -1), pos(20, 20, -1), 600),
        )
        assert lines == ["G0 X10 Y10 Z5", "Z0.5", "G1 Z-1 F150", "X20 F600", "Y20"]

    def test_empty_move_dropped(self):
        lines = emit(
            RapidMove(1, pos(0, 0, 5), pos(1, 1, 5)),
            RapidMove(1, pos(1, 1, 5), pos(1, 1, 5)),
            LinearFeed(1, pos(1, 1, 5), pos(1.0001, 1, 5), 100),
        )
        assert lines == ["G0 X1 Y1 Z5"]

    def test_no_repeated_words(self):
        lines = emit(
            RapidMove(1, pos(0, 0, 5), pos(1, 2, 5)),
            LinearFeed(1, pos(1, 2, 5), pos(1, 2, 0), 100),
            LinearFeed(1, pos(1, 2, 0), pos(3, 2, 0), 100),
        )
        words = " ".join(lines).split()
        assert words.count("F100") == 1
        assert words.count("Y2") == 1

    def test_machine_coordinate_move_forgets_state(self):
        lines = emit(
            RapidMove(1, pos(0, 0, 5), pos(0, 0, 5)),
            MachineCoordinateMove(1, {'z': -5}),
            RapidMove(1, pos(0, 0, 5), pos(0, 0, 5)),
        )
        assert lines == ["G0 X0 Y0 Z5", "G53 G0 Z-5", "G0 Z5"]


class TestArcs:
    """Tests for G2/G3 output."""

    def test_ccw_arc_with_relative_centre(self):
        lines = emit(
            RapidMove(1, pos(0, 0, 5), pos(12, 10, -1)),
            ArcFeed(1, pos(12, 10, -1), pos(8, 10, -1), pos(10, 10, -1), CCW, 600),
        )
        assert lines[1] == "G3 X8 I-2 J0 F600"

    def test_cw_arc(self):
        lines = emit(
            RapidMove(1, pos(0, 0, 5), pos(0, 5, 0)),
            ArcFeed(1, pos(0, 5, 0), pos(5, 0, 0), pos(0, 0, 0), CW, 300),
        )
        assert lines[1] == "G2 X5 Y0 I0 J-5 F300"

    def test_arc_without_start_position(self):
        with pytest.raises(ScriptRuntimeError):
            emit(ArcFeed(4, pos(0, 0, 0), pos(1, 1, 0), pos(1, 0, 0), CCW, 100))


class TestOtherSegments:
    """Tests for non-motion segments."""

    def test_program_frame(self):
        lines = emit(
            AbsoluteDistanceMode(0),
            MetricUnits(0),
            SpindleControl(1, 'CW', 12000),
            Dwell(2, 0.5),
            SpindleControl(3, 'OFF'),
            ProgramEnd(3),
        )
        assert lines == ["G90", "G21", "M03 S12000", "G4 P0.5", "M05", "M02"]

    def test_comment_parentheses_replaced(self):
        assert emit(Comment(1, "hole (M6)")) == ["(hole [M6])"]

    def test_emit_is_newline_terminated(self):
        text = GCodeEmitter().emit([MetricUnits(0), ProgramEnd(0)])
        assert text == "G21\nM02\n"
