"""
Defines the canonical toolpath segments.

These are simple, standardized data classes that represent the fundamental
machine movements and actions. The interpreter's sole purpose is to convert
a GCAD script into an ordered list of these segments. This creates a clean
separation between the interpreter logic and the G-code emitter.

Positions are dicts with 'x', 'y' and 'z' keys, in millimetres, after the work
transform has been applied.
"""

from dataclasses import dataclass
from typing import Dict

CW = -1
CCW = 1


@dataclass(frozen=True)
class CanonicalCommand:
    """Base class for all canonical segments."""
    source_line_number: int


@dataclass(frozen=True)
class Comment(CanonicalCommand):
    """Free-text program comment."""
    text: str


@dataclass(frozen=True)
class RapidMove(CanonicalCommand):
    """Represents a G0 rapid move."""
    start_pos: Dict[str, float]
    end_pos: Dict[str, float]


@dataclass(frozen=True)
class LinearFeed(CanonicalCommand):
    """Represents a G1 linear feed move."""
    start_pos: Dict[str, float]
    end_pos: Dict[str, float]
    feed_rate: float


@dataclass(frozen=True)
class ArcFeed(CanonicalCommand):
    """Represents a G2/G3 arc feed move in the XY plane."""
    start_pos: Dict[str, float]
    end_pos: Dict[str, float]
    center: Dict[str, float]
    direction: int  # 1 for CCW (G3), -1 for CW (G2)
    feed_rate: float


@dataclass(frozen=True)
class Dwell(CanonicalCommand):
    """Represents a G4 dwell."""
    duration: float


@dataclass(frozen=True)
class SpindleControl(CanonicalCommand):
    """Represents M3 and M5."""
    state: str  # 'CW', 'OFF'
    speed: float = 0.0


@dataclass(frozen=True)
class MetricUnits(CanonicalCommand):
    """Represents G21."""


@dataclass(frozen=True)
class AbsoluteDistanceMode(CanonicalCommand):
    """Represents G90."""


@dataclass(frozen=True)
class MachineCoordinateMove(CanonicalCommand):
    """Represents a G53 G0 rapid in machine coordinates."""
    axes: Dict[str, float]


@dataclass(frozen=True)
class ProgramEnd(CanonicalCommand):
    """Represents M2."""


MOTION_SEGMENTS = (RapidMove, LinearFeed, ArcFeed)
