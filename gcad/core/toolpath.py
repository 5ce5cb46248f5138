"""
Ordered instruction buffer for generated toolpath segments.
Keeps the line-to-segment mapping and computes toolpath statistics.
"""
import math
from typing import Any, Dict, Iterator, List, Tuple, Type

import numpy as np

from gcad.core.canonical import (MOTION_SEGMENTS, ArcFeed, CanonicalCommand, LinearFeed,
                                 RapidMove)


def arc_sweep(arc: ArcFeed) -> float:
    """Swept angle of an arc in radians, always positive."""
    cx, cy = arc.center['x'], arc.center['y']
    start_angle = math.atan2(arc.start_pos['y'] - cy, arc.start_pos['x'] - cx)
    end_angle = math.atan2(arc.end_pos['y'] - cy, arc.end_pos['x'] - cx)

    sweep = (end_angle - start_angle) * arc.direction
    sweep %= 2 * math.pi
    if sweep < 1e-12:
        sweep = 2 * math.pi
    return sweep


def segment_length(segment: CanonicalCommand) -> float:
    """Path length of a motion segment; zero for anything else."""
    if isinstance(segment, (RapidMove, LinearFeed)):
        return math.dist([segment.start_pos[a] for a in 'xyz'],
                         [segment.end_pos[a] for a in 'xyz'])
    if isinstance(segment, ArcFeed):
        radius = math.hypot(segment.start_pos['x'] - segment.center['x'],
                            segment.start_pos['y'] - segment.center['y'])
        planar = radius * arc_sweep(segment)
        return math.hypot(planar, segment.end_pos['z'] - segment.start_pos['z'])
    return 0.0


class ToolpathBuffer:
    """Append-only list of segments in execution order."""

    def __init__(self):
        self.segments: List[CanonicalCommand] = []
        self.line_to_segments: Dict[int, List[int]] = {}

    def append(self, segment: CanonicalCommand) -> int:
        """Add a segment and return its index."""
        index = len(self.segments)
        self.segments.append(segment)
        self.line_to_segments.setdefault(segment.source_line_number, []).append(index)
        return index

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[CanonicalCommand]:
        return iter(self.segments)

    def get_segments_for_line(self, line_number: int) -> List[CanonicalCommand]:
        """Get all segments generated by a specific source line."""
        return [self.segments[i] for i in self.line_to_segments.get(line_number, [])]

    def get_segments_by_type(self, segment_type: Type[CanonicalCommand]) -> List[CanonicalCommand]:
        return [seg for seg in self.segments if isinstance(seg, segment_type)]

    def get_bounding_box(self) -> Tuple[List[float], List[float]]:
        """
        Get the bounding box of all motion endpoints.

        Arc extents between endpoints are not included.

        Returns:
            Tuple of (min_point, max_point) as [x, y, z] lists
        """
        points = [[pos[a] for a in 'xyz']
                  for seg in self.segments if isinstance(seg, MOTION_SEGMENTS)
                  for pos in (seg.start_pos, seg.end_pos)]
        if not points:
            return [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]

        array = np.array(points)
        return array.min(axis=0).tolist(), array.max(axis=0).tolist()

    def get_statistics(self) -> Dict[str, Any]:
        """Get toolpath statistics."""
        counts: Dict[str, int] = {}
        rapid_length = feed_length = 0.0
        for segment in self.segments:
            name = type(segment).__name__
            counts[name] = counts.get(name, 0) + 1
            if isinstance(segment, RapidMove):
                rapid_length += segment_length(segment)
            elif isinstance(segment, (LinearFeed, ArcFeed)):
                feed_length += segment_length(segment)

        min_point, max_point = self.get_bounding_box()
        return {
            'total_segments': len(self.segments),
            'segment_counts': counts,
            'rapid_segments': counts.get('RapidMove', 0),
            'feed_segments': counts.get('LinearFeed', 0),
            'arc_segments': counts.get('ArcFeed', 0),
            'total_length': rapid_length + feed_length,
            'rapid_length': rapid_length,
            'feed_length': feed_length,
            'bounding_box': {'min': min_point, 'max': max_point},
            'lines_with_segments': len(self.line_to_segments),
        }

    def clear(self):
        """Clear all segments."""
        self.segments.clear()
        self.line_to_segments.clear()
