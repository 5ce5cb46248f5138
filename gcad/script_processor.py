"""
Main GCAD processor interface.
This is the primary entry point for compiling GCAD scripts into G-code.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from gcad.config.machine_config import MachineConfig
from gcad.core.canonical import CanonicalCommand
from gcad.core.emitter import GCodeEmitter
from gcad.core.interpreter import GCadInterpreter

logger = logging.getLogger(__name__)


class ScriptProcessor:
    """
    Main interface for GCAD compilation.
    Provides a simple API for the command line and for embedding.
    """

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or MachineConfig()
        self.interpreter = GCadInterpreter(self.config)
        self.emitter = GCodeEmitter(self.config.precision)
        self._last_output = ""

    def compile(self, source: str, source_name: Optional[str] = None,
                preludes: Sequence[Tuple[str, str]] = ()) -> str:
        """
        Compile a script into G-code text.

        Args:
            source: Script text
            source_name: Name used in error locations
            preludes: (text, source_name) scripts run before the main one

        Returns:
            The G-code program, newline-terminated

        Raises:
            GCadError: the first error found; no output is produced
        """
        self._last_output = ""
        sources = list(preludes) + [(source, source_name or '<script>')]
        buffer = self.interpreter.compile(sources)
        output = self.emitter.emit(buffer)
        self._last_output = output

        stats = buffer.get_statistics()
        logger.info("Compiled %s: %d segments, %d lines, feed path %.1fmm",
                    source_name or '<script>', stats['total_segments'],
                    output.count("\n"), stats['feed_length'])
        return output

    def get_last_output(self) -> str:
        """Get the G-code from the last successful compile."""
        return self._last_output

    # Toolpath inspection

    def get_all_segments(self) -> List[CanonicalCommand]:
        """Get all toolpath segments."""
        return self.interpreter.get_all_segments()

    def get_segments_for_line(self, line_number: int) -> List[CanonicalCommand]:
        """Get all segments generated by a specific source line."""
        return self.interpreter.get_segments_for_line(line_number)

    def get_segments_by_type(self, segment_type: Type[CanonicalCommand]) -> List[CanonicalCommand]:
        """Get all segments of one kind, e.g. ArcFeed."""
        return self.interpreter.toolpath.get_segments_by_type(segment_type)

    def get_statistics(self) -> Dict[str, Any]:
        """Get comprehensive processing and toolpath statistics."""
        return self.interpreter.get_statistics()

    def get_machine_state(self) -> Dict[str, Any]:
        """Get current machining state summary."""
        return self.interpreter.machine_state.get_state_summary()

    def get_toolpath_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the toolpath for display purposes.

        Returns:
            Dictionary with toolpath summary information
        """
        stats = self.interpreter.toolpath.get_statistics()
        min_point = stats['bounding_box']['min']
        max_point = stats['bounding_box']['max']

        return {
            'total_length': stats['total_length'],
            'rapid_length': stats['rapid_length'],
            'feed_length': stats['feed_length'],
            'total_segments': stats['total_segments'],
            'bounding_box': {
                'min': min_point,
                'max': max_point,
                'size': [hi - lo for lo, hi in zip(min_point, max_point)],
            },
            'move_types': {
                'rapid': stats['rapid_segments'],
                'feed': stats['feed_segments'],
                'arc': stats['arc_segments'],
            },
        }

    def reset(self):
        """Reset processor to initial state."""
        self.interpreter.reset()
        self.emitter.reset()
        self._last_output = ""
