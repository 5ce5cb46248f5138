"""
Machining state for the GCAD interpreter.
Tracks the cutter, material, spindle, tool position and work transform.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from gcad.config.machine_config import MachineConfig
from gcad.config.materials import MaterialProfile, lookup_material, material_key
from gcad.utils.errors import ScriptRuntimeError

logger = logging.getLogger(__name__)

TOLERANCE = 1e-9


@dataclass
class Position:
    """Represents a tool position in program coordinates."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def copy(self) -> 'Position':
        """Create a copy of this position."""
        return Position(x=self.x, y=self.y, z=self.z)

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'z': self.z}

    def to_list(self) -> list:
        """Convert to list [x, y, z]."""
        return [self.x, self.y, self.z]


class MachiningState:
    """Manages the machining context of one compilation."""

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or MachineConfig()
        self.reset()

    def reset(self):
        """Restore the state every compilation starts from."""
        self.materials: Dict[str, MaterialProfile] = dict(self.config.materials)
        self.cutter_diameter: float = self.config.default_cutter_diameter
        self.material: MaterialProfile = lookup_material(self.materials,
                                                         self.config.default_material)
        self.requested_rpm: float = self.material.rpm
        self.spindle_rpm: Optional[float] = None  # None while stopped

        self.position = Position(0.0, 0.0, self.config.safe_height)
        self.transform = np.identity(3)
        self.current_line: int = 0

    # Tool and material

    @property
    def cutter_radius(self) -> float:
        return self.cutter_diameter / 2.0

    @property
    def stepover(self) -> float:
        """Radial step between adjacent cuts, in mm."""
        fraction = min(self.material.stepover, self.config.max_stepover_fraction)
        return fraction * self.cutter_diameter

    @property
    def spindle_running(self) -> bool:
        return self.spindle_rpm is not None

    def set_cutter_diameter(self, diameter: float):
        if diameter <= 0:
            raise ScriptRuntimeError(f"cutter diameter must be positive, got {diameter:g}mm")
        self.cutter_diameter = diameter
        logger.debug("Cutter diameter set to %gmm", diameter)

    def select_material(self, name: str):
        self.material = lookup_material(self.materials, name,
                                        self.config.unknown_material_fallback)
        self.requested_rpm = self.material.rpm
        logger.debug("Material set to '%s'", self.material.name)

    def define_material(self, profile: MaterialProfile):
        profile.validate()
        key = material_key(profile.name)
        self.materials[key] = profile
        if material_key(self.material.name) == key:
            self.material = profile
        logger.debug("Defined material '%s': %s", key, profile.to_dict())

    def request_rpm(self, rpm: float):
        if rpm <= 0:
            raise ScriptRuntimeError(f"spindle speed must be positive, got {rpm:g}")
        self.requested_rpm = rpm

    # Work transform

    def transform_point(self, x: float, y: float) -> Tuple[float, float]:
        """Map a work-coordinate XY point into program coordinates."""
        px, py, _ = self.transform @ np.array([x, y, 1.0])
        return float(px), float(py)

    def transform_direction(self, direction: int) -> int:
        """Arc direction after the transform; mirroring swaps CW and CCW."""
        if np.linalg.det(self.transform[:2, :2]) < 0:
            return -direction
        return direction

    def require_uniform_scale(self):
        linear = self.transform[:2, :2]
        gram = linear.T @ linear
        if not np.allclose(gram, gram[0, 0] * np.identity(2), atol=TOLERANCE):
            raise ScriptRuntimeError("arcs cannot be cut under a non-uniform scale")

    def scale(self, sx: float, sy: float):
        if abs(sx) < TOLERANCE or abs(sy) < TOLERANCE:
            raise ScriptRuntimeError(f"scale factors must be non-zero, got ({sx:g}, {sy:g})")
        self.transform = self.transform @ np.diag([sx, sy, 1.0])
        logger.debug("Work transform scaled by (%g, %g)", sx, sy)

    def translate(self, dx: float, dy: float):
        translation = np.identity(3)
        translation[0, 2] = dx
        translation[1, 2] = dy
        self.transform = self.transform @ translation
        logger.debug("Work transform translated by (%g, %g)", dx, dy)

    def reset_transform(self):
        self.transform = np.identity(3)

    # Position

    def update_position(self, new_position: Position):
        self.position = new_position

    def is_at_safe_height(self) -> bool:
        return self.position.z >= self.config.safe_height - TOLERANCE

    def get_state_summary(self) -> Dict[str, Any]:
        """Get a summary of the current machining state."""
        return {
            'position': self.position.to_list(),
            'cutter_diameter': self.cutter_diameter,
            'material': self.material.name,
            'feed_rate': self.material.feed_rate,
            'plunge_rate': self.material.plunge_rate,
            'stepdown': self.material.stepdown,
            'stepover': self.stepover,
            'requested_rpm': self.requested_rpm,
            'spindle_rpm': self.spindle_rpm,
            'transform': self.transform.tolist(),
            'materials': sorted(self.materials),
        }
