"""
Material profiles driving feeds, speeds and depth staging.

Rates are in mm/min, stepdown in mm, stepover as a fraction of the cutter
diameter. Presets assume a small router with a 1/8in end mill.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from gcad.utils.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialProfile:
    """Cutting parameters for one material class."""
    name: str
    stepover: float
    stepdown: float
    feed_rate: float
    plunge_rate: float
    rpm: float

    def validate(self) -> 'MaterialProfile':
        if not 0 < self.stepover <= 1:
            raise ConfigError(f"material '{self.name}': stepover must be a fraction "
                              f"in (0, 1], got {self.stepover}")
        for field_name in ('stepdown', 'feed_rate', 'plunge_rate', 'rpm'):
            value = getattr(self, field_name)
            if value <= 0:
                raise ConfigError(f"material '{self.name}': {field_name} must be "
                                  f"positive, got {value}")
        return self

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        del data['name']
        return data


DEFAULT_MATERIALS: Dict[str, MaterialProfile] = {
    profile.name: profile for profile in (
        MaterialProfile("default", stepover=0.4, stepdown=1.0,
                        feed_rate=600.0, plunge_rate=150.0, rpm=12000.0),
        MaterialProfile("aluminum", stepover=0.25, stepdown=0.3,
                        feed_rate=400.0, plunge_rate=100.0, rpm=18000.0),
        MaterialProfile("brass", stepover=0.25, stepdown=0.3,
                        feed_rate=350.0, plunge_rate=80.0, rpm=12000.0),
        MaterialProfile("acrylic", stepover=0.35, stepdown=1.0,
                        feed_rate=800.0, plunge_rate=200.0, rpm=14000.0),
        MaterialProfile("hdpe", stepover=0.4, stepdown=1.5,
                        feed_rate=1000.0, plunge_rate=300.0, rpm=14000.0),
        MaterialProfile("softwood", stepover=0.4, stepdown=2.0,
                        feed_rate=1200.0, plunge_rate=400.0, rpm=16000.0),
        MaterialProfile("hardwood", stepover=0.4, stepdown=1.5,
                        feed_rate=900.0, plunge_rate=300.0, rpm=16000.0),
        MaterialProfile("mdf", stepover=0.4, stepdown=2.0,
                        feed_rate=1200.0, plunge_rate=400.0, rpm=16000.0),
    )
}


def material_key(name: str) -> str:
    return name.strip().lower()


def lookup_material(materials: Dict[str, MaterialProfile], name: str,
                    fallback: Optional[str] = None) -> MaterialProfile:
    """
    Find a material profile by case-insensitive name.

    Args:
        materials: Profiles keyed by lower-case name
        name: Requested material name
        fallback: Profile to use for unknown names, if any

    Raises:
        ConfigError: name is unknown and no fallback profile exists
    """
    profile = materials.get(material_key(name))
    if profile is not None:
        return profile

    if fallback is not None and material_key(fallback) in materials:
        logger.warning("Unknown material '%s', using '%s' profile", name, fallback)
        return materials[material_key(fallback)]

    raise ConfigError(f"unknown material '{name}'. "
                      f"Known materials: {', '.join(sorted(materials))}")
