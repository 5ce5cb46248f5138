"""
Machine configuration for the GCAD compiler.
Simple configuration with presets and JSON load/save.
"""
import json
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from gcad.config.materials import DEFAULT_MATERIALS, MaterialProfile, material_key
from gcad.utils.errors import ConfigError


def _is_number(value: Any) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# Accepted JSON value per field: (check, description, may be null)
_FIELD_TYPES = {
    "name": (lambda v: isinstance(v, str), "a string", False),
    "safe_height": (_is_number, "a number", False),
    "clearance": (_is_number, "a number", False),
    "machine_safe_z": (_is_number, "a number", True),
    "max_peck_depth": (_is_number, "a number", False),
    "max_stepover_fraction": (_is_number, "a number", False),
    "default_cutter_diameter": (_is_number, "a number", False),
    "default_material": (lambda v: isinstance(v, str), "a string", False),
    "unknown_material_fallback": (lambda v: isinstance(v, str), "a string", True),
    "precision": (_is_integer, "an integer", False),
    "max_sequence_length": (_is_integer, "an integer", False),
}

_PROFILE_FIELDS = ('stepover', 'stepdown', 'feed_rate', 'plunge_rate', 'rpm')


def _check_field(name: str, value: Any):
    check, description, nullable = _FIELD_TYPES[name]
    if value is None and nullable:
        return
    if not check(value):
        raise ConfigError(f"{name} must be {description}, got {json.dumps(value)}")


def _profile_from_dict(name: str, values: Any) -> MaterialProfile:
    if not isinstance(values, dict):
        raise ConfigError(f"invalid profile for material '{name}': expected a JSON object")
    for field_name in _PROFILE_FIELDS:
        if field_name in values and not _is_number(values[field_name]):
            raise ConfigError(f"invalid profile for material '{name}': {field_name} "
                              f"must be a number, got {json.dumps(values[field_name])}")
    try:
        return MaterialProfile(name=material_key(name), **values)
    except TypeError as e:
        raise ConfigError(f"invalid profile for material '{name}': {e}") from e


@dataclass
class MachineConfig:
    """Configuration for a CNC router or mill. Lengths in mm."""
    name: str = "3-Axis Router"

    # Heights
    safe_height: float = 5.0
    clearance: float = 0.5
    machine_safe_z: Optional[float] = None  # G53 Z move in the program header

    # Cutting policy
    max_peck_depth: float = 2.0
    max_stepover_fraction: float = 0.4
    default_cutter_diameter: float = 3.175
    default_material: str = "default"
    unknown_material_fallback: Optional[str] = None

    # Output
    precision: int = 3
    max_sequence_length: int = 100_000

    materials: Dict[str, MaterialProfile] = field(
        default_factory=lambda: dict(DEFAULT_MATERIALS))

    def validate(self) -> 'MachineConfig':
        if self.safe_height <= 0:
            raise ConfigError(f"safe_height must be positive, got {self.safe_height}")
        if self.clearance <= 0 or self.clearance >= self.safe_height:
            raise ConfigError(f"clearance must be in (0, safe_height), got {self.clearance}")
        if self.max_peck_depth <= 0:
            raise ConfigError(f"max_peck_depth must be positive, got {self.max_peck_depth}")
        if not 0 < self.max_stepover_fraction <= 1:
            raise ConfigError("max_stepover_fraction must be in (0, 1], "
                              f"got {self.max_stepover_fraction}")
        if self.default_cutter_diameter <= 0:
            raise ConfigError("default_cutter_diameter must be positive, "
                              f"got {self.default_cutter_diameter}")
        if self.precision < 0:
            raise ConfigError(f"precision must not be negative, got {self.precision}")
        if self.max_sequence_length < 1:
            raise ConfigError("max_sequence_length must be at least 1, "
                              f"got {self.max_sequence_length}")
        if material_key(self.default_material) not in self.materials:
            raise ConfigError(f"default material '{self.default_material}' is not defined")
        for profile in self.materials.values():
            profile.validate()
        return self


class ConfigManager:
    """Manages machine configurations with simple presets."""

    @staticmethod
    def router() -> MachineConfig:
        """Small hobby router with a 1/8in end mill."""
        return MachineConfig()

    @staticmethod
    def mill() -> MachineConfig:
        """Benchtop mill with a 6mm end mill, starting in aluminum."""
        return MachineConfig(
            name="3-Axis Mill",
            safe_height=10.0,
            clearance=1.0,
            max_peck_depth=3.0,
            default_cutter_diameter=6.0,
            default_material="aluminum",
        )

    @staticmethod
    def get_config(machine_type: str) -> MachineConfig:
        """Get configuration by type name."""
        configs = {
            "router": ConfigManager.router,
            "mill": ConfigManager.mill,
        }
        factory = configs.get(machine_type.lower())
        if factory is None:
            raise ConfigError(f"unknown machine type '{machine_type}'. "
                              f"Known types: {', '.join(sorted(configs))}")
        return factory()

    @staticmethod
    def to_dict(config: MachineConfig) -> Dict[str, Any]:
        data = {f.name: getattr(config, f.name) for f in fields(config) if f.name != 'materials'}
        data["materials"] = {name: profile.to_dict()
                             for name, profile in config.materials.items()}
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> MachineConfig:
        """Build a configuration; missing fields keep their defaults."""
        if not isinstance(data, dict):
            raise ConfigError("machine configuration must be a JSON object")

        data = dict(data)
        known = {f.name for f in fields(MachineConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration field(s): {', '.join(unknown)}")

        for name, value in data.items():
            if name != "materials":
                _check_field(name, value)

        material_data = data.pop("materials", {})
        if not isinstance(material_data, dict):
            raise ConfigError("materials must be a JSON object mapping names to profiles")
        materials = dict(DEFAULT_MATERIALS)
        for name, values in material_data.items():
            profile = _profile_from_dict(name, values)
            materials[profile.name] = profile

        try:
            config = MachineConfig(materials=materials, **data)
        except TypeError as e:
            raise ConfigError(f"invalid machine configuration: {e}") from e
        return config.validate()

    @staticmethod
    def save_config(config: MachineConfig, filepath: str):
        """Save configuration to JSON file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(ConfigManager.to_dict(config), f, indent=2)

    @staticmethod
    def load_config(filepath: str) -> MachineConfig:
        """Load configuration from JSON file."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigError(f"cannot read machine configuration '{filepath}': {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"malformed machine configuration '{filepath}': {e}") from e

        return ConfigManager.from_dict(data)
