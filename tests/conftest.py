"""
Shared fixtures for the GCAD test suite.
"""
import pytest

from gcad.config.machine_config import MachineConfig
from gcad.core.machine_state import MachiningState
from gcad.core.toolpath import ToolpathBuffer
from gcad.script_processor import ScriptProcessor


@pytest.fixture
def config():
    return MachineConfig()


@pytest.fixture
def processor(config):
    return ScriptProcessor(config)


@pytest.fixture
def state(config):
    return MachiningState(config)


@pytest.fixture
def buffer():
    return ToolpathBuffer()
