"""
GCAD: compiles parametric CNC machining scripts into G-code.
"""
from gcad.script_processor import ScriptProcessor
from gcad.utils.errors import GCadError

__version__ = "0.1.0"

__all__ = ["ScriptProcessor", "GCadError", "__version__"]
