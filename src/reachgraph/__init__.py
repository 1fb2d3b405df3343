"""reachgraph - whole-program call graph construction for compiled
object-oriented programs.
"""

__version__ = "0.1.0"

from .language.model import Program
from .application.config import AnalysisConfig, load_config
from .application.workspace import Workspace

__all__ = [
    "Program",
    "AnalysisConfig",
    "load_config",
    "Workspace",
    "__version__",
]
