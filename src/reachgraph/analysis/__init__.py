"""Analysis packages for reachgraph."""

from . import callgraph
