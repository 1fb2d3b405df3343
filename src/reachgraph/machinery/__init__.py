"""
Data structures shared by the analysis packages.
"""

from .callgraph import CallGraph, Edge, Node

__all__ = ["CallGraph", "Edge", "Node"]
