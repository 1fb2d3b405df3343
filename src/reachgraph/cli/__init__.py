"""
reachgraph CLI tools.
"""

from .main import main

__all__ = ["main"]
