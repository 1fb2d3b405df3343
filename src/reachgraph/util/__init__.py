"""
Utility modules for reachgraph.

- Type-based dispatch (typedispatch.py)
- Application-level utilities: diagnostics and phase timing (application/)
- Formatting utilities (io/)
"""
