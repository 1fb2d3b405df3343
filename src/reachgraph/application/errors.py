"""
Error types for reachgraph analysis runs.

Errors fall into two groups:

- **Fatal, pre-analysis**: `ConfigurationError` and `ProgramLoadError` are
  raised while the workspace is being set up and abort the run before any
  method is scanned.
- **Local, recoverable**: `UnresolvedReferenceError` is raised by the program
  model when a reference cannot be bound to a definition. The scanner catches
  it, records a diagnostic and moves on to the next instruction.
"""


class ReachGraphError(Exception):
    """Base class for all reachgraph errors."""
    pass


class ConfigurationError(ReachGraphError):
    """
    Raised for an unusable configuration or environment.

    Examples are a missing configuration file, an unknown algorithm name,
    or a program directory that does not exist or holds no modules.
    """
    pass


class ProgramLoadError(ReachGraphError):
    """Raised when a module description cannot be read into the program model."""
    pass


class UnresolvedReferenceError(ReachGraphError):
    """
    Raised when a type or method reference has no matching definition.

    Attributes:
        reference: The reference that failed to resolve (its full name).
    """

    def __init__(self, reference, message=None):
        self.reference = reference
        super().__init__(message or "unresolved reference: %s" % (reference,))
