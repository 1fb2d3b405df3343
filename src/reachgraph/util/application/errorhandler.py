"""
Diagnostic collection for analysis runs.

Problems found while scanning (a call target that does not resolve, a state
machine without its driver) never stop the analysis. They are recorded here
instead, counted, and handed back to the caller with the analysis result.
"""

import logging
from dataclasses import dataclass
from typing import List

LOG = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    severity: str
    classification: str
    message: str
    context: str = ""

    def __str__(self):
        if self.context:
            return "%s: %s (in %s)" % (self.classification, self.message, self.context)
        return "%s: %s" % (self.classification, self.message)


class ErrorScopeManager(object):
    """Context manager isolating the error counts of one phase.

    Example:
        with handler.scope():
            ...  # errorCount / warningCount start at zero here
    """

    __slots__ = "handler"

    def __init__(self, handler):
        self.handler = handler

    def __enter__(self):
        self.handler._push()

    def __exit__(self, type, value, tb):
        self.handler._pop()


class ErrorHandler(object):
    """Collects analysis errors and warnings.

    Attributes:
        diagnostics: Every recorded `Diagnostic`, in order.
        errorCount: Errors recorded in the current scope.
        warningCount: Warnings recorded in the current scope.
        defered: If True, logging is postponed until `flush`.
    """

    def __init__(self, defered=False):
        self.stack = []

        self.errorCount = 0
        self.warningCount = 0

        self.diagnostics: List[Diagnostic] = []

        self.defered = defered
        self.buffer: List[Diagnostic] = []

    def error(self, classification, message, context=""):
        self._record(Diagnostic(ERROR, classification, message, context))
        self.errorCount += 1

    def warn(self, classification, message, context=""):
        self._record(Diagnostic(WARNING, classification, message, context))
        self.warningCount += 1

    def _record(self, diagnostic):
        self.diagnostics.append(diagnostic)
        if self.defered:
            self.buffer.append(diagnostic)
        else:
            self.displayError(diagnostic)

    def displayError(self, diagnostic):
        if diagnostic.severity == ERROR:
            LOG.error("%s", diagnostic)
        else:
            LOG.warning("%s", diagnostic)

    def classified(self, classification) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.classification == classification]

    def statusString(self):
        return "%d errors, %d warnings" % (self.errorCount, self.warningCount)

    def flush(self):
        """Log buffered diagnostics and clear the buffer."""
        for diagnostic in self.buffer:
            self.displayError(diagnostic)
        self.buffer = []

    def _push(self):
        self.stack.append((self.errorCount, self.warningCount))
        self.errorCount = 0
        self.warningCount = 0

    def _pop(self):
        errorCount, warningCount = self.stack.pop()
        self.errorCount += errorCount
        self.warningCount += warningCount

    def scope(self):
        return ErrorScopeManager(self)
