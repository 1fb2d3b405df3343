"""
Phase timing for analysis runs.

`Console` keeps a stack of named phases. Entering a phase logs
``begin [ load | modules ]``; leaving it logs the matching ``end`` line with
the elapsed time. Finished phases stay attached to their parent so a run
report can list them afterwards.
"""

import logging
import time

from reachgraph.util.io import formatting

LOG = logging.getLogger(__name__)


class Scope(object):
    """A named, timed node in the phase tree."""

    def __init__(self, parent, name):
        self.parent = parent
        self.name = name
        self.children = []
        self._start = None
        self._end = None

    def begin(self):
        self._start = time.perf_counter()

    def end(self):
        self._end = time.perf_counter()

    @property
    def elapsed(self):
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return end - self._start

    def path(self):
        if self.parent is None:
            return ()
        else:
            return self.parent.path() + (self.name,)

    def child(self, name):
        scope = Scope(self, name)
        self.children.append(scope)
        return scope


class ConsoleScopeManager(object):
    """
    Example:
        with console.scope("analysis"):
            driver.run(seeds)
    """

    __slots__ = "console", "name"

    def __init__(self, console, name):
        self.console = console
        self.name = name

    def __enter__(self):
        return self.console.begin(self.name)

    def __exit__(self, type, value, tb):
        self.console.end()


class Console(object):
    """
    Hierarchical phase logger.

    Attributes:
        root: Root scope; its children are the top level phases.
        current: Innermost open scope.
        verbose: If True, `verbose_output` messages are logged at INFO
            instead of DEBUG.
    """

    def __init__(self, verbose=False, logger=None):
        self.log = logger if logger is not None else LOG
        self.root = Scope(None, "root")
        self.current = self.root
        self.verbose = verbose

    def path(self):
        return "[ %s ]" % " | ".join(self.current.path())

    def begin(self, name):
        scope = self.current.child(name)
        scope.begin()
        self.current = scope
        self.output("begin %s" % self.path())
        return scope

    def end(self):
        self.current.end()
        self.output("end   %s %s" % (self.path(), formatting.elapsedTime(self.current.elapsed)))
        self.current = self.current.parent

    def scope(self, name):
        return ConsoleScopeManager(self, name)

    def timings(self):
        """``(path, seconds)`` for every finished phase, depth first."""
        result = []

        def walk(scope):
            for child in scope.children:
                result.append((" | ".join(child.path()), child.elapsed))
                walk(child)

        walk(self.root)
        return result

    def output(self, s):
        self.log.info("%s", s)

    def verbose_output(self, s):
        if self.verbose:
            self.log.info("%s", s)
        else:
            self.log.debug("%s", s)
