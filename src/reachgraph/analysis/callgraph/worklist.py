"""
Worklist driver.

`WorklistDriver.run` seeds a FIFO worklist with entry points and hands
methods to the `MethodScanner` until the worklist is empty. The queue accepts
duplicates; the visited set decides whether a method is actually scanned.

Under the instantiation-filtered strategy a call site may have been resolved
before the construction site that makes one of its receivers live was
scanned. The driver therefore re-resolves every recorded virtual call site
after each drain, and drains again, until a whole wave leaves the
instantiated-type set unchanged. Both the method set and the type set are
finite and only grow, so this terminates.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional, Set

from reachgraph.language.model import MethodDef, MethodIdentity, Program
from reachgraph.machinery.callgraph import CallGraph
from reachgraph.util.application.errorhandler import ErrorHandler

from .dispatch import Algorithm, make_resolver
from .hierarchy import TypeHierarchyIndex
from .instantiated import InstantiatedTypeSet
from .scanner import MethodScanner

LOG = logging.getLogger(__name__)


class Worklist:
    """FIFO of methods awaiting a scan, plus the authoritative visited set."""

    def __init__(self, methods: Iterable[MethodDef] = ()):
        self._queue: Deque[MethodDef] = deque()
        self.visited: Set[MethodIdentity] = set()
        self.pushed = 0
        for method in methods:
            self.push(method)

    def push(self, method: MethodDef) -> bool:
        if method.identity in self.visited:
            return False
        self._queue.append(method)
        self.pushed += 1
        return True

    def pop(self) -> MethodDef:
        return self._queue.popleft()

    def mark_visited(self, method: MethodDef) -> bool:
        """Check-and-mark. Returns False if `method` was already visited."""
        identity = method.identity
        if identity in self.visited:
            return False
        self.visited.add(identity)
        return True

    def is_visited(self, method: MethodDef) -> bool:
        return method.identity in self.visited

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)


@dataclass
class AnalysisResult:
    """Everything a run produced; handed to the reporting layer as is."""

    callgraph: CallGraph
    errors: ErrorHandler
    instantiated: InstantiatedTypeSet
    algorithm: Algorithm
    seeds: int
    scanned: int
    waves: int


class WorklistDriver:
    """Runs one reachability analysis over `program`.

    Attributes:
        hierarchy: Type hierarchy index (built here unless given).
        instantiated: Types proven constructed so far.
        resolver: Dispatch strategy for `algorithm`.
        callgraph: The graph being built.
        worklist: Pending methods and visited set.
        scanner: The method scanner.
        waves: Re-resolution waves run by the refinement loop.
    """

    def __init__(
        self,
        program: Program,
        algorithm: Algorithm = Algorithm.CHA,
        hierarchy: Optional[TypeHierarchyIndex] = None,
        errors: Optional[ErrorHandler] = None,
    ):
        self.program = program
        self.algorithm = algorithm
        self.hierarchy = hierarchy if hierarchy is not None else TypeHierarchyIndex(program)
        self.instantiated = InstantiatedTypeSet(self.hierarchy)
        self.resolver = make_resolver(algorithm, self.hierarchy, self.instantiated)
        self.errors = errors if errors is not None else ErrorHandler()
        self.callgraph = CallGraph()
        self.worklist = Worklist()
        self.scanner = MethodScanner(
            program, self.resolver, self.instantiated, self.callgraph, self.worklist, self.errors
        )
        self.waves = 0

    def run(self, seeds: Iterable[MethodDef]) -> AnalysisResult:
        count = 0
        for seed in seeds:
            self.worklist.push(seed)
            count += 1
        LOG.info("%s analysis from %d entry points", self.algorithm.value, count)

        self.drain()
        if self.resolver.incremental:
            self.refine()

        LOG.info(
            "reached %d methods, %d edges, %d instantiated types",
            len(self.callgraph), self.callgraph.edge_count, len(self.instantiated),
        )
        return AnalysisResult(
            callgraph=self.callgraph,
            errors=self.errors,
            instantiated=self.instantiated,
            algorithm=self.algorithm,
            seeds=count,
            scanned=self.scanner.scanned,
            waves=self.waves,
        )

    def drain(self) -> None:
        while self.worklist:
            self.scanner.scan(self.worklist.pop())

    def refine(self) -> None:
        resolved_at = None
        while self.instantiated.version != resolved_at:
            resolved_at = self.instantiated.version
            self.waves += 1
            added = 0
            for site in list(self.scanner.call_sites.values()):
                added += self.scanner.dispatch_site(site)
            LOG.debug(
                "wave %d: %d live types, %d call sites, %d new edges",
                self.waves, resolved_at, len(self.scanner.call_sites), added,
            )
            self.drain()
