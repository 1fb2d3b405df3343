"""
Method scanner.

`MethodScanner.scan` visits one method body and turns its instructions into
call graph edges:

- ``call`` / ``ldftn``: one statically bound target, edge and enqueue.
- ``callvirt`` / ``ldvirtftn``: candidates from the dispatch resolver, an edge
  and an enqueue per candidate.
- ``newobj``: edge to the constructor and the constructed type becomes
  instantiated. ``initobj`` and ``newarr`` of a value type, and a direct
  constructor call on a value type, instantiate that value type.

Async and iterator methods are only stubs that set up a generated state
machine; for those the scanner links the method to the machine's driver and
leaves the stub body alone.

References that do not resolve are recorded in the error handler and the
instruction is skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from reachgraph.application.errors import UnresolvedReferenceError
from reachgraph.language.instructions import (
    Call,
    CallVirtual,
    InitObject,
    LoadFunction,
    LoadVirtualFunction,
    NewArray,
    NewObject,
)
from reachgraph.language.model import (
    STATE_MACHINE_DRIVER,
    STATIC_CONSTRUCTOR_NAME,
    MethodDef,
    MethodIdentity,
    MethodRef,
    Program,
    TypeDef,
)
from reachgraph.machinery.callgraph import CallGraph, Node
from reachgraph.util.application.errorhandler import ErrorHandler
from reachgraph.util.typedispatch import TypeDispatcher, defaultdispatch, dispatch

from .dispatch import DispatchResolver
from .instantiated import InstantiatedTypeSet

if TYPE_CHECKING:
    from .worklist import Worklist

LOG = logging.getLogger(__name__)

UNRESOLVED_METHOD = "unresolved-method"
UNRESOLVED_TYPE = "unresolved-type"
MISSING_DRIVER = "missing-state-machine-driver"


@dataclass(frozen=True)
class VirtualCallSite:
    caller: MethodDef
    target: MethodDef

    @property
    def key(self) -> Tuple[MethodIdentity, MethodIdentity]:
        return self.caller.identity, self.target.identity


class MethodScanner(TypeDispatcher):
    """Classifies instructions of reachable methods.

    Attributes:
        call_sites: Virtual call sites seen so far, kept only when the
            resolver is incremental so they can be resolved again.
        scanned: Number of method bodies scanned.
    """

    def __init__(
        self,
        program: Program,
        resolver: DispatchResolver,
        instantiated: InstantiatedTypeSet,
        callgraph: CallGraph,
        worklist: "Worklist",
        errors: ErrorHandler,
    ):
        self.program = program
        self.resolver = resolver
        self.instantiated = instantiated
        self.callgraph = callgraph
        self.worklist = worklist
        self.errors = errors

        self.call_sites: Dict[Tuple[MethodIdentity, MethodIdentity], VirtualCallSite] = {}
        self.scanned = 0

    def scan(self, method: MethodDef) -> bool:
        """
        Scan `method` once.

        Returns:
            True if the body was scanned now; False for methods without a
            body or methods already visited.
        """
        if not method.has_body:
            return False
        if not self.worklist.mark_visited(method):
            return False

        LOG.debug("scanning %s", method.full_name)
        self.callgraph.add_node(Node.for_method(method))
        self.scanned += 1

        if self.link_continuation(method):
            return True

        for instruction in method.body:
            self(instruction, method)
        return True

    def link_continuation(self, method: MethodDef) -> bool:
        """Edge from an async/iterator stub to its state machine driver."""
        try:
            continuation = self.program.continuation_of(method)
        except UnresolvedReferenceError as e:
            self.errors.warn(UNRESOLVED_TYPE, "state machine %s" % e.reference, method.full_name)
            return False
        if continuation is None:
            return False
        if continuation.driver is None:
            self.errors.warn(
                MISSING_DRIVER,
                "%s has no %s" % (continuation.type.full_name, STATE_MACHINE_DRIVER),
                method.full_name,
            )
            return False

        LOG.debug("  state machine: %s", continuation.driver.full_name)
        self.link(method, continuation.driver)
        return True

    def link(self, caller: MethodDef, callee: MethodDef) -> bool:
        added = self.callgraph.add_edge(caller.identity, callee.identity)
        self.worklist.push(callee)
        return added

    def dispatch_site(self, site: VirtualCallSite) -> int:
        """Resolve a virtual call site and link every candidate.

        Returns:
            The number of edges that were not in the graph yet.
        """
        added = 0
        for candidate in self.resolver.resolve(site.target):
            if self.link(site.caller, candidate):
                added += 1
        return added

    # -------------------------------------------------------------- resolution
    def _method(self, ref: MethodRef, caller: MethodDef) -> Optional[MethodDef]:
        try:
            return self.program.resolve_method(ref)
        except UnresolvedReferenceError:
            self.errors.error(UNRESOLVED_METHOD, ref.full_name, caller.full_name)
            return None

    def _type(self, name: str, caller: MethodDef) -> Optional[TypeDef]:
        try:
            return self.program.resolve_type(name)
        except UnresolvedReferenceError:
            self.errors.warn(UNRESOLVED_TYPE, name, caller.full_name)
            return None

    def _instantiate(self, typedef: TypeDef) -> None:
        self.instantiated.add(typedef)

    # ------------------------------------------------------------ instructions
    @dispatch(Call, LoadFunction)
    def visitStaticCall(self, instruction, caller):
        LOG.debug("  %s", instruction)
        target = self._method(instruction.method, caller)
        if target is None:
            return
        self.link(caller, target)

        # A value type constructed in place is called, not newobj'd.
        declaring = target.declaring_type
        if (
            target.name != STATIC_CONSTRUCTOR_NAME
            and target.is_constructor
            and declaring is not None
            and declaring.is_value_type
        ):
            self._instantiate(declaring)

    @dispatch(CallVirtual, LoadVirtualFunction)
    def visitVirtualCall(self, instruction, caller):
        LOG.debug("  %s", instruction)
        target = self._method(instruction.method, caller)
        if target is None:
            return
        site = VirtualCallSite(caller, target)
        if self.resolver.incremental:
            self.call_sites.setdefault(site.key, site)
        self.dispatch_site(site)

    @dispatch(NewObject)
    def visitNewObject(self, instruction, caller):
        LOG.debug("  %s", instruction)
        constructor = self._method(instruction.method, caller)
        if constructor is None:
            return
        # Constructors are never virtual.
        self.link(caller, constructor)
        if constructor.declaring_type is not None:
            self._instantiate(constructor.declaring_type)

    @dispatch(InitObject, NewArray)
    def visitValueType(self, instruction, caller):
        LOG.debug("  %s", instruction)
        typedef = self._type(instruction.type, caller)
        if typedef is not None and typedef.is_value_type:
            self._instantiate(typedef)

    @defaultdispatch
    def visitOther(self, instruction, caller):
        pass
