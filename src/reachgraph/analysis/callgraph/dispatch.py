"""Virtual dispatch resolution.

Given the statically declared target of a ``callvirt`` or ``ldvirtftn``, a
resolver returns the concrete methods the call may reach at runtime. Two
strategies share the same structural rules:

- `HierarchyResolver` (CHA): every override or implementation anywhere below
  the declaring type.
- `InstantiationResolver` (RTA): only candidates on types that are live in
  the `InstantiatedTypeSet`; an instantiated class without its own override
  contributes the implementation it inherits.

The strategy is picked once from the configured `Algorithm` through
`make_resolver`.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from reachgraph.language.model import MethodDef, MethodIdentity, TypeDef

from .hierarchy import TypeHierarchyIndex
from .instantiated import InstantiatedTypeSet
from .signatures import is_explicit_implementation, matches_signature

LOG = logging.getLogger(__name__)


class Algorithm(enum.Enum):
    CHA = "CHA"
    RTA = "RTA"

    @classmethod
    def parse(cls, text: str) -> "Algorithm":
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise ValueError(
                "unknown algorithm %r (expected one of %s)"
                % (text, ", ".join(m.value for m in cls))
            ) from None


Candidates = Dict[MethodIdentity, MethodDef]


class DispatchResolver(ABC):
    """Base class of the dispatch strategies.

    Attributes:
        hierarchy: Type hierarchy index of the analysed program.
        program: Shortcut to ``hierarchy.program``.
    """

    algorithm: Algorithm

    # Whether call sites must be re-resolved when the instantiated set grows.
    incremental = False

    def __init__(self, hierarchy: TypeHierarchyIndex, instantiated: Optional[InstantiatedTypeSet] = None):
        self.hierarchy = hierarchy
        self.program = hierarchy.program
        self.instantiated = instantiated

    def resolve(self, target: MethodDef) -> List[MethodDef]:
        """Candidate methods for a virtual call on `target`, deduplicated."""
        candidates: Candidates = {}
        declaring = target.declaring_type

        if declaring is not None and declaring.is_interface:
            self.resolve_interface(target, candidates)
        elif target.is_virtual:
            self.resolve_virtual(target, candidates)
        elif not target.is_abstract:
            # callvirt on a non-virtual method is a null-checked direct call
            self._add(candidates, target)

        return list(candidates.values())

    @abstractmethod
    def resolve_interface(self, target: MethodDef, candidates: Candidates) -> None:
        pass

    @abstractmethod
    def resolve_virtual(self, target: MethodDef, candidates: Candidates) -> None:
        pass

    # ---------------------------------------------------------------- helpers
    @staticmethod
    def _add(candidates: Candidates, method: Optional[MethodDef]) -> None:
        if method is not None:
            candidates.setdefault(method.identity, method)

    def overrider_in(self, typedef: TypeDef, target: MethodDef) -> Optional[MethodDef]:
        """The method of `typedef` overriding class method `target`, if any.

        A matching method declared as a new slot hides `target` instead of
        overriding it and is skipped.
        """
        for method in typedef.methods:
            if (
                method.is_virtual
                and not method.is_abstract
                and not method.is_new_slot
                and matches_signature(self.program, method, target)
            ):
                return method
        return None

    def implementation_in(self, typedef: TypeDef, target: MethodDef) -> Optional[MethodDef]:
        """The method of `typedef` implementing interface method `target`, if any."""
        for method in typedef.methods:
            if method.is_abstract:
                continue
            if matches_signature(self.program, method, target) or is_explicit_implementation(
                self.program, method, target
            ):
                return method
        return None

    def inherited_implementation(self, typedef: TypeDef, target: MethodDef) -> Optional[MethodDef]:
        """First implementation of interface method `target` on the base chain of `typedef`.

        Covers a base class that declares a matching method without itself
        implementing the interface.
        """
        for base in self.program.base_chain(typedef):
            method = self.implementation_in(base, target)
            if method is not None:
                return method
        return None

    @staticmethod
    def default_method(target: MethodDef) -> Optional[MethodDef]:
        if target.has_body and not target.is_abstract:
            return target
        return None


class HierarchyResolver(DispatchResolver):
    algorithm = Algorithm.CHA

    def resolve_interface(self, target, candidates):
        self._add(candidates, self.default_method(target))
        for implementer in self.hierarchy.implementers_of(target.declaring_type):
            method = self.implementation_in(implementer, target)
            if method is None:
                method = self.inherited_implementation(implementer, target)
            self._add(candidates, method)

    def resolve_virtual(self, target, candidates):
        if not target.is_abstract:
            self._add(candidates, target)
        for subtype in self.hierarchy.subtypes_of(target.declaring_type):
            self._add(candidates, self.overrider_in(subtype, target))


class InstantiationResolver(DispatchResolver):
    """
    Rapid type analysis.

    Results depend on the current contents of `instantiated`, so a call site
    resolved early may gain candidates later; the worklist driver re-resolves
    recorded sites until the set stops growing.
    """

    algorithm = Algorithm.RTA
    incremental = True

    def resolve_interface(self, target, candidates):
        fallback = self.default_method(target)
        for implementer in self.hierarchy.implementers_of(target.declaring_type):
            if not self.instantiated.is_live(implementer):
                continue
            method = self.implementation_in(implementer, target)
            if method is None:
                method = self.inherited_implementation(implementer, target) or fallback
            self._add(candidates, method)

    def resolve_virtual(self, target, candidates):
        declaring = target.declaring_type
        if self.instantiated.is_live(declaring) and not target.is_abstract:
            self._add(candidates, target)
        for subtype in self.hierarchy.subtypes_of(declaring):
            if not self.instantiated.is_live(subtype):
                continue
            method = self.overrider_in(subtype, target)
            if method is None:
                method = self.inherited_override(subtype, target)
            self._add(candidates, method)

    def inherited_override(self, typedef: TypeDef, target: MethodDef) -> Optional[MethodDef]:
        """Nearest non-abstract implementation of `target` above `typedef`."""
        stop = target.declaring_type.full_name
        for base in self.program.base_chain(typedef):
            if base.full_name == stop:
                return None if target.is_abstract else target
            method = self.overrider_in(base, target)
            if method is not None:
                return method
        return None


RESOLVERS = {
    Algorithm.CHA: HierarchyResolver,
    Algorithm.RTA: InstantiationResolver,
}


def make_resolver(
    algorithm: Algorithm,
    hierarchy: TypeHierarchyIndex,
    instantiated: InstantiatedTypeSet,
) -> DispatchResolver:
    """Build the resolver for `algorithm`."""
    return RESOLVERS[algorithm](hierarchy, instantiated)
