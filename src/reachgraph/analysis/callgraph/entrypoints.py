"""
Entry-point selection.

The selector decides which methods seed the worklist:

===================  =========================================================
Strategy             Seeds
===================  =========================================================
PROGRAM_ENTRY        each module's designated entry method
PUBLIC_CONCRETE      public, non-abstract methods
ACCESSIBLE_CONCRETE  public or protected, non-abstract methods
CONCRETE             every non-abstract method
ALL                  every method, accessors and abstract ones included
===================  =========================================================

All strategies but PROGRAM_ENTRY walk every type of every module (nested
types too) and skip interfaces and attribute classes; property accessors are
skipped unless the strategy is ALL. Every strategy honours the namespace
filter.
"""

from __future__ import annotations

import enum
import logging
from typing import Iterable, Iterator, List, Sequence

from reachgraph.application.errors import UnresolvedReferenceError
from reachgraph.language.model import MethodDef, Module, Program, TypeDef, Visibility

LOG = logging.getLogger(__name__)

ATTRIBUTE_BASE_TYPE = "System.Attribute"


class EntryPointStrategy(enum.Enum):
    PROGRAM_ENTRY = "PROGRAM_ENTRY"
    PUBLIC_CONCRETE = "PUBLIC_CONCRETE"
    ACCESSIBLE_CONCRETE = "ACCESSIBLE_CONCRETE"
    CONCRETE = "CONCRETE"
    ALL = "ALL"

    @classmethod
    def parse(cls, text: str) -> "EntryPointStrategy":
        key = text.strip().upper().replace("-", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                "unknown entry point strategy %r (expected one of %s)"
                % (text, ", ".join(m.value for m in cls))
            ) from None


_ALIASES = {"DOTNET_MAIN": "PROGRAM_ENTRY", "MAIN": "PROGRAM_ENTRY"}


def namespace_matches(namespace: str, filters: Sequence[str]) -> bool:
    """True if `namespace` equals or lies below one of `filters`.

    An empty filter list matches every namespace.
    """
    if not filters:
        return True
    for item in filters:
        if namespace == item or namespace.startswith(item + "."):
            return True
    return False


class EntryPointSelector:
    def __init__(
        self,
        program: Program,
        strategy: EntryPointStrategy = EntryPointStrategy.PROGRAM_ENTRY,
        namespaces: Iterable[str] = (),
    ):
        self.program = program
        self.strategy = strategy
        self.namespaces = list(namespaces)

    def select(self) -> List[MethodDef]:
        """Entry methods of every module, in module and declaration order."""
        selected: List[MethodDef] = []
        for module in self.program.modules:
            if self.strategy is EntryPointStrategy.PROGRAM_ENTRY:
                selected.extend(self._program_entry(module))
            else:
                selected.extend(self._type_entries(module))
        LOG.info("%d entry points (%s)", len(selected), self.strategy.value)
        return selected

    def seed(self, worklist) -> int:
        """Push the selected entry points onto `worklist`; nothing is scanned."""
        selected = self.select()
        for method in selected:
            LOG.debug("in queue: %s", method.full_name)
            worklist.push(method)
        return len(selected)

    def _program_entry(self, module: Module) -> Iterator[MethodDef]:
        try:
            entry = self.program.entry_point(module)
        except UnresolvedReferenceError as e:
            LOG.warning("entry point of %s does not resolve: %s", module.name, e.reference)
            return
        if entry is None:
            return
        if not namespace_matches(entry.namespace, self.namespaces):
            return
        yield entry

    def _type_entries(self, module: Module) -> Iterator[MethodDef]:
        for typedef in module.all_types():
            if not namespace_matches(typedef.namespace, self.namespaces):
                continue
            if typedef.is_interface or self.is_attribute_type(typedef):
                continue
            LOG.debug("collecting entry points of %s", typedef.full_name)
            for method in typedef.methods:
                if self.accepts(method):
                    yield method

    def accepts(self, method: MethodDef) -> bool:
        strategy = self.strategy
        if strategy is EntryPointStrategy.ALL:
            return True
        if method.is_accessor or method.is_abstract:
            return False
        if strategy is EntryPointStrategy.PUBLIC_CONCRETE:
            return method.visibility is Visibility.PUBLIC
        if strategy is EntryPointStrategy.ACCESSIBLE_CONCRETE:
            return method.visibility.is_accessible
        return strategy is EntryPointStrategy.CONCRETE

    def is_attribute_type(self, typedef: TypeDef) -> bool:
        # Follow base names even past types that are not loaded.
        seen = {typedef.full_name}
        name = typedef.base_type
        while name is not None and name not in seen:
            if name == ATTRIBUTE_BASE_TYPE:
                return True
            seen.add(name)
            base = self.program.find_type(name)
            name = base.base_type if base is not None else None
        return False
