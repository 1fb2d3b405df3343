"""Type hierarchy index.

Two adjacency graphs are derived once from the program model, keyed by type
full name:

- ``derived``: base type -> direct subtypes
- ``implemented``: interface -> direct implementers and extending interfaces

Transitive queries walk these graphs with networkx and are cached per type.
The index never changes after construction.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

import networkx as nx

from reachgraph.language.model import Program, TypeDef

LOG = logging.getLogger(__name__)


class TypeHierarchyIndex:
    """Subtype and implementer queries over an immutable `Program`.

    Attributes:
        program: The indexed program.
    """

    def __init__(self, program: Program):
        self.program = program
        self._derived = nx.DiGraph()
        self._implemented = nx.DiGraph()

        for typedef in program.all_types():
            name = typedef.full_name
            self._derived.add_node(name)
            if typedef.base_type is not None:
                self._derived.add_edge(typedef.base_type, name)
            for interface in typedef.interfaces:
                self._implemented.add_edge(interface, name)

        # Implementers are reached through interface edges and then any
        # number of base -> derived steps.
        self._combined = nx.compose(self._derived, self._implemented)

        self._subtypes: Dict[str, Tuple[TypeDef, ...]] = {}
        self._implementers: Dict[str, Tuple[TypeDef, ...]] = {}

        LOG.debug(
            "hierarchy index: %d types, %d inheritance edges, %d interface edges",
            self._derived.number_of_nodes(),
            self._derived.number_of_edges(),
            self._implemented.number_of_edges(),
        )

    def _definitions(self, names):
        types = [self.program.find_type(name) for name in names]
        types = [t for t in types if t is not None]
        types.sort(key=self.program.position)
        return tuple(types)

    def direct_subtypes(self, typedef: TypeDef) -> Tuple[TypeDef, ...]:
        name = typedef.full_name
        if name not in self._derived:
            return ()
        return self._definitions(self._derived.successors(name))

    def subtypes_of(self, typedef: TypeDef) -> Tuple[TypeDef, ...]:
        """Every type deriving from `typedef` through any number of steps."""
        name = typedef.full_name
        result = self._subtypes.get(name)
        if result is None:
            if name in self._derived:
                result = self._definitions(nx.descendants(self._derived, name))
            else:
                result = ()
            self._subtypes[name] = result
        return result

    def implementers_of(self, interface: TypeDef) -> Tuple[TypeDef, ...]:
        """
        Every non-interface type implementing `interface`.

        A type implements an interface when it lists it directly, lists an
        interface that extends it, or derives from a type that does.
        """
        name = interface.full_name
        result = self._implementers.get(name)
        if result is None:
            if name in self._combined:
                reachable = nx.descendants(self._combined, name)
                result = tuple(
                    t for t in self._definitions(reachable) if not t.is_interface
                )
            else:
                result = ()
            self._implementers[name] = result
        return result

    def is_subtype(self, typedef: TypeDef, base: TypeDef) -> bool:
        return any(t is typedef for t in self.subtypes_of(base))
