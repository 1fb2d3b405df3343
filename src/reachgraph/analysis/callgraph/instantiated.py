"""
Instantiated-type tracking for the instantiation-filtered resolver.

Types enter the set when a construction site (``newobj``), a value-type
default initialization (``initobj``) or a value-type array creation
(``newarr``) is scanned. The set only grows; `version` counts insertions so
the worklist driver can tell whether another resolution wave is needed.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator

from reachgraph.language.model import TypeDef

from .hierarchy import TypeHierarchyIndex

LOG = logging.getLogger(__name__)


class InstantiatedTypeSet:
    def __init__(self, hierarchy: TypeHierarchyIndex):
        self.hierarchy = hierarchy
        self._types: Dict[str, TypeDef] = {}

    @property
    def version(self) -> int:
        return len(self._types)

    def add(self, typedef: TypeDef) -> bool:
        """Record `typedef` as constructed. Returns True if it was new."""
        name = typedef.full_name
        if name in self._types:
            return False
        self._types[name] = typedef
        LOG.debug("instantiated: %s", name)
        return True

    def __contains__(self, typedef: TypeDef) -> bool:
        return typedef.full_name in self._types

    def __iter__(self) -> Iterator[TypeDef]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def is_live(self, typedef: TypeDef) -> bool:
        """
        True if `typedef` or any type below it has been instantiated.

        For an interface, "below" means its implementers.
        """
        if typedef in self:
            return True
        if typedef.is_interface:
            below = self.hierarchy.implementers_of(typedef)
        else:
            below = self.hierarchy.subtypes_of(typedef)
        return any(t in self for t in below)
