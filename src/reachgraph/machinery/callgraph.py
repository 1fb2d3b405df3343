"""
Call graph container.

Nodes are keyed by `MethodIdentity` and carry the module, namespace and
signature used by the output formats. Edges are ``(caller, callee)`` identity
pairs. Both collections are insertion ordered and deduplicated, so adding the
same node or edge twice is a no-op and the final graph does not depend on how
often a call site was seen.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, MutableMapping, Optional, Set

import networkx as nx

from reachgraph.language.model import MethodDef, MethodIdentity


@dataclass(frozen=True)
class Node:
    identity: MethodIdentity
    module: str
    namespace: str
    signature: str

    @classmethod
    def for_method(cls, method: MethodDef) -> "Node":
        return cls(method.identity, method.module, method.namespace, method.full_name)

    def __str__(self) -> str:
        return "%s (in %s)" % (self.signature, self.module)


@dataclass(frozen=True)
class Edge:
    caller: MethodIdentity
    callee: MethodIdentity

    def __str__(self) -> str:
        return "%s -> %s" % (self.caller.signature, self.callee.signature)


class CallGraph:
    """
    Directed, deduplicated call graph.

    Edges may name callees that never become nodes: a method without a body
    (abstract, external, or from a missing dependency) is called but never
    scanned.
    """

    def __init__(self) -> None:
        self._nodes: Dict[MethodIdentity, Node] = {}
        self._edges: Dict[Edge, None] = {}
        self._callees: MutableMapping[MethodIdentity, Set[MethodIdentity]] = defaultdict(set)

    # ------------------------------------------------------------------ utils
    def add_node(self, node: Node) -> bool:
        """Insert `node` unless a node with the same identity exists."""
        if node.identity in self._nodes:
            return False
        self._nodes[node.identity] = node
        return True

    def add_edge(self, caller: MethodIdentity, callee: MethodIdentity) -> bool:
        """Record an invocation from `caller` to `callee`. Returns True if new."""
        edge = Edge(caller, callee)
        if edge in self._edges:
            return False
        self._edges[edge] = None
        self._callees[caller].add(callee)
        return True

    # ---------------------------------------------------------------- queries
    def nodes(self) -> Iterable[Node]:
        return self._nodes.values()

    def edges(self) -> Iterable[Edge]:
        return self._edges.keys()

    def node(self, identity: MethodIdentity) -> Optional[Node]:
        return self._nodes.get(identity)

    def has_node(self, identity: MethodIdentity) -> bool:
        return identity in self._nodes

    def has_edge(self, caller: MethodIdentity, callee: MethodIdentity) -> bool:
        return Edge(caller, callee) in self._edges

    def callees(self, caller: MethodIdentity) -> Set[MethodIdentity]:
        return set(self._callees.get(caller, ()))

    def get(self) -> Dict[str, Set[str]]:
        """Plain ``signature -> {callee signatures}`` view of the graph."""
        view: Dict[str, Set[str]] = {node.signature: set() for node in self._nodes.values()}
        for edge in self._edges:
            view.setdefault(edge.caller.signature, set()).add(edge.callee.signature)
        return view

    def get_modules(self) -> Dict[str, str]:
        return {node.signature: node.module for node in self._nodes.values()}

    def cycles(self) -> List[List[MethodIdentity]]:
        """Elementary call cycles, recursion included."""
        return [list(cycle) for cycle in nx.simple_cycles(self.to_networkx())]

    def to_networkx(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        for identity, node in self._nodes.items():
            graph.add_node(identity, module=node.module, namespace=node.namespace,
                           signature=node.signature)
        graph.add_edges_from((edge.caller, edge.callee) for edge in self._edges)
        return graph

    # ------------------------------------------------------------ compat ops
    def merge(self, other: "CallGraph") -> None:
        """Merge another call graph into this one."""
        for node in other.nodes():
            self.add_node(node)
        for edge in other.edges():
            self.add_edge(edge.caller, edge.callee)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        return "CallGraph [nodes: %d, edges: %d]" % (len(self._nodes), len(self._edges))
