"""
Call graph output format generators.

This module renders a `CallGraph` as JSON (the complete graph), DOT (a
bounded prefix of the edges, for a quick look in Graphviz) or text (a
summary with the call cycles).
"""

import json
from typing import Optional

from reachgraph.machinery.callgraph import CallGraph


def dot_label(signature: str) -> str:
    """``Ret Ns.Type::Name(P1,P2)`` shortened to ``Ns.Type::Name()``."""
    label = signature[signature.find(" ") + 1:]
    paren = label.rfind("(")
    if paren >= 0:
        label = label[:paren]
    return label + "()"


def _quote(text: str) -> str:
    return '"%s"' % text.replace("\\", "\\\\").replace('"', '\\"')


def graph_to_dict(call_graph: CallGraph) -> dict:
    return {
        "nodes": [
            {"module": node.module, "namespace": node.namespace, "signature": node.signature}
            for node in call_graph.nodes()
        ],
        "edges": [
            {"caller": edge.caller.signature, "callee": edge.callee.signature}
            for edge in call_graph.edges()
        ],
    }


def generate_json_output(call_graph: CallGraph) -> str:
    """Every node and edge, in discovery order."""
    return json.dumps(graph_to_dict(call_graph), indent=2, ensure_ascii=False)


def generate_dot_output(call_graph: CallGraph, edge_limit: Optional[int] = 50) -> str:
    """
    DOT digraph of the first `edge_limit` edges.

    A limit of None or 0 writes every edge. Nodes are not listed separately,
    so a node without edges does not appear.
    """
    lines = ["digraph G {"]
    for index, edge in enumerate(call_graph.edges()):
        if edge_limit and index >= edge_limit:
            break
        lines.append(
            "%s -> %s" % (_quote(dot_label(edge.caller.signature)), _quote(dot_label(edge.callee.signature)))
        )
    lines.append("}")
    return "\n".join(lines) + "\n"


def generate_text_output(call_graph: CallGraph) -> str:
    output = []
    output.append("Call Graph Analysis")
    output.append("=" * 50)
    output.append("")

    cg_data = call_graph.get()
    modules = call_graph.get_modules()

    output.append(f"Methods ({len(call_graph)}):")
    for signature in sorted(modules):
        output.append(f"  - {signature} (from {modules[signature]})")
    output.append("")

    output.append("Call Relationships:")
    for caller in sorted(cg_data):
        callees = cg_data[caller]
        if callees:
            output.append(f"  {caller} -> {', '.join(sorted(callees))}")
        else:
            output.append(f"  {caller} -> (no calls)")

    cycles = call_graph.cycles()
    if cycles:
        output.append("")
        output.append("Cycles detected:")
        for i, cycle in enumerate(sorted(cycles, key=len)):
            names = [identity.signature for identity in cycle]
            output.append(f"  Cycle {i+1}: {' -> '.join(names + names[:1])}")

    return "\n".join(output)


# Renderers keyed by format name; each takes the graph and an `AnalysisConfig`.
FORMATS = {
    "json": lambda graph, config: generate_json_output(graph),
    "dot": lambda graph, config: generate_dot_output(graph, config.dot_edge_limit),
    "text": lambda graph, config: generate_text_output(graph),
}
