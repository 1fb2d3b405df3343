"""
Call graph construction by worklist reachability.

The package is organized into focused components:
- hierarchy: subtype and implementer queries over the program
- instantiated: the set of types proven constructed (RTA)
- dispatch / signatures: virtual call resolution (CHA and RTA)
- scanner: per-method instruction classification
- entrypoints: seed selection strategies
- worklist: the fixpoint driver
- formats: JSON, DOT and text output
"""

from .dispatch import Algorithm, HierarchyResolver, InstantiationResolver, make_resolver
from .entrypoints import EntryPointSelector, EntryPointStrategy
from .hierarchy import TypeHierarchyIndex
from .instantiated import InstantiatedTypeSet
from .scanner import MethodScanner
from .worklist import AnalysisResult, Worklist, WorklistDriver


def build_call_graph(program, algorithm=Algorithm.CHA,
                     strategy=EntryPointStrategy.PROGRAM_ENTRY, namespaces=()):
    """Select entry points and run the analysis in one call."""
    seeds = EntryPointSelector(program, strategy, namespaces).select()
    return WorklistDriver(program, algorithm).run(seeds)


__all__ = [
    "Algorithm",
    "AnalysisResult",
    "EntryPointSelector",
    "EntryPointStrategy",
    "HierarchyResolver",
    "InstantiatedTypeSet",
    "InstantiationResolver",
    "MethodScanner",
    "TypeHierarchyIndex",
    "Worklist",
    "WorklistDriver",
    "build_call_graph",
    "make_resolver",
]
