"""
Run statistics.

`Statistics.capture` snapshots an analysis result together with process
metrics taken from psutil. The object is a plain value; nothing about it is
global, so several runs in one process each get their own.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import psutil

from reachgraph.util.io import formatting

LOG = logging.getLogger(__name__)

RULE = "=" * 58


@dataclass
class Statistics:
    configuration: str = ""
    nodes: int = 0
    edges: int = 0
    entry_points: int = 0
    scanned: int = 0
    instantiated: int = 0
    waves: int = 0
    errors: int = 0
    warnings: int = 0
    elapsed: float = 0.0
    process_time: float = 0.0
    current_memory: int = 0
    peak_memory: Optional[int] = None
    phases: List[Tuple[str, float]] = field(default_factory=list)

    @classmethod
    def capture(cls, result, config=None, elapsed=0.0, phases=()) -> "Statistics":
        stats = cls(
            configuration=config.describe() if config is not None else "",
            nodes=len(result.callgraph),
            edges=result.callgraph.edge_count,
            entry_points=result.seeds,
            scanned=result.scanned,
            instantiated=len(result.instantiated),
            waves=result.waves,
            errors=result.errors.errorCount,
            warnings=result.errors.warningCount,
            elapsed=elapsed,
            phases=list(phases),
        )
        stats.capture_process()
        return stats

    def capture_process(self) -> None:
        process = psutil.Process(os.getpid())
        info = process.memory_info()
        self.current_memory = info.rss
        # Only some platforms report a peak working set.
        self.peak_memory = getattr(info, "peak_wset", None)
        self.process_time = time.time() - process.create_time()

    def report(self) -> str:
        lines = []
        if self.configuration:
            lines.append("Parameters")
            lines.append(RULE)
            lines.append(self.configuration)
            lines.append(RULE)
            lines.append("")

        lines.append("Results")
        lines.append(RULE)
        lines.append("graph nodes:         %d" % self.nodes)
        lines.append("graph edges:         %d" % self.edges)
        lines.append("entry points:        %d" % self.entry_points)
        lines.append("scanned methods:     %d" % self.scanned)
        lines.append("instantiated types:  %d" % self.instantiated)
        if self.waves:
            lines.append("refinement waves:    %d" % self.waves)
        lines.append("diagnostics:         %s, %s" % (
            formatting.plural(self.errors, "error"), formatting.plural(self.warnings, "warning")))
        lines.append("analysis time:       %s" % formatting.elapsedTime(self.elapsed).strip())
        lines.append("process time:        %s" % formatting.elapsedTime(self.process_time).strip())
        lines.append("current memory:      %s" % formatting.memorySize(self.current_memory).strip())
        if self.peak_memory is not None:
            lines.append("peak memory:         %s" % formatting.memorySize(self.peak_memory).strip())
        for path, seconds in self.phases:
            lines.append("  %-17s  %s" % (path, formatting.elapsedTime(seconds).strip()))
        lines.append(RULE)
        return "\n".join(lines)
