"""
Workspace: one configured analysis run, from the program directory on disk
to the written call graph.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional

from reachgraph.analysis.callgraph.entrypoints import EntryPointSelector
from reachgraph.analysis.callgraph.formats import generate_dot_output, generate_json_output
from reachgraph.analysis.callgraph.worklist import AnalysisResult, WorklistDriver
from reachgraph.language.loader import discover_modules, load_program
from reachgraph.language.model import Program
from reachgraph.util.application.console import Console
from reachgraph.util.application.errorhandler import ErrorHandler

from .config import AnalysisConfig
from .errors import ConfigurationError
from .statistics import Statistics

LOG = logging.getLogger(__name__)


class Workspace:
    """
    Attributes:
        config: The effective configuration.
        console: Phase timer.
        module_files: Module descriptions found by `initialize`.
        program: The loaded program (after `load`).
        result: The analysis result (after `build_callgraph`).
    """

    def __init__(self, config: AnalysisConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console if console is not None else Console()
        self.module_files: List[Path] = []
        self.program: Optional[Program] = None
        self.result: Optional[AnalysisResult] = None

    def initialize(self) -> List[Path]:
        """
        Find the module descriptions to analyse.

        Raises:
            ConfigurationError: If the program path does not exist or holds
                no module descriptions.
        """
        path = Path(self.config.program_path)
        if path.is_file():
            self.module_files = [path]
        elif path.is_dir():
            self.module_files = discover_modules(path)
        else:
            raise ConfigurationError("program directory not found: %s" % path)

        if not self.module_files:
            raise ConfigurationError("no module descriptions found in %s" % path)
        LOG.info("found %d modules", len(self.module_files))
        return self.module_files

    def load(self) -> Program:
        if not self.module_files:
            self.initialize()
        with self.console.scope("load"):
            self.program = load_program(self.module_files)
        LOG.info("%d types in %d modules", len(self.program), len(self.program.modules))
        return self.program

    def build_callgraph(self, errors: Optional[ErrorHandler] = None) -> AnalysisResult:
        program = self.program if self.program is not None else self.load()

        with self.console.scope("entry points"):
            selector = EntryPointSelector(
                program, self.config.entrypoint_strategy, self.config.namespaces
            )
            seeds = selector.select()

        with self.console.scope("analysis"):
            driver = WorklistDriver(program, self.config.algorithm, errors=errors)
            self.result = driver.run(seeds)

        LOG.info("%r (%s)", self.result.callgraph, self.result.errors.statusString())
        return self.result

    def write_outputs(self, result: Optional[AnalysisResult] = None) -> List[Path]:
        """Write the configured JSON and DOT files. Returns the paths written."""
        result = result if result is not None else self.result
        if result is None:
            raise ValueError("no analysis result to write")

        written = []
        if self.config.json_output_path is not None:
            written.append(_write(self.config.json_output_path, generate_json_output(result.callgraph)))
        if self.config.dot_output_path is not None:
            text = generate_dot_output(result.callgraph, self.config.dot_edge_limit)
            written.append(_write(self.config.dot_output_path, text))
        return written

    def run(self) -> Statistics:
        """Initialize, load, analyse and write; return the run statistics."""
        start = time.perf_counter()
        self.initialize()
        self.load()
        result = self.build_callgraph()
        with self.console.scope("write"):
            self.write_outputs(result)
        return Statistics.capture(
            result, self.config, time.perf_counter() - start, self.console.timings()
        )


def _write(path, text: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    LOG.info("writing results to %s", path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path
