"""
Analysis configuration.

A configuration is a JSON object::

    {
      "program_path": "bin/",
      "namespaces": ["Zoo"],
      "algorithm": "RTA",
      "entrypoint_strategy": "PUBLIC_CONCRETE",
      "json_output_path": "out/callgraph.json",
      "dot_output_path": "out/callgraph.dot",
      "dot_edge_limit": 50
    }

The PascalCase spellings (``BinaryPath``, ``Namespaces``, ``Algorithm``,
``EntrypointStrategy``, ``JsonOutputPath``, ``DotOutputPath``) are accepted
as well. Relative paths are resolved against the directory holding the
configuration file.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from reachgraph.analysis.callgraph.dispatch import Algorithm
from reachgraph.analysis.callgraph.entrypoints import EntryPointStrategy

from .errors import ConfigurationError

LOG = logging.getLogger(__name__)

DEFAULT_DOT_EDGE_LIMIT = 50

_ALIASES = {
    "BinaryPath": "program_path",
    "binary_path": "program_path",
    "Namespaces": "namespaces",
    "Algorithm": "algorithm",
    "EntrypointStrategy": "entrypoint_strategy",
    "JsonOutputPath": "json_output_path",
    "DotOutputPath": "dot_output_path",
    "DotEdgeLimit": "dot_edge_limit",
}


@dataclass
class AnalysisConfig:
    program_path: Path
    namespaces: List[str] = field(default_factory=list)
    algorithm: Algorithm = Algorithm.CHA
    entrypoint_strategy: EntryPointStrategy = EntryPointStrategy.PROGRAM_ENTRY
    json_output_path: Optional[Path] = None
    dot_output_path: Optional[Path] = None
    dot_edge_limit: Optional[int] = DEFAULT_DOT_EDGE_LIMIT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_dir=None) -> "AnalysisConfig":
        """
        Build a configuration from parsed JSON.

        Raises:
            ConfigurationError: On a missing ``program_path``, an unknown
                key, or a value of the wrong kind.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("configuration must be a JSON object")

        values: Dict[str, Any] = {}
        known = {f.name for f in dataclasses.fields(cls)}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError("unknown configuration key %r" % key)
            values[name] = value

        if not values.get("program_path"):
            raise ConfigurationError("configuration is missing 'program_path'")

        base = Path(base_dir) if base_dir is not None else Path.cwd()
        try:
            return cls(
                program_path=_path(values["program_path"], base),
                namespaces=_namespaces(values.get("namespaces")),
                algorithm=Algorithm.parse(values.get("algorithm") or Algorithm.CHA.value),
                entrypoint_strategy=EntryPointStrategy.parse(
                    values.get("entrypoint_strategy") or EntryPointStrategy.PROGRAM_ENTRY.value
                ),
                json_output_path=_optional_path(values.get("json_output_path"), base),
                dot_output_path=_optional_path(values.get("dot_output_path"), base),
                dot_edge_limit=_edge_limit(values.get("dot_edge_limit", DEFAULT_DOT_EDGE_LIMIT)),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(str(e)) from e

    def override(self, **changes) -> "AnalysisConfig":
        """Copy with every non-None keyword applied; used for command line flags."""
        changes = {key: value for key, value in changes.items() if value is not None}
        if "dot_edge_limit" in changes:
            changes["dot_edge_limit"] = _edge_limit(changes["dot_edge_limit"])
        return dataclasses.replace(self, **changes)

    def describe(self) -> str:
        lines = [
            "program path:        %s" % self.program_path,
            "namespaces:          %s" % (", ".join(self.namespaces) or "(all)"),
            "algorithm:           %s" % self.algorithm.value,
            "entrypoint strategy: %s" % self.entrypoint_strategy.value,
            "json output path:    %s" % (self.json_output_path or "-"),
            "dot output path:     %s" % (self.dot_output_path or "-"),
        ]
        return "\n".join(lines)


def _path(value, base: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


def _optional_path(value, base: Path) -> Optional[Path]:
    if not value:
        return None
    return _path(value, base)


def _namespaces(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [str(item) for item in value if str(item)]


def _edge_limit(value) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("dot_edge_limit must be an integer")
    limit = int(value)
    if limit < 0:
        raise ValueError("dot_edge_limit must not be negative")
    return limit


def load_config(path) -> AnalysisConfig:
    """
    Read an `AnalysisConfig` from a JSON file.

    Raises:
        ConfigurationError: If the file is missing, is not JSON, or does not
            describe a valid configuration.
    """
    path = Path(path).expanduser().resolve()
    if not path.is_file():
        raise ConfigurationError("configuration file not found: %s" % path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError("cannot read %s: %s" % (path, e)) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError("%s is not valid JSON: %s" % (path, e)) from e

    config = AnalysisConfig.from_dict(data, base_dir=path.parent)
    LOG.debug("configuration %s:\n%s", path, config.describe())
    return config
