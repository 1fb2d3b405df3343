from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

import pytest

ZOO_MODULE = {
    "name": "Zoo.dll",
    "entry_point": {"type": "Zoo.Program", "name": "Main"},
    "types": [
        {"name": "Animal", "namespace": "Zoo", "abstract": True,
         "methods": [
             {"name": "Speak", "virtual": True, "abstract": True, "new_slot": True},
             {"name": ".ctor", "visibility": "protected", "body": []},
         ]},
        {"name": "Dog", "namespace": "Zoo", "base_type": "Zoo.Animal",
         "methods": [
             {"name": "Speak", "virtual": True, "body": [{"op": "ret"}]},
             {"name": ".ctor", "body": [
                 {"op": "call", "method": {"type": "Zoo.Animal", "name": ".ctor"}}]},
         ]},
        {"name": "Cat", "namespace": "Zoo", "base_type": "Zoo.Animal",
         "methods": [
             {"name": "Speak", "virtual": True, "body": [{"op": "ret"}]},
             {"name": ".ctor", "body": []},
         ]},
        {"name": "Program", "namespace": "Zoo",
         "methods": [
             {"name": "Main", "static": True, "body": [
                 {"op": "newobj", "method": {"type": "Zoo.Dog", "name": ".ctor"}},
                 {"op": "callvirt", "method": {"type": "Zoo.Animal", "name": "Speak"}},
                 {"op": "ret"},
             ]},
         ]},
    ],
}


@pytest.fixture
def write_json(tmp_path: Path):
    """Write `data` as JSON below tmp_path and return the file path."""

    def _write(relative: str, data: Any) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def zoo_config(tmp_path: Path, write_json):
    """A program directory holding the zoo module and a config file next to it."""

    def _config(overrides: Optional[Mapping[str, Any]] = None) -> Path:
        write_json("bin/Zoo.json", ZOO_MODULE)
        data = {
            "program_path": "bin",
            "algorithm": "CHA",
            "entrypoint_strategy": "PROGRAM_ENTRY",
            "json_output_path": "out/callgraph.json",
        }
        data.update(overrides or {})
        return write_json("config.json", data)

    return _config
