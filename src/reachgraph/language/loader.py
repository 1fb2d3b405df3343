"""
Load program models from JSON module descriptions.

A program directory holds one ``*.json`` file per module (searched
recursively, loaded in sorted path order). Each file looks like::

    {
      "name": "Zoo.dll",
      "entry_point": {"type": "Zoo.Program", "name": "Main",
                      "parameters": ["System.String[]"], "return_type": "System.Void"},
      "types": [
        {"name": "Animal", "namespace": "Zoo", "base_type": "System.Object",
         "abstract": true,
         "methods": [
           {"name": "Speak", "virtual": true, "abstract": true, "new_slot": true}
         ]},
        {"name": "Program", "namespace": "Zoo",
         "methods": [
           {"name": "Main", "static": true, "parameters": ["System.String[]"],
            "body": [
              {"op": "newobj", "method": {"type": "Zoo.Dog", "name": ".ctor"}},
              {"op": "callvirt", "method": {"type": "Zoo.Animal", "name": "Speak"}},
              {"op": "ret"}
            ]}
         ]}
      ]
    }

Missing keys take the defaults of the model dataclasses. A method has a body
exactly when the ``body`` key is present (an empty list is an empty body).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping

from reachgraph.application.errors import ProgramLoadError

from .instructions import Instruction, decode_instruction
from .model import VOID, MethodDef, MethodRef, Module, Program, TypeDef, Visibility

LOG = logging.getLogger(__name__)

MODULE_SUFFIX = ".json"


def method_ref_from_dict(data: Mapping[str, Any]) -> MethodRef:
    return MethodRef(
        declaring_type=data["type"],
        name=data["name"],
        parameters=tuple(data.get("parameters", ())),
        return_type=data.get("return_type", VOID),
    )


def instruction_from_dict(data: Mapping[str, Any]) -> Instruction:
    mnemonic = data["op"]
    operand = None
    if "method" in data:
        operand = method_ref_from_dict(data["method"])
    elif "type" in data:
        operand = data["type"]
    return decode_instruction(mnemonic, operand)


def method_from_dict(data: Mapping[str, Any]) -> MethodDef:
    body = None
    if "body" in data:
        body = [instruction_from_dict(item) for item in data["body"]]
    return MethodDef(
        name=data["name"],
        parameters=tuple(data.get("parameters", ())),
        return_type=data.get("return_type", VOID),
        visibility=Visibility.parse(data.get("visibility", "public")),
        is_static=data.get("static", False),
        is_virtual=data.get("virtual", False),
        is_abstract=data.get("abstract", False),
        is_new_slot=data.get("new_slot", False),
        is_getter=data.get("getter", False),
        is_setter=data.get("setter", False),
        overrides=tuple(method_ref_from_dict(ref) for ref in data.get("overrides", ())),
        body=body,
        state_machine_type=data.get("state_machine"),
    )


def type_from_dict(data: Mapping[str, Any]) -> TypeDef:
    return TypeDef(
        name=data["name"],
        namespace=data.get("namespace", ""),
        base_type=data.get("base_type"),
        interfaces=tuple(data.get("interfaces", ())),
        is_abstract=data.get("abstract", False),
        is_interface=data.get("interface", False),
        is_value_type=data.get("value_type", False),
        methods=[method_from_dict(item) for item in data.get("methods", ())],
        nested_types=[type_from_dict(item) for item in data.get("nested_types", ())],
    )


def module_from_dict(data: Mapping[str, Any], default_name: str = "") -> Module:
    entry = data.get("entry_point")
    return Module(
        name=data.get("name", default_name),
        types=[type_from_dict(item) for item in data.get("types", ())],
        entry_point=method_ref_from_dict(entry) if entry else None,
    )


def load_module(path) -> Module:
    """
    Read one module description.

    Raises:
        ProgramLoadError: If the file is unreadable, not JSON, or structurally
            invalid.
    """
    path = Path(path)
    LOG.info("loading module %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return module_from_dict(data, default_name=path.stem)
    except OSError as e:
        raise ProgramLoadError("cannot read %s: %s" % (path, e)) from e
    except json.JSONDecodeError as e:
        raise ProgramLoadError("%s is not valid JSON: %s" % (path, e)) from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ProgramLoadError("malformed module description %s: %r" % (path, e)) from e


def discover_modules(directory) -> List[Path]:
    return sorted(p for p in Path(directory).rglob("*" + MODULE_SUFFIX) if p.is_file())


def load_program(paths) -> Program:
    """Load every module file in `paths` into one `Program`."""
    return Program([load_module(path) for path in paths])
