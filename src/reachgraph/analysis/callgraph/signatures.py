"""
Signature matching used by dispatch resolution.

A method `M` can stand in for a virtual target `T` in two ways:

- structurally: same name, same parameter type names position by position,
  and a return type that is the same as `T`'s or a reference type deriving
  from it (covariant return);
- explicitly: one of `M`'s override bindings names `T`, which is how
  explicit interface implementations are expressed.
"""

from __future__ import annotations

from reachgraph.application.errors import UnresolvedReferenceError
from reachgraph.language.model import MethodDef, Program


def is_return_type_compatible(program: Program, returned: str, expected: str) -> bool:
    if returned == expected:
        return True
    returned_type = program.find_type(returned)
    expected_type = program.find_type(expected)
    if returned_type is None or expected_type is None:
        return False
    if returned_type.is_value_type:
        return False
    return program.derives_from(returned_type, expected_type.full_name)


def matches_signature(program: Program, method: MethodDef, target: MethodDef) -> bool:
    if method.name != target.name:
        return False
    if len(method.parameters) != len(target.parameters):
        return False
    for mine, theirs in zip(method.parameters, target.parameters):
        if mine != theirs:
            return False
    return is_return_type_compatible(program, method.return_type, target.return_type)


def is_explicit_implementation(program: Program, method: MethodDef, target: MethodDef) -> bool:
    for binding in method.overrides:
        try:
            bound = program.resolve_method(binding)
        except UnresolvedReferenceError:
            bound = None
        if bound is not None and bound.identity == target.identity:
            return True
        # Fall back to the spelled name when the binding does not resolve.
        if binding.full_name == target.full_name:
            return True
    return False
