"""
Program model of the analysed binaries.

- model: modules, types, methods and name-based resolution
- instructions: the instruction classes the scanner dispatches on
- loader: JSON module descriptions -> `Program`
"""

from .model import (
    Continuation,
    MethodDef,
    MethodIdentity,
    MethodRef,
    Module,
    Program,
    TypeDef,
    Visibility,
)
from .instructions import (
    Call,
    CallVirtual,
    InitObject,
    Instruction,
    LoadFunction,
    LoadVirtualFunction,
    NewArray,
    NewObject,
    Other,
)

__all__ = [
    "Continuation",
    "MethodDef",
    "MethodIdentity",
    "MethodRef",
    "Module",
    "Program",
    "TypeDef",
    "Visibility",
    "Call",
    "CallVirtual",
    "InitObject",
    "Instruction",
    "LoadFunction",
    "LoadVirtualFunction",
    "NewArray",
    "NewObject",
    "Other",
]
