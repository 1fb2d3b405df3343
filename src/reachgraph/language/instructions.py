"""
Instruction set of the program model.

Only the instructions that matter for reachability get their own class; every
other opcode is kept as `Other` so method bodies stay complete and ordered.

=================  ====================  =====================================
Mnemonic           Class                 Operand
=================  ====================  =====================================
``call``           `Call`                `MethodRef` (statically bound)
``ldftn``          `LoadFunction`        `MethodRef` (statically bound)
``callvirt``       `CallVirtual`         `MethodRef` (declared virtual target)
``ldvirtftn``      `LoadVirtualFunction` `MethodRef` (declared virtual target)
``newobj``         `NewObject`           `MethodRef` of the constructor
``initobj``        `InitObject`          type name (value-type default init)
``newarr``         `NewArray`            element type name
=================  ====================  =====================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Type

from .model import MethodRef


@dataclass(frozen=True)
class Instruction:
    opcode: ClassVar[str] = "nop"


@dataclass(frozen=True)
class Other(Instruction):
    """Any instruction without reachability relevance."""

    mnemonic: str = "nop"

    def __str__(self) -> str:
        return self.mnemonic


@dataclass(frozen=True)
class MethodInstruction(Instruction):
    method: MethodRef

    def __str__(self) -> str:
        return "%s %s" % (self.opcode, self.method.full_name)


@dataclass(frozen=True)
class TypeInstruction(Instruction):
    type: str

    def __str__(self) -> str:
        return "%s %s" % (self.opcode, self.type)


@dataclass(frozen=True)
class Call(MethodInstruction):
    opcode: ClassVar[str] = "call"


@dataclass(frozen=True)
class LoadFunction(MethodInstruction):
    opcode: ClassVar[str] = "ldftn"


@dataclass(frozen=True)
class CallVirtual(MethodInstruction):
    opcode: ClassVar[str] = "callvirt"


@dataclass(frozen=True)
class LoadVirtualFunction(MethodInstruction):
    opcode: ClassVar[str] = "ldvirtftn"


@dataclass(frozen=True)
class NewObject(MethodInstruction):
    opcode: ClassVar[str] = "newobj"


@dataclass(frozen=True)
class InitObject(TypeInstruction):
    opcode: ClassVar[str] = "initobj"


@dataclass(frozen=True)
class NewArray(TypeInstruction):
    opcode: ClassVar[str] = "newarr"


METHOD_OPCODES: Dict[str, Type[MethodInstruction]] = {
    cls.opcode: cls
    for cls in (Call, LoadFunction, CallVirtual, LoadVirtualFunction, NewObject)
}

TYPE_OPCODES: Dict[str, Type[TypeInstruction]] = {
    cls.opcode: cls for cls in (InitObject, NewArray)
}


def decode_instruction(mnemonic: str, operand=None) -> Instruction:
    """
    Build an instruction from its mnemonic and an already decoded operand.

    Args:
        mnemonic: CIL opcode name such as ``callvirt``.
        operand: A `MethodRef` for method opcodes, a type name for type
            opcodes, ignored otherwise.

    Raises:
        ValueError: If a method or type opcode is given the wrong operand.
    """
    mnemonic = mnemonic.lower()
    if mnemonic in METHOD_OPCODES:
        if not isinstance(operand, MethodRef):
            raise ValueError("%s expects a method operand, got %r" % (mnemonic, operand))
        return METHOD_OPCODES[mnemonic](operand)
    if mnemonic in TYPE_OPCODES:
        if not isinstance(operand, str) or not operand:
            raise ValueError("%s expects a type operand, got %r" % (mnemonic, operand))
        return TYPE_OPCODES[mnemonic](operand)
    return Other(mnemonic)
