"""
Read-only program model consumed by the reachability analysis.

The model mirrors what a compiled object-oriented program exposes: modules
own types, types own methods and nested types, and methods own an ordered
instruction body. Cross references (base types, interfaces, call targets,
override bindings) are kept as *names* and bound to definitions through
`Program`, so a reference spelled in one module resolves to the same
definition as the identical reference spelled in another.

**Naming conventions:**
- Type full names are ``Namespace.Name``; nested types are ``Outer/Inner``
  and share the namespace of their outermost declaring type.
- Method full names (the human readable signature) are
  ``ReturnType DeclaringType::Name(P1,P2)``.

Once a `Program` has been built its indexes never change; the analysis only
reads from it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, List, NamedTuple, Optional, Tuple

from reachgraph.application.errors import UnresolvedReferenceError

if TYPE_CHECKING:
    from .instructions import Instruction

LOG = logging.getLogger(__name__)

VOID = "System.Void"
CONSTRUCTOR_NAME = ".ctor"
STATIC_CONSTRUCTOR_NAME = ".cctor"
STATE_MACHINE_DRIVER = "MoveNext"


def format_signature(return_type, declaring_type, name, parameters) -> str:
    return "%s %s::%s(%s)" % (return_type, declaring_type, name, ",".join(parameters))


class Visibility(enum.Enum):
    """Member accessibility, named after the metadata flags."""

    PRIVATE = "private"
    FAMILY_AND_ASSEMBLY = "private protected"
    ASSEMBLY = "internal"
    FAMILY = "protected"
    FAMILY_OR_ASSEMBLY = "protected internal"
    PUBLIC = "public"

    @classmethod
    def parse(cls, text: str) -> "Visibility":
        key = text.strip().lower().replace("_", " ")
        for member in cls:
            if key in (member.value, member.name.lower().replace("_", " ")):
                return member
        raise ValueError("unknown visibility %r" % text)

    @property
    def is_accessible(self) -> bool:
        """Visible to code outside the assembly (public or protected)."""
        return self in (Visibility.PUBLIC, Visibility.FAMILY, Visibility.FAMILY_OR_ASSEMBLY)


@dataclass(frozen=True)
class MethodRef:
    """A by-name reference to a method, as found in an instruction operand."""

    declaring_type: str
    name: str
    parameters: Tuple[str, ...] = ()
    return_type: str = VOID

    def __post_init__(self):
        object.__setattr__(self, "parameters", tuple(self.parameters))

    @property
    def full_name(self) -> str:
        return format_signature(self.return_type, self.declaring_type, self.name, self.parameters)

    def __str__(self) -> str:
        return self.full_name


class MethodIdentity(NamedTuple):
    """Canonical key of a method definition."""

    declaring_type: str
    name: str
    parameters: Tuple[str, ...]
    return_type: str
    module: str

    @property
    def signature(self) -> str:
        return format_signature(self.return_type, self.declaring_type, self.name, self.parameters)


@dataclass(eq=False)
class MethodDef:
    name: str
    parameters: Tuple[str, ...] = ()
    return_type: str = VOID
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_virtual: bool = False
    is_abstract: bool = False
    is_new_slot: bool = False
    is_getter: bool = False
    is_setter: bool = False
    overrides: Tuple[MethodRef, ...] = ()
    body: Optional[List["Instruction"]] = None
    state_machine_type: Optional[str] = None
    declaring_type: Optional["TypeDef"] = field(default=None, repr=False)

    def __post_init__(self):
        self.parameters = tuple(self.parameters)
        self.overrides = tuple(self.overrides)

    @property
    def has_body(self) -> bool:
        return self.body is not None

    @property
    def is_constructor(self) -> bool:
        return self.name in (CONSTRUCTOR_NAME, STATIC_CONSTRUCTOR_NAME)

    @property
    def is_accessor(self) -> bool:
        return self.is_getter or self.is_setter

    @property
    def module(self) -> str:
        return self.declaring_type.module if self.declaring_type else ""

    @property
    def namespace(self) -> str:
        return self.declaring_type.namespace if self.declaring_type else ""

    @property
    def declaring_type_name(self) -> str:
        return self.declaring_type.full_name if self.declaring_type else ""

    @property
    def full_name(self) -> str:
        return format_signature(self.return_type, self.declaring_type_name, self.name, self.parameters)

    @property
    def identity(self) -> MethodIdentity:
        return MethodIdentity(
            self.declaring_type_name, self.name, self.parameters, self.return_type, self.module
        )

    def reference(self) -> MethodRef:
        return MethodRef(self.declaring_type_name, self.name, self.parameters, self.return_type)

    def matches(self, name, parameters, return_type) -> bool:
        return (
            self.name == name
            and self.parameters == tuple(parameters)
            and self.return_type == return_type
        )

    def __str__(self) -> str:
        return self.full_name


@dataclass(eq=False)
class TypeDef:
    name: str
    namespace: str = ""
    base_type: Optional[str] = None
    interfaces: Tuple[str, ...] = ()
    is_abstract: bool = False
    is_interface: bool = False
    is_value_type: bool = False
    methods: List[MethodDef] = field(default_factory=list)
    nested_types: List["TypeDef"] = field(default_factory=list)
    module: str = ""
    declaring_type: Optional["TypeDef"] = field(default=None, repr=False)

    def __post_init__(self):
        self.interfaces = tuple(self.interfaces)
        for method in self.methods:
            method.declaring_type = self
        for nested in self.nested_types:
            nested.declaring_type = self

    @property
    def full_name(self) -> str:
        if self.declaring_type is not None:
            return "%s/%s" % (self.declaring_type.full_name, self.name)
        if self.namespace:
            return "%s.%s" % (self.namespace, self.name)
        return self.name

    def add_method(self, method: MethodDef) -> MethodDef:
        method.declaring_type = self
        self.methods.append(method)
        return method

    def add_nested_type(self, nested: "TypeDef") -> "TypeDef":
        nested.declaring_type = self
        self.nested_types.append(nested)
        _attach(nested, self.module, self.namespace)
        return nested

    def find_method(self, name, parameters=(), return_type=VOID) -> Optional[MethodDef]:
        for method in self.methods:
            if method.matches(name, parameters, return_type):
                return method
        return None

    def methods_named(self, name) -> List[MethodDef]:
        return [method for method in self.methods if method.name == name]

    def all_types(self) -> Iterator["TypeDef"]:
        """This type followed by every nested type, depth first."""
        yield self
        for nested in self.nested_types:
            yield from nested.all_types()

    def __str__(self) -> str:
        return self.full_name


def _attach(typedef: TypeDef, module: str, namespace: Optional[str]) -> None:
    # Nested types carry no namespace of their own.
    typedef.module = module
    if namespace is not None:
        typedef.namespace = namespace
    for nested in typedef.nested_types:
        nested.declaring_type = typedef
        _attach(nested, module, typedef.namespace)


@dataclass(eq=False)
class Module:
    name: str
    types: List[TypeDef] = field(default_factory=list)
    entry_point: Optional[MethodRef] = None

    def __post_init__(self):
        for typedef in self.types:
            _attach(typedef, self.name, None)

    def add_type(self, typedef: TypeDef) -> TypeDef:
        self.types.append(typedef)
        _attach(typedef, self.name, None)
        return typedef

    def all_types(self) -> Iterator[TypeDef]:
        for typedef in self.types:
            yield from typedef.all_types()

    def __str__(self) -> str:
        return self.name


class Continuation(NamedTuple):
    """A compiler-generated state machine and its driving method (if present)."""

    type: TypeDef
    driver: Optional[MethodDef]


class Program:
    """
    A closed set of modules with name-based resolution.

    Types are indexed by full name across all modules. When two modules define
    the same full name, the first definition wins and a warning is logged.

    Attributes:
        modules: Modules in load order.
    """

    def __init__(self, modules=()):
        self.modules: List[Module] = list(modules)
        self._types: Dict[str, TypeDef] = {}
        self._order: Dict[str, int] = {}

        for module in self.modules:
            for typedef in module.all_types():
                name = typedef.full_name
                if name in self._types:
                    LOG.warning(
                        "duplicate type %s in %s (keeping the one from %s)",
                        name, module.name, self._types[name].module,
                    )
                    continue
                self._order[name] = len(self._order)
                self._types[name] = typedef

    def all_types(self) -> Iterator[TypeDef]:
        """Every indexed type, in load order."""
        return iter(self._types.values())

    def position(self, typedef: TypeDef) -> int:
        return self._order.get(typedef.full_name, len(self._order))

    def find_type(self, name: Optional[str]) -> Optional[TypeDef]:
        if name is None:
            return None
        return self._types.get(name)

    def resolve_type(self, name: str) -> TypeDef:
        typedef = self._types.get(name)
        if typedef is None:
            raise UnresolvedReferenceError(name)
        return typedef

    def resolve_method(self, ref: MethodRef) -> MethodDef:
        typedef = self._types.get(ref.declaring_type)
        method = None
        if typedef is not None:
            method = typedef.find_method(ref.name, ref.parameters, ref.return_type)
        if method is None:
            raise UnresolvedReferenceError(ref.full_name)
        return method

    def entry_point(self, module: Module) -> Optional[MethodDef]:
        if module.entry_point is None:
            return None
        return self.resolve_method(module.entry_point)

    def base_type_of(self, typedef: TypeDef) -> Optional[TypeDef]:
        """The resolved base type, or None at the root or on a missing dependency."""
        if typedef.base_type is None:
            return None
        base = self._types.get(typedef.base_type)
        if base is None:
            LOG.debug("base type %s of %s is not loaded", typedef.base_type, typedef.full_name)
        return base

    def base_chain(self, typedef: TypeDef) -> Iterator[TypeDef]:
        """Ancestors of `typedef`, nearest first (the type itself excluded)."""
        seen = {typedef.full_name}
        current = self.base_type_of(typedef)
        while current is not None and current.full_name not in seen:
            seen.add(current.full_name)
            yield current
            current = self.base_type_of(current)

    def derives_from(self, typedef: TypeDef, base_name: str) -> bool:
        return any(base.full_name == base_name for base in self.base_chain(typedef))

    def continuation_of(self, method: MethodDef) -> Optional[Continuation]:
        """
        State machine generated for an async or iterator method.

        Returns:
            None when the method is not flagged; otherwise the generated type
            and its driving method (None when the type lacks one).

        Raises:
            UnresolvedReferenceError: If the generated type is not loaded.
        """
        if not method.state_machine_type:
            return None
        machine = self.resolve_type(method.state_machine_type)
        driver = None
        for candidate in machine.methods_named(STATE_MACHINE_DRIVER):
            if candidate.has_body and not candidate.parameters:
                driver = candidate
                break
        return Continuation(machine, driver)

    def __len__(self) -> int:
        return len(self._types)
